"""
Asset cache: per-asset byte-stream access over a content-addressed disk cache.
"""

__version__ = "0.1.0"
