"""
Disk cache package.

This package provides the collaborator the asset accessor consumes:
- DiskCacheManager (base.py): path resolution and access-time contract
- DiskCache (disk_cache.py): sharded on-disk implementation with LRU purge
"""

from assetcache.cache.base import DiskCacheManager
from assetcache.cache.disk_cache import CacheInfo, DiskCache, PurgeResult

__all__ = ["CacheInfo", "DiskCache", "DiskCacheManager", "PurgeResult"]
