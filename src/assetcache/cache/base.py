"""
Base classes for the disk cache.

The asset accessor never decides where a store lives or when it is evicted;
it only asks a DiskCacheManager to resolve paths and to record access.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from assetcache.types import AssetType


class DiskCacheManager(ABC):
    """Abstract interface for the cache that owns store layout and eviction."""

    @abstractmethod
    def metadata_to_filepath(
        self, id_string: str, asset_type: AssetType, extra_info: str = ""
    ) -> Path:
        """Resolve an asset identity to the path of its byte store.

        Deterministic and free of side effects.
        """
        ...

    @abstractmethod
    def update_file_access_time(self, path: Path) -> None:
        """Record that the store at ``path`` was accessed.

        Best effort: must not raise, even if the file vanished concurrently.
        """
        ...
