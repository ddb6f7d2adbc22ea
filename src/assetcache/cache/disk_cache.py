"""
Sharded on-disk cache of asset byte stores.

Stores live under ``<cache_dir>/<shard>/<prefix>_<id>_<extra>.asset`` where
the shard is the first character of the identifier string. The file's mtime
doubles as its last-access time; purge() evicts least recently touched
stores first until the cache fits its size limit.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from assetcache.cache.base import DiskCacheManager
from assetcache.exceptions import CacheDirectoryError, ConfigurationError
from assetcache.logging import get_logger
from assetcache.types import AssetType

if TYPE_CHECKING:
    from assetcache.config import Settings

logger = get_logger(__name__)

CACHE_FILE_SUFFIX = ".asset"
SHARD_CHARS = "0123456789abcdef"
DEFAULT_TOUCH_THRESHOLD_SECONDS = 60 * 60


@dataclass(frozen=True)
class PurgeResult:
    """Outcome of one purge pass."""

    files_scanned: int
    files_removed: int
    bytes_before: int
    bytes_after: int

    @property
    def bytes_freed(self) -> int:
        return self.bytes_before - self.bytes_after


@dataclass(frozen=True)
class CacheInfo:
    """Snapshot of cache usage."""

    cache_dir: Path
    file_count: int
    total_bytes: int
    max_size_bytes: int

    @property
    def usage_percent(self) -> float:
        if self.max_size_bytes <= 0:
            return 0.0
        return 100.0 * self.total_bytes / self.max_size_bytes

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "cache_dir": str(self.cache_dir),
            "file_count": self.file_count,
            "total_bytes": self.total_bytes,
            "max_size_bytes": self.max_size_bytes,
            "usage_percent": round(self.usage_percent, 2),
        }


class DiskCache(DiskCacheManager):
    """Filesystem implementation of the disk cache manager.

    Not synchronized across processes; concurrent touches of one path are
    harmless because the last writer of the mtime wins.
    """

    def __init__(
        self,
        cache_dir: str | Path,
        max_size_bytes: int,
        filename_prefix: str = "sl_cache",
        touch_threshold_seconds: int = DEFAULT_TOUCH_THRESHOLD_SECONDS,
    ) -> None:
        """Initialize the disk cache and create its directory layout.

        Args:
            cache_dir: Root directory of the cache.
            max_size_bytes: Size purge() evicts down to.
            filename_prefix: Prefix of every store filename.
            touch_threshold_seconds: Access times younger than this are left alone.

        Raises:
            ConfigurationError: If max_size_bytes is not positive.
            CacheDirectoryError: If the directory layout cannot be created.
        """
        if max_size_bytes <= 0:
            raise ConfigurationError(
                "Cache size limit must be positive", {"max_size_bytes": max_size_bytes}
            )
        self.cache_dir = Path(cache_dir)
        self.max_size_bytes = max_size_bytes
        self.filename_prefix = filename_prefix
        self.touch_threshold_seconds = touch_threshold_seconds
        self.create_cache()

    @classmethod
    def from_settings(cls, settings: Settings) -> DiskCache:
        """Build a cache from application settings."""
        return cls(
            cache_dir=settings.CACHE_DIR,
            max_size_bytes=settings.max_cache_size_bytes,
            filename_prefix=settings.CACHE_FILENAME_PREFIX,
            touch_threshold_seconds=settings.TOUCH_THRESHOLD_SECONDS,
        )

    def create_cache(self) -> None:
        """Create the cache root and its shard directories. Safe to call again."""
        try:
            for shard in SHARD_CHARS:
                (self.cache_dir / shard).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheDirectoryError(
                "Unable to create cache directory",
                {"cache_dir": str(self.cache_dir), "reason": e.strerror or str(e)},
            ) from e
        logger.debug("Disk cache ready", cache_dir=str(self.cache_dir))

    def metadata_to_filepath(
        self, id_string: str, asset_type: AssetType, extra_info: str = ""
    ) -> Path:
        """Resolve an identifier to its store path.

        The category is accepted for interface symmetry but does not take
        part in the layout: a store is found whatever category it was
        cached under.
        """
        shard = id_string[:1].lower() or "0"
        filename = f"{self.filename_prefix}_{id_string}_{extra_info or '0'}{CACHE_FILE_SUFFIX}"
        return self.cache_dir / shard / filename

    def update_file_access_time(self, path: Path) -> None:
        """Bump the store's mtime to now if it is older than the touch threshold."""
        try:
            last_access = os.stat(path).st_mtime
        except FileNotFoundError:
            logger.debug("Touched cache file is gone", path=str(path))
            return
        except OSError as e:
            logger.warning(
                "Failed to read last access time for cache file",
                path=str(path),
                reason=e.strerror,
            )
            return

        now = time.time()
        if now - last_access <= self.touch_threshold_seconds:
            return

        try:
            os.utime(path, (now, now))
        except OSError as e:
            logger.warning(
                "Failed to update last access time for cache file",
                path=str(path),
                reason=e.strerror,
            )

    def _iter_stores(self) -> list[tuple[Path, os.stat_result]]:
        stores: list[tuple[Path, os.stat_result]] = []
        if not self.cache_dir.is_dir():
            return stores
        for path in self.cache_dir.rglob(f"{self.filename_prefix}_*{CACHE_FILE_SUFFIX}"):
            try:
                st = path.stat()
            except OSError:
                # Removed between listing and stat
                continue
            if path.is_file():
                stores.append((path, st))
        return stores

    def dir_size(self) -> int:
        """Total size in bytes of all stores in the cache."""
        return sum(st.st_size for _, st in self._iter_stores())

    def cache_dir_info(self) -> CacheInfo:
        """Snapshot current cache usage."""
        stores = self._iter_stores()
        return CacheInfo(
            cache_dir=self.cache_dir,
            file_count=len(stores),
            total_bytes=sum(st.st_size for _, st in stores),
            max_size_bytes=self.max_size_bytes,
        )

    def purge(self) -> PurgeResult:
        """Evict least recently accessed stores until the cache fits its limit.

        Most recently accessed stores are kept first; once the running total
        passes max_size_bytes every older store is removed.
        """
        stores = self._iter_stores()
        stores.sort(key=lambda item: item[1].st_mtime, reverse=True)

        bytes_before = sum(st.st_size for _, st in stores)
        kept_bytes = 0
        removed = 0
        over_limit = False
        for path, st in stores:
            if not over_limit and kept_bytes + st.st_size <= self.max_size_bytes:
                kept_bytes += st.st_size
                continue
            over_limit = True
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Failed to purge cache file", path=str(path), reason=e.strerror)
                kept_bytes += st.st_size

        result = PurgeResult(
            files_scanned=len(stores),
            files_removed=removed,
            bytes_before=bytes_before,
            bytes_after=kept_bytes,
        )
        logger.info(
            "Purged disk cache",
            files_removed=removed,
            bytes_freed=result.bytes_freed,
        )
        return result

    def clear_cache(self) -> int:
        """Remove every store in the cache. Returns the number removed."""
        removed = 0
        for path, _ in self._iter_stores():
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Failed to remove cache file", path=str(path), reason=e.strerror)
        logger.info("Cleared disk cache", files_removed=removed)
        return removed
