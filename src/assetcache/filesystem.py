"""
Per-asset byte-stream access over the disk cache.

AssetFile is a short-lived session bound to one asset identity and open mode.
It holds only a cursor: every read, write and size query resolves the store
path through the DiskCacheManager again and opens the file for that one call,
so a store evicted between calls never leaves a dangling handle behind.

Operations that need no cursor (existence, size, remove, rename) are plain
functions over identities.

None of these operations raise on I/O trouble. Missing stores read as empty,
out-of-range seeks clamp the cursor, and remove/rename always report success
after logging any OS failure.
"""

from __future__ import annotations

import errno
import os
import stat
from pathlib import Path

from assetcache.cache.base import DiskCacheManager
from assetcache.logging import get_logger, log_context
from assetcache.types import MAX_ASSET_SIZE, AssetId, OpenMode

logger = get_logger(__name__)

# Origin value for seek() meaning "relative to the current cursor".
SEEK_CURRENT = -1

# Chunk size used when read_asset() pulls a whole store.
READ_CHUNK_SIZE = 64 * 1024


def _store_path(cache: DiskCacheManager, asset_id: AssetId) -> Path:
    return cache.metadata_to_filepath(asset_id.id_string, asset_id.asset_type, "")


def asset_exists(cache: DiskCacheManager, asset_id: AssetId) -> bool:
    """True if the asset's store is a regular file holding at least one byte.

    An empty store counts as missing: it cannot be told apart from one that
    was never written.
    """
    try:
        st = os.stat(_store_path(cache, asset_id))
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and st.st_size > 0


def asset_size(cache: DiskCacheManager, asset_id: AssetId) -> int:
    """Byte length of the asset's store, or 0 if it cannot be stat'ed."""
    try:
        return os.stat(_store_path(cache, asset_id)).st_size
    except OSError:
        return 0


def max_size() -> int:
    """Largest size a store may report. No cap is enforced."""
    return MAX_ASSET_SIZE


def remove_asset(cache: DiskCacheManager, asset_id: AssetId, suppress_errno: int = 0) -> bool:
    """Delete the asset's store if present.

    Failures are logged, never raised. An error whose errno equals
    ``suppress_errno`` (typically ``errno.ENOENT``) is expected by the caller
    and only logged at debug level.

    Returns:
        Always True.
    """
    path = _store_path(cache, asset_id)
    try:
        path.unlink()
        logger.debug("Removed asset", asset=str(asset_id))
    except OSError as e:
        if suppress_errno and e.errno == suppress_errno:
            logger.debug("Asset already absent", asset=str(asset_id))
        else:
            logger.warning(
                "Failed to remove asset",
                asset=str(asset_id),
                path=str(path),
                reason=e.strerror,
            )
    return True


def rename_asset(cache: DiskCacheManager, old_id: AssetId, new_id: AssetId) -> bool:
    """Rebind the bytes stored under ``old_id`` to ``new_id``.

    Any store already at ``new_id`` is deleted first. An OS-level rename
    failure is logged and still reported as success; callers treat rename
    as infallible.

    Returns:
        Always True.
    """
    old_path = _store_path(cache, old_id)
    new_path = _store_path(cache, new_id)

    # Identities sharing a path (category-only change) share the store already
    if old_path == new_path:
        return True

    remove_asset(cache, new_id, suppress_errno=errno.ENOENT)

    try:
        os.rename(old_path, new_path)
        logger.debug("Renamed asset", old=str(old_id), new=str(new_id))
    except OSError as e:
        logger.warning(
            "Failed to rename asset",
            old=str(old_id),
            new=str(new_id),
            reason=e.strerror,
        )
    return True


class AssetFile:
    """Access session for one asset store.

    The session owns an identity, an open mode, a cursor and the count of
    bytes returned by the last read. Nothing else is cached: store size and
    content are re-derived from disk on every call, and no file handle is
    held between calls, so there is nothing to close.

    Two sessions on the same asset are not serialized against each other.
    """

    def __init__(
        self,
        cache: DiskCacheManager,
        asset_id: AssetId,
        mode: OpenMode = OpenMode.READ,
    ) -> None:
        """Bind a session to an asset.

        With READ intent an existing store has its access time refreshed so
        the cache's eviction sees it as recently used. A missing store is not
        an error; reads simply fail later.

        Args:
            cache: The disk cache that owns path layout and eviction.
            asset_id: Identity of the asset.
            mode: Open intent, fixed for the session's lifetime.
        """
        self._cache = cache
        self._asset_id = asset_id
        self._mode = mode
        self._position = 0
        self._bytes_read = 0

        if mode == OpenMode.READ:
            path = self._path()
            try:
                st = os.stat(path)
            except OSError:
                return
            if stat.S_ISREG(st.st_mode):
                self._cache.update_file_access_time(path)

    def __repr__(self) -> str:
        return (
            f"AssetFile({self._asset_id}, mode={self._mode.name}, "
            f"position={self._position})"
        )

    @property
    def asset_id(self) -> AssetId:
        return self._asset_id

    @property
    def mode(self) -> OpenMode:
        return self._mode

    @property
    def last_bytes_read(self) -> int:
        """Number of bytes the most recent read obtained."""
        return self._bytes_read

    def get_last_bytes_read(self) -> int:
        return self._bytes_read

    def _path(self) -> Path:
        return _store_path(self._cache, self._asset_id)

    def read(self, buffer: bytearray | memoryview, nbytes: int | None = None) -> bool:
        """Read up to ``nbytes`` from the cursor into ``buffer``.

        Allowed in every mode. The cursor advances by the number of bytes
        actually obtained, which may be short near the end of the store.

        Args:
            buffer: Writable buffer receiving the data at offset 0.
            nbytes: Bytes requested; defaults to ``len(buffer)``.

        Returns:
            True if at least one byte was read. False if nothing was read or
            the store could not be opened, in which case the cursor is left
            unchanged.
        """
        if nbytes is None:
            nbytes = len(buffer)
        view = memoryview(buffer).cast("B")[:nbytes]

        with log_context(asset=str(self._asset_id), operation="read"):
            try:
                with open(self._path(), "rb") as f:
                    f.seek(self._position)
                    count = f.readinto(view) or 0
            except OSError as e:
                logger.debug("Unable to open asset for read", reason=e.strerror)
                return False

            self._bytes_read = count
            self._position += count
            if count:
                logger.debug("Read asset", bytes=count, position=self._position)
            return count > 0

    def write(self, data: bytes | bytearray | memoryview, nbytes: int | None = None) -> bool:
        """Write ``nbytes`` of ``data`` according to the session's mode.

        - APPEND: always lands at the end of the store, whatever the cursor;
          the cursor moves to the new end.
        - READ_WRITE: updates in place at the cursor without truncating, or
          creates the store if it is missing; cursor moves past the write.
        - WRITE (and READ): truncates the store and writes from offset 0;
          cursor ends at the number of bytes written.

        Returns:
            True only if exactly ``nbytes`` bytes were written.
        """
        if nbytes is None:
            nbytes = len(data)
        payload = memoryview(data).cast("B")[:nbytes]
        path = self._path()

        with log_context(asset=str(self._asset_id), operation="write"):
            try:
                if self._mode == OpenMode.APPEND:
                    with open(path, "ab") as f:
                        written = f.write(payload)
                        self._position = f.tell()
                elif self._mode == OpenMode.READ_WRITE:
                    written = self._write_in_place(path, payload)
                else:
                    with open(path, "wb") as f:
                        written = f.write(payload)
                        self._position = f.tell()
            except OSError as e:
                logger.warning(
                    "Failed to write asset",
                    mode=self._mode.name,
                    requested=nbytes,
                    reason=e.strerror,
                )
                return False

            if written != nbytes:
                logger.warning("Short write to asset", requested=nbytes, written=written)
                return False

            logger.debug("Wrote asset", mode=self._mode.name, bytes=written)
            return True

    def _write_in_place(self, path: Path, payload: memoryview) -> int:
        try:
            f = open(path, "r+b")
        except FileNotFoundError:
            with open(path, "wb") as fresh:
                written = fresh.write(payload)
                self._position = fresh.tell()
            return written

        with f:
            f.seek(self._position)
            written = f.write(payload)
            self._position = f.tell()
        return written

    def seek(self, offset: int, origin: int = 0) -> bool:
        """Move the cursor to ``origin + offset``.

        ``origin`` is an absolute offset, or SEEK_CURRENT to seek relative
        to the cursor. A target past the end of the store clamps the cursor
        to the store size; a negative target clamps it to 0. Both report
        failure. The store is never touched.
        """
        if origin == SEEK_CURRENT:
            origin = self._position

        new_pos = origin + offset
        size = self.get_size()

        if new_pos > size:
            logger.warning(
                "Attempt to seek past end of asset",
                asset=str(self._asset_id),
                target=new_pos,
                size=size,
            )
            self._position = size
            return False
        if new_pos < 0:
            logger.warning(
                "Attempt to seek past beginning of asset",
                asset=str(self._asset_id),
                target=new_pos,
            )
            self._position = 0
            return False

        self._position = new_pos
        return True

    def tell(self) -> int:
        return self._position

    def eof(self) -> bool:
        """True once the cursor has reached the current store size."""
        return self._position >= self.get_size()

    def get_size(self) -> int:
        return asset_size(self._cache, self._asset_id)

    def get_max_size(self) -> int:
        return max_size()

    def rename(self, new_id: AssetId) -> bool:
        """Move this session's store to ``new_id`` and rebind the session to it.

        Returns:
            Always True.
        """
        rename_asset(self._cache, self._asset_id, new_id)
        self._asset_id = new_id
        return True

    def remove(self) -> bool:
        """Delete this session's store. Returns True."""
        return remove_asset(self._cache, self._asset_id)


def read_asset(cache: DiskCacheManager, asset_id: AssetId) -> bytes | None:
    """Read a whole store through a READ session.

    Returns:
        The store's bytes, or None if the asset does not exist.
    """
    if not asset_exists(cache, asset_id):
        return None

    session = AssetFile(cache, asset_id, OpenMode.READ)
    chunks: list[bytes] = []
    buffer = bytearray(READ_CHUNK_SIZE)
    while session.read(buffer):
        chunks.append(bytes(buffer[: session.last_bytes_read]))
    return b"".join(chunks)


def write_asset(
    cache: DiskCacheManager,
    asset_id: AssetId,
    data: bytes,
    mode: OpenMode = OpenMode.WRITE,
) -> bool:
    """Write ``data`` to an asset in one call using a fresh session."""
    return AssetFile(cache, asset_id, mode).write(data)
