"""
Pytest configuration and fixtures for asset cache tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch
from uuid import UUID

import pytest

from assetcache.cache import DiskCache, DiskCacheManager
from assetcache.config import Settings, clear_settings_cache
from assetcache.types import AssetId, AssetType


class RecordingCache(DiskCacheManager):
    """Disk cache double that resolves into one flat directory and records touches."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.touched: list[Path] = []
        self.resolved: list[tuple[str, AssetType, str]] = []

    def metadata_to_filepath(
        self, id_string: str, asset_type: AssetType, extra_info: str = ""
    ) -> Path:
        self.resolved.append((id_string, asset_type, extra_info))
        return self.root / f"{id_string}.asset"

    def update_file_access_time(self, path: Path) -> None:
        self.touched.append(path)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "ASSET_CACHE_CACHE_DIR": str(temp_dir / "cache"),
        "ASSET_CACHE_CACHE_FILENAME_PREFIX": "test_cache",
        "ASSET_CACHE_MAX_CACHE_SIZE_MB": "16",
        "ASSET_CACHE_TOUCH_THRESHOLD_SECONDS": "60",
        "ASSET_CACHE_LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str]) -> Generator[Settings, None, None]:
    """Provide a Settings instance with mock configuration."""
    from assetcache.config import get_settings

    settings = get_settings()
    settings.ensure_directories()
    yield settings
    clear_settings_cache()


@pytest.fixture
def disk_cache(temp_dir: Path) -> DiskCache:
    """Provide an empty disk cache rooted in the temp directory."""
    return DiskCache(temp_dir / "cache", max_size_bytes=1024 * 1024, filename_prefix="test_cache")


@pytest.fixture
def recording_cache(temp_dir: Path) -> RecordingCache:
    """Provide a disk cache double that records access-time touches."""
    return RecordingCache(temp_dir / "flat")


@pytest.fixture
def texture_id() -> AssetId:
    return AssetId(UUID("8dcd4a48-2d37-4909-9f78-f7a9eb4ef903"), AssetType.TEXTURE)


@pytest.fixture
def mesh_id() -> AssetId:
    return AssetId(UUID("c228d1cf-4b5d-4ba8-84f4-899a0796aa97"), AssetType.MESH)


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def capture_package_logs(caplog: pytest.LogCaptureFixture) -> Generator[None, None, None]:
    """Route package records to caplog; the package logger does not propagate."""
    package_logger = logging.getLogger("assetcache")
    package_logger.addHandler(caplog.handler)
    yield
    package_logger.removeHandler(caplog.handler)
