"""
Custom exception hierarchy for the asset cache.

All exceptions inherit from AssetCacheError, which provides optional context
for structured error handling and logging. Stream operations on assets never
raise these; they are reserved for configuration and input validation.
"""

from __future__ import annotations

from typing import Any


class AssetCacheError(Exception):
    """Base exception for all asset cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(AssetCacheError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Unusable filename prefix
        - Non-positive cache size limit
    """

    pass


class CacheDirectoryError(AssetCacheError):
    """Raised when the cache directory cannot be created or used.

    Context should include:
        - cache_dir: The directory that was being prepared
        - reason: The OS error message
    """

    pass


class InvalidAssetError(AssetCacheError):
    """Raised when an asset identifier, category or open mode cannot be parsed.

    Context should include:
        - value: The rejected input
    """

    pass
