"""
Core module containing configuration and the exception hierarchy.
"""

from cratesync.core.config import (
    Config,
    AppConfig,
    SourcesConfig,
    MirrorConfig,
    StorageConfig,
)
from cratesync.core.exceptions import (
    CrateSyncError,
    SourceFetchError,
    MirrorError,
    MirrorCopyError,
    IdentityParseError,
    StorageError,
    ConfigurationError,
)

__all__ = [
    "Config",
    "AppConfig",
    "SourcesConfig",
    "MirrorConfig",
    "StorageConfig",
    "CrateSyncError",
    "SourceFetchError",
    "MirrorError",
    "MirrorCopyError",
    "IdentityParseError",
    "StorageError",
    "ConfigurationError",
]
