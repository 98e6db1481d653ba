"""
Custom exceptions for crate list discovery and repository mirrors.

Provides a hierarchy of exceptions for the different stages of a sync
pass, so callers can tell a failed list fetch from a failed mirror
update and decide whether to retry.
"""


class CrateSyncError(Exception):
    """Base exception for all crate sync errors."""

    def __init__(self, message: str, stage: str = None, details: dict = None):
        super().__init__(message)
        self.stage = stage
        self.details = details or {}

    def __str__(self):
        base_msg = super().__str__()
        if self.stage:
            return f"[{self.stage}] {base_msg}"
        return base_msg


class SourceFetchError(CrateSyncError):
    """Raised when a whole list source cannot be fetched or decoded."""

    def __init__(self, message: str, source: str = None, details: dict = None):
        details = dict(details or {})
        if source is not None:
            details.setdefault("source", source)
        super().__init__(message, stage="Lists", details=details)
        self.source = source


class MirrorError(CrateSyncError):
    """Raised when cloning or pulling a repository mirror fails."""

    def __init__(self, message: str, url: str = None, path: str = None, details: dict = None):
        details = dict(details or {})
        details.setdefault("url", url)
        details.setdefault("path", path)
        super().__init__(message, stage="Mirror", details=details)
        self.url = url
        self.path = path


class MirrorCopyError(CrateSyncError):
    """Raised when a mirror cannot be copied into a working directory."""

    def __init__(self, source: str, destination: str, reason: str):
        super().__init__(
            f"Failed to copy {source} to {destination}: {reason}",
            stage="Mirror",
            details={"source": source, "destination": destination, "reason": reason},
        )


class IdentityParseError(CrateSyncError):
    """Raised when a repository slug cannot be parsed."""

    def __init__(self, text: str):
        super().__init__(
            f"malformed repo url: {text}",
            stage="Identity",
            details={"input": text},
        )
        self.text = text


class StorageError(CrateSyncError):
    """Raised when storage operations fail."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, stage="Storage", details=details)


class ConfigurationError(CrateSyncError):
    """Raised when configuration cannot be loaded."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, stage="Config", details=details)
