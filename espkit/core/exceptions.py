"""
Centralized exception hierarchy for espkit.

This module defines all custom exceptions used across the codebase
so that callers can catch a whole family of failures at once.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class EspkitError(Exception):
    """Base exception for all espkit errors."""

    pass


# ============================================================================
# Parse Exceptions
# ============================================================================


class ParseError(EspkitError):
    """Base exception for unrecognized user-supplied tokens."""

    pass


class TargetParseError(ParseError):
    """Raised when a build target token is not a supported chip."""

    def __init__(self, token: str):
        self.token = token
        if token:
            msg = f"Unknown target: {token}"
        else:
            msg = "No targets specified"
        super().__init__(msg)


class VersionParseError(ParseError):
    """Raised when a version string cannot be interpreted."""

    def __init__(self, value: str, kind: str = "version"):
        self.value = value
        self.kind = kind
        super().__init__(f"Unknown {kind}: {value!r}")


# ============================================================================
# Fetch Exceptions
# ============================================================================


class FetchError(EspkitError):
    """Base exception for download and unpack failures."""

    pass


class DirectoryCreateError(FetchError):
    """Raised when the output directory of a download cannot be created."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        msg = f"Creating directory {path} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NetworkError(FetchError):
    """Raised when an HTTP request fails."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        msg = f"Download of {url} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class UnsupportedExtensionError(FetchError):
    """Raised when a file extension maps to no known archive format."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file extension: {extension!r}")


class ArchiveCorruptError(FetchError):
    """Raised when an archive stream cannot be decoded."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        msg = f"Archive {source} could not be decoded"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# ============================================================================
# Filesystem Exceptions
# ============================================================================


class FilesystemError(EspkitError):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Installation Exceptions
# ============================================================================


class InstallError(EspkitError):
    """Raised when installing a tool or the SDK fails."""

    pass


class MinifyError(InstallError):
    """Raised when pruning an installed SDK tree fails."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        msg = f"Failed to remove {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ExportError(EspkitError):
    """Raised when the environment export file cannot be written."""

    pass


class ConfigError(EspkitError):
    """Configuration parsing or validation error."""

    pass
