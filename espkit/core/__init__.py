"""
Core functionality for espkit.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    resolve_tools_root,
    get_tool_path,
    get_dist_path,
    get_install_path,
    hash_source_url,
    sanitize_ref_name,
)

from .download import (
    ArchiveKind,
    download_file,
)

from .gitref import (
    GitRef,
    RefKind,
    parse_git_ref,
)

from .platform import (
    PlatformNaming,
    resolve_platform,
    detect_host_triple,
    clear_platform_cache,
)

from .platform_capabilities import (
    HostCapabilities,
    get_host_capabilities,
)

from .exceptions import (
    EspkitError,
    ParseError,
    TargetParseError,
    VersionParseError,
    FetchError,
    DirectoryCreateError,
    NetworkError,
    UnsupportedExtensionError,
    ArchiveCorruptError,
    FilesystemError,
    ArchiveExtractionError,
    InsecureArchiveError,
    InstallError,
    MinifyError,
    ExportError,
    ConfigError,
)

__all__ = [
    "resolve_tools_root",
    "get_tool_path",
    "get_dist_path",
    "get_install_path",
    "hash_source_url",
    "sanitize_ref_name",
    "ArchiveKind",
    "download_file",
    "GitRef",
    "RefKind",
    "parse_git_ref",
    "PlatformNaming",
    "resolve_platform",
    "detect_host_triple",
    "clear_platform_cache",
    "HostCapabilities",
    "get_host_capabilities",
    "EspkitError",
    "ParseError",
    "TargetParseError",
    "VersionParseError",
    "FetchError",
    "DirectoryCreateError",
    "NetworkError",
    "UnsupportedExtensionError",
    "ArchiveCorruptError",
    "FilesystemError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "InstallError",
    "MinifyError",
    "ExportError",
    "ConfigError",
]
