"""
Platform detection and vendor naming for espkit.

This module maps a host target triple (e.g. 'x86_64-unknown-linux-gnu') to the
naming conventions used by Espressif release artifacts: archive extensions,
architecture labels and installer script names.

Lookups are pure and never fail. An unknown triple falls back to a permissive
default (the triple itself for architecture labels) so that new hosts keep
working until the tables learn about them.

Usage:
    from espkit.core.platform import detect_host_triple, resolve_platform

    naming = resolve_platform(detect_host_triple())
    print(naming.gcc_arch, naming.gcc_extension)
"""

import functools
import platform
from dataclasses import dataclass
from typing import Dict, Tuple


WINDOWS_TRIPLES = ("x86_64-pc-windows-msvc", "x86_64-pc-windows-gnu")

_GCC_EXTENSIONS: Dict[str, str] = {
    "x86_64-pc-windows-msvc": "zip",
    "x86_64-pc-windows-gnu": "zip",
}

_GCC_ARCHS: Dict[str, str] = {
    "aarch64-apple-darwin": "macos",
    "aarch64-unknown-linux-gnu": "linux-arm64",
    "x86_64-apple-darwin": "macos",
    "x86_64-unknown-linux-gnu": "linux-amd64",
    "x86_64-pc-windows-msvc": "win64",
    "x86_64-pc-windows-gnu": "win64",
}

_LLVM_EXTENSIONS: Dict[str, str] = {
    "x86_64-pc-windows-msvc": "zip",
    "x86_64-pc-windows-gnu": "zip",
}

_LLVM_ARCHS: Dict[str, str] = {
    "aarch64-apple-darwin": "macos",
    "aarch64-unknown-linux-gnu": "linux-arm64",
    "x86_64-apple-darwin": "macos",
    "x86_64-unknown-linux-gnu": "linux-amd64",
    "x86_64-pc-windows-msvc": "win64",
    "x86_64-pc-windows-gnu": "win64",
}

_RUST_INSTALLERS: Dict[str, str] = {
    "x86_64-pc-windows-msvc": "",
    "x86_64-pc-windows-gnu": "",
}

# (release label, archive extension) of Kitware CMake builds
_CMAKE_PLATFORMS: Dict[str, Tuple[str, str]] = {
    "aarch64-apple-darwin": ("macos-universal", "tar.gz"),
    "x86_64-apple-darwin": ("macos-universal", "tar.gz"),
    "aarch64-unknown-linux-gnu": ("linux-aarch64", "tar.gz"),
    "x86_64-unknown-linux-gnu": ("linux-x86_64", "tar.gz"),
    "x86_64-pc-windows-msvc": ("windows-x86_64", "zip"),
    "x86_64-pc-windows-gnu": ("windows-x86_64", "zip"),
}


@dataclass(frozen=True)
class PlatformNaming:
    """
    Vendor naming conventions for one host triple.

    Attributes:
        platform_id: The host triple the names were resolved for
        gcc_extension: Archive extension of GCC toolchain releases
        gcc_arch: Architecture label of GCC toolchain releases
        llvm_extension: Archive extension of LLVM toolchain releases
        llvm_arch: Architecture label of LLVM toolchain releases
        installer_script: Installer script shipped in Rust toolchain archives
        cmake_platform: Release label of bundled CMake builds
        cmake_extension: Archive extension of bundled CMake builds
    """

    platform_id: str
    gcc_extension: str
    gcc_arch: str
    llvm_extension: str
    llvm_arch: str
    installer_script: str
    cmake_platform: str
    cmake_extension: str


def get_gcc_artifact_extension(platform_id: str) -> str:
    """Archive extension of GCC releases (zip on Windows, tar.gz elsewhere)."""
    return _GCC_EXTENSIONS.get(platform_id, "tar.gz")


def get_gcc_arch(platform_id: str) -> str:
    """
    Architecture label used in GCC release file names.

    Example:
        >>> get_gcc_arch("x86_64-unknown-linux-gnu")
        'linux-amd64'
        >>> get_gcc_arch("riscv64gc-unknown-linux-gnu")
        'riscv64gc-unknown-linux-gnu'
    """
    return _GCC_ARCHS.get(platform_id, platform_id)


def get_llvm_artifact_extension(platform_id: str) -> str:
    """Archive extension of LLVM releases (zip on Windows, tar.xz elsewhere)."""
    return _LLVM_EXTENSIONS.get(platform_id, "tar.xz")


def get_llvm_arch(platform_id: str) -> str:
    """Architecture label used in LLVM release file names."""
    return _LLVM_ARCHS.get(platform_id, platform_id)


def get_rust_installer(platform_id: str) -> str:
    """Installer script to run after unpacking a Rust toolchain archive."""
    return _RUST_INSTALLERS.get(platform_id, "./install.sh")


def get_cmake_platform(platform_id: str) -> Tuple[str, str]:
    """
    Release label and archive extension of Kitware CMake builds.

    Returns:
        Tuple of (label, extension), e.g. ('linux-x86_64', 'tar.gz')
    """
    return _CMAKE_PLATFORMS.get(platform_id, (platform_id, "tar.gz"))


def is_windows(platform_id: str) -> bool:
    """Check whether a triple names a Windows host."""
    return "-windows-" in platform_id


def resolve_platform(platform_id: str) -> PlatformNaming:
    """
    Resolve every vendor naming convention for a host triple.

    Args:
        platform_id: Host target triple

    Returns:
        PlatformNaming with all lookups applied
    """
    cmake_platform, cmake_extension = get_cmake_platform(platform_id)
    return PlatformNaming(
        platform_id=platform_id,
        gcc_extension=get_gcc_artifact_extension(platform_id),
        gcc_arch=get_gcc_arch(platform_id),
        llvm_extension=get_llvm_artifact_extension(platform_id),
        llvm_arch=get_llvm_arch(platform_id),
        installer_script=get_rust_installer(platform_id),
        cmake_platform=cmake_platform,
        cmake_extension=cmake_extension,
    )


@functools.lru_cache(maxsize=1)
def detect_host_triple() -> str:
    """
    Detect the target triple of the running host.

    This function is cached - it only runs detection once per process.

    Returns:
        Target triple such as 'x86_64-unknown-linux-gnu'

    Raises:
        RuntimeError: If the operating system is not supported
    """
    arch = _detect_architecture()
    system = platform.system().lower()

    if system == "linux":
        return f"{arch}-unknown-linux-gnu"
    elif system == "darwin":
        return f"{arch}-apple-darwin"
    elif system == "windows":
        # Espressif only publishes x86_64 Windows builds
        return "x86_64-pc-windows-msvc"
    else:
        raise RuntimeError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    """
    Detect CPU architecture in target triple spelling.

    Returns:
        'x86_64', 'aarch64', 'i686', or the raw machine name
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x86_64"
    elif machine in ("aarch64", "arm64"):
        return "aarch64"
    elif machine in ("i386", "i686", "x86"):
        return "i686"
    else:
        return machine


def clear_platform_cache():
    """
    Clear the host detection cache.

    This forces the next call to detect_host_triple() to re-detect.
    """
    detect_host_triple.cache_clear()


__all__ = [
    "PlatformNaming",
    "WINDOWS_TRIPLES",
    "get_gcc_artifact_extension",
    "get_gcc_arch",
    "get_llvm_artifact_extension",
    "get_llvm_arch",
    "get_rust_installer",
    "get_cmake_platform",
    "is_windows",
    "resolve_platform",
    "detect_host_triple",
    "clear_platform_cache",
]
