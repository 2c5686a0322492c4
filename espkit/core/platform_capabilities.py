"""Host capability matrix and helper functions.

This module replaces compile-time platform branches with a runtime capability
set. Each supported host triple maps to the extra tools it needs and the
features it supports.

Capabilities:
- needs_installer_helper: Install the 'idf-exe' launcher helper
- needs_compiler_cache: Install 'ccache' alongside the SDK
- needs_flashing_utility: Install the 'dfu-util' USB flashing tool
- supports_ulp_toolchain: ULP coprocessor toolchains exist for this host
- default_generator: CMake generator used for SDK builds
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class HostCapabilities:
    """Tool requirements and features of a host platform."""

    needs_installer_helper: bool = False
    needs_compiler_cache: bool = False
    needs_flashing_utility: bool = False
    supports_ulp_toolchain: bool = True
    default_generator: str = "Ninja"


_WINDOWS: Dict[str, Any] = {
    "needs_installer_helper": True,
    "needs_compiler_cache": True,
    "needs_flashing_utility": True,
}

# Host capability database
HOST_CAPABILITIES: Dict[str, Dict[str, Any]] = {
    "x86_64-unknown-linux-gnu": {},
    # No Ninja or ULP builds for linux-aarch64 from Espressif yet
    "aarch64-unknown-linux-gnu": {
        "supports_ulp_toolchain": False,
        "default_generator": "Unix Makefiles",
    },
    "x86_64-apple-darwin": {},
    "aarch64-apple-darwin": {},
    "x86_64-pc-windows-msvc": _WINDOWS,
    "x86_64-pc-windows-gnu": _WINDOWS,
}


def get_host_capabilities(platform_id: str) -> HostCapabilities:
    """
    Get the capability set of a host triple.

    Unknown triples get the default capability set rather than an error.

    Example:
        >>> get_host_capabilities('x86_64-pc-windows-msvc').needs_compiler_cache
        True
        >>> get_host_capabilities('aarch64-unknown-linux-gnu').default_generator
        'Unix Makefiles'
    """
    return HostCapabilities(**HOST_CAPABILITIES.get(platform_id, {}))
