"""
Toolchain management module for espkit.

This module provides functionality for:
- Target chip parsing
- GCC and LLVM toolchain download and extraction
- ESP-IDF checkout and tool installation
"""

from espkit.toolchain.targets import ALL_CHIPS, Chip, parse_targets
from espkit.toolchain.idf_version import IdfVersion
from espkit.toolchain.gcc import (
    GccToolchain,
    get_toolchain_name,
    get_ulp_toolchain_name,
)
from espkit.toolchain.llvm import (
    LlvmToolchain,
    parse_llvm_version,
    get_llvm_version_with_underscores,
)
from espkit.toolchain.cmake import BundledCMake
from espkit.toolchain.installer import (
    BundledTool,
    IdfInstaller,
    IdfRemote,
    IdfRepository,
    IdfToolSet,
)
from espkit.toolchain.espidf import EspIdf, Generator, minify_espidf

__all__ = [
    "ALL_CHIPS",
    "Chip",
    "parse_targets",
    "IdfVersion",
    "GccToolchain",
    "get_toolchain_name",
    "get_ulp_toolchain_name",
    "LlvmToolchain",
    "parse_llvm_version",
    "get_llvm_version_with_underscores",
    "BundledCMake",
    "BundledTool",
    "IdfInstaller",
    "IdfRemote",
    "IdfRepository",
    "IdfToolSet",
    "EspIdf",
    "Generator",
    "minify_espidf",
]
