"""
espkit - Espressif toolchain and ESP-IDF installer.

Resolves the host platform, fetches versioned toolchain archives and SDK
checkouts, and unpacks them into a deterministic layout under the tools root.
"""

__version__ = "0.1.0"
