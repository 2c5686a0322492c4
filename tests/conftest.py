"""
Pytest configuration and shared fixtures for espkit tests.
"""

import pytest
from pathlib import Path

# Import test fixtures to make them available to all tests
# These imports register the fixtures with pytest's fixture discovery system
# ruff: noqa: F401
from tests.fixtures.archives import (
    toolchain_tar_gz,
    toolchain_tar_xz,
    toolchain_zip,
)
from tests.fixtures.installer import fake_runner

from espkit.core.platform import clear_platform_cache


LINUX_X64 = "x86_64-unknown-linux-gnu"
LINUX_ARM64 = "aarch64-unknown-linux-gnu"
MACOS_ARM64 = "aarch64-apple-darwin"
WINDOWS_MSVC = "x86_64-pc-windows-msvc"


@pytest.fixture
def tools_root(tmp_path) -> Path:
    """Empty tools root directory (stands in for ~/.espressif)."""
    root = tmp_path / ".espressif"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep the developer's IDF_TOOLS_PATH and host detection out of tests."""
    monkeypatch.delenv("IDF_TOOLS_PATH", raising=False)
    clear_platform_cache()
    yield
    clear_platform_cache()
