"""
Tests for host platform naming and detection.
"""

import pytest

from espkit.core.platform import (
    WINDOWS_TRIPLES,
    clear_platform_cache,
    detect_host_triple,
    get_cmake_platform,
    get_gcc_arch,
    get_gcc_artifact_extension,
    get_llvm_arch,
    get_llvm_artifact_extension,
    get_rust_installer,
    is_windows,
    resolve_platform,
)

UNKNOWN = "riscv64gc-unknown-linux-gnu"


class TestGccNaming:
    """Test GCC release naming."""

    @pytest.mark.parametrize(
        "platform_id,arch",
        [
            ("aarch64-apple-darwin", "macos"),
            ("aarch64-unknown-linux-gnu", "linux-arm64"),
            ("x86_64-apple-darwin", "macos"),
            ("x86_64-unknown-linux-gnu", "linux-amd64"),
            ("x86_64-pc-windows-msvc", "win64"),
            ("x86_64-pc-windows-gnu", "win64"),
        ],
    )
    def test_arch(self, platform_id, arch):
        assert get_gcc_arch(platform_id) == arch

    def test_unknown_arch_is_identity(self):
        assert get_gcc_arch(UNKNOWN) == UNKNOWN

    @pytest.mark.parametrize("platform_id", WINDOWS_TRIPLES)
    def test_windows_extension(self, platform_id):
        assert get_gcc_artifact_extension(platform_id) == "zip"

    @pytest.mark.parametrize("platform_id", ["x86_64-unknown-linux-gnu", "aarch64-apple-darwin", UNKNOWN])
    def test_default_extension(self, platform_id):
        assert get_gcc_artifact_extension(platform_id) == "tar.gz"


class TestLlvmNaming:
    """Test LLVM release naming."""

    def test_windows_extension(self):
        assert get_llvm_artifact_extension("x86_64-pc-windows-msvc") == "zip"

    def test_default_extension(self):
        assert get_llvm_artifact_extension("x86_64-unknown-linux-gnu") == "tar.xz"
        assert get_llvm_artifact_extension(UNKNOWN) == "tar.xz"

    def test_arch(self):
        assert get_llvm_arch("x86_64-unknown-linux-gnu") == "linux-amd64"
        assert get_llvm_arch("aarch64-unknown-linux-gnu") == "linux-arm64"
        assert get_llvm_arch("x86_64-pc-windows-gnu") == "win64"
        assert get_llvm_arch(UNKNOWN) == UNKNOWN


class TestInstallerAndCMake:
    """Test installer script and CMake platform lookups."""

    def test_rust_installer(self):
        assert get_rust_installer("x86_64-pc-windows-msvc") == ""
        assert get_rust_installer("x86_64-unknown-linux-gnu") == "./install.sh"
        assert get_rust_installer(UNKNOWN) == "./install.sh"

    def test_cmake_platform(self):
        assert get_cmake_platform("x86_64-unknown-linux-gnu") == ("linux-x86_64", "tar.gz")
        assert get_cmake_platform("aarch64-apple-darwin") == ("macos-universal", "tar.gz")
        assert get_cmake_platform("x86_64-pc-windows-msvc") == ("windows-x86_64", "zip")
        assert get_cmake_platform(UNKNOWN) == (UNKNOWN, "tar.gz")


class TestResolvePlatform:
    """Test combined lookups."""

    def test_linux(self):
        naming = resolve_platform("x86_64-unknown-linux-gnu")
        assert naming.platform_id == "x86_64-unknown-linux-gnu"
        assert naming.gcc_extension == "tar.gz"
        assert naming.gcc_arch == "linux-amd64"
        assert naming.llvm_extension == "tar.xz"
        assert naming.installer_script == "./install.sh"
        assert naming.cmake_platform == "linux-x86_64"

    def test_windows(self):
        naming = resolve_platform("x86_64-pc-windows-msvc")
        assert naming.gcc_extension == "zip"
        assert naming.llvm_extension == "zip"
        assert naming.cmake_extension == "zip"
        assert naming.installer_script == ""

    def test_is_windows(self):
        assert is_windows("x86_64-pc-windows-gnu")
        assert not is_windows("x86_64-apple-darwin")


class TestDetectHostTriple:
    """Test host triple detection."""

    @pytest.mark.parametrize(
        "system,machine,expected",
        [
            ("Linux", "x86_64", "x86_64-unknown-linux-gnu"),
            ("Linux", "aarch64", "aarch64-unknown-linux-gnu"),
            ("Darwin", "arm64", "aarch64-apple-darwin"),
            ("Darwin", "x86_64", "x86_64-apple-darwin"),
            ("Windows", "AMD64", "x86_64-pc-windows-msvc"),
        ],
    )
    def test_detection(self, monkeypatch, system, machine, expected):
        monkeypatch.setattr("platform.system", lambda: system)
        monkeypatch.setattr("platform.machine", lambda: machine)
        clear_platform_cache()

        assert detect_host_triple() == expected

    def test_unsupported_os(self, monkeypatch):
        monkeypatch.setattr("platform.system", lambda: "Plan9")
        monkeypatch.setattr("platform.machine", lambda: "x86_64")
        clear_platform_cache()

        with pytest.raises(RuntimeError, match="Unsupported operating system"):
            detect_host_triple()

    def test_cached(self, monkeypatch):
        monkeypatch.setattr("platform.system", lambda: "Linux")
        monkeypatch.setattr("platform.machine", lambda: "x86_64")
        clear_platform_cache()
        first = detect_host_triple()

        monkeypatch.setattr("platform.system", lambda: "Darwin")
        assert detect_host_triple() == first
