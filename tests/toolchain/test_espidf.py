"""
Tests for the ESP-IDF installation orchestrator.
"""

from unittest.mock import Mock, patch

import pytest

from espkit.core.exceptions import FilesystemError, MinifyError, VersionParseError
from espkit.core.gitref import GitRef
from espkit.toolchain.cmake import BundledCMake
from espkit.toolchain.espidf import EspIdf, Generator, minify_espidf
from espkit.toolchain.idf_version import IdfVersion
from espkit.toolchain.installer import IdfInstaller, IdfRepository, IdfToolSet
from espkit.toolchain.targets import Chip
from tests.fixtures.installer import FakeRunner

LINUX = "x86_64-unknown-linux-gnu"
LINUX_ARM64 = "aarch64-unknown-linux-gnu"
WINDOWS = "x86_64-pc-windows-msvc"


def make_tools(esp_idf, version):
    repo = IdfRepository(esp_idf.remote, esp_idf.espidf_dir)
    return esp_idf.make_tools(repo, version)


def idf_tool_names(tools):
    assert isinstance(tools[-1], IdfToolSet)
    return tools[-1].names


@pytest.fixture
def sdk_tree(tools_root):
    """An installed checkout with every subtree minification touches."""
    esp_idf = EspIdf("4.4", [Chip.ESP32], tools_root, platform_id=LINUX)
    root = esp_idf.espidf_dir
    for relative in (
        "docs/en/index.rst",
        "examples/get-started/hello_world/main/main.c",
        "tools/esp_app_trace/logtrace_proc.py",
        "tools/test_idf_size/test.sh",
        "tools/idf.py",
        "components/esp_common/CMakeLists.txt",
    ):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x")
    return esp_idf


class TestConstruction:
    """Test EspIdf setup."""

    def test_release_number_is_tag(self, tools_root):
        esp_idf = EspIdf("4.4", [Chip.ESP32], tools_root, platform_id=LINUX)
        assert esp_idf.git_ref == GitRef.tag("v4.4")
        assert esp_idf.espidf_dir.name == "v4.4"

    def test_branch(self, tools_root):
        esp_idf = EspIdf("release/v4.4", [Chip.ESP32], tools_root, platform_id=LINUX)
        assert esp_idf.git_ref == GitRef.branch("release/v4.4")
        assert esp_idf.espidf_dir.parent.parent == tools_root

    def test_empty_version(self, tools_root):
        with pytest.raises(VersionParseError):
            EspIdf("", [Chip.ESP32], tools_root, platform_id=LINUX)

    def test_host_generator(self, tools_root):
        assert EspIdf("4.4", [], tools_root, platform_id=LINUX).generator is Generator.NINJA
        assert (
            EspIdf("4.4", [], tools_root, platform_id=LINUX_ARM64).generator
            is Generator.UNIX_MAKEFILES
        )

    def test_detects_host(self, tools_root):
        with patch("espkit.toolchain.espidf.detect_host_triple", return_value=WINDOWS):
            esp_idf = EspIdf("4.4", [Chip.ESP32], tools_root)
        assert esp_idf.platform_id == WINDOWS
        assert esp_idf.capabilities.needs_compiler_cache


class TestMakeTools:
    """Test the tool list for targets, host and SDK version."""

    def test_linux_recent_release(self, tools_root):
        esp_idf = EspIdf("4.4", [Chip.ESP32, Chip.ESP32C3], tools_root, platform_id=LINUX)

        tools = make_tools(esp_idf, IdfVersion(4, 4))

        assert len(tools) == 1
        assert idf_tool_names(tools) == [
            "xtensa-esp32-elf",
            "esp32ulp-elf",
            "riscv32-esp-elf",
            "cmake",
            "openocd-esp32",
            "ninja",
        ]

    @pytest.mark.parametrize("version", [IdfVersion(5, 0), IdfVersion(5, 1, 2)])
    def test_newer_major_uses_sdk_cmake(self, tools_root, version):
        esp_idf = EspIdf("master", [Chip.ESP32C3], tools_root, platform_id=LINUX)

        tools = make_tools(esp_idf, version)

        assert "cmake" in idf_tool_names(tools)
        assert not any(isinstance(t, BundledCMake) for t in tools)

    @pytest.mark.parametrize("version", [IdfVersion(4, 3, 2), None])
    def test_old_or_unknown_release_bundles_cmake(self, tools_root, version):
        esp_idf = EspIdf("4.3", [Chip.ESP32C3], tools_root, platform_id=LINUX)

        tools = make_tools(esp_idf, version)

        assert isinstance(tools[0], BundledCMake)
        assert tools[0].version == "3.20.3"
        assert tools[0].platform_id == LINUX
        assert "cmake" not in idf_tool_names(tools)

    def test_windows_extras(self, tools_root):
        esp_idf = EspIdf("4.3", [Chip.ESP32S2, Chip.ESP32S3], tools_root, platform_id=WINDOWS)

        tools = make_tools(esp_idf, IdfVersion(4, 3))

        assert idf_tool_names(tools) == [
            "xtensa-esp32s2-elf",
            "esp32s2ulp-elf",
            "xtensa-esp32s3-elf",
            "openocd-esp32",
            "idf-exe",
            "ccache",
            "dfu-util",
            "ninja",
        ]

    def test_linux_aarch64(self, tools_root):
        esp_idf = EspIdf("4.4", [Chip.ESP32, Chip.ESP32S2], tools_root, platform_id=LINUX_ARM64)

        tools = make_tools(esp_idf, IdfVersion(4, 4))

        assert idf_tool_names(tools) == [
            "xtensa-esp32-elf",
            "xtensa-esp32s2-elf",
            "cmake",
            "openocd-esp32",
        ]

    def test_explicit_generator(self, tools_root):
        esp_idf = EspIdf(
            "4.4", [Chip.ESP32C3], tools_root, platform_id=LINUX_ARM64, generator=Generator.NINJA
        )

        assert idf_tool_names(make_tools(esp_idf, IdfVersion(4, 4)))[-1] == "ninja"

    def test_ulp_deduplicated(self, tools_root):
        esp_idf = EspIdf(
            "4.4", [Chip.ESP32, Chip.ESP32S2, Chip.ESP32S3], tools_root, platform_id=LINUX
        )

        names = idf_tool_names(make_tools(esp_idf, IdfVersion(4, 4)))

        assert names.count("esp32ulp-elf") == 1


class TestInstall:
    """Test the install flow."""

    def test_uses_given_installer(self, tools_root):
        esp_idf = EspIdf("4.4", [Chip.ESP32], tools_root, platform_id=LINUX)
        installer = Mock()

        result = esp_idf.install(installer=installer)

        installer.install.assert_called_once_with()
        assert result == esp_idf.espidf_dir

    def test_default_installer(self, tools_root):
        esp_idf = EspIdf("4.4", [Chip.ESP32], tools_root, platform_id=LINUX)

        with patch("espkit.toolchain.espidf.IdfInstaller") as installer_cls:
            esp_idf.install()

        installer_cls.assert_called_once_with(esp_idf.remote, tools_root, esp_idf.make_tools)
        installer_cls.return_value.install.assert_called_once_with()

    def test_end_to_end_with_fake_runner(self, tools_root):
        """Test the real installer drives idf_tools.py with the computed tools."""
        esp_idf = EspIdf("4.4", [Chip.ESP32C3], tools_root, platform_id=LINUX)
        runner = FakeRunner(version=(4, 4, 0))
        installer = IdfInstaller(
            esp_idf.remote, tools_root, esp_idf.make_tools, runner=runner, python_executable="py"
        )

        esp_idf.install(installer=installer)

        install_call = runner.commands_starting_with("py")[0]
        assert install_call[4:] == ["install", "riscv32-esp-elf", "cmake", "openocd-esp32", "ninja"]

    def test_minify_flag(self, sdk_tree):
        result = sdk_tree.install(minify=True, installer=Mock())

        assert not (result / "docs").exists()
        assert (result / "components" / "esp_common" / "CMakeLists.txt").exists()

    def test_minified_default(self, sdk_tree):
        sdk_tree.minified = True

        result = sdk_tree.install(installer=Mock())

        assert not (result / "examples").exists()

    def test_not_minified(self, sdk_tree):
        result = sdk_tree.install(installer=Mock())

        assert (result / "docs").exists()

    def test_exports(self, tools_root):
        esp_idf = EspIdf("4.4", [Chip.ESP32], tools_root, platform_id=LINUX)
        assert esp_idf.exports() == [
            f'export IDF_TOOLS_PATH="{tools_root}"',
            f'export IDF_PATH="{esp_idf.espidf_dir}"',
        ]

    def test_exports_bundled_cmake(self, tools_root):
        """Test a release older than 4.4 gets the bundled CMake on PATH."""
        esp_idf = EspIdf("release/v4.3", [Chip.ESP32], tools_root, platform_id=LINUX)
        installer = IdfInstaller(
            esp_idf.remote,
            tools_root,
            esp_idf.make_tools,
            runner=FakeRunner(version=(4, 3, 0)),
            python_executable="py",
        )

        with patch.object(BundledCMake, "install") as cmake_install:
            esp_idf.install(installer=installer)

        cmake_install.assert_called_once_with(tools_root)
        cmake_bin = BundledCMake(LINUX).bin_dir(tools_root)
        assert esp_idf.exports()[-1] == f'export PATH="{cmake_bin}:$PATH"'
        assert len(esp_idf.exports()) == 3

    def test_exports_without_bundled_tools(self, tools_root):
        esp_idf = EspIdf("4.4", [Chip.ESP32], tools_root, platform_id=LINUX)

        make_tools(esp_idf, IdfVersion(4, 4))

        assert len(esp_idf.exports()) == 2


class TestMinify:
    """Test minify_espidf."""

    def test_removes_subtrees(self, sdk_tree):
        root = sdk_tree.espidf_dir

        minify_espidf(root)

        assert not (root / "docs").exists()
        assert not (root / "examples").exists()
        assert not (root / "tools" / "esp_app_trace").exists()
        assert not (root / "tools" / "test_idf_size").exists()
        assert (root / "tools" / "idf.py").exists()
        assert (root / "components").is_dir()

    def test_missing_subtrees_skipped(self, tmp_path):
        (tmp_path / "docs").mkdir()

        minify_espidf(tmp_path)

        assert not (tmp_path / "docs").exists()

    def test_idempotent(self, sdk_tree):
        minify_espidf(sdk_tree.espidf_dir)
        minify_espidf(sdk_tree.espidf_dir)

    def test_removal_failure(self, sdk_tree):
        root = sdk_tree.espidf_dir
        with patch(
            "espkit.toolchain.espidf.safe_rmtree", side_effect=FilesystemError("permission denied")
        ):
            with pytest.raises(MinifyError) as exc_info:
                minify_espidf(root)

        assert exc_info.value.path == root / "docs"
        assert "permission denied" in str(exc_info.value)
