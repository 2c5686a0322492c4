"""
ESP-IDF installation orchestrator.

Decides which tools an ESP-IDF checkout needs for a set of chips and a host
platform, drives the installer with that list, and optionally minifies the
installed tree.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

from espkit.core.directory import get_install_path
from espkit.core.download import DEFAULT_TIMEOUT
from espkit.core.exceptions import FilesystemError, MinifyError
from espkit.core.exporter import format_export, format_path_export
from espkit.core.filesystem import safe_rmtree
from espkit.core.gitref import parse_git_ref
from espkit.core.platform import detect_host_triple
from espkit.core.platform_capabilities import get_host_capabilities
from espkit.toolchain.cmake import BundledCMake
from espkit.toolchain.gcc import get_toolchain_name, get_ulp_toolchain_name
from espkit.toolchain.idf_version import IdfVersion
from espkit.toolchain.installer import (
    DEFAULT_GIT_REPOSITORY,
    BundledTool,
    IdfInstaller,
    IdfRemote,
    IdfRepository,
    IdfToolSet,
    ToolSet,
)
from espkit.toolchain.targets import Chip

logger = logging.getLogger(__name__)

# First release whose tool manifest carries a recent enough CMake
IDF_CMAKE_THRESHOLD = (4, 4)

# Large subtrees not needed for building, relative to the checkout
MINIFY_PATHS = (
    Path("docs"),
    Path("examples"),
    Path("tools") / "esp_app_trace",
    Path("tools") / "test_idf_size",
)


class Generator(Enum):
    """CMake generators, valued by their CMake display name."""

    NINJA = "Ninja"
    NINJA_MULTI_CONFIG = "Ninja Multi-Config"
    UNIX_MAKEFILES = "Unix Makefiles"
    BORLAND_MAKEFILES = "Borland Makefiles"
    MSYS_MAKEFILES = "MSYS Makefiles"
    MINGW_MAKEFILES = "MinGW Makefiles"
    NMAKE_MAKEFILES = "NMake Makefiles"
    NMAKE_MAKEFILES_JOM = "NMake Makefiles JOM"
    WATCOM_WMAKE = "Watcom WMake"


class EspIdf:
    """
    Install ESP-IDF together with the tools its targets need.

    Example:
        >>> esp_idf = EspIdf("release/v4.4", [Chip.ESP32, Chip.ESP32C3],
        ...                  install_path=Path("~/.espressif").expanduser())
        >>> sdk_dir = esp_idf.install(minify=True)
    """

    def __init__(
        self,
        version: str,
        targets: List[Chip],
        install_path: Path,
        repository_url: str = DEFAULT_GIT_REPOSITORY,
        minified: bool = False,
        platform_id: Optional[str] = None,
        generator: Optional[Generator] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """
        Initialize ESP-IDF installer.

        Args:
            version: ESP-IDF version (branch, tag, 'commit:<sha>' ...)
            targets: Chips to install toolchains for
            install_path: Tools root directory
            repository_url: ESP-IDF repository URL
            minified: Minify the checkout after installation
            platform_id: Host triple (detected if None)
            generator: CMake generator (host default if None)
            timeout: Download timeout for bundled tools
        """
        self.version = version
        self.targets = list(targets)
        self.install_path = Path(install_path)
        self.repository_url = repository_url
        self.minified = minified
        self.platform_id = platform_id or detect_host_triple()
        self.capabilities = get_host_capabilities(self.platform_id)
        self.generator = generator or Generator(self.capabilities.default_generator)
        self.timeout = timeout
        self.git_ref = parse_git_ref(version)
        # Filled by make_tools; their bin directories go on PATH
        self.bundled_tools: List[BundledTool] = []
        logger.debug(f"ESP-IDF install path: {self.install_path}")

    @property
    def remote(self) -> IdfRemote:
        return IdfRemote(git_ref=self.git_ref, repo_url=self.repository_url)

    @property
    def espidf_dir(self) -> Path:
        """Directory the checkout lives in."""
        return get_install_path(self.install_path, self.repository_url, self.git_ref)

    def make_tools(
        self, repo: IdfRepository, version: Optional[IdfVersion]
    ) -> List[ToolSet]:
        """
        Build the list of tools to install for a checkout.

        Args:
            repo: The resolved checkout
            version: Its version, or None when it could not be read

        Returns:
            Tool sets: bundled tools first, then one IdfToolSet
        """
        tools: List[ToolSet] = []
        subtools: List[str] = []

        for target in self.targets:
            subtools.append(get_toolchain_name(target))

            ulp_toolchain_name = get_ulp_toolchain_name(target, version)
            if ulp_toolchain_name and self.capabilities.supports_ulp_toolchain:
                if ulp_toolchain_name not in subtools:
                    subtools.append(ulp_toolchain_name)

        # Releases before 4.4 pin a CMake older than the 3.20 they need
        if version is not None and version.at_least(*IDF_CMAKE_THRESHOLD):
            subtools.append("cmake")
        else:
            tools.append(BundledCMake(self.platform_id, timeout=self.timeout))

        subtools.append("openocd-esp32")
        if self.capabilities.needs_installer_helper:
            subtools.append("idf-exe")
        if self.capabilities.needs_compiler_cache:
            subtools.append("ccache")
        if self.capabilities.needs_flashing_utility:
            subtools.append("dfu-util")

        if self.generator is Generator.NINJA:
            subtools.append("ninja")

        self.bundled_tools = [t for t in tools if isinstance(t, BundledTool)]
        tools.append(IdfToolSet(subtools))
        logger.debug(f"Tools for {repo.worktree}: {tools}")
        return tools

    def install(self, minify: Optional[bool] = None, installer: Optional[IdfInstaller] = None) -> Path:
        """
        Install ESP-IDF and its tools.

        Args:
            minify: Remove non-essential subtrees afterwards (default: self.minified)
            installer: Preconfigured installer (one is created if None)

        Returns:
            Path to the ESP-IDF checkout

        Raises:
            InstallError: If cloning or tool installation fails
            MinifyError: If removing a subtree fails
        """
        if minify is None:
            minify = self.minified

        if installer is None:
            installer = IdfInstaller(self.remote, self.install_path, self.make_tools)
        installer.install()

        espidf_dir = self.espidf_dir
        if minify:
            minify_espidf(espidf_dir)
        return espidf_dir

    def exports(self) -> List[str]:
        """
        Environment assignments that point builds at this installation.

        Bundled tools selected by the last make_tools() call are put on PATH.
        """
        exports = [
            format_export("IDF_TOOLS_PATH", str(self.install_path), self.platform_id),
            format_export("IDF_PATH", str(self.espidf_dir), self.platform_id),
        ]
        for tool in self.bundled_tools:
            exports.append(
                format_path_export(tool.bin_dir(self.install_path), self.platform_id)
            )
        return exports


def minify_espidf(espidf_dir: Path) -> None:
    """
    Delete documentation, examples and tracing/size tools from a checkout.

    Subtrees that are already gone are skipped; any removal error aborts.

    Raises:
        MinifyError: If a subtree cannot be removed
    """
    logger.info("Minifying ESP-IDF")
    espidf_dir = Path(espidf_dir)
    for relative in MINIFY_PATHS:
        target = espidf_dir / relative
        if not target.exists():
            logger.debug(f"Nothing to remove at {target}")
            continue
        try:
            safe_rmtree(target, require_prefix=espidf_dir)
        except (FilesystemError, ValueError) as e:
            raise MinifyError(target, str(e)) from e
