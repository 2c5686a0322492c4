"""
Bundled CMake for ESP-IDF releases older than 4.4.

Those releases need CMake 3.20 or newer but their tool manifest pins an older
one, so a Kitware build is installed next to the SDK instead.
"""

import logging
from pathlib import Path

from espkit.core.directory import get_dist_path, get_tool_path
from espkit.core.download import DEFAULT_TIMEOUT, download_file
from espkit.core.exceptions import ArchiveExtractionError, InstallError
from espkit.core.filesystem import extract_archive, flatten_single_directory, safe_rmtree
from espkit.core.platform import get_cmake_platform
from espkit.toolchain.installer import BundledTool

logger = logging.getLogger(__name__)

BUNDLED_CMAKE_VERSION = "3.20.3"
CMAKE_RELEASES_URL = "https://github.com/Kitware/CMake/releases/download"


class BundledCMake(BundledTool):
    """
    Download and install a standalone CMake release.

    The archive is kept in '<tools_root>/dist/' and unpacked into
    '<tools_root>/tools/cmake/<version>'.
    """

    name = "cmake"

    def __init__(
        self,
        platform_id: str,
        version: str = BUNDLED_CMAKE_VERSION,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.platform_id = platform_id
        self.version = version
        self.timeout = timeout

    def archive_name(self) -> str:
        label, extension = get_cmake_platform(self.platform_id)
        return f"cmake-{self.version}-{label}.{extension}"

    def artifact_url(self) -> str:
        return f"{CMAKE_RELEASES_URL}/v{self.version}/{self.archive_name()}"

    def install_dir(self, tools_root: Path) -> Path:
        return get_tool_path(tools_root, self.name) / self.version

    def install(self, tools_root: Path) -> Path:
        """
        Install CMake under a tools root unless already installed.

        Returns:
            Path to the CMake installation directory

        Raises:
            FetchError: If the download fails
            InstallError: If the archive cannot be extracted
        """
        tools_root = Path(tools_root)
        install_dir = self.install_dir(tools_root)
        if install_dir.exists():
            logger.info(f"CMake {self.version} already installed at {install_dir}")
            return install_dir

        archive_path = get_dist_path(tools_root, self.archive_name())
        download_file(
            self.artifact_url(),
            archive_path.name,
            archive_path.parent,
            uncompress=False,
            timeout=self.timeout,
        )

        try:
            extract_archive(archive_path, install_dir)
            flatten_single_directory(install_dir)
        except ArchiveExtractionError as e:
            safe_rmtree(install_dir, require_prefix=tools_root)
            raise InstallError(f"CMake {self.version} installation failed: {e}") from e

        logger.info(f"CMake {self.version} installed successfully")
        return install_dir

    def bin_dir(self, tools_root: Path) -> Path:
        install_dir = self.install_dir(tools_root)
        # macOS builds are an app bundle
        app_bin = install_dir / "CMake.app" / "Contents" / "bin"
        if app_bin.exists():
            return app_bin
        return install_dir / "bin"

    def __repr__(self) -> str:
        return f"BundledCMake(version={self.version!r}, platform_id={self.platform_id!r})"
