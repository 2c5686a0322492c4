"""
Xtensa-enabled LLVM/Clang toolchain.

Downloads Espressif's LLVM fork from GitHub releases:
    {repository}/{version}/xtensa-esp32-elf-llvm{14_0_0}-{version}-{arch}.{ext}
"""

import logging
from pathlib import Path
from typing import Dict, List

from espkit.core.directory import get_tool_path
from espkit.core.download import DEFAULT_TIMEOUT, download_file
from espkit.core.exceptions import FetchError, FilesystemError, VersionParseError
from espkit.core.exporter import format_export
from espkit.core.filesystem import safe_rmtree
from espkit.core.platform import get_llvm_arch, get_llvm_artifact_extension

logger = logging.getLogger(__name__)

DEFAULT_LLVM_REPOSITORY = "https://github.com/espressif/llvm-project/releases/download"
DEFAULT_LLVM_VERSION = "14"
LLVM_TOOL_NAME = "xtensa-esp32-elf-clang"

# Major version -> release tag
LLVM_RELEASES: Dict[str, str] = {
    "13": "esp-13.0.0-20211203",
    "14": "esp-14.0.0-20220415",
}


def parse_llvm_version(llvm_version: str) -> str:
    """
    Map a major LLVM version to its Espressif release tag.

    Raises:
        VersionParseError: If no release exists for the version

    Example:
        >>> parse_llvm_version('14')
        'esp-14.0.0-20220415'
    """
    try:
        return LLVM_RELEASES[llvm_version.strip()]
    except KeyError:
        raise VersionParseError(llvm_version, "LLVM version") from None


def get_llvm_version_with_underscores(llvm_version: str) -> str:
    """
    Dotted version of a release tag with dots replaced by underscores.

    Example:
        >>> get_llvm_version_with_underscores('esp-14.0.0-20220415')
        '14_0_0'
    """
    parts = llvm_version.split("-")
    if len(parts) < 2:
        raise VersionParseError(llvm_version, "LLVM release")
    return parts[1].replace(".", "_")


class LlvmToolchain:
    """Download and install the Xtensa LLVM toolchain."""

    def __init__(
        self,
        version: str,
        tools_root: Path,
        platform_id: str,
        repository_url: str = DEFAULT_LLVM_REPOSITORY,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """
        Initialize LLVM toolchain installer.

        Args:
            version: Release tag, e.g. 'esp-14.0.0-20220415'
            tools_root: Tools root directory
            platform_id: Host triple selecting the release artifact
            repository_url: Base URL of the release downloads
            timeout: Download timeout in seconds
        """
        self.version = version
        self.tools_root = Path(tools_root)
        self.platform_id = platform_id
        self.repository_url = repository_url
        self.timeout = timeout
        self.arch = get_llvm_arch(platform_id)
        self.extension = get_llvm_artifact_extension(platform_id)
        self.install_dir = (
            get_tool_path(self.tools_root, LLVM_TOOL_NAME) / f"{version}-{self.arch}"
        )

    @classmethod
    def from_major(cls, major: str, tools_root: Path, platform_id: str, **kwargs):
        """Create an installer from a major version such as '14'."""
        return cls(parse_llvm_version(major), tools_root, platform_id, **kwargs)

    def artifact_url(self) -> str:
        underscored = get_llvm_version_with_underscores(self.version)
        return (
            f"{self.repository_url}/{self.version}/"
            f"xtensa-esp32-elf-llvm{underscored}-{self.version}-{self.arch}.{self.extension}"
        )

    def is_installed(self) -> bool:
        return self.install_dir.exists()

    def install(self) -> Path:
        """
        Install the toolchain unless its directory already exists.

        Returns:
            Path to the toolchain installation directory

        Raises:
            FetchError: If download or extraction fails (nothing is left behind)
        """
        if self.is_installed():
            logger.info(
                f"Previous installation of LLVM exists in: {self.install_dir}. Reusing this installation."
            )
            return self.install_dir

        logger.info(f"Installing Xtensa LLVM {self.version}")
        try:
            download_file(
                self.artifact_url(),
                f"idf_tool_xtensa_elf_clang.{self.extension}",
                self.install_dir,
                uncompress=True,
                timeout=self.timeout,
            )
        except (FetchError, FilesystemError):
            safe_rmtree(self.install_dir, require_prefix=self.tools_root)
            raise
        return self.install_dir

    def libclang_path(self) -> Path:
        return self.install_dir / LLVM_TOOL_NAME / "lib"

    def exports(self) -> List[str]:
        """Environment assignments needed by bindgen-style consumers."""
        return [format_export("LIBCLANG_PATH", str(self.libclang_path()), self.platform_id)]
