"""
GCC cross-compiler toolchains for Espressif chips.

Downloads prebuilt crosstool-NG releases from GitHub:
    {repository}/{release}/{toolchain}-{version}-{arch}.{ext}
e.g. .../esp-2021r2-patch3/xtensa-esp32-elf-gcc8_4_0-esp-2021r2-patch3-linux-amd64.tar.gz
"""

import logging
from pathlib import Path
from typing import List, Optional

from espkit.core.directory import get_tool_path
from espkit.core.download import DEFAULT_TIMEOUT, download_file
from espkit.core.exceptions import FetchError, FilesystemError
from espkit.core.exporter import format_path_export
from espkit.core.filesystem import safe_rmtree
from espkit.core.platform import get_gcc_arch, get_gcc_artifact_extension
from espkit.toolchain.idf_version import IdfVersion
from espkit.toolchain.targets import Chip

logger = logging.getLogger(__name__)

DEFAULT_GCC_REPOSITORY = "https://github.com/espressif/crosstool-NG/releases/download"
DEFAULT_GCC_RELEASE = "esp-2021r2-patch3"
DEFAULT_GCC_VERSION = "gcc8_4_0-esp-2021r2-patch3"

_TOOLCHAIN_NAMES = {
    Chip.ESP32: "xtensa-esp32-elf",
    Chip.ESP32S2: "xtensa-esp32s2-elf",
    Chip.ESP32S3: "xtensa-esp32s3-elf",
    Chip.ESP32C3: "riscv32-esp-elf",
}


def get_toolchain_name(chip: Chip) -> str:
    """Name of the GCC toolchain that targets a chip."""
    return _TOOLCHAIN_NAMES[chip]


def get_ulp_toolchain_name(
    chip: Chip, version: Optional[IdfVersion] = None
) -> Optional[str]:
    """
    Name of the ULP coprocessor toolchain of a chip, if it has one.

    ESP-IDF 4.4 merged the S2/S3 ULP toolchain into 'esp32ulp-elf'; older
    releases still ship 'esp32s2ulp-elf'. An unknown version is assumed to
    be recent.

    Example:
        >>> get_ulp_toolchain_name(Chip.ESP32S2, IdfVersion(4, 3))
        'esp32s2ulp-elf'
        >>> get_ulp_toolchain_name(Chip.ESP32C3) is None
        True
    """
    if chip is Chip.ESP32:
        return "esp32ulp-elf"
    if chip in (Chip.ESP32S2, Chip.ESP32S3):
        if version is None or version.at_least(4, 4):
            return "esp32ulp-elf"
        return "esp32s2ulp-elf"
    return None


class GccToolchain:
    """
    Download and install the GCC toolchain of one chip.

    The archive is unpacked straight from the network into
    '<tools_root>/tools/<toolchain>/<version>'.
    """

    def __init__(
        self,
        chip: Chip,
        tools_root: Path,
        platform_id: str,
        release: str = DEFAULT_GCC_RELEASE,
        version: str = DEFAULT_GCC_VERSION,
        repository_url: str = DEFAULT_GCC_REPOSITORY,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """
        Initialize GCC toolchain installer.

        Args:
            chip: Target chip
            tools_root: Tools root directory
            platform_id: Host triple selecting the release artifact
            release: crosstool-NG release tag
            version: Version component of the artifact name
            repository_url: Base URL of the release downloads
            timeout: Download timeout in seconds
        """
        self.chip = chip
        self.tools_root = Path(tools_root)
        self.platform_id = platform_id
        self.release = release
        self.version = version
        self.repository_url = repository_url
        self.timeout = timeout
        self.toolchain_name = get_toolchain_name(chip)
        self.install_dir = get_tool_path(self.tools_root, self.toolchain_name) / version

    @property
    def extension(self) -> str:
        return get_gcc_artifact_extension(self.platform_id)

    def artifact_url(self) -> str:
        """Download URL of the toolchain archive for the host platform."""
        arch = get_gcc_arch(self.platform_id)
        return (
            f"{self.repository_url}/{self.release}/"
            f"{self.toolchain_name}-{self.version}-{arch}.{self.extension}"
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
                f"Previous installation of {self.toolchain_name} exists in: {self.install_dir}"
            )
            return self.install_dir

        logger.info(f"Installing GCC toolchain {self.toolchain_name} for {self.chip}")
        try:
            download_file(
                self.artifact_url(),
                f"{self.toolchain_name}.{self.extension}",
                self.install_dir,
                uncompress=True,
                timeout=self.timeout,
            )
        except (FetchError, FilesystemError):
            # A leftover directory would count as installed on the next run
            safe_rmtree(self.install_dir, require_prefix=self.tools_root)
            raise
        return self.install_dir

    def bin_dir(self) -> Path:
        return self.install_dir / self.toolchain_name / "bin"

    def exports(self) -> List[str]:
        """Environment assignments that put the toolchain on PATH."""
        return [format_path_export(self.bin_dir(), self.platform_id)]
