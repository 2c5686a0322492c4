"""
Network fetch and cache engine.

This module downloads a file once and keeps it: if the destination already
exists it is returned as-is, otherwise the file is fetched over HTTP(S) and
either written verbatim or unpacked on the fly:
- .zip is buffered into a temporary file and extracted
- .tar.gz and .tar.xz are decompressed and untarred while streaming

Cache validity is path existence only. There is no checksum, no TTL and no
retry; callers that want retries wrap download_file() themselves.

Known limitations:
- A partial file left behind by a crash is treated as a cache hit.
- Concurrent processes fetching the same artifact are not coordinated.
"""

import logging
import lzma
import tempfile
import zipfile
import tarfile
import zlib
from enum import Enum
from pathlib import Path
from typing import Union

import requests
from requests.exceptions import RequestException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from espkit.core.directory import ensure_directory
from espkit.core.exceptions import (
    ArchiveCorruptError,
    FilesystemError,
    NetworkError,
    UnsupportedExtensionError,
)
from espkit.core.filesystem import extract_tar_stream, extract_zip

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
CHUNK_SIZE = 8192

# Decoder failures that mean the archive itself is bad
_CORRUPT_ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    tarfile.TarError,
    lzma.LZMAError,
    zlib.error,
    EOFError,
)


class ArchiveKind(Enum):
    """How a downloaded file is materialized on disk."""

    RAW_FILE = "raw"
    ZIP = "zip"
    GZ_TAR = "gz"
    XZ_TAR = "xz"

    @classmethod
    def from_extension(cls, extension: str) -> "ArchiveKind":
        """
        Map a final file extension to an archive kind.

        Raises:
            UnsupportedExtensionError: If the extension is not zip, gz or xz
        """
        for kind in (cls.ZIP, cls.GZ_TAR, cls.XZ_TAR):
            if extension == kind.value:
                return kind
        raise UnsupportedExtensionError(extension)

    @classmethod
    def from_file_name(cls, file_name: str) -> "ArchiveKind":
        """
        Determine the archive kind of a file name from its last extension.

        Example:
            >>> ArchiveKind.from_file_name('xtensa-esp32-elf.tar.xz')
            <ArchiveKind.XZ_TAR: 'xz'>
        """
        return cls.from_extension(Path(file_name).suffix.lstrip("."))


def download_file(
    url: str,
    file_name: str,
    output_directory: Union[str, Path],
    uncompress: bool = False,
    timeout: int = DEFAULT_TIMEOUT,
) -> Path:
    """
    Fetch a file into a directory unless it is already there.

    Args:
        url: URL to download from
        file_name: Name of the file inside output_directory
        output_directory: Directory to write or extract into
        uncompress: Extract the archive into output_directory instead of
            writing the raw file
        timeout: Request timeout in seconds

    Returns:
        output_directory / file_name. When uncompressing this is the archive
        name, not the extracted tree; callers only use it for bookkeeping.

    Raises:
        DirectoryCreateError: If output_directory cannot be created
        NetworkError: If the request fails or returns an error status
        UnsupportedExtensionError: If uncompress is set and the extension
            is not zip, gz or xz
        ArchiveCorruptError: If the archive cannot be decoded
        FilesystemError: If writing or extracting to disk fails

    Example:
        >>> download_file(
        ...     "https://github.com/espressif/crosstool-NG/releases/download/...",
        ...     "xtensa-esp32-elf.tar.gz",
        ...     Path("~/.espressif/tools/xtensa-esp32-elf"),
        ...     uncompress=True,
        ... )
    """
    output_directory = Path(output_directory)
    file_path = output_directory / file_name

    if file_path.exists():
        logger.info(f"Using cached file: {file_path}")
        return file_path

    # Fail on unknown extensions before touching disk or network
    kind = ArchiveKind.from_file_name(file_name) if uncompress else ArchiveKind.RAW_FILE

    if not output_directory.exists():
        logger.info(f"Creating directory: {output_directory}")
        ensure_directory(output_directory)

    logger.info(f"Downloading file {file_name} from {url}")
    try:
        response = requests.get(url, stream=True, timeout=timeout)
        response.raise_for_status()
    except RequestException as e:
        raise NetworkError(url, str(e)) from e

    with response:
        if kind is ArchiveKind.RAW_FILE:
            _write_raw(response, url, file_path)
        elif kind is ArchiveKind.ZIP:
            _extract_zip_response(response, url, output_directory)
        else:
            _extract_tar_response(response, url, output_directory, kind.value)

    return file_path


def _write_raw(response: requests.Response, url: str, file_path: Path) -> None:
    """Stream the response body into file_path."""
    logger.info(f"Creating file: {file_path}")
    try:
        with open(file_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
    except RequestException as e:
        raise NetworkError(url, str(e)) from e
    except OSError as e:
        raise FilesystemError(f"Cannot write {file_path}: {e}") from e


def _extract_zip_response(
    response: requests.Response, url: str, output_directory: Path
) -> None:
    """Buffer a zip download into a temporary file and extract it."""
    try:
        with tempfile.TemporaryFile() as tmpfile:
            try:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        tmpfile.write(chunk)
            except RequestException as e:
                raise NetworkError(url, str(e)) from e

            tmpfile.seek(0)
            logger.info(f"Uncompressing zip file to {output_directory}")
            try:
                count = extract_zip(tmpfile, output_directory)
            except _CORRUPT_ARCHIVE_ERRORS as e:
                raise ArchiveCorruptError(url, str(e)) from e
    except OSError as e:
        raise FilesystemError(f"Cannot extract {url} into {output_directory}: {e}") from e

    logger.debug(f"Extracted {count} entries from {url}")


def _extract_tar_response(
    response: requests.Response, url: str, output_directory: Path, compression: str
) -> None:
    """Decompress and untar the response body while it streams in."""
    logger.info(f"Uncompressing tar.{compression} file to {output_directory}")
    try:
        count = extract_tar_stream(response.raw, output_directory, compression)
    except _CORRUPT_ARCHIVE_ERRORS as e:
        raise ArchiveCorruptError(url, str(e)) from e
    except Urllib3HTTPError as e:
        raise NetworkError(url, str(e)) from e
    except OSError as e:
        raise FilesystemError(f"Cannot extract {url} into {output_directory}: {e}") from e

    logger.debug(f"Extracted {count} entries from {url}")


__all__ = [
    "ArchiveKind",
    "DEFAULT_TIMEOUT",
    "download_file",
]
