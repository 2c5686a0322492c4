"""
File system utilities for espkit.

This module provides:
- Archive extraction (zip, tar.gz, tar.xz) from files or streams
- Directory traversal protection for archive members
- Safe directory removal

Extraction helpers take open file objects as well as paths, so that the
download engine can unpack a tarball while it is still streaming in.
"""

import logging
import os
import shutil
import stat
import sys
import tarfile
import zipfile
from pathlib import Path
from typing import BinaryIO, Optional, Union

from espkit.core.exceptions import (
    ArchiveExtractionError,
    FilesystemError,
    InsecureArchiveError,
    UnsupportedArchiveFormat,
)

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"

# tarfile stream modes by compression name
TAR_STREAM_MODES = {
    "gz": "r|gz",
    "xz": "r|xz",
}

# Archive file suffix -> tar compression (None: zip)
_ARCHIVE_SUFFIXES = (
    (".zip", None),
    (".tar.gz", "gz"),
    (".tgz", "gz"),
    (".tar.xz", "xz"),
)


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """Check whether path lies inside parent (both taken as given)."""
    try:
        path.relative_to(parent)
    except ValueError:
        return False
    return True


# ============================================================================
# Archive Extraction
# ============================================================================


def _check_member(name: str, destination: Path) -> None:
    """
    Reject archive members that would land outside destination.

    Raises:
        InsecureArchiveError: For absolute paths or '..' escapes
    """
    target = (destination / name).resolve()
    if not is_relative_to(target, destination.resolve()):
        raise InsecureArchiveError(
            f"Refusing to extract '{name}': it resolves outside {destination}"
        )


def extract_zip(source: Union[Path, BinaryIO], destination: Path) -> int:
    """
    Extract every member of a ZIP archive.

    Args:
        source: Archive path or seekable binary file object
        destination: Directory to extract into (must exist)

    Returns:
        Number of extracted members

    Raises:
        InsecureArchiveError: If a member escapes the destination
        zipfile.BadZipFile: If the archive is corrupt
    """
    destination = Path(destination)
    with zipfile.ZipFile(source, "r") as zf:
        names = zf.namelist()
        # Nothing is written unless every member is safe
        for name in names:
            _check_member(name, destination)
        zf.extractall(destination)

    return len(names)


def extract_tar_stream(
    fileobj: BinaryIO, destination: Path, compression: str
) -> int:
    """
    Extract a compressed tar archive from a non-seekable stream.

    Members are validated and extracted one by one as they arrive.

    Args:
        fileobj: Readable binary stream (e.g. an HTTP response body)
        destination: Directory to extract into (must exist)
        compression: 'gz' or 'xz'

    Returns:
        Number of extracted members

    Raises:
        UnsupportedArchiveFormat: If compression is not 'gz' or 'xz'
        InsecureArchiveError: If a member escapes the destination
        tarfile.TarError: If the archive is corrupt
    """
    mode = TAR_STREAM_MODES.get(compression)
    if mode is None:
        raise UnsupportedArchiveFormat(f"Unsupported tar compression: {compression}")

    destination = Path(destination)
    # The 'data' filter also strips setuid bits and device files
    extract_kwargs = {"filter": "data"} if sys.version_info >= (3, 12) else {}
    count = 0
    with tarfile.open(fileobj=fileobj, mode=mode) as tar:
        for member in tar:
            _check_member(member.name, destination)
            tar.extract(member, destination, **extract_kwargs)
            count += 1

    return count


def _archive_compression(archive_path: Path):
    name = archive_path.name.lower()
    for suffix, compression in _ARCHIVE_SUFFIXES:
        if name.endswith(suffix):
            return suffix, compression
    raise UnsupportedArchiveFormat(
        f"Cannot extract {archive_path.name}: expected one of "
        f"{', '.join(s for s, _ in _ARCHIVE_SUFFIXES)}"
    )


def extract_archive(
    archive_path: Union[str, Path], destination: Union[str, Path]
) -> None:
    """
    Extract an archive file on disk into a directory.

    The format is chosen from the file name: .zip, .tar.gz/.tgz or .tar.xz.
    The destination is created if needed.

    Raises:
        UnsupportedArchiveFormat: If the file name has no known suffix
        InsecureArchiveError: If a member escapes the destination
        ArchiveExtractionError: If the archive is missing or cannot be read

    Example:
        >>> extract_archive('dist/cmake-3.20.3-linux-x86_64.tar.gz', 'tools/cmake/3.20.3')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.is_file():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    suffix, compression = _archive_compression(archive_path)
    destination.mkdir(parents=True, exist_ok=True)
    logger.info(f"Extracting {archive_path.name} into {destination}")

    try:
        if compression is None:
            count = extract_zip(archive_path, destination)
        else:
            with open(archive_path, "rb") as f:
                count = extract_tar_stream(f, destination, compression)
    except InsecureArchiveError:
        raise
    except (OSError, EOFError, zipfile.BadZipFile, tarfile.TarError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    logger.debug(f"Extracted {count} {suffix} members from {archive_path.name}")


def flatten_single_directory(directory: Path) -> Path:
    """
    Move the contents of a lone top-level subdirectory up one level.

    Release archives usually wrap everything in 'name-version-platform/'.
    Does nothing if the directory holds anything other than one subdirectory.

    Returns:
        The directory itself
    """
    directory = Path(directory)
    entries = list(directory.iterdir())
    if len(entries) != 1 or not entries[0].is_dir():
        return directory

    wrapper = entries[0]
    staging = directory.with_name(directory.name + ".flatten")
    wrapper.rename(staging)
    directory.rmdir()
    staging.rename(directory)
    return directory


# ============================================================================
# Safe File Operations
# ============================================================================


def _clear_readonly(func, path, exc_info):
    """rmtree error hook: retry once after making a read-only entry writable."""
    if os.access(path, os.W_OK):
        raise exc_info[1]
    os.chmod(path, stat.S_IWRITE)
    func(path)


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Delete a directory tree, optionally confined to a parent directory.

    A path that does not exist is not an error.

    Args:
        path: Directory to delete
        require_prefix: Refuse to delete anything outside this directory

    Raises:
        ValueError: If path lies outside require_prefix
        FilesystemError: If path is not a directory or deletion fails
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, prefix):
            raise ValueError(f"Refusing to delete {path}: outside of {prefix}")

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Cannot delete {path}: not a directory")

    logger.debug(f"Removing {path}")
    try:
        # Git checkouts on Windows contain read-only object files
        shutil.rmtree(path, onerror=_clear_readonly if IS_WINDOWS else None)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory {path}: {e}") from e


__all__ = [
    "IS_WINDOWS",
    "is_relative_to",
    "extract_zip",
    "extract_tar_stream",
    "extract_archive",
    "flatten_single_directory",
    "safe_rmtree",
]
