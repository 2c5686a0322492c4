"""
Directory layout management for espkit.

This module resolves the tools root and derives every path espkit installs
into. All helpers take the tools root explicitly; the environment is consulted
only by resolve_tools_root() at the configuration edge.

Directory Structure:
    Tools root (~/.espressif/ or $IDF_TOOLS_PATH):
        - dist/                   : Downloaded archive cache
        - tools/<tool>/           : Unpacked individual tool trees
        - esp-idf-<hash>/<ref>/   : SDK checkouts, keyed by source identity
"""

import hashlib
import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Union

from espkit.core.exceptions import DirectoryCreateError
from espkit.core.gitref import GitRef

logger = logging.getLogger(__name__)

TOOLS_PATH_ENV = "IDF_TOOLS_PATH"
DEFAULT_TOOLS_DIR_NAME = ".espressif"
ESP_IDF_PREFIX = "esp-idf"


def get_home_dir() -> Path:
    """Get the home directory of the current user."""
    return Path.home()


def resolve_tools_root(
    explicit: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """
    Resolve the tools root directory.

    Precedence: explicit value, then $IDF_TOOLS_PATH, then ~/.espressif.

    Args:
        explicit: Directory given on the command line or in a config file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Path: The tools root directory.

    Example:
        >>> resolve_tools_root(environ={})
        PosixPath('/home/user/.espressif')
    """
    if explicit:
        return Path(explicit).expanduser()

    if environ is None:
        environ = os.environ

    from_env = environ.get(TOOLS_PATH_ENV)
    if from_env:
        return Path(from_env).expanduser()

    return get_home_dir() / DEFAULT_TOOLS_DIR_NAME


def get_tool_path(tools_root: Path, tool_name: str) -> Path:
    """Directory an individual tool is unpacked into."""
    return Path(tools_root) / "tools" / tool_name


def get_dist_path(tools_root: Path, file_name: str) -> Path:
    """Location of a downloaded archive in the dist cache."""
    return Path(tools_root) / "dist" / file_name


def hash_source_url(source_url: str) -> str:
    """
    Compute the stable 64-bit hex digest of a source URL.

    Args:
        source_url: Canonical repository URL

    Returns:
        16 lowercase hex characters
    """
    return hashlib.blake2b(source_url.encode("utf-8"), digest_size=8).hexdigest()


def sanitize_ref_name(name: str) -> str:
    """Replace path separators so a ref name stays a single path segment."""
    return name.replace("/", "-").replace("\\", "-")


def get_install_path(
    tools_root: Path,
    source_url: str,
    git_ref: GitRef,
    prefix: str = ESP_IDF_PREFIX,
) -> Path:
    """
    Derive the install directory of a versioned remote checkout.

    The path is '<tools_root>/<prefix>-<hash(source_url)>/<ref name>' with
    directory separators in the ref name replaced by '-'. Nothing is created
    on disk.

    Args:
        tools_root: Tools root directory
        source_url: Repository URL the checkout comes from
        git_ref: Branch, tag or commit of the checkout
        prefix: Source kind prefix of the hashed directory

    Returns:
        Path to the checkout directory

    Example:
        Branch 'release/v4.4' of https://github.com/espressif/esp-idf lands in
        '<tools_root>/esp-idf-<hash>/release-v4.4'.
    """
    install_path = (
        Path(tools_root)
        / f"{prefix}-{hash_source_url(source_url)}"
        / sanitize_ref_name(git_ref.name)
    )
    logger.debug(f"Install path for {source_url}@{git_ref}: {install_path}")
    return install_path


def ensure_directory(path: Path) -> Path:
    """
    Create a directory recursively if it doesn't exist.

    Raises:
        DirectoryCreateError: If directory creation fails.
    """
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(path, str(e)) from e
    return path
