"""
ESP-IDF checkout and tool installation.

The installer clones the SDK at a git ref into its content-addressed
directory, reads the checkout's version, asks a callback which tools that
version needs, and installs them:
- IdfToolSet names are handed to the SDK's own tools/idf_tools.py
- bundled tools (e.g. BundledCMake) install themselves under the tools root

Example:
    >>> installer = IdfInstaller(
    ...     IdfRemote(GitRef.branch("release/v4.4")),
    ...     install_dir=Path("~/.espressif").expanduser(),
    ...     tools_callback=lambda repo, version: [IdfToolSet(["xtensa-esp32-elf"])],
    ... )
    >>> repo = installer.install()
"""

import logging
import os
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from espkit.core.directory import ensure_directory, get_install_path, TOOLS_PATH_ENV
from espkit.core.exceptions import FilesystemError, InstallError, VersionParseError
from espkit.core.filesystem import safe_rmtree
from espkit.core.gitref import GitRef, RefKind
from espkit.toolchain.idf_version import IdfVersion, format_version

logger = logging.getLogger(__name__)

DEFAULT_GIT_REPOSITORY = "https://github.com/espressif/esp-idf"
CLONE_TIMEOUT = 1800
TOOLS_TIMEOUT = 1800


@dataclass(frozen=True)
class IdfRemote:
    """A remote SDK source: repository URL plus git ref."""

    git_ref: GitRef
    repo_url: str = DEFAULT_GIT_REPOSITORY


@dataclass
class IdfRepository:
    """A resolved SDK checkout on disk."""

    remote: IdfRemote
    worktree: Path


@dataclass
class IdfToolSet:
    """Sub-tools installed through the SDK's idf_tools.py."""

    names: List[str] = field(default_factory=list)


class BundledTool(ABC):
    """A tool that downloads and installs itself under the tools root."""

    name: str

    @abstractmethod
    def install(self, tools_root: Path) -> Path:
        """Install the tool unless present and return its directory."""
        pass

    @abstractmethod
    def bin_dir(self, tools_root: Path) -> Path:
        """Directory holding the tool's executables."""
        pass


ToolSet = Union[IdfToolSet, BundledTool]
ToolsCallback = Callable[[IdfRepository, Optional[IdfVersion]], List[ToolSet]]


class IdfInstaller:
    """
    Clone an ESP-IDF checkout and install the tools it needs.

    Commands run through an injectable runner with subprocess.run's
    signature, which keeps the installer testable without git or network.
    """

    def __init__(
        self,
        remote: IdfRemote,
        install_dir: Path,
        tools_callback: ToolsCallback,
        runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
        python_executable: Optional[str] = None,
        install_python_env: bool = True,
    ):
        """
        Initialize installer.

        Args:
            remote: SDK repository and ref to install
            install_dir: Tools root the checkout and tools go into
            tools_callback: Returns the tool sets for a checkout and its version
            runner: Command runner (default: subprocess.run)
            python_executable: Interpreter for idf_tools.py (default: current)
            install_python_env: Also create the SDK's Python environment
        """
        self.remote = remote
        self.install_dir = Path(install_dir)
        self.tools_callback = tools_callback
        self.runner = runner or subprocess.run
        self.python_executable = python_executable or sys.executable
        self.install_python_env = install_python_env

    @property
    def worktree(self) -> Path:
        return get_install_path(self.install_dir, self.remote.repo_url, self.remote.git_ref)

    def install(self) -> IdfRepository:
        """
        Clone the SDK (unless present) and install its tools.

        Returns:
            The resolved repository

        Raises:
            InstallError: If a git or idf_tools.py command fails
        """
        worktree = self.worktree
        if (worktree / ".git").exists():
            logger.info(f"Using existing ESP-IDF checkout at {worktree}")
        else:
            self._clone(worktree)

        repo = IdfRepository(remote=self.remote, worktree=worktree)
        version = self._read_version(repo)
        logger.info(f"Using esp-idf {format_version(version)} at '{worktree}'")

        tool_sets = self.tools_callback(repo, version)
        for tool_set in tool_sets:
            if isinstance(tool_set, IdfToolSet):
                self._install_idf_tools(repo, tool_set)
            elif isinstance(tool_set, BundledTool):
                logger.info(f"Installing bundled tool {tool_set!r}")
                tool_set.install(self.install_dir)
            else:
                raise TypeError(f"Unknown tool set: {tool_set!r}")

        if self.install_python_env:
            self._run_idf_tools(repo, ["install-python-env"])

        return repo

    def _clone(self, worktree: Path) -> None:
        """Clone the remote ref into worktree, removing it again on failure."""
        git_ref = self.remote.git_ref
        url = self.remote.repo_url
        ensure_directory(worktree.parent)
        logger.info(f"Cloning {url} ({git_ref}) into {worktree}")

        try:
            if git_ref.kind is RefKind.COMMIT:
                self._run(["git", "clone", url, str(worktree)], timeout=CLONE_TIMEOUT)
                self._run(
                    ["git", "-C", str(worktree), "checkout", git_ref.name],
                    timeout=CLONE_TIMEOUT,
                )
                self._run(
                    ["git", "-C", str(worktree), "submodule", "update", "--init", "--recursive"],
                    timeout=CLONE_TIMEOUT,
                )
            else:
                self._run(
                    [
                        "git",
                        "clone",
                        "--depth",
                        "1",
                        "--branch",
                        git_ref.name,
                        "--recursive",
                        "--shallow-submodules",
                        url,
                        str(worktree),
                    ],
                    timeout=CLONE_TIMEOUT,
                )
        except InstallError:
            if worktree.exists():
                try:
                    safe_rmtree(worktree, require_prefix=self.install_dir)
                except FilesystemError as cleanup_error:
                    logger.warning(f"Failed to cleanup after error: {cleanup_error}")
            raise

    def _read_version(self, repo: IdfRepository) -> Optional[IdfVersion]:
        """Read the checkout version, falling back to a release tag name."""
        try:
            return IdfVersion.from_worktree(repo.worktree)
        except VersionParseError as e:
            git_ref = repo.remote.git_ref
            if git_ref.kind is RefKind.TAG:
                try:
                    return IdfVersion.parse(git_ref.name)
                except VersionParseError:
                    logger.debug(f"Tag {git_ref.name} is not a release version")
            logger.warning(f"Could not determine ESP-IDF version: {e}")
            return None

    def _install_idf_tools(self, repo: IdfRepository, tool_set: IdfToolSet) -> None:
        if not tool_set.names:
            return
        logger.info(f"Installing ESP-IDF tools: {', '.join(tool_set.names)}")
        self._run_idf_tools(repo, ["install", *tool_set.names])

    def _run_idf_tools(self, repo: IdfRepository, arguments: Sequence[str]) -> None:
        idf_tools = repo.worktree / "tools" / "idf_tools.py"
        env = dict(os.environ)
        env[TOOLS_PATH_ENV] = str(self.install_dir)
        self._run(
            [
                self.python_executable,
                str(idf_tools),
                "--idf-path",
                str(repo.worktree),
                *arguments,
            ],
            timeout=TOOLS_TIMEOUT,
            env=env,
        )

    def _run(self, command: List[str], timeout: int, env=None) -> subprocess.CompletedProcess:
        """Run a command and raise InstallError unless it succeeds."""
        logger.debug(f"Command arguments: {command}")
        try:
            result = self.runner(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise InstallError(f"Command {command[0]} timed out after {timeout}s") from e
        except OSError as e:
            raise InstallError(f"Could not run {command[0]}: {e}") from e

        if result.returncode != 0:
            raise InstallError(
                f"Command {' '.join(command)} failed with exit code "
                f"{result.returncode}: {result.stderr}"
            )
        return result
