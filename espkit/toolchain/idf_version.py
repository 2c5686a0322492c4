"""
ESP-IDF version detection.

An SDK checkout records its version in tools/cmake/version.cmake as
IDF_VERSION_MAJOR/MINOR/PATCH variables.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from packaging.version import InvalidVersion, Version

from espkit.core.exceptions import VersionParseError

VERSION_CMAKE = Path("tools") / "cmake" / "version.cmake"

_VERSION_VAR = re.compile(r"set\s*\(\s*IDF_VERSION_(MAJOR|MINOR|PATCH)\s+(\d+)\s*\)")


@dataclass(frozen=True, order=True)
class IdfVersion:
    """Major, minor and patch version of an ESP-IDF checkout."""

    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "IdfVersion":
        """
        Parse a release string such as 'v4.4.2' or '5.0'.

        Raises:
            VersionParseError: If text is not a release version
        """
        try:
            release = Version(text.strip()).release
        except InvalidVersion:
            raise VersionParseError(text, "ESP-IDF version") from None

        parts = list(release) + [0, 0]
        return cls(parts[0], parts[1], parts[2])

    @classmethod
    def from_worktree(cls, worktree: Path) -> "IdfVersion":
        """
        Read the version of an SDK checkout.

        Raises:
            VersionParseError: If version.cmake is missing or incomplete
        """
        version_file = Path(worktree) / VERSION_CMAKE
        try:
            content = version_file.read_text(encoding="utf-8")
        except OSError as e:
            raise VersionParseError(str(version_file), "ESP-IDF version file") from e

        found = {name: int(value) for name, value in _VERSION_VAR.findall(content)}
        if "MAJOR" not in found or "MINOR" not in found:
            raise VersionParseError(str(version_file), "ESP-IDF version file")

        return cls(found["MAJOR"], found["MINOR"], found.get("PATCH", 0))

    def at_least(self, major: int, minor: int) -> bool:
        """Check whether this version is major.minor or newer."""
        return (self.major, self.minor) >= (major, minor)

    def __str__(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"


def format_version(version: Optional[IdfVersion]) -> str:
    """Human readable version, also for an unknown one."""
    return str(version) if version is not None else "(unknown version)"
