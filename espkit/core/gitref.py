"""
Source-control references for SDK checkouts.

A GitRef identifies one revision of a remote repository. Branches, tags and
commits are treated identically downstream: only the name is used, for
cloning and for naming the checkout directory.
"""

from dataclasses import dataclass
from enum import Enum

from espkit.core.exceptions import VersionParseError


class RefKind(Enum):
    """Kind of source-control reference."""

    BRANCH = "branch"
    TAG = "tag"
    COMMIT = "commit"


@dataclass(frozen=True)
class GitRef:
    """A branch, tag or commit of a remote repository."""

    kind: RefKind
    name: str

    @classmethod
    def branch(cls, name: str) -> "GitRef":
        return cls(RefKind.BRANCH, name)

    @classmethod
    def tag(cls, name: str) -> "GitRef":
        return cls(RefKind.TAG, name)

    @classmethod
    def commit(cls, name: str) -> "GitRef":
        return cls(RefKind.COMMIT, name)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.name}"


def parse_git_ref(version: str) -> GitRef:
    """
    Parse a user-supplied SDK version into a GitRef.

    'commit:', 'tag:' and 'branch:' prefixes select the kind explicitly.
    A version starting with a digit is a release tag ('4.4' -> 'v4.4').
    Anything else is a branch name.

    Args:
        version: Version string, e.g. 'release/v4.4', '4.4', 'tag:v5.0'

    Returns:
        Parsed GitRef

    Raises:
        VersionParseError: If version is empty

    Example:
        >>> parse_git_ref('4.4')
        GitRef(kind=<RefKind.TAG: 'tag'>, name='v4.4')
        >>> parse_git_ref('release/v5.0').kind
        <RefKind.BRANCH: 'branch'>
    """
    version = version.strip()
    if not version:
        raise VersionParseError(version, "ESP-IDF version")

    for kind in RefKind:
        prefix = f"{kind.value}:"
        if version.startswith(prefix):
            name = version[len(prefix) :]
            if not name:
                raise VersionParseError(version, "ESP-IDF version")
            return GitRef(kind, name)

    if version[0].isdigit():
        return GitRef.tag(f"v{version}")

    return GitRef.branch(version)
