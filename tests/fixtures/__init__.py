"""Test fixtures for espkit tests.

Fixtures are organized by type:

- archives: In-memory zip/tar.gz/tar.xz release archives
- installer: FakeRunner standing in for git and idf_tools.py

Import fixtures in your tests using:
    from tests.fixtures.archives import make_tar_bytes
    from tests.fixtures.installer import FakeRunner
"""

__all__ = [
    "archives",
    "installer",
]
