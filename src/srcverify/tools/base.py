"""Abstract interfaces for the external tools used by the pipeline.

Each collaborator (git, the package manager, archive transfer, diffing and
dependency enumeration) is modelled as a narrow abstract base class with one
coroutine per operation. Concrete implementations in this package shell out
or use the relevant library; tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from srcverify.tools.process import CommandOutput


class VersionControl(ABC):
    """Operations on a local mirror of a remote repository."""

    @abstractmethod
    async def clone(self, url: str, path: Path) -> None:
        """Clone ``url`` into ``path``."""

    @abstractmethod
    async def fetch(self, path: Path) -> None:
        """Fetch new commits and tags into an existing mirror."""

    @abstractmethod
    async def revision_exists(self, path: Path, revision: str) -> bool:
        """True if ``revision`` names a commit in the mirror."""

    @abstractmethod
    async def checkout(self, path: Path, revision: str) -> None:
        """Check out ``revision`` in the working tree."""

    @abstractmethod
    async def clean(self, path: Path) -> None:
        """Remove untracked and ignored files from the working tree."""

    def has_mirror(self, path: Path) -> bool:
        """True if ``path`` already holds a clone."""
        return (path / ".git").exists()


class PackageManager(ABC):
    """Install, script and pack operations scoped to a working directory."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Executable name, e.g. ``"npm"``."""

    @abstractmethod
    async def install(self, cwd: Path) -> None:
        """Install the project's dependencies."""

    @abstractmethod
    async def run_script(self, cwd: Path, script: str) -> None:
        """Run a named ``package.json`` script."""

    @abstractmethod
    async def pack(self, cwd: Path, destination: Path) -> Path:
        """Pack ``cwd`` into a tarball inside ``destination``.

        Returns:
            Path of the created tarball.
        """


class ArchiveTool(ABC):
    """Download, unpack and checksum of package tarballs."""

    @abstractmethod
    async def download(self, url: str, path: Path) -> None:
        """Download ``url`` to ``path``."""

    @abstractmethod
    async def unpack(self, archive: Path, directory: Path) -> None:
        """Extract ``archive`` into ``directory``."""

    @abstractmethod
    async def checksum(self, archive: Path) -> str:
        """Hex digest of ``archive`` in the registry's checksum algorithm."""


class DiffTool(ABC):
    """Whitespace-insensitive comparison of unpacked package trees."""

    @abstractmethod
    async def changed_files(self, left: Path, right: Path) -> list[str]:
        """Relative paths that differ between two trees, in traversal order.

        A file present on only one side counts as changed.
        """

    @abstractmethod
    async def file_diff(self, left: Path, right: Path, label: str) -> str:
        """Unified diff text from ``left`` to ``right``.

        Either file may be missing, in which case it is treated as empty.
        """


class DependencyTreeTool(ABC):
    """Enumerates the transitive dependency tree of a package."""

    @abstractmethod
    async def enumerate(self, identifier: str) -> CommandOutput:
        """Raw tree output for a resolved identifier."""
