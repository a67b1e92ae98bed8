"""On-disk workspace layout.

Every path the pipeline touches is derived here from a package name and
version, so no step builds sandbox paths by string concatenation::

    <root>/repos/<name>/                          persistent git mirror
    <root>/packages/<safe>-<version>.tgz          published tarball cache
    <root>/packed/<safe>/<version>/               rebuilt tarball output
    <root>/packages-unpacked/<safe>/<version>/    published tarball scratch
    <root>/packages-from-source/<safe>/<version>/ rebuilt tarball scratch
    <root>/results/<safe>@<version>.json          persisted results

``<safe>`` is the package name with ``/`` replaced by ``_``, so scoped
packages never create nested directories outside the mirror tree.
"""

from __future__ import annotations

import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from srcverify.core.identifier import PackageIdentifier, require_version
from srcverify.exceptions import WorkspacePathError

RESULT_SUFFIX = ".json"

# npm package names: optional @scope/, then url-safe characters.
_VALID_NAME = re.compile(r"^(@[a-z0-9][\w.-]*/)?[a-z0-9._~-][\w.~-]*$", re.I)


def safe_name(name: str) -> str:
    """Flatten a package name into a single path component."""
    return name.replace("/", "_")


def result_filename(identifier: PackageIdentifier | str) -> str:
    """File name of a persisted result for a resolved identifier."""
    return safe_name(str(require_version(identifier))) + RESULT_SUFFIX


@dataclass(frozen=True)
class Workspace:
    """Directory-naming scheme rooted at ``root``."""

    root: Path

    @property
    def repos_dir(self) -> Path:
        return self.root / "repos"

    @property
    def packages_dir(self) -> Path:
        return self.root / "packages"

    @property
    def packed_dir(self) -> Path:
        return self.root / "packed"

    @property
    def unpacked_dir(self) -> Path:
        return self.root / "packages-unpacked"

    @property
    def from_source_dir(self) -> Path:
        return self.root / "packages-from-source"

    @property
    def results_dir(self) -> Path:
        return self.root / "results"

    def init(self) -> None:
        """Create every top-level workspace directory."""
        for directory in (
            self.repos_dir, self.packages_dir, self.packed_dir,
            self.unpacked_dir, self.from_source_dir, self.results_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

    # -- Per-package paths ----------------------------------------------------

    def mirror_path(self, name: str) -> Path:
        """Git mirror for ``name``; shared by all versions of the package."""
        return self.repos_dir / _checked(name)

    def published_archive_path(self, name: str, version: str) -> Path:
        return self.packages_dir / f"{safe_name(_checked(name))}-{_checked_version(version)}.tgz"

    def packed_dir_for(self, name: str, version: str) -> Path:
        return self.packed_dir / safe_name(_checked(name)) / _checked_version(version)

    def published_scratch(self, name: str, version: str) -> Path:
        return self.unpacked_dir / safe_name(_checked(name)) / _checked_version(version)

    def rebuilt_scratch(self, name: str, version: str) -> Path:
        return self.from_source_dir / safe_name(_checked(name)) / _checked_version(version)

    def result_path(self, identifier: PackageIdentifier | str) -> Path:
        return self.results_dir / result_filename(identifier)


def fresh_dir(path: Path) -> Path:
    """Remove ``path`` if present and recreate it empty."""
    shutil.rmtree(path, ignore_errors=True)
    path.mkdir(parents=True)
    return path


def _checked(name: str) -> str:
    if not _VALID_NAME.match(name) or {".", ".."} & set(name.split("/")):
        raise WorkspacePathError(f"invalid package name for workspace path: {name!r}")
    return name


def _checked_version(version: str) -> str:
    if not version or "/" in version or version in {".", ".."}:
        raise WorkspacePathError(f"invalid package version for workspace path: {version!r}")
    return version
