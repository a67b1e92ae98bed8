"""Archive Comparator: rebuilt tarball vs. published tarball.

The cheap path is a checksum match: if the rebuilt tarball hashes to the
registry's ``shasum``, the package is reproducible and nothing is unpacked.
Otherwise both tarballs are unpacked and diffed file by file.

Differences confined to ignorable files (``.npmignore`` and Markdown docs)
still count as a match. The first file outside that set decides the
verdict; every diff is returned regardless so a reviewer can inspect them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from srcverify.core.builder import PackageManagerFactory
from srcverify.core.models import FileDiff, PackageMetadata
from srcverify.core.workspace import Workspace, fresh_dir
from srcverify.exceptions import CommandError, PackagingError
from srcverify.tools.base import ArchiveTool, DiffTool

logger = logging.getLogger(__name__)

IGNORED_FILES: frozenset[str] = frozenset({".npmignore"})
IGNORED_EXTENSIONS: frozenset[str] = frozenset({".md"})


@dataclass(frozen=True)
class ComparisonOutcome:
    """Verdict and per-file diffs of one comparison."""

    success: bool
    diffs: tuple[FileDiff, ...] = field(default_factory=tuple)


def is_ignorable(path: str) -> bool:
    """True for files whose differences do not affect the verdict."""
    return path in IGNORED_FILES or PurePosixPath(path).suffix in IGNORED_EXTENSIONS


def classify(diffs: tuple[FileDiff, ...] | list[FileDiff]) -> bool:
    """Overall success for a list of diffs, stopping at the first offender."""
    for entry in diffs:
        if is_ignorable(entry.file):
            continue
        logger.debug("First significant difference: %s", entry.file)
        return False
    return True


class ArchiveComparator:
    """Packs a built checkout and compares it with the published tarball."""

    def __init__(
        self,
        archives: ArchiveTool,
        differ: DiffTool,
        package_manager_for: PackageManagerFactory,
        workspace: Workspace,
    ) -> None:
        self._archives = archives
        self._differ = differ
        self._package_manager_for = package_manager_for
        self._workspace = workspace

    async def compare(self, checkout: Path, metadata: PackageMetadata) -> ComparisonOutcome:
        """Compare the rebuilt package in ``checkout`` with the published one.

        Raises:
            PackagingError: Packing or unpacking failed.
            RegistryError: The published tarball could not be downloaded.
        """
        name, version = metadata.name, metadata.version
        published = await self.fetch_published(metadata)
        rebuilt = await self._pack(checkout, metadata)

        digest = await self._archives.checksum(rebuilt)
        if digest == metadata.distribution.checksum:
            logger.info("%s: checksum matches published tarball", metadata.identifier)
            return ComparisonOutcome(success=True)

        logger.info("%s: checksum mismatch (%s != %s), diffing contents",
                    metadata.identifier, digest, metadata.distribution.checksum)
        published_root = await self._unpack(published, self._workspace.published_scratch(name, version))
        rebuilt_root = await self._unpack(rebuilt, self._workspace.rebuilt_scratch(name, version))

        diffs: list[FileDiff] = []
        for file in await self._differ.changed_files(published_root, rebuilt_root):
            text = await self._differ.file_diff(rebuilt_root / file, published_root / file, file)
            diffs.append(FileDiff(file=file, diff=text))

        return ComparisonOutcome(success=classify(diffs), diffs=tuple(diffs))

    async def fetch_published(self, metadata: PackageMetadata) -> Path:
        """Published tarball path, downloading it unless already cached."""
        path = self._workspace.published_archive_path(metadata.name, metadata.version)
        if not path.exists():
            await self._archives.download(metadata.distribution.archive_url, path)
        return path

    async def _pack(self, checkout: Path, metadata: PackageMetadata) -> Path:
        destination = fresh_dir(self._workspace.packed_dir_for(metadata.name, metadata.version))
        manager = self._package_manager_for(checkout)
        try:
            return await manager.pack(checkout, destination)
        except CommandError as exc:
            raise PackagingError(f"{manager.name} pack failed: {exc}") from exc

    async def _unpack(self, archive: Path, scratch: Path) -> Path:
        """Unpack into a fresh ``scratch`` and return the package root.

        npm tarballs hold a single top-level directory, normally
        ``package/``; that directory is the comparison root.
        """
        fresh_dir(scratch)
        await self._archives.unpack(archive, scratch)
        entries = list(scratch.iterdir())
        if len(entries) == 1 and entries[0].is_dir():
            return entries[0]
        return scratch
