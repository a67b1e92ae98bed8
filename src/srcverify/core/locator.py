"""Source Locator: find the commit a package version was published from.

Mirrors are keyed by package name and shared by every version of that
package, so a mirror is cloned once and fetched on later runs. The revision
is the first candidate that exists in the mirror, tried in this order:

1. the ``gitHead`` recorded by the registry at publish time,
2. the tag ``v<version>``,
3. the tag ``<version>``.

Falling back past a declared ``gitHead`` is recorded as a warning, because
it means the published commit was never pushed (or was since rewritten).
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from srcverify.core.models import PackageMetadata
from srcverify.core.workspace import Workspace
from srcverify.exceptions import (
    CommandError,
    MissingRepository,
    NoMatchingRevision,
    SourceFetchError,
    UnsupportedRepositoryKind,
)
from srcverify.tools.base import VersionControl

logger = logging.getLogger(__name__)

SUPPORTED_REPOSITORY_KINDS: frozenset[str] = frozenset({"git"})


@dataclass
class SourceCheckout:
    """A clean working tree at the selected revision.

    Attributes:
        path: Mirror directory, now checked out at ``revision``.
        revision: The candidate that matched.
        warnings: Non-fatal observations, in the order they were made.
    """

    path: Path
    revision: str
    warnings: list[str] = field(default_factory=list)


def candidate_revisions(metadata: PackageMetadata) -> list[str]:
    """Revisions to try, most authoritative first."""
    candidates: list[str] = []
    if metadata.source_commit:
        candidates.append(metadata.source_commit)
    candidates.extend([f"v{metadata.version}", metadata.version])
    return candidates


class SourceLocator:
    """Clones or updates a package's mirror and checks out its revision."""

    def __init__(self, vcs: VersionControl, workspace: Workspace) -> None:
        self._vcs = vcs
        self._workspace = workspace

    async def locate(self, metadata: PackageMetadata) -> SourceCheckout:
        """Prepare a clean checkout of ``metadata``'s source.

        Raises:
            MissingRepository: No repository is declared.
            UnsupportedRepositoryKind: The repository is not git.
            SourceFetchError: Clone or fetch failed.
            NoMatchingRevision: No candidate revision exists.
        """
        repository = metadata.repository
        if repository is None:
            raise MissingRepository("Missing repository in package metadata")
        if repository.kind not in SUPPORTED_REPOSITORY_KINDS:
            raise UnsupportedRepositoryKind(
                f"Repository kind must be git, got {repository.kind!r}"
            )

        mirror = self._workspace.mirror_path(metadata.name)
        await self._sync_mirror(repository.clone_url, mirror)

        candidates = candidate_revisions(metadata)
        revision = await self.select_revision(mirror, candidates)
        if revision is None:
            raise NoMatchingRevision(
                f"could not find any relevant commits, tried: {' '.join(candidates)}"
            )

        warnings: list[str] = []
        if metadata.source_commit and revision != metadata.source_commit:
            warnings.append(
                "package was published using unreachable git commit: "
                f"{metadata.source_commit}. Falling back to tag {revision}."
            )
            logger.warning("%s: declared commit unreachable, using %s", metadata.identifier, revision)

        logger.info("%s: checking out %s", metadata.identifier, revision)
        try:
            await self._vcs.checkout(mirror, revision)
            await self._vcs.clean(mirror)
        except CommandError as exc:
            raise SourceFetchError(f"could not check out {revision}: {exc}") from exc
        return SourceCheckout(path=mirror, revision=revision, warnings=warnings)

    async def select_revision(self, mirror: Path, candidates: list[str]) -> str | None:
        """First candidate that exists in ``mirror``, or None."""
        for candidate in candidates:
            if await self._vcs.revision_exists(mirror, candidate):
                return candidate
        return None

    async def _sync_mirror(self, url: str, mirror: Path) -> None:
        try:
            if self._vcs.has_mirror(mirror):
                logger.info("Fetching updates into %s", mirror)
                await self._vcs.fetch(mirror)
            else:
                logger.info("Cloning %s", url)
                # Leftovers of an interrupted clone would make git refuse the path.
                shutil.rmtree(mirror, ignore_errors=True)
                await self._vcs.clone(url, mirror)
        except CommandError as exc:
            raise SourceFetchError(f"could not fetch source repository {url}: {exc}") from exc
