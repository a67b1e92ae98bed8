"""Verification pipeline: metadata → source → build → compare.

``VerificationPipeline.run`` never raises for failures it understands. Any
``SrcVerifyError`` becomes a failed ``VerificationResult`` whose ``errors``
hold the warnings collected so far followed by the fatal message. Other
exceptions are internal faults and propagate.

All versions of a package share one git mirror, so the source, build and
compare steps run under a per-package-name lock. Different packages still
proceed in parallel.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator

from srcverify.core.builder import BuildOrchestrator
from srcverify.core.comparator import ArchiveComparator
from srcverify.core.identifier import PackageIdentifier, require_version
from srcverify.core.locator import SourceLocator
from srcverify.core.models import PackageMetadata, VerificationResult
from srcverify.exceptions import SrcVerifyError
from srcverify.registry.npm_client import MetadataClient

logger = logging.getLogger(__name__)


@dataclass
class _MirrorLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class VerificationPipeline:
    """Runs every verification step for one resolved identifier."""

    def __init__(
        self,
        metadata_client: MetadataClient,
        locator: SourceLocator,
        builder: BuildOrchestrator,
        comparator: ArchiveComparator,
    ) -> None:
        self._metadata_client = metadata_client
        self._locator = locator
        self._builder = builder
        self._comparator = comparator
        self._mirror_locks: dict[str, _MirrorLock] = {}

    @property
    def mirrors_in_use(self) -> frozenset[str]:
        """Package names whose mirror is held or awaited by a run."""
        return frozenset(self._mirror_locks)

    @asynccontextmanager
    async def mirror(self, name: str) -> AsyncIterator[None]:
        """Hold the lock serialising all work on ``name``'s mirror.

        The lock is dropped once no run holds or awaits it.
        """
        entry = self._mirror_locks.get(name)
        if entry is None:
            entry = self._mirror_locks[name] = _MirrorLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if not entry.users:
                del self._mirror_locks[name]

    async def run(self, identifier: PackageIdentifier) -> VerificationResult:
        """Verify ``identifier`` and return the result.

        Raises:
            MissingVersion: If ``identifier`` is not resolved.
        """
        identifier = require_version(identifier)
        try:
            metadata = await self._metadata_client.fetch(identifier)
        except SrcVerifyError as exc:
            logger.warning("%s: metadata lookup failed: %s", identifier, exc)
            return VerificationResult.failure(identifier, [str(exc)])

        logger.info("processing: %s", metadata.identifier)
        errors: list[str] = []
        try:
            async with self.mirror(metadata.name):
                return await self._verify(metadata, errors)
        except SrcVerifyError as exc:
            logger.warning("%s: verification failed: %s", metadata.identifier, exc)
            errors.append(str(exc))
            return VerificationResult.failure(metadata, errors)

    async def _verify(self, metadata: PackageMetadata, errors: list[str]) -> VerificationResult:
        checkout = await self._locator.locate(metadata)
        errors.extend(checkout.warnings)

        await self._builder.build(checkout.path, metadata, errors)

        outcome = await self._comparator.compare(checkout.path, metadata)
        logger.info("%s: %s (%d differing files)", metadata.identifier,
                    "match" if outcome.success else "MISMATCH", len(outcome.diffs))
        return VerificationResult(
            package_identifier=str(metadata.identifier),
            name=metadata.name,
            version=metadata.version,
            success=outcome.success,
            diffs=outcome.diffs,
            errors=tuple(errors),
        )
