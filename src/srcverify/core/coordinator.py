"""Job Coordinator: deduplicated, cached verification.

The coordinator owns the in-memory state shared by every front end: a
results LRU, a dependency-list LRU, and the map of in-flight verification
tasks. It is constructed once per process (see ``build_coordinator``) and
passed to whatever needs it; there are no module-level singletons.

Guarantees:

- at most one pipeline run per resolved identifier at any time;
- every concurrent caller for that identifier receives the same
  ``VerificationResult`` instance;
- completed results are served from memory, then from the result store,
  before the pipeline is considered.

All cache mutation happens on the event loop that calls ``verify``, so the
caches need no locking.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from srcverify.config import VerifierConfig
from srcverify.core.builder import BuildOrchestrator
from srcverify.core.cache import LRUCache
from srcverify.core.comparator import ArchiveComparator
from srcverify.core.dependencies import DependencyList, DependencyLister
from srcverify.core.identifier import PackageIdentifier, parse_identifier, require_version
from srcverify.core.locator import SourceLocator
from srcverify.core.models import VerificationResult
from srcverify.core.pipeline import VerificationPipeline
from srcverify.core.store import ResultStore
from srcverify.core.workspace import Workspace
from srcverify.registry.npm_client import MetadataClient, NpmMetadataClient
from srcverify.tools.base import PackageManager

logger = logging.getLogger(__name__)

RESULT_CACHE_SIZE = 1000
DEPENDENCY_CACHE_SIZE = 100


@dataclass(frozen=True)
class DependencyReport:
    """Dependencies of a package with whatever statuses are known so far."""

    package_identifier: str
    dependencies: DependencyList
    statuses: dict[str, str]

    def to_dict(self) -> dict[str, object]:
        return {
            "packageIdentifier": self.package_identifier,
            "dependencies": list(self.dependencies),
            "statuses": dict(self.statuses),
        }


class JobCoordinator:
    """Front door for verification and dependency listing."""

    def __init__(
        self,
        metadata_client: MetadataClient,
        pipeline: VerificationPipeline,
        store: ResultStore,
        lister: DependencyLister,
        *,
        result_cache_size: int = RESULT_CACHE_SIZE,
        dependency_cache_size: int = DEPENDENCY_CACHE_SIZE,
    ) -> None:
        self._metadata_client = metadata_client
        self._pipeline = pipeline
        self._store = store
        self._lister = lister
        self.results: LRUCache[str, VerificationResult] = LRUCache(result_cache_size)
        self.dependencies: LRUCache[str, DependencyList] = LRUCache(dependency_cache_size)
        self._in_flight: dict[str, asyncio.Task[VerificationResult]] = {}

    @property
    def in_flight(self) -> frozenset[str]:
        """Identifiers with a verification currently running."""
        return frozenset(self._in_flight)

    async def resolve(self, identifier: PackageIdentifier | str) -> PackageIdentifier:
        """Pin ``identifier`` to a concrete version via the registry."""
        if isinstance(identifier, str):
            identifier = parse_identifier(identifier)
        return await self._metadata_client.resolve(identifier)

    async def verify(self, identifier: PackageIdentifier | str) -> VerificationResult:
        """Verify ``identifier``, reusing cached or in-flight work.

        Raises:
            NotFound: If an unversioned identifier is unknown to the registry.
            RegistryError: If an unversioned identifier cannot be resolved.
        """
        resolved = await self.resolve(identifier)
        key = str(resolved)

        cached = self.results.get(key)
        if cached is not None:
            logger.debug("%s: served from cache", key)
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(resolved))
            self._in_flight[key] = task
            task.add_done_callback(lambda _t, k=key: self._in_flight.pop(k, None))
        else:
            logger.debug("%s: joining in-flight verification", key)
        # Shielded so one cancelled caller does not cancel the shared job.
        return await asyncio.shield(task)

    async def _run(self, resolved: PackageIdentifier) -> VerificationResult:
        key = str(resolved)
        result = self._store.read(resolved)
        if result is None:
            result = await self._pipeline.run(resolved)
            self._store.write(resolved, result)
        self.results.set(key, result)
        return result

    async def verify_all(
        self, identifiers: list[str] | tuple[str, ...], *, max_concurrency: int = 4
    ) -> dict[str, VerificationResult]:
        """Verify many identifiers with bounded parallelism.

        Returns:
            Results keyed by the identifiers given, in input order.
        """
        semaphore = asyncio.Semaphore(max_concurrency)

        async def _one(ident: str) -> VerificationResult:
            async with semaphore:
                return await self.verify(ident)

        results = await asyncio.gather(*(_one(i) for i in identifiers))
        stats = self.results.stats
        logger.info(
            "results cache: %d hits, %d misses, %d evictions (%.0f%% hit rate)",
            stats.hits, stats.misses, stats.evictions, stats.hit_rate * 100,
        )
        return dict(zip(identifiers, results))

    async def list_dependencies(self, identifier: PackageIdentifier | str) -> DependencyList:
        """Dependency list of ``identifier``, cached per resolved identifier.

        Raises:
            MissingVersion: If ``identifier`` is unresolved.
            DependencyResolutionError: If the tree tool fails.
        """
        resolved = require_version(identifier)
        key = str(resolved)
        deps = self.dependencies.get(key)
        if deps is None:
            deps = await self._lister.list_dependencies(resolved)
            self.dependencies.set(key, deps)
        return deps

    def status_of(self, identifier: str) -> str | None:
        """``success``/``fail`` from the cache or store, or None if unknown.

        A stored result found here is promoted into the results cache.
        """
        result = self.results.get(identifier)
        if result is None:
            result = self._store.read(identifier)
            if result is None:
                return None
            self.results.set(identifier, result)
        return result.status

    async def dependency_statuses(self, identifier: PackageIdentifier | str) -> DependencyReport:
        """Dependencies of ``identifier`` with statuses of those already verified."""
        resolved = await self.resolve(identifier)
        deps = await self.list_dependencies(resolved)
        statuses: dict[str, str] = {}
        for dep in deps:
            status = self.status_of(dep)
            if status is not None:
                statuses[dep] = status
        return DependencyReport(
            package_identifier=str(resolved), dependencies=deps, statuses=statuses,
        )


def build_coordinator(config: VerifierConfig) -> JobCoordinator:
    """Wire the production tools into a ``JobCoordinator``."""
    from srcverify.tools.archive import TarballTool
    from srcverify.tools.diff import TreeDiffTool
    from srcverify.tools.git import GitTool
    from srcverify.tools.npm import detect_package_manager
    from srcverify.tools.remote_ls import NpmRemoteLs

    workspace = Workspace(config.work_dir)
    workspace.init()
    timeout = config.command_timeout

    def package_manager_for(checkout: Path) -> PackageManager:
        return detect_package_manager(checkout, timeout=timeout)

    metadata_client = NpmMetadataClient(config.registry_url, timeout=config.http_timeout)
    pipeline = VerificationPipeline(
        metadata_client,
        SourceLocator(GitTool(timeout=timeout), workspace),
        BuildOrchestrator(package_manager_for),
        ArchiveComparator(
            TarballTool(timeout=config.http_timeout),
            TreeDiffTool(),
            package_manager_for,
            workspace,
        ),
    )
    return JobCoordinator(
        metadata_client,
        pipeline,
        ResultStore(workspace),
        DependencyLister(NpmRemoteLs(timeout=timeout)),
        result_cache_size=config.result_cache_size,
        dependency_cache_size=config.dependency_cache_size,
    )
