"""Build Orchestrator: run a package's build lifecycle on a checkout.

Packing runs ``prepare`` and ``prepack`` on its own, so when a lifecycle
script is declared the builder only needs to install dependencies and run
``prepublishOnly``, which npm would otherwise only run on publish. Lifecycle
failures are recorded and the build carries on.

Many packages build through a plain ``build`` script instead. When no
lifecycle script is declared, the builder guesses that one of the
conventional build scripts produced the published files. A failure there
leaves nothing to compare against, so it is fatal.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable

from srcverify.core.models import PackageMetadata
from srcverify.exceptions import (
    CommandError,
    FallbackBuildFailure,
    LifecycleScriptFailure,
    PackagingError,
)
from srcverify.tools.base import PackageManager

logger = logging.getLogger(__name__)

LIFECYCLE_SCRIPTS: tuple[str, ...] = ("prepare", "prepack", "prepublishOnly", "prepublish")

# Lifecycle scripts that packing does not run by itself.
EXPLICIT_LIFECYCLE_SCRIPTS: tuple[str, ...] = ("prepublishOnly",)

FALLBACK_BUILD_SCRIPTS: tuple[str, ...] = ("build", "build-all")

MANIFEST = "package.json"

PackageManagerFactory = Callable[[Path], PackageManager]


class BuildOrchestrator:
    """Installs, builds and stamps the version on a checkout."""

    def __init__(self, package_manager_for: PackageManagerFactory) -> None:
        self._package_manager_for = package_manager_for

    async def build(
        self, checkout: Path, metadata: PackageMetadata, errors: list[str] | None = None
    ) -> list[str]:
        """Build ``checkout`` in place.

        Args:
            checkout: Clean working tree at the package's revision.
            metadata: Registry metadata (scripts and target version).
            errors: List that non-fatal errors and warnings are appended to.
                Entries added before a fatal error are kept.

        Returns:
            ``errors`` (a new list if none was given).

        Raises:
            CommandError: Dependency installation failed.
            FallbackBuildFailure: The guessed build script failed.
            PackagingError: ``package.json`` is missing or unreadable.
        """
        manager = self._package_manager_for(checkout)
        if errors is None:
            errors = []

        declared = [s for s in LIFECYCLE_SCRIPTS if metadata.scripts.get(s)]
        fallback = next((s for s in FALLBACK_BUILD_SCRIPTS if metadata.scripts.get(s)), None)

        if declared:
            logger.info("%s: installing with %s for lifecycle scripts %s",
                        metadata.identifier, manager.name, ", ".join(declared))
            await manager.install(checkout)
            for script in EXPLICIT_LIFECYCLE_SCRIPTS:
                if script not in declared:
                    continue
                try:
                    await manager.run_script(checkout, script)
                except CommandError as exc:
                    failure = LifecycleScriptFailure(f"lifecycle script {script} failed: {exc}")
                    logger.warning("%s: %s", metadata.identifier, failure)
                    errors.append(str(failure))
        elif fallback is not None:
            errors.append(
                "lifecycle scripts were not found, so guessing that this script "
                f"should be run instead: {fallback}"
            )
            logger.info("%s: running fallback build script %s", metadata.identifier, fallback)
            await manager.install(checkout)
            try:
                await manager.run_script(checkout, fallback)
            except CommandError as exc:
                raise FallbackBuildFailure(f"build script {fallback} failed: {exc}") from exc

        stamp_version(checkout / MANIFEST, metadata.version)
        return errors


def stamp_version(manifest: Path, version: str) -> None:
    """Overwrite the ``version`` field of ``package.json``.

    npm rewrites the field at publish time, and source trees often still
    carry the previous version, so the rebuilt tarball gets the published
    value. Key order is preserved.

    Raises:
        PackagingError: If the manifest is missing or is not a JSON object.
    """
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise PackagingError(f"could not read {manifest.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise PackagingError(f"{manifest.name} is not a JSON object")
    data["version"] = version
    manifest.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
