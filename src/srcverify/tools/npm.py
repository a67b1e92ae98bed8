"""npm and yarn ``PackageManager`` implementations.

The manager is chosen per checkout by lockfile: a ``yarn.lock`` means yarn,
anything else means npm.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from srcverify.exceptions import PackagingError
from srcverify.tools.base import PackageManager
from srcverify.tools.process import DEFAULT_COMMAND_TIMEOUT, run_command

logger = logging.getLogger(__name__)

YARN_LOCKFILE = "yarn.lock"

# Lines where a top-level JSON array could begin.
_ARRAY_START = re.compile(r"^\[", re.M)


def pack_filename(stdout: str) -> str | None:
    """Tarball name from ``npm pack --json`` output, or None.

    Lifecycle scripts run by ``npm pack`` print to the same stream, often
    with bracketed prefixes such as ``[BABEL]``. npm writes its JSON document
    last, so candidates are tried from the end.
    """
    decoder = json.JSONDecoder()
    starts = [m.start() for m in _ARRAY_START.finditer(stdout)]
    for start in reversed(starts):
        try:
            entries, _ = decoder.raw_decode(stdout, start)
            filename = entries[0]["filename"]
        except (ValueError, LookupError, TypeError):
            continue
        if isinstance(filename, str):
            return filename
    return None


class NpmPackageManager(PackageManager):
    """Drives the ``npm`` CLI."""

    def __init__(self, *, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "npm"

    async def install(self, cwd: Path) -> None:
        await run_command(["npm", "install"], cwd=cwd, timeout=self._timeout)

    async def run_script(self, cwd: Path, script: str) -> None:
        await run_command(["npm", "run", script], cwd=cwd, timeout=self._timeout)

    async def pack(self, cwd: Path, destination: Path) -> Path:
        destination.mkdir(parents=True, exist_ok=True)
        output = await run_command(
            ["npm", "pack", "--json", "--pack-destination", str(destination.resolve())],
            cwd=cwd, timeout=self._timeout,
        )
        filename = pack_filename(output.stdout)
        if filename is None:
            # ``destination`` is fresh, so a single tarball is the one just packed.
            tarballs = sorted(destination.glob("*.tgz"))
            if len(tarballs) != 1:
                raise PackagingError(f"could not read npm pack output: {output.stdout[-500:]!r}")
            logger.debug("npm pack printed no readable JSON, using %s", tarballs[0].name)
            return tarballs[0]
        # Older npm versions report scoped names with the "/" intact.
        tarball = destination / filename.lstrip("@").replace("/", "-")
        if not tarball.exists():
            raise PackagingError(f"npm pack did not create {tarball}")
        return tarball


class YarnPackageManager(PackageManager):
    """Drives the classic ``yarn`` CLI."""

    def __init__(self, *, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "yarn"

    async def install(self, cwd: Path) -> None:
        await run_command(["yarn", "install"], cwd=cwd, timeout=self._timeout)

    async def run_script(self, cwd: Path, script: str) -> None:
        await run_command(["yarn", "run", script], cwd=cwd, timeout=self._timeout)

    async def pack(self, cwd: Path, destination: Path) -> Path:
        destination.mkdir(parents=True, exist_ok=True)
        tarball = destination.resolve() / "package.tgz"
        await run_command(["yarn", "pack", "--filename", str(tarball)], cwd=cwd, timeout=self._timeout)
        if not tarball.exists():
            raise PackagingError(f"yarn pack did not create {tarball}")
        return tarball


def detect_package_manager(
    checkout: Path, *, timeout: float = DEFAULT_COMMAND_TIMEOUT
) -> PackageManager:
    """Pick the package manager for ``checkout`` by lockfile presence."""
    if (checkout / YARN_LOCKFILE).exists():
        logger.debug("Found %s in %s, using yarn", YARN_LOCKFILE, checkout)
        return YarnPackageManager(timeout=timeout)
    return NpmPackageManager(timeout=timeout)
