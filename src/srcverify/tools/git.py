"""Git-backed ``VersionControl`` implementation."""

from __future__ import annotations

from pathlib import Path

from srcverify.exceptions import CommandError
from srcverify.tools.base import VersionControl
from srcverify.tools.process import DEFAULT_COMMAND_TIMEOUT, run_command


class GitTool(VersionControl):
    """Runs the ``git`` executable."""

    def __init__(self, *, timeout: float = DEFAULT_COMMAND_TIMEOUT, executable: str = "git") -> None:
        self._timeout = timeout
        self._git = executable

    async def _git_run(self, *args: str, cwd: Path | None = None) -> None:
        await run_command([self._git, *args], cwd=cwd, timeout=self._timeout)

    async def clone(self, url: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        await self._git_run("clone", url, str(path))

    async def fetch(self, path: Path) -> None:
        await self._git_run("fetch", "--tags", "--force", "origin", cwd=path)

    async def revision_exists(self, path: Path, revision: str) -> bool:
        try:
            await self._git_run("rev-parse", "-q", "--verify", f"{revision}^{{commit}}", cwd=path)
        except CommandError as exc:
            if exc.returncode is None:
                raise
            return False
        return True

    async def checkout(self, path: Path, revision: str) -> None:
        await self._git_run("checkout", "--force", revision, cwd=path)

    async def clean(self, path: Path) -> None:
        await self._git_run("clean", "-fxd", cwd=path)
