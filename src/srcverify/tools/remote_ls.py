"""Dependency tree enumeration via ``npm-remote-ls``.

``npm-remote-ls`` walks the registry rather than an installed tree, so no
checkout or install is needed. ``--flatten`` is avoided because its output
is truncated on large trees; the nested tree is parsed instead.
"""

from __future__ import annotations

from srcverify.tools.base import DependencyTreeTool
from srcverify.tools.process import DEFAULT_COMMAND_TIMEOUT, CommandOutput, run_command


class NpmRemoteLs(DependencyTreeTool):
    """Runs ``npx npm-remote-ls`` for production dependencies only."""

    def __init__(self, *, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self._timeout = timeout

    async def enumerate(self, identifier: str) -> CommandOutput:
        return await run_command(
            ["npx", "--yes", "npm-remote-ls", identifier, "-d", "false", "-o", "false"],
            timeout=self._timeout,
            check=False,
        )
