"""Async subprocess execution with wall-clock timeouts.

Every external command the pipeline runs goes through ``run_command``. It
captures output, enforces the configured timeout, and maps failures onto
``CommandError`` / ``CommandTimeout``, so tool wrappers never deal with
``asyncio.subprocess`` directly.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from srcverify.exceptions import CommandError, CommandTimeout

logger = logging.getLogger(__name__)

# Timeout for external commands (seconds) when the caller gives none.
DEFAULT_COMMAND_TIMEOUT: float = 600.0

# Amount of stderr kept on CommandError messages.
_STDERR_TAIL = 2000


@dataclass(frozen=True)
class CommandOutput:
    """Captured result of a finished command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(
    argv: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float = DEFAULT_COMMAND_TIMEOUT,
    check: bool = True,
) -> CommandOutput:
    """Run ``argv`` and capture its output.

    Args:
        argv: Program and arguments; no shell is involved.
        cwd: Working directory.
        timeout: Wall-clock limit in seconds. The command runs in its own
            session, and the whole process group is killed when the limit is
            exceeded, so children started by npm or sh do not outlive it.
        check: Raise ``CommandError`` on a non-zero exit status.

    Returns:
        The captured ``CommandOutput``.

    Raises:
        CommandTimeout: If the command runs longer than ``timeout``.
        CommandError: If the program is missing, or exits non-zero with
            ``check=True``.
    """
    logger.debug("$ %s (cwd=%s)", " ".join(argv), cwd or ".")
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd else None,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as exc:
        raise CommandError(argv, None, message=f"Could not run {argv[0]}: {exc}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill_group(proc)
        logger.warning("Timed out after %.0fs: %s", timeout, " ".join(argv))
        raise CommandTimeout(argv, timeout) from None
    except asyncio.CancelledError:
        await asyncio.shield(_kill_group(proc))
        raise

    output = CommandOutput(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    if check and not output.ok:
        raise CommandError(argv, output.returncode, output.stderr[-_STDERR_TAIL:])
    return output


async def _kill_group(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL ``proc``'s process group and reap ``proc``.

    Grandchildren hold the output pipes open, so killing only the direct
    child would leave ``wait`` blocked until they exit on their own.
    """
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    await proc.wait()
