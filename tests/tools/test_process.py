"""Tests for run_command using the running interpreter as the child."""

from __future__ import annotations

import asyncio
import pathlib
import sys
import time

import pytest

from srcverify.exceptions import CommandError, CommandTimeout
from srcverify.tools.process import run_command


def _py(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestRunCommand:

    def test_captures_output(self) -> None:
        out = asyncio.run(run_command(_py("import sys; print('hi'); print('err', file=sys.stderr)")))
        assert out.ok
        assert out.stdout.strip() == "hi"
        assert out.stderr.strip() == "err"

    def test_nonzero_exit_raises_with_stderr(self) -> None:
        with pytest.raises(CommandError) as excinfo:
            asyncio.run(run_command(_py("import sys; sys.stderr.write('bad'); sys.exit(3)")))
        assert excinfo.value.returncode == 3
        assert "bad" in str(excinfo.value)

    def test_check_false_returns_output(self) -> None:
        out = asyncio.run(run_command(_py("import sys; sys.exit(2)"), check=False))
        assert out.returncode == 2
        assert not out.ok

    def test_timeout_kills(self) -> None:
        with pytest.raises(CommandTimeout) as excinfo:
            asyncio.run(run_command(_py("import time; time.sleep(30)"), timeout=0.5))
        assert excinfo.value.returncode is None
        assert "timed out after 0.5s" in str(excinfo.value)

    def test_timeout_kills_grandchildren(self) -> None:
        # sh forks sleep, which inherits the output pipes.
        started = time.monotonic()
        with pytest.raises(CommandTimeout):
            asyncio.run(run_command(["sh", "-c", "sleep 30; echo done"], timeout=0.5))
        assert time.monotonic() - started < 5.0

    def test_cancel_kills_process_group(self) -> None:
        async def _cancel_midway() -> None:
            task = asyncio.ensure_future(run_command(["sh", "-c", "sleep 30; echo done"]))
            await asyncio.sleep(0.3)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        started = time.monotonic()
        asyncio.run(_cancel_midway())
        assert time.monotonic() - started < 5.0

    def test_missing_program(self) -> None:
        with pytest.raises(CommandError, match="Could not run"):
            asyncio.run(run_command(["srcverify-no-such-binary-xyz"]))

    def test_cwd(self, tmp_path: pathlib.Path) -> None:
        out = asyncio.run(run_command(_py("import os; print(os.getcwd())"), cwd=tmp_path))
        assert pathlib.Path(out.stdout.strip()).resolve() == tmp_path.resolve()
