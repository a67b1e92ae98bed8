"""Shared state for CLI commands: config loading and coordinator access."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Coroutine, NoReturn, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler

from srcverify.config import VerifierConfig, load_config
from srcverify.core.coordinator import JobCoordinator, build_coordinator
from srcverify.exceptions import SrcVerifyError

T = TypeVar("T")

# Exit code for errors that prevented a verdict (bad config, unknown package).
EXIT_ERROR = 2


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine in a synchronous context."""
    return asyncio.run(coro)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def load_cli_config(config_path: Path | None, work_dir: Path | None) -> VerifierConfig:
    """Load config, exiting with ``EXIT_ERROR`` on failure."""
    try:
        config = load_config(config_path)
    except SrcVerifyError as exc:
        fail(str(exc))
    return config.with_overrides(work_dir=work_dir)


def coordinator_from(ctx: click.Context) -> JobCoordinator:
    """The coordinator for this invocation, built once from the group's config."""
    obj = ctx.ensure_object(dict)
    if "coordinator" not in obj:
        obj["coordinator"] = build_coordinator(obj["config"])
    return obj["coordinator"]


def config_from(ctx: click.Context) -> VerifierConfig:
    return ctx.ensure_object(dict)["config"]


def fail(message: str) -> NoReturn:
    """Print ``message`` to stderr and exit with ``EXIT_ERROR``."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(EXIT_ERROR)
