"""``srcverify deps`` and ``srcverify status``: dependency-level checks.

``deps`` lists the transitive production dependencies of a package and, with
``--check``, verifies each one. ``status`` only reports what is already
known from earlier runs and never starts a verification.
"""

from __future__ import annotations

import json
import sys

import click

from srcverify.cli.context import config_from, coordinator_from, fail, run_async
from srcverify.core.coordinator import JobCoordinator
from srcverify.core.models import VerificationResult
from srcverify.exceptions import SrcVerifyError


async def _check_all(
    coordinator: JobCoordinator, identifier: str, max_concurrency: int
) -> dict[str, VerificationResult]:
    resolved = await coordinator.resolve(identifier)
    deps = await coordinator.list_dependencies(resolved)
    return await coordinator.verify_all(deps, max_concurrency=max_concurrency)


async def _list(coordinator: JobCoordinator, identifier: str) -> tuple[str, tuple[str, ...]]:
    resolved = await coordinator.resolve(identifier)
    return str(resolved), await coordinator.list_dependencies(resolved)


_FORMAT_OPTION = click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)


@click.command("deps")
@click.argument("identifier")
@click.option("--check", is_flag=True, help="Verify every dependency.")
@click.option("--jobs", type=click.IntRange(min=1), default=None,
              help="Parallel verifications with --check (default: max_concurrency).")
@_FORMAT_OPTION
@click.pass_context
def deps_command(
    ctx: click.Context, identifier: str, check: bool, jobs: int | None, output_format: str
) -> None:
    """List the dependencies of IDENTIFIER, optionally verifying each.

    Exit code 1 if --check finds any problematic dependency.

    Examples:

        srcverify deps express@4.18.2

        srcverify deps express --check --jobs 8
    """
    coordinator = coordinator_from(ctx)
    if check:
        concurrency = jobs or config_from(ctx).max_concurrency
        try:
            results = run_async(_check_all(coordinator, identifier, concurrency))
        except SrcVerifyError as exc:
            fail(str(exc))
        if output_format == "json":
            click.echo(json.dumps({k: r.to_dict() for k, r in results.items()}, indent=2))
        else:
            from srcverify.cli.output import print_batch_summary
            print_batch_summary(results)
        sys.exit(1 if any(not r.success for r in results.values()) else 0)

    try:
        resolved, deps = run_async(_list(coordinator, identifier))
    except SrcVerifyError as exc:
        fail(str(exc))
    if output_format == "json":
        click.echo(json.dumps({"packageIdentifier": resolved, "dependencies": list(deps)}, indent=2))
    else:
        for dep in deps:
            click.echo(dep)


@click.command("status")
@click.argument("identifier")
@_FORMAT_OPTION
@click.pass_context
def status_command(ctx: click.Context, identifier: str, output_format: str) -> None:
    """Show known verification statuses for IDENTIFIER's dependencies."""
    coordinator = coordinator_from(ctx)
    try:
        report = run_async(coordinator.dependency_statuses(identifier))
    except SrcVerifyError as exc:
        fail(str(exc))

    if output_format == "json":
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        from srcverify.cli.output import print_dependency_report
        print_dependency_report(report)
