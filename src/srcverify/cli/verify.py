"""``srcverify verify <identifier>``: Verify a single package version.

An identifier without a version is resolved to the registry's ``latest``.

Exit Codes:
    0: Rebuilt tarball matches the published one.
    1: Mismatch, or the package could not be rebuilt.
    2: The identifier could not be resolved.
"""

from __future__ import annotations

import json
import sys

import click

from srcverify.cli.context import coordinator_from, fail, run_async
from srcverify.exceptions import SrcVerifyError


@click.command("verify")
@click.argument("identifier")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option("--show-diffs", is_flag=True, help="Print full diffs of differing files.")
@click.pass_context
def verify_command(ctx: click.Context, identifier: str, output_format: str, show_diffs: bool) -> None:
    """Rebuild IDENTIFIER from source and compare it with the registry.

    Examples:

        srcverify verify left-pad@1.3.0

        srcverify verify @types/node --format json
    """
    coordinator = coordinator_from(ctx)
    try:
        result = run_async(coordinator.verify(identifier))
    except SrcVerifyError as exc:
        fail(str(exc))

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        from srcverify.cli.output import print_verification_result
        print_verification_result(result, show_diffs=show_diffs)

    sys.exit(0 if result.success else 1)
