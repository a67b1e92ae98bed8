"""srcverify CLI: check npm packages against their source repositories.

Entry point for the ``srcverify`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    verify : Rebuild one package from source and compare tarballs.
    deps   : List a package's dependencies; ``--check`` verifies them all.
    status : Show known verification statuses of a package's dependencies.

Usage::

    srcverify verify left-pad@1.3.0
    srcverify verify @babel/core --format json
    srcverify deps express@4.18.2 --check
    srcverify --work-dir /var/cache/srcverify status express@4.18.2
"""

from __future__ import annotations

from pathlib import Path

import click

from srcverify import __version__
from srcverify.cli.context import configure_logging, load_cli_config
from srcverify.cli.deps import deps_command, status_command
from srcverify.cli.verify import verify_command


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to srcverify.yaml (default: ./srcverify.yaml if present).",
)
@click.option(
    "--work-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace for mirrors, tarballs and results (default: .tmp).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, work_dir: Path | None, verbose: bool) -> None:
    """srcverify: Check that published npm packages match their source.

    Rebuilds a package from the repository and commit it declares, packs
    it, and compares the result with the tarball on the npm registry.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)["config"] = load_cli_config(config_path, work_dir)


# Register all subcommands
cli.add_command(verify_command)
cli.add_command(deps_command)
cli.add_command(status_command)
