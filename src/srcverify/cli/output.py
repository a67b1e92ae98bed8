"""Rich output formatting helpers for the srcverify CLI.

Provides consistent terminal output for verification results, dependency
lists and batch checks. Status colours: match = bold green, mismatch and
failure = bold red, unknown = dim.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from srcverify.core.comparator import is_ignorable
from srcverify.core.coordinator import DependencyReport
from srcverify.core.models import FileDiff, VerificationResult

_STATUS_STYLES: dict[str, str] = {
    "success": "bold green",
    "fail": "bold red",
}

console = Console()


def status_text(status: str | None) -> Text:
    """Styled label for a ``success``/``fail`` status (None means unknown)."""
    if status is None:
        return Text("-", style="dim")
    return Text(status.upper(), style=_STATUS_STYLES.get(status, "white"))


def _diff_stats(entry: FileDiff) -> tuple[int, int]:
    added = removed = 0
    for line in entry.diff.splitlines():
        if line.startswith("+") and not line.startswith("+++"):
            added += 1
        elif line.startswith("-") and not line.startswith("---"):
            removed += 1
    return added, removed


def print_verification_result(result: VerificationResult, *, show_diffs: bool = False) -> None:
    """Print a verification result.

    Args:
        result: The result to display.
        show_diffs: Also print the full unified diff of each file.
    """
    if result.success:
        verdict = Text("MATCH", style="bold green")
    elif result.diffs:
        verdict = Text("MISMATCH", style="bold red")
    else:
        verdict = Text("FAILED", style="bold red")

    header = Text.assemble(
        ("Package: ", "bold"), (result.package_identifier, ""),
        ("  Status: ", "bold"), verdict,
    )
    console.print(Panel(header, title="Provenance Check"))

    if result.errors:
        console.print("[bold]Notes:[/bold]")
        for message in result.errors:
            console.print(Text(f"  - {message}", style="yellow"))

    if result.diffs:
        table = Table(title="Differing Files", show_header=True)
        table.add_column("File", style="bold")
        table.add_column("+", justify="right", style="green")
        table.add_column("-", justify="right", style="red")
        table.add_column("Ignored", justify="center")
        for entry in result.diffs:
            added, removed = _diff_stats(entry)
            ignored = Text("yes", style="dim") if is_ignorable(entry.file) else Text("no", style="bold")
            table.add_row(Text(entry.file), str(added), str(removed), ignored)
        console.print(table)
        if show_diffs:
            for entry in result.diffs:
                console.rule(entry.file)
                console.print(Text(entry.diff))
    elif result.success:
        console.print("[green]Rebuilt tarball matches the published tarball.[/green]")


def print_dependency_report(report: DependencyReport) -> None:
    """Print dependencies with any known verification status."""
    if not report.dependencies:
        console.print(f"[dim]{report.package_identifier} has no dependencies.[/dim]")
        return
    table = Table(title=f"{report.package_identifier} dependencies", show_header=True)
    table.add_column("Dependency", style="bold")
    table.add_column("Status", justify="center")
    for dep in report.dependencies:
        table.add_row(Text(dep), status_text(report.statuses.get(dep)))
    console.print(table)


def print_batch_summary(results: dict[str, VerificationResult]) -> None:
    """Print one ``ok:``/``problematic:`` line per result and a summary."""
    failed = 0
    for identifier, result in results.items():
        if result.success:
            console.print(f"[green]ok:[/green] {identifier}")
        else:
            failed += 1
            console.print(f"[red]problematic:[/red] {identifier}")
    console.print(f"\n{len(results)} checked | {len(results) - failed} ok | {failed} problematic")
