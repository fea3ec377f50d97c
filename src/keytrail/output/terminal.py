"""Rich terminal reporter — one row per access key id."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from keytrail.findings.models import CredentialReport, ScanReport, Verdict
from keytrail.findings.redactor import mask_secret

_VERDICT_STYLE = {
    Verdict.VALID: "bold white on red",
    Verdict.INDETERMINATE: "bold black on yellow",
    Verdict.INVALID: "bold black on bright_cyan",
}

_VERDICT_LABEL = {
    Verdict.VALID: "🔴 LIVE",
    Verdict.INDETERMINATE: "🟡 UNKNOWN",
    Verdict.INVALID: "🔵 DEAD",
}

# Live keys first, then the ones nobody could check.
_VERDICT_ORDER = {Verdict.VALID: 0, Verdict.INDETERMINATE: 1, Verdict.INVALID: 2}


def _verdict_pill(verdict: Verdict) -> Text:
    return Text(f" {_VERDICT_LABEL[verdict]} ", style=_VERDICT_STYLE[verdict])


def _first_seen(cred: CredentialReport) -> str:
    revision, path = cred.first_seen
    return f"{revision[:10]}:{path}"


def render(
    report: ScanReport,
    *,
    show_summary: bool = True,
    show_secrets: bool = False,
    console: Optional[Console] = None,
) -> None:
    """Print the report to the terminal using Rich."""
    console = console or Console(stderr=True)

    if not report.complete:
        console.print()
        console.print("[bold yellow]⚠️  Partial report — the run did not finish.[/bold yellow]")

    if not report.credentials:
        console.print()
        console.print("[bold green]✅ No AWS key pairs found in any scanned revision.[/bold green]")
        if show_summary:
            _print_summary(console, report)
        return

    console.print()
    table = Table(
        title="keytrail — AWS keys found in history",
        show_lines=True,
        title_style="bold",
        border_style="dim",
    )
    table.add_column("Status", justify="center", width=12)
    table.add_column("Access key id", style="cyan", min_width=20)
    table.add_column("Secret", min_width=10)
    table.add_column("Seen", justify="right", style="green")
    table.add_column("First seen", style="magenta")
    table.add_column("Detail")

    rows = sorted(report.credentials.values(), key=lambda c: _VERDICT_ORDER[c.outcome.verdict])
    for cred in rows:
        table.add_row(
            _verdict_pill(cred.outcome.verdict),
            cred.identifier,
            mask_secret(cred.secret, reveal=show_secrets),
            str(len(cred.occurrences)),
            _first_seen(cred),
            cred.outcome.reason or "",
        )

    console.print(table)

    if show_summary:
        _print_summary(console, report)

    console.print()
    if report.valid:
        console.print(
            f"[bold red]❌ {len(report.valid)} live AWS key(s) found in history. "
            "Rotate them now.[/bold red]"
        )
    elif report.indeterminate:
        console.print(
            f"[bold yellow]⚠️  No key confirmed live, but {len(report.indeterminate)} "
            "could not be checked.[/bold yellow]"
        )
    else:
        console.print("[bold green]✅ Every key found is confirmed inactive.[/bold green]")


def _print_summary(console: Console, report: ScanReport) -> None:
    console.print()
    console.print(f"[dim]Revisions:[/dim]     {report.revisions_scanned}/{report.revisions_total}")
    console.print(f"[dim]Failed:[/dim]        {len(report.revision_failures)}")
    console.print(f"[dim]Key ids:[/dim]       {len(report.credentials)}")
    console.print(f"[dim]Occurrences:[/dim]   {report.total_findings}")
    console.print(f"[dim]Live:[/dim]          {len(report.valid)}")
    console.print(f"[dim]Unknown:[/dim]       {len(report.indeterminate)}")
    console.print(f"[dim]Warnings:[/dim]      {len(report.warnings)}")
    console.print(f"[dim]Skipped:[/dim]       {len(report.skipped_files)}")
    console.print(f"[dim]Duration:[/dim]      {report.duration_ms:.0f}ms")
    for failure in report.revision_failures:
        console.print(f"[dim]  skipped revision {failure.revision[:12]}: {failure.cause}[/dim]")
