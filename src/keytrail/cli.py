"""keytrail CLI — Typer application with scan and init commands."""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from keytrail import __version__

app = typer.Typer(
    name="keytrail",
    help="Find AWS keys buried in git history and check which still work.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

EXIT_CLEAN = 0
EXIT_LIVE_KEY = 1
EXIT_ERROR = 2
EXIT_INTERRUPTED = 130


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # botocore is chatty at DEBUG; keep it to warnings unless asked.
    if not debug:
        logging.getLogger("botocore").setLevel(logging.WARNING)


def _fail(label: str, exc: Exception) -> None:
    console.print(f"[bold red]{label}:[/bold red] {exc}")
    raise typer.Exit(code=EXIT_ERROR) from exc


# ── scan ──────────────────────────────────────────────────────────────────────


@app.command()
def scan(
    repository: str = typer.Argument(..., help="Repository URL or local path"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .keytrail.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Concurrent validation calls"),
    mode: Optional[str] = typer.Option(None, "--mode", help="Validation mode: iam | sts"),
    region: Optional[str] = typer.Option(None, "--region", help="AWS region for validation calls"),
    profile: Optional[str] = typer.Option(None, "--profile", help="AWS profile for iam mode"),
    no_validate: bool = typer.Option(False, "--no-validate", help="Scan history only, never call AWS"),
    all_refs: bool = typer.Option(False, "--all", help="Walk every ref, not just HEAD history"),
    max_revisions: Optional[int] = typer.Option(None, "--max-revisions", help="Scan at most N commits"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Stop walking after N seconds"),
    rules_dir: Optional[str] = typer.Option(None, "--rules-dir", help="Directory of custom YAML patterns"),
    keep_clone: bool = typer.Option(False, "--keep-clone", help="Do not delete the temporary clone"),
    show_secrets: bool = typer.Option(False, "--show-secrets", help="Print secrets unmasked"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
) -> None:
    """Walk every commit of REPOSITORY and check the AWS keys found."""
    from keytrail.config.loader import ConfigError, load_config
    from keytrail.config.schema import OUTPUT_FORMATS, VALIDATION_MODES
    from keytrail.git.adapter import GitError
    from keytrail.output import json_report, terminal
    from keytrail.rules.models import RuleError
    from keytrail.rules.registry import build_registry
    from keytrail.scanner.engine import HistoryScan
    from keytrail.validation.authority import AuthoritySetupError, build_authority

    _configure_logging(verbose, debug)

    # --- Load config ---
    try:
        cfg = load_config(Path.cwd(), config)
    except ConfigError as exc:
        _fail("Config error", exc)

    # --- CLI overrides ---
    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=EXIT_ERROR)
        cfg.output.format = format  # type: ignore[assignment]
    if mode:
        if mode not in VALIDATION_MODES:
            console.print(f"[bold red]Invalid mode:[/bold red] {mode}")
            raise typer.Exit(code=EXIT_ERROR)
        cfg.validation.mode = mode  # type: ignore[assignment]
    if workers is not None:
        if workers < 1:
            console.print("[bold red]--workers must be at least 1[/bold red]")
            raise typer.Exit(code=EXIT_ERROR)
        cfg.validation.max_workers = workers
    if region:
        cfg.validation.region = region
    if profile:
        cfg.validation.profile = profile
    if no_validate:
        cfg.validation.enabled = False
    if all_refs:
        cfg.scan.all_refs = True
    if max_revisions is not None:
        cfg.scan.max_revisions = max_revisions
    if timeout is not None:
        cfg.scan.run_timeout_s = timeout
    if rules_dir:
        cfg.rules.directory = rules_dir
    if show_secrets:
        cfg.output.show_secrets = True

    # --- Rules and authority ---
    try:
        registry = build_registry(cfg)
    except RuleError as exc:
        _fail("Rule error", exc)

    authority = None
    if cfg.validation.enabled:
        try:
            authority = build_authority(cfg.validation)
        except AuthoritySetupError as exc:
            _fail("AWS setup error", exc)

    if verbose or debug:
        console.print(f"[dim]Rules loaded: {len(registry.enabled_rules())}[/dim]")
        console.print(
            f"[dim]Validation: {cfg.validation.mode if cfg.validation.enabled else 'off'}, "
            f"{cfg.validation.max_workers} worker(s)[/dim]"
        )

    history = HistoryScan(cfg, authority, registry=registry)

    # First Ctrl-C stops between revisions instead of mid-checkout.
    previous_handler = signal.signal(signal.SIGINT, lambda *_: history.cancel())
    try:
        report = history.scan_location(repository, keep_clone=keep_clone)
    except GitError as exc:
        # Ctrl-C reaches clone and log too; the git failure is only the symptom.
        if history.cancelled:
            console.print("[bold yellow]Interrupted before any revision was scanned.[/bold yellow]")
            raise typer.Exit(code=EXIT_INTERRUPTED) from exc
        _fail("Git error", exc)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    # --- Output ---
    report_text: Optional[str] = None
    if cfg.output.format == "terminal":
        terminal.render(
            report,
            show_summary=cfg.output.show_summary,
            show_secrets=cfg.output.show_secrets,
        )
    else:
        report_text = json_report.render(report, show_secrets=cfg.output.show_secrets)
        print(report_text)

    if output:
        if report_text is None:
            report_text = json_report.render(report, show_secrets=cfg.output.show_secrets)
        Path(output).write_text(report_text, encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {output}[/dim]")

    # --- Exit code ---
    if report.valid:
        raise typer.Exit(code=EXIT_LIVE_KEY)
    if report.cancelled:
        raise typer.Exit(code=EXIT_INTERRUPTED)
    if cfg.output.fail_on_indeterminate and report.indeterminate:
        raise typer.Exit(code=EXIT_LIVE_KEY)
    raise typer.Exit(code=EXIT_CLEAN)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .keytrail.toml in the current directory."""
    from keytrail.config.defaults import DEFAULT_TOML
    from keytrail.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"keytrail {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """keytrail — find AWS keys buried in git history and check which still work."""
