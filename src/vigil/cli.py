"""CLI interface for vigil."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from vigil import __version__
from vigil.config import PRESETS, AuditConfig, get_preset, get_vigil_dir, parse_phases
from vigil.core.controller import run_audit
from vigil.core.models import AuditResult, AuditStatus
from vigil.core.scoring import ExecutiveSummary, build_executive_summary, deployment_tier, score
from vigil.observers import CompositeObserver, ConsoleObserver, LoggingObserver
from vigil.reporting import AuditReporter, ReportError, load_audit_result

app = typer.Typer(
    name="vigil",
    help="Run multi-phase code quality audits and score production readiness.",
    no_args_is_help=True,
)
console = Console()

STATUS_COLORS = {
    AuditStatus.PASS: "green",
    AuditStatus.WARNING: "yellow",
    AuditStatus.FAIL: "red",
    AuditStatus.PENDING: "dim",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"vigil {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = False,
) -> None:
    """vigil audit pipeline."""


def _build_config(
    project_root: Path,
    preset: str,
    config_path: Path | None,
    phases: str | None,
    output: Path | None,
    output_format: str | None,
) -> AuditConfig:
    """Resolve the run configuration: preset, then config file, then CLI flags."""
    if config_path is None:
        config_path = project_root / ".vigil" / "config.yaml"
    config = AuditConfig.load(config_path, preset=preset)

    overrides: dict[str, object] = {"project_root": str(project_root)}
    reporting: dict[str, object] = {}
    if phases:
        overrides["phases"] = list(parse_phases(phases))
    if output is not None:
        reporting["output_path"] = str(output)
    if output_format is not None:
        reporting["output_format"] = output_format
    if reporting:
        overrides["reporting"] = reporting
    return config.with_overrides(overrides)


def _display_summary(result: AuditResult, summary: ExecutiveSummary) -> None:
    """Display the executive summary and phase table."""
    color = STATUS_COLORS.get(result.overall, "white")
    gains = summary.performance_gains

    console.print()
    console.print("[bold]Audit Summary[/bold]")
    console.print(f"  Overall Status: [{color}]{result.overall.value}[/{color}]")
    console.print(f"  Readiness Score: {summary.readiness_score}%")
    console.print(f"  Critical Issues: {summary.critical_issues}")
    console.print(f"  Warning Issues: {summary.warning_issues}")
    console.print(f"  Duration: {result.duration:.2f}s")

    console.print()
    console.print("[bold]Performance Gains[/bold]")
    console.print(f"  Bundle Size Reduction: {gains.bundle_size_reduction:.1f}%")
    console.print(f"  Response Time Improvement: {gains.response_time_improvement:.1f}%")
    console.print(f"  Memory Reduction: {gains.memory_reduction:.1f}%")
    console.print(f"  Compatibility: {summary.compatibility_status.value}")

    if result.phases:
        console.print()
        table = Table(title="Phase Results")
        table.add_column("Phase")
        table.add_column("Status")
        table.add_column("Duration")
        table.add_column("Negative Findings")

        for phase in result.phases:
            p_color = STATUS_COLORS.get(phase.status, "white")
            table.add_row(
                phase.phase.value,
                f"[{p_color}]{phase.status.value}[/{p_color}]",
                f"{phase.duration:.2f}s",
                str(len(phase.negative_findings())),
            )
        console.print(table)

    if summary.recommendations:
        console.print()
        console.print("[bold]Top Recommendations[/bold]")
        for rec in summary.recommendations:
            console.print(f"  - {rec}")

    console.print()
    console.print(f"[bold]Deployment Readiness:[/bold] {deployment_tier(summary.readiness_score)}")


@app.command()
def run(
    project_root: Annotated[
        Path,
        typer.Argument(
            help="Root of the project to audit",
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ] = Path("."),
    preset: Annotated[
        str,
        typer.Option("--preset", "-p", help="Configuration preset: default, integration, performance, compatibility, ci"),
    ] = "default",
    phases: Annotated[
        str | None,
        typer.Option("--phases", help="Comma-separated phases to run, e.g. static_analysis,performance_validation"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Directory to write reports to"),
    ] = None,
    output_format: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Report format: json, markdown, both"),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config file (default: .vigil/config.yaml)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
    no_report: Annotated[
        bool,
        typer.Option("--no-report", help="Skip writing report files"),
    ] = False,
) -> None:
    """Run an audit. Exits 0 only when the overall status is PASS."""
    _configure_logging(verbose)

    if output_format is not None and output_format not in ("json", "markdown", "both"):
        console.print(f"[red]Invalid format: {output_format}. Use json, markdown or both.[/red]")
        raise typer.Exit(1)

    try:
        config = _build_config(project_root, preset, config_path, phases, output, output_format)
    except (KeyError, ValueError) as e:
        # KeyError wraps its message in quotes
        message = e.args[0] if isinstance(e, KeyError) and e.args else str(e)
        console.print(f"[red]Configuration error: {message}[/red]")
        raise typer.Exit(1) from e

    observer = CompositeObserver([ConsoleObserver(console), LoggingObserver()])
    result = asyncio.run(run_audit(config, observer=observer))
    summary = build_executive_summary(result)
    _display_summary(result, summary)

    if not no_report:
        reporter = AuditReporter(config.reporting)
        try:
            _, files = reporter.generate(result)
        except OSError as e:
            console.print(f"[red]Failed to write reports: {e}[/red]")
            raise typer.Exit(1) from e
        console.print()
        for path in files.written():
            console.print(f"[dim]Report written: {path}[/dim]")

    raise typer.Exit(result.exit_code)


@app.command("score")
def score_report(
    report_path: Annotated[
        Path,
        typer.Argument(
            help="JSON report or audit result file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """Rescore a saved audit result. Exits 0 only when it is deployment ready."""
    try:
        result = load_audit_result(report_path)
    except ReportError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    readiness = score(result)
    color = "green" if readiness.readiness else "red"
    console.print(f"[bold]Readiness Score:[/bold] [{color}]{readiness.score}%[/{color}]")
    console.print(f"  Ready: {'yes' if readiness.readiness else 'no'}")
    console.print(f"  Compatibility: {readiness.compatibility.value}")
    console.print(f"  {deployment_tier(readiness.score)}")

    if not readiness.readiness:
        raise typer.Exit(1)


@app.command()
def presets() -> None:
    """List configuration presets."""
    table = Table(title="Presets")
    table.add_column("Name", style="cyan")
    table.add_column("Phases")
    table.add_column("Output")

    for name in PRESETS:
        config = get_preset(name)
        table.add_row(
            name,
            ", ".join(p.value for p in config.phases),
            str(config.reporting.output_path),
        )
    console.print(table)


@app.command("init-config")
def init_config(
    project_root: Annotated[
        Path,
        typer.Argument(help="Project root to create .vigil/config.yaml in", file_okay=False, resolve_path=True),
    ] = Path("."),
    preset: Annotated[
        str,
        typer.Option("--preset", "-p", help="Preset to start from"),
    ] = "default",
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file"),
    ] = False,
) -> None:
    """Write a config file for a project."""
    config_path = get_vigil_dir(project_root) / "config.yaml"
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists: {config_path}[/yellow]")
        console.print("[dim]Use --force to overwrite.[/dim]")
        raise typer.Exit(1)

    try:
        config = get_preset(preset)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        raise typer.Exit(1) from e

    config.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")


if __name__ == "__main__":
    app()
