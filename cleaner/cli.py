"""
Cleaner CLI

Command-line interface for auditing and fixing a JavaScript source tree.
"""

from pathlib import Path

import structlog
import typer
from rich.console import Console

from cleaner.audit.base import AuditOptions
from cleaner.audit.orchestrator import CleanerOrchestrator
from cleaner.audit.reporter import ConsoleReporter, ReportFormat, ReportGenerator, RunReport
from cleaner.config import CleanerSettings
from cleaner.errors import ConfigError
from cleaner.logging_config import configure_logging

logger = structlog.get_logger()

app = typer.Typer(
    name="cleaner",
    help="Source health auditor for JavaScript trees",
    add_completion=False,
)

console = Console()


def _usage_error(ctx: typer.Context, message: str) -> None:
    typer.echo(f"Error: {message}\n", err=True)
    typer.echo(ctx.get_help(), err=True)
    raise typer.Exit(code=2)


@app.command()
def main(
    ctx: typer.Context,
    path: str = typer.Argument(".", help="Root of the source tree"),
    audit: bool = typer.Option(False, "--audit", help="Report issues"),
    fix: bool = typer.Option(False, "--fix", help="Rewrite files to fix issues (runs before --audit)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="With --fix: report what would change, write nothing"),
    coverage: bool = typer.Option(False, "--coverage", help="Import usage and missing test references"),
    scores: bool = typer.Option(False, "--scores", help="Composite health score per file"),
    flop: bool = typer.Option(False, "--flop", help="With --scores: only the 10 worst files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show details and info logs"),
    compact: bool = typer.Option(False, "--compact", help="List files without their issues"),
    silent: bool = typer.Option(False, "--silent", "-s", help="No console output"),
    only: str | None = typer.Option(None, "--only", help="Restrict scanning to a sub-path of the root"),
    report: Path | None = typer.Option(None, "--report", help="Write a report file"),
    format: ReportFormat | None = typer.Option(
        None, "--format", "-f", help="Report format (inferred from --report extension when omitted)"
    ),
):
    """
    Audit, fix, check coverage of, or score a JavaScript source tree.

    Without an action flag, prints this help.
    """
    settings = CleanerSettings()
    configure_logging(level="INFO" if verbose else settings.log_level, json_format=settings.log_json)

    if dry_run and not fix:
        _usage_error(ctx, "--dry-run requires --fix")
    if flop and not scores:
        _usage_error(ctx, "--flop requires --scores")

    modes = [audit or fix, coverage, scores]
    if sum(modes) > 1:
        _usage_error(ctx, "--audit/--fix, --coverage and --scores are mutually exclusive")
    if not any(modes):
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    # A format without a report file replaces the console output on stdout.
    to_stdout = format is not None and report is None

    options = AuditOptions(
        dry_run=dry_run,
        compact=compact,
        silent=silent or to_stdout,
        verbose=verbose,
        flop=flop,
        target_path=only,
    )
    reporter = ConsoleReporter(console=console, compact=compact, verbose=verbose)

    try:
        orchestrator = CleanerOrchestrator(path, options=options, settings=settings, reporter=reporter)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    result: RunReport
    if coverage:
        result = orchestrator.run_coverage()
    elif scores:
        result = orchestrator.run_scores()
    elif audit and fix:
        result = orchestrator.run_all()
    elif fix:
        result = orchestrator.run_fix()
    else:
        result = orchestrator.run_audit()

    generator = ReportGenerator()
    if report is not None:
        generator.save_report(result, report, format)
        if not silent:
            console.print(f"[dim]Report written to {report}[/dim]")
    elif to_stdout:
        typer.echo(generator.generate(result, format))


if __name__ == "__main__":
    app()
