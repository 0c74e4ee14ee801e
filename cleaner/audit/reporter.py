"""Reporting for cleaner runs.

A run produces a RunReport (every auditor's audit and fix results). The
report flattens to plain ReportRecords, renders to the terminal through
ConsoleReporter, and is written to files by ReportGenerator in text,
JSON, Markdown or SARIF.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cleaner import __version__
from cleaner.audit.base import AuditResult, FixResult, auditor_key, to_jsonable

logger = structlog.get_logger()


class RunMode(str, Enum):
    """What a run did."""

    AUDIT = "audit"
    FIX = "fix"
    ALL = "all"
    COVERAGE = "coverage"
    SCORES = "scores"


class ReportFormat(str, Enum):
    """Output format for reports."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"
    SARIF = "sarif"  # Static Analysis Results Interchange Format


@dataclass(frozen=True)
class ReportRecord:
    """One file's issue count for one auditor."""

    file: str
    issue_count: int
    rule_group: str


@dataclass
class RunSummary:
    """Summary statistics for a run."""

    auditors_run: int = 0
    files_with_issues: int = 0
    total_issues: int = 0
    files_fixed: int = 0
    total_fixes: int = 0
    errors: int = 0
    by_auditor: dict[str, int] = field(default_factory=dict)


@dataclass
class RunReport:
    """Results of one cleaner run."""

    mode: RunMode
    root_dir: str
    dry_run: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    audits: list[AuditResult] = field(default_factory=list)
    fixes: list[FixResult] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return all(result.clean for result in self.audits)

    def records(self) -> list[ReportRecord]:
        """Flatten audit results into plain records."""
        return [
            ReportRecord(file=f.file, issue_count=len(f.issues), rule_group=auditor_key(result.auditor))
            for result in self.audits
            for f in result.files
        ]

    def summary(self) -> RunSummary:
        summary = RunSummary(auditors_run=len({r.auditor for r in self.audits} | {r.auditor for r in self.fixes}))

        for result in self.audits:
            summary.files_with_issues += result.files_with_issues
            summary.total_issues += result.issue_count
            summary.errors += len(result.errors)
            summary.by_auditor[result.auditor] = result.issue_count

        for result in self.fixes:
            summary.files_fixed += result.files_fixed
            summary.total_fixes += result.fix_count
            summary.errors += len(result.errors)

        return summary

    def to_dict(self) -> dict[str, Any]:
        s = self.summary()
        return {
            "timestamp": self.timestamp.isoformat(),
            "mode": self.mode.value,
            "root_dir": self.root_dir,
            "dry_run": self.dry_run,
            "summary": {
                "auditors_run": s.auditors_run,
                "files_with_issues": s.files_with_issues,
                "total_issues": s.total_issues,
                "files_fixed": s.files_fixed,
                "total_fixes": s.total_fixes,
                "errors": s.errors,
                "by_auditor": s.by_auditor,
            },
            "fixes": [r.to_dict() for r in self.fixes],
            "audits": [r.to_dict() for r in self.audits],
        }


class ReportGenerator:
    """Generates run reports in various formats."""

    def __init__(self):
        self._logger = logger.bind(component="ReportGenerator")

    def generate(self, report: RunReport, format: ReportFormat = ReportFormat.TEXT) -> str:
        """Render a run report.

        Args:
            report: Run results
            format: Output format

        Returns:
            Formatted report string
        """
        match format:
            case ReportFormat.TEXT:
                return self._format_text(report)
            case ReportFormat.JSON:
                return json.dumps(report.to_dict(), indent=2)
            case ReportFormat.MARKDOWN:
                return self._format_markdown(report)
            case ReportFormat.SARIF:
                return self._format_sarif(report)
            case _:
                return self._format_text(report)

    def _format_text(self, report: RunReport) -> str:
        lines = []
        s = report.summary()

        # Header
        lines.append("=" * 60)
        lines.append("SOURCE HEALTH REPORT")
        lines.append("=" * 60)
        lines.append(f"Timestamp: {report.timestamp.isoformat()}")
        lines.append(f"Root:      {report.root_dir}")
        lines.append(f"Mode:      {report.mode.value}{' (dry run)' if report.dry_run else ''}")
        lines.append("")

        # Summary
        lines.append("SUMMARY")
        lines.append("-" * 40)
        lines.append(f"Auditors Run:       {s.auditors_run}")
        lines.append(f"Files With Issues:  {s.files_with_issues}")
        lines.append(f"Total Issues:       {s.total_issues}")
        if report.fixes:
            lines.append(f"Files Fixed:        {s.files_fixed}")
            lines.append(f"Total Fixes:        {s.total_fixes}")
        lines.append("")

        if report.fixes:
            lines.append("FIXES")
            lines.append("-" * 40)
            for fix in report.fixes:
                lines.append(f"  {fix.auditor}: {fix.fix_count} fix(es) in {fix.files_fixed} file(s)")
                for file in fix.files:
                    lines.append(f"    - {file}")
            lines.append("")

        for result in report.audits:
            status = "✓ CLEAN" if result.clean else "✗ ISSUES"
            lines.append(f"{status} {result.auditor} ({result.files_scanned} files scanned)")
            if result.hint and not result.clean:
                lines.append(f"  {result.hint}")
            for file_issues in result.files:
                lines.append(f"  {file_issues.file}")
                for issue in file_issues.issues:
                    lines.append(f"    {issue}")
            for score in result.extra.get("scores", []):
                lines.append(f"  {score.total:>6g} pts  {score.percent:>3}%  {score.file}")
            lines.append("")

        lines.append("=" * 60)
        return "\n".join(lines)

    def _format_markdown(self, report: RunReport) -> str:
        lines = []
        s = report.summary()

        lines.append("# Source Health Report")
        lines.append("")
        lines.append(f"**Generated:** {report.timestamp.isoformat()}")
        lines.append("")
        lines.append(f"**Mode:** {report.mode.value}{' (dry run)' if report.dry_run else ''}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append("| Metric | Value |")
        lines.append("|--------|-------|")
        lines.append(f"| Auditors Run | {s.auditors_run} |")
        lines.append(f"| Files With Issues | {s.files_with_issues} |")
        lines.append(f"| Total Issues | {s.total_issues} |")
        lines.append(f"| Files Fixed | {s.files_fixed} |")
        lines.append(f"| Total Fixes | {s.total_fixes} |")
        lines.append("")

        if report.fixes:
            lines.append("## Fixes")
            lines.append("")
            lines.append("| Auditor | Files Fixed | Fixes |")
            lines.append("|---------|-------------|-------|")
            for fix in report.fixes:
                lines.append(f"| {fix.auditor} | {fix.files_fixed} | {fix.fix_count} |")
            lines.append("")

        for result in report.audits:
            status = "✅" if result.clean else "❌"
            lines.append(f"## {status} {result.auditor}")
            lines.append("")

            if result.files:
                lines.append("| File | Line | Issue |")
                lines.append("|------|------|-------|")
                for file_issues in result.files:
                    for issue in file_issues.issues:
                        line = issue.line if issue.line is not None else "-"
                        lines.append(f"| `{issue.file}` | {line} | {issue.message} |")
                lines.append("")
            elif result.extra.get("scores"):
                lines.append("| File | Score | Percent |")
                lines.append("|------|-------|---------|")
                for score in result.extra["scores"]:
                    lines.append(f"| `{score.file}` | {score.total:g} | {score.percent}% |")
                lines.append("")
            else:
                lines.append("No issues found.")
                lines.append("")

        return "\n".join(lines)

    def _format_sarif(self, report: RunReport) -> str:
        """Format as SARIF, supported by GitHub code scanning and similar tools."""
        rules = {}
        results = []

        for audit in report.audits:
            rule_id = auditor_key(audit.auditor)
            rules.setdefault(
                rule_id,
                {
                    "id": rule_id,
                    "name": audit.auditor,
                    "shortDescription": {"text": audit.hint or audit.auditor},
                    "defaultConfiguration": {"level": "warning"},
                },
            )
            for file_issues in audit.files:
                for issue in file_issues.issues:
                    results.append({
                        "ruleId": rule_id,
                        "level": "warning",
                        "message": {"text": issue.message},
                        "locations": [
                            {
                                "physicalLocation": {
                                    "artifactLocation": {"uri": issue.file},
                                    "region": {"startLine": issue.line or 1},
                                }
                            }
                        ],
                    })

        sarif = {
            "$schema": "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json",
            "version": "2.1.0",
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": "cleaner",
                            "version": __version__,
                            "rules": list(rules.values()),
                        }
                    },
                    "results": results,
                }
            ],
        }
        return json.dumps(sarif, indent=2)

    def save_report(
        self,
        report: RunReport,
        output_path: str | Path,
        format: ReportFormat | None = None,
    ) -> None:
        """Generate and save report to file.

        Args:
            report: Run results
            output_path: Where to save
            format: Output format (inferred from extension if None)
        """
        path = Path(output_path)

        if format is None:
            format = {
                ".txt": ReportFormat.TEXT,
                ".json": ReportFormat.JSON,
                ".md": ReportFormat.MARKDOWN,
                ".sarif": ReportFormat.SARIF,
            }.get(path.suffix.lower(), ReportFormat.TEXT)

        path.write_text(self.generate(report, format), encoding="utf-8")

        self._logger.info("Report saved", path=str(path), format=format.value)


class ConsoleReporter:
    """Renders run progress and results to the terminal."""

    def __init__(self, console: Console | None = None, compact: bool = False, verbose: bool = False):
        self.console = console or Console()
        self.compact = compact
        self.verbose = verbose

    def banner(self, title: str, subtitle: str | None = None) -> None:
        self.console.print(Panel(f"[bold]{title}[/bold]", subtitle=subtitle, border_style="cyan", expand=False))

    def audit_result(self, result: AuditResult) -> None:
        if "scores" in result.extra:
            self._scores(result)
            return

        if result.clean:
            self.console.print(f"[green]✓[/green] {result.auditor} [dim]({result.files_scanned} files)[/dim]")
            return

        self.console.print(
            f"[red]✗[/red] [bold]{result.auditor}[/bold]: "
            f"{result.issue_count} issue(s) in {result.files_with_issues} file(s)"
        )
        if result.hint:
            self.console.print(f"  [dim]{result.hint}[/dim]")

        for file_issues in result.files:
            self.console.print(f"  [cyan]•[/cyan] {file_issues.file} [dim]({len(file_issues.issues)})[/dim]")
            if self.compact:
                continue
            for issue in file_issues.issues:
                self.console.print(f"      [dim]→[/dim] {issue}", highlight=False)

        if self.verbose and "counts" in result.extra:
            self._counts(result.extra["counts"])

    def fix_result(self, result: FixResult) -> None:
        verb = "would fix" if result.dry_run else "fixed"
        if result.files_fixed == 0:
            self.console.print(f"[green]✓[/green] {result.auditor} [dim]nothing to fix[/dim]")
            return

        self.console.print(
            f"[yellow]✎[/yellow] [bold]{result.auditor}[/bold]: {verb} "
            f"{result.fix_count} issue(s) in {result.files_fixed} file(s)"
        )
        if not self.compact:
            for file in result.files:
                self.console.print(f"  [cyan]•[/cyan] {file}")

    def _counts(self, counts: list[tuple[str, int]]) -> None:
        table = Table(title="Import counts")
        table.add_column("File", style="cyan")
        table.add_column("Imports", justify="right")
        for file, count in counts:
            table.add_row(file, str(count))
        self.console.print(table)

    def _scores(self, result: AuditResult) -> None:
        scores = result.extra["scores"]
        title = "Flop 10 files" if result.extra.get("flop") else "File scores"
        if not scores:
            self.console.print("[green]✓[/green] No files to score")
            return

        table = Table(title=title, caption=result.hint)
        table.add_column("File", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("%", justify="right")
        if self.verbose:
            table.add_column("Breakdown", style="dim")

        for score in scores:
            row = [score.file, f"{score.total:g}", f"{score.percent}%"]
            if self.verbose:
                row.append(", ".join(f"{e.scorer} {e.points:g} ({e.description})" for e in score.breakdown))
            table.add_row(*row)

        self.console.print(table)
        average = sum(s.total for s in scores) / len(scores)
        self.console.print(f"  [green]Summary:[/green] {len(scores)} files, avg score: {round(average)} pts")

    def summary(self, report: RunReport) -> None:
        s = report.summary()
        table = Table(title="Summary", show_header=False)
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Auditors run", str(s.auditors_run))
        if report.audits:
            table.add_row("Files with issues", str(s.files_with_issues))
            table.add_row("Total issues", str(s.total_issues))
        if report.fixes:
            label = "Files that would change" if report.dry_run else "Files fixed"
            table.add_row(label, str(s.files_fixed))
            table.add_row("Total fixes", str(s.total_fixes))
        if s.errors:
            table.add_row("[red]File errors[/red]", str(s.errors))
        self.console.print(table)

        if report.dry_run and s.files_fixed:
            self.console.print("[dim]Run without --dry-run to apply the fixes.[/dim]")
