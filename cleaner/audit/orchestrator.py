"""Run orchestration.

The orchestrator wires one run together:
1. Loads the per-project exclusion config
2. Instantiates the auditors of the requested mode, in registry order
3. Runs their audit or fix passes sequentially
4. Streams each result to the console reporter
5. Collects everything into a RunReport
"""

from pathlib import Path

import structlog

from cleaner.audit.base import Auditor, AuditOptions, AuditResult, FixResult
from cleaner.audit.exclusions import ExclusionMatcher
from cleaner.audit.registry import (
    AuditorRegistry,
    audit_registry,
    coverage_registry,
    fix_registry,
    score_registry,
)
from cleaner.audit.reporter import ConsoleReporter, RunMode, RunReport
from cleaner.config import CleanerConfig, CleanerSettings, load_cleaner_config

logger = structlog.get_logger()


class CleanerOrchestrator:
    """Runs the auditors of one mode over a project tree.

    Passes are strictly sequential: each auditor's writes are on disk
    before the next auditor scans. In a dry run the writes go to an
    in-memory overlay instead, so every later pass of the run sees them.
    """

    def __init__(
        self,
        root_dir: str | Path,
        options: AuditOptions | None = None,
        settings: CleanerSettings | None = None,
        reporter: ConsoleReporter | None = None,
        config: CleanerConfig | None = None,
    ):
        self.root_dir = Path(root_dir).resolve()
        self.options = options or AuditOptions()
        self.settings = settings or CleanerSettings()
        self.config = config if config is not None else load_cleaner_config(self.root_dir, self.settings)
        self.matcher = ExclusionMatcher(self.config)
        self.reporter = None if self.options.silent else reporter
        self._overlay: dict[Path, str] = {}
        self._logger = logger.bind(component="CleanerOrchestrator")

    def _instantiate(self, auditor_cls: type[Auditor]) -> Auditor:
        return auditor_cls(
            self.root_dir,
            options=self.options,
            matcher=self.matcher,
            settings=self.settings,
            overlay=self._overlay,
        )

    def _new_report(self, mode: RunMode) -> RunReport:
        # pending dry-run edits live for one run
        self._overlay = {}
        return RunReport(mode=mode, root_dir=str(self.root_dir), dry_run=self.options.dry_run)

    def _audit_with(self, registry: AuditorRegistry, report: RunReport, title: str) -> list[AuditResult]:
        if self.reporter:
            self.reporter.banner(title, subtitle=str(self.root_dir))

        results = []
        for auditor_cls in registry.all():
            auditor = self._instantiate(auditor_cls)
            self._logger.info("Running audit", auditor=auditor.name)
            result = auditor.audit()
            results.append(result)
            report.audits.append(result)
            if self.reporter:
                self.reporter.audit_result(result)
        return results

    def _fix_with(self, registry: AuditorRegistry, report: RunReport) -> list[FixResult]:
        title = "Fix (dry run)" if self.options.dry_run else "Fix"
        if self.reporter:
            self.reporter.banner(title, subtitle=str(self.root_dir))

        results = []
        for auditor_cls in registry.repairable():
            auditor = self._instantiate(auditor_cls)
            self._logger.info("Running fix", auditor=auditor.name, dry_run=self.options.dry_run)
            result = auditor.fix()
            results.append(result)
            report.fixes.append(result)
            if self.reporter:
                self.reporter.fix_result(result)
        return results

    def _finish(self, report: RunReport) -> RunReport:
        if self.reporter:
            self.reporter.summary(report)
        summary = report.summary()
        self._logger.info(
            "Run complete",
            mode=report.mode.value,
            issues=summary.total_issues,
            fixes=summary.total_fixes,
        )
        return report

    def run_audit(self) -> RunReport:
        """Audit with every registered audit auditor."""
        report = self._new_report(RunMode.AUDIT)
        self._audit_with(audit_registry, report, "Audit")
        return self._finish(report)

    def run_fix(self) -> RunReport:
        """Fix with every registered fix auditor, in order."""
        report = self._new_report(RunMode.FIX)
        self._fix_with(fix_registry, report)
        return self._finish(report)

    def run_all(self) -> RunReport:
        """Fix first, then audit what is left."""
        report = self._new_report(RunMode.ALL)
        self._fix_with(fix_registry, report)
        self._audit_with(audit_registry, report, "Audit")
        return self._finish(report)

    def run_coverage(self) -> RunReport:
        """Import usage and missing test references."""
        report = self._new_report(RunMode.COVERAGE)
        self._audit_with(coverage_registry, report, "Coverage")
        return self._finish(report)

    def run_scores(self) -> RunReport:
        """Composite health score per file."""
        report = self._new_report(RunMode.SCORES)
        title = "Flop 10" if self.options.flop else "File Scores"
        self._audit_with(score_registry, report, title)
        return self._finish(report)
