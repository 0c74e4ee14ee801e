"""Lint-tool backed auditors.

The lint tool (ESLint by default) runs as an external process with JSON
output. A failed invocation or unparsable output means "no data", never a
failed run.
"""

import json
import os
import re
import subprocess
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from cleaner.audit.base import AuditResult, Auditor, Issue, RepairableAuditor, RepairResult
from cleaner.audit.parser import find_nodes, parse_source, start_line
from cleaner.categories import AuditCategory

logger = structlog.get_logger()

UNUSED_DIRECTIVE_MESSAGE = "Unused eslint-disable directive"

_RULE = r"[\w@/-]+"
_DESCRIPTION = r"(?:\s+--.*?)?"

INLINE_DIRECTIVE = re.compile(rf"^(.+?)\s*//\s*eslint-disable-line\s+{_RULE}{_DESCRIPTION}\s*$")
NEXT_LINE_DIRECTIVE = re.compile(rf"^\s*//\s*eslint-disable-next-line\s+{_RULE}{_DESCRIPTION}\s*$")
BLOCK_DIRECTIVE = re.compile(rf"^\s*/\*\s*eslint-disable\s+{_RULE}{_DESCRIPTION}\s*\*/\s*$")

DISABLE_PATTERNS = [
    re.compile(rf"eslint-disable-next-line\s+({_RULE}(?:\s*,\s*{_RULE})*)"),
    re.compile(rf"eslint-disable-line\s+({_RULE}(?:\s*,\s*{_RULE})*)"),
    re.compile(rf"eslint-disable\s+({_RULE}(?:\s*,\s*{_RULE})*)"),
]


class LintSeverity(int, Enum):
    """Lint message severity."""

    WARNING = 1
    ERROR = 2


@dataclass
class LintMessage:
    """A single lint finding."""

    line: int | None
    rule: str
    severity: int
    message: str

    @property
    def severity_label(self) -> str:
        return "error" if self.severity == LintSeverity.ERROR else "warning"


@dataclass
class LintFileReport:
    """Lint findings for one file."""

    file: str
    messages: list[LintMessage] = field(default_factory=list)
    output: str | None = None
    fixable_count: int = 0

    @property
    def error_count(self) -> int:
        return sum(1 for m in self.messages if m.severity == LintSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for m in self.messages if m.severity == LintSeverity.WARNING)


class LintRunner:
    """Runs the lint tool over the scan root."""

    def __init__(self, root_dir: str | Path, command: list[str]):
        self.root_dir = Path(root_dir)
        self.command = command
        self._logger = logger.bind(component="LintRunner")

    def run(self, *args: str) -> list[LintFileReport] | None:
        """Run the lint tool with JSON output.

        Returns:
            Per-file reports, or None when the tool failed or its output
            could not be parsed
        """
        try:
            completed = subprocess.run(
                [*self.command, *args],
                cwd=self.root_dir,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            self._logger.warning("Lint tool could not be started", command=self.command, error=str(e))
            return None

        try:
            data = json.loads(completed.stdout)
        except ValueError:
            self._logger.warning(
                "Lint output is not JSON",
                returncode=completed.returncode,
                stderr=completed.stderr.strip()[:200],
            )
            return None

        if not isinstance(data, list):
            self._logger.warning("Unexpected lint output", kind=type(data).__name__)
            return None

        return [self._parse_file(entry) for entry in data if isinstance(entry, dict)]

    def _parse_file(self, entry: dict[str, Any]) -> LintFileReport:
        file_path = entry.get("filePath", "")
        relative_path = Path(os.path.relpath(file_path, self.root_dir)).as_posix() if file_path else ""

        messages = [
            LintMessage(
                line=m.get("line"),
                rule=m.get("ruleId") or "",
                severity=m.get("severity", LintSeverity.WARNING),
                message=m.get("message", ""),
            )
            for m in entry.get("messages", [])
        ]

        return LintFileReport(
            file=relative_path,
            messages=messages,
            output=entry.get("output"),
            fixable_count=entry.get("fixableErrorCount", 0) + entry.get("fixableWarningCount", 0),
        )


def is_unused_directive_message(message: str | None) -> bool:
    return bool(message) and UNUSED_DIRECTIVE_MESSAGE in message


def remove_unused_directive(content: str, line: int) -> str:
    """Remove a single-rule disable directive found on a 1-based line.

    Inline `// eslint-disable-line` comments are cut from the line;
    standalone `// eslint-disable-next-line` and `/* eslint-disable */`
    lines are removed. Any other line is left alone.
    """
    lines = content.split("\n")
    index = line - 1
    if index < 0 or index >= len(lines):
        return content

    current = lines[index]

    inline = INLINE_DIRECTIVE.match(current)
    if inline:
        lines[index] = inline.group(1).rstrip()
        return "\n".join(lines)

    if NEXT_LINE_DIRECTIVE.match(current) or BLOCK_DIRECTIVE.match(current):
        del lines[index]
        return "\n".join(lines)

    return content


class LintAuditor(Auditor):
    """Base for auditors that share a lint runner."""

    category = AuditCategory.ESLINT

    def __init__(self, *args, runner: LintRunner | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.runner = runner or LintRunner(self.root_dir, self.settings.lint_command)

    def reports_by_file(self, *args: str) -> dict[str, LintFileReport]:
        reports = self.runner.run(*args)
        if reports is None:
            return {}
        return {report.file: report for report in reports}


class UnusedDirectivesAuditor(LintAuditor, RepairableAuditor):
    """eslint-disable directives that suppress nothing."""

    name = "Unused Directives"
    hint = "These directives suppress rules that are no longer triggered"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._unused: dict[str, list[int]] = {}

    def prepare(self) -> None:
        reports = self.reports_by_file("--report-unused-disable-directives", "--format", "json", ".")
        self._unused = {}
        for relative_path, report in reports.items():
            lines = sorted(
                m.line for m in report.messages
                if m.line is not None and is_unused_directive_message(m.message)
            )
            if lines:
                self._unused[relative_path] = lines

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        return [
            Issue(file=relative_path, message="unused eslint-disable directive", line=line, rule="unused-directive")
            for line in self._unused.get(relative_path, [])
        ]

    def repair(self, content: str, relative_path: str, absolute_path: Path) -> RepairResult:
        result = content
        removed = 0
        for line in sorted(self._unused.get(relative_path, []), reverse=True):
            updated = remove_unused_directive(result, line)
            if updated != result:
                removed += 1
                result = updated

        if removed == 0:
            return RepairResult.unchanged(content)
        return RepairResult(result=result, fixed=True, fix_count=removed)


class LintErrorsAuditor(LintAuditor, RepairableAuditor):
    """Lint errors and warnings.

    Repairs use the lint tool's own autofix output, computed without
    writing (`--fix-dry-run`) so dry runs report exact counts.
    """

    name = "ESLint Errors"
    hint = "Run the linter on a file to see detailed messages"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._reports: dict[str, LintFileReport] = {}
        self._fixes: dict[str, tuple[str, str, int]] = {}

    def prepare(self) -> None:
        self._reports = self.reports_by_file("--format", "json", ".")

    def prepare_fix(self) -> None:
        self.prepare()
        self._fixes = {}
        for relative_path, report in self.reports_by_file("--fix-dry-run", "--format", "json", ".").items():
            if report.output is None:
                continue
            try:
                seen = (self.root_dir / relative_path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                self._logger.warning("Failed to read file", path=relative_path, error=str(e))
                continue
            before = self._reports.get(relative_path)
            fixable = before.fixable_count if before else 0
            self._fixes[relative_path] = (seen, report.output, max(fixable, 1))

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        report = self._reports.get(relative_path)
        if report is None:
            return []

        return [
            Issue(
                file=relative_path,
                message=f"{m.severity_label} {m.rule}: {m.message}" if m.rule else f"{m.severity_label}: {m.message}",
                line=m.line,
                rule=m.rule,
            )
            for m in report.messages
        ]

    def repair(self, content: str, relative_path: str, absolute_path: Path) -> RepairResult:
        fix = self._fixes.get(relative_path)
        if fix is None:
            return RepairResult.unchanged(content)

        seen, output, fix_count = fix
        # the autofix only applies to the exact text the lint tool saw
        if content != seen or output == content:
            return RepairResult.unchanged(content)
        return RepairResult(result=output, fixed=True, fix_count=fix_count)

    def audit(self) -> AuditResult:
        result = super().audit()
        result.extra = {
            "error_count": sum(r.error_count for r in self._reports.values()),
            "warning_count": sum(r.warning_count for r in self._reports.values()),
        }
        return result


def find_disabled_rules(content: str) -> list[tuple[int, str]]:
    """Every (line, rule) pair suppressed by an eslint-disable directive."""
    found = []
    for index, line in enumerate(content.split("\n"), start=1):
        for pattern in DISABLE_PATTERNS:
            match = pattern.search(line)
            if match:
                found.extend((index, rule.strip()) for rule in match.group(1).split(","))
    return found


class DisablesAuditor(Auditor):
    """Every rule suppressed with an eslint-disable directive."""

    name = "ESLint Disables"
    category = AuditCategory.ESLINT
    hint = "Consider fixing the underlying issue instead of suppressing the rule"

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        return [
            Issue(file=relative_path, message=rule, line=line, rule=rule)
            for line, rule in find_disabled_rules(content)
        ]

    def audit(self) -> AuditResult:
        result = super().audit()
        by_rule = Counter(issue.rule for f in result.files for issue in f.issues)
        result.extra = {"by_rule": dict(by_rule.most_common())}
        return result


class SwitchesAuditor(Auditor):
    """switch statements."""

    name = "Switch Statements"
    category = AuditCategory.ESLINT
    hint = "Consider object lookups or polymorphism instead of switch statements"

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        tree = parse_source(content)
        if tree is None:
            return []

        return [
            Issue(file=relative_path, message="switch statement", line=start_line(node), rule="switch")
            for node in find_nodes(tree.root, "switch_statement")
        ]
