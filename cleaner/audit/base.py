"""Auditor contract.

An auditor analyzes one category of issue across a file set. Read-only
auditors subclass Auditor and implement `analyze`; auditors that can
rewrite files subclass RepairableAuditor and also implement `repair`.
The generic `audit()` and `fix()` drivers handle scanning, exclusions,
reading and writing so concrete auditors only deal with file text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

import structlog
from pydantic import BaseModel, ConfigDict

from cleaner.audit.exclusions import ExclusionMatcher
from cleaner.audit.scanner import find_source_files, relative_posix
from cleaner.categories import AuditCategory
from cleaner.config import CleanerSettings
from cleaner.errors import CapabilityError

logger = structlog.get_logger()


class AuditOptions(BaseModel):
    """Options shared by every auditor of one run."""

    dry_run: bool = False
    compact: bool = False
    silent: bool = False
    verbose: bool = False
    flop: bool = False
    target_path: str | None = None

    model_config = ConfigDict(frozen=True)


@dataclass
class Issue:
    """A single finding, attributable to a file and optionally a line."""

    file: str
    message: str
    line: int | None = None
    rule: str = ""

    def __str__(self) -> str:
        location = f"L{self.line}: " if self.line is not None else ""
        return f"{location}{self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "line": self.line, "message": self.message, "rule": self.rule}


@dataclass(frozen=True)
class RepairResult:
    """Outcome of repairing one file's text.

    When `fixed` is False, `result` is the unchanged input.
    """

    result: str
    fixed: bool = False
    fix_count: int = 0

    @classmethod
    def unchanged(cls, content: str) -> "RepairResult":
        return cls(result=content, fixed=False, fix_count=0)


def to_jsonable(value: Any) -> Any:
    """Convert result payloads (dataclasses with to_dict, tuples, enums) to JSON types."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass
class FileIssues:
    """Issues found in one file."""

    file: str
    issues: list[Issue] = field(default_factory=list)


@dataclass
class AuditResult:
    """Aggregate result of one auditor's audit pass."""

    auditor: str
    category: AuditCategory
    files_scanned: int = 0
    files: list[FileIssues] = field(default_factory=list)
    hint: str | None = None
    errors: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def files_with_issues(self) -> int:
        return len(self.files)

    @property
    def issue_count(self) -> int:
        return sum(len(f.issues) for f in self.files)

    @property
    def clean(self) -> bool:
        return self.issue_count == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "auditor": self.auditor,
            "category": self.category.value,
            "files_scanned": self.files_scanned,
            "files_with_issues": self.files_with_issues,
            "issue_count": self.issue_count,
            "files": [
                {"file": f.file, "issues": [i.to_dict() for i in f.issues]} for f in self.files
            ],
            "errors": self.errors,
            "extra": to_jsonable(self.extra),
        }


@dataclass
class FixResult:
    """Aggregate result of one auditor's fix pass."""

    auditor: str
    files_scanned: int = 0
    files_fixed: int = 0
    fix_count: int = 0
    dry_run: bool = False
    files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "auditor": self.auditor,
            "files_scanned": self.files_scanned,
            "files_fixed": self.files_fixed,
            "fix_count": self.fix_count,
            "dry_run": self.dry_run,
            "files": self.files,
            "errors": self.errors,
        }


def auditor_key(name: str) -> str:
    """Registry key for an auditor name: lower-cased, spaces to underscores, no parentheses."""
    return "_".join(name.lower().split()).replace("(", "").replace(")", "")


class Auditor(ABC):
    """Base class for all auditors.

    Subclasses declare `name`, `category` and optionally `hint`, and
    implement `analyze`. Instances live for one run.
    """

    name: ClassVar[str]
    category: ClassVar[AuditCategory]
    hint: ClassVar[str | None] = None
    can_fix: ClassVar[bool] = False

    def __init__(
        self,
        root_dir: str | Path,
        options: AuditOptions | None = None,
        matcher: ExclusionMatcher | None = None,
        settings: CleanerSettings | None = None,
        overlay: dict[Path, str] | None = None,
    ):
        self.root_dir = Path(root_dir).resolve()
        self.options = options or AuditOptions()
        self.matcher = matcher or ExclusionMatcher()
        self.settings = settings or CleanerSettings()
        # dry-run edits not yet on disk, shared by the auditors of one run
        self.overlay = overlay if overlay is not None else {}
        self._logger = logger.bind(component=type(self).__name__)

    @property
    def key(self) -> str:
        return auditor_key(self.name)

    @abstractmethod
    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        """Find issues in one file's text.

        Must not raise on malformed input; unparsable text yields no issues.
        """

    def accepts(self, relative_path: str) -> bool:
        """Narrow the scanned files beyond the category exclusions."""
        return True

    def prepare(self) -> None:
        """Per-pass setup, run before any file is analyzed."""

    def prepare_fix(self) -> None:
        """Per-pass setup, run before any file is repaired."""
        self.prepare()

    def relative(self, path: Path) -> str:
        return relative_posix(path, self.root_dir)

    def scan_files(self) -> list[Path]:
        """Source files in scope for this auditor."""
        files = find_source_files(
            self.root_dir,
            extension=self.settings.source_extension,
            ignored_dirs=self.settings.ignored_dirs,
            target_path=self.options.target_path,
        )
        in_scope = []
        for path in files:
            relative_path = self.relative(path)
            if self.matcher.is_excluded(self.category, relative_path):
                continue
            if not self.accepts(relative_path):
                continue
            in_scope.append(path)
        return in_scope

    def read_file(self, path: Path, errors: list[str]) -> str | None:
        """Read a file's text, recording (not raising) I/O and decode failures.

        Pending dry-run edits take precedence over the disk.
        """
        if path in self.overlay:
            return self.overlay[path]
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._logger.warning("Failed to read file", path=str(path), error=str(e))
            errors.append(f"{self.relative(path)}: {e}")
            return None

    def audit(self) -> AuditResult:
        """Run the audit pass over every in-scope file."""
        self.prepare()
        result = AuditResult(auditor=self.name, category=self.category, hint=self.hint)

        for path in self.scan_files():
            result.files_scanned += 1
            content = self.read_file(path, result.errors)
            if content is None:
                continue

            relative_path = self.relative(path)
            issues = self.analyze(content, relative_path, path)
            if issues:
                result.files.append(FileIssues(file=relative_path, issues=issues))

        self._logger.info(
            "Audit complete",
            files_scanned=result.files_scanned,
            files_with_issues=result.files_with_issues,
            issues=result.issue_count,
        )
        return result

    def fix(self) -> FixResult:
        """Only repairable auditors can fix."""
        raise CapabilityError(self.name)


class RepairableAuditor(Auditor):
    """Base class for auditors that can rewrite files."""

    can_fix: ClassVar[bool] = True

    @abstractmethod
    def repair(self, content: str, relative_path: str, absolute_path: Path) -> RepairResult:
        """Rewrite one file's text.

        Must be a pure function of the text for the duration of a pass, and
        must return the input unchanged (fixed=False) on malformed input.
        """

    def fix(self) -> FixResult:
        """Run the fix pass over every in-scope file.

        In dry-run mode every repair is computed and counted, but nothing
        is written: the repaired text goes to the overlay so later auditors
        of the run see it.
        """
        self.prepare_fix()
        dry_run = self.options.dry_run
        result = FixResult(auditor=self.name, dry_run=dry_run)

        for path in self.scan_files():
            result.files_scanned += 1
            content = self.read_file(path, result.errors)
            if content is None:
                continue

            relative_path = self.relative(path)
            repaired = self.repair(content, relative_path, path)
            if not repaired.fixed or repaired.result == content:
                continue

            if dry_run:
                self.overlay[path] = repaired.result
            else:
                try:
                    path.write_text(repaired.result, encoding="utf-8")
                except OSError as e:
                    self._logger.error("Failed to write file", path=str(path), error=str(e))
                    result.errors.append(f"{relative_path}: {e}")
                    continue

            result.files_fixed += 1
            result.fix_count += repaired.fix_count
            result.files.append(relative_path)

        self._logger.info(
            "Fix complete",
            files_scanned=result.files_scanned,
            files_fixed=result.files_fixed,
            fixes=result.fix_count,
            dry_run=dry_run,
        )
        return result
