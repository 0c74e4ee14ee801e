"""Auditor registries.

Each run mode has its own ordered list of auditor classes. Order matters
for fixing: every auditor's fix pass is persisted before the next one
reads, so later auditors see earlier edits. Whitespace runs last so it
canonicalizes the blank lines other repairs leave behind.
"""

import structlog

from cleaner.audit.base import Auditor, RepairableAuditor, auditor_key
from cleaner.auditors.comments import CommentsAuditor
from cleaner.auditors.coverage import ImportUsageAuditor, MissingCoverageAuditor
from cleaner.auditors.docs import BrokenLinksAuditor
from cleaner.auditors.filescore import FileScoreAuditor
from cleaner.auditors.imports import ImportsAuditor
from cleaner.auditors.lint import (
    DisablesAuditor,
    LintErrorsAuditor,
    SwitchesAuditor,
    UnusedDirectivesAuditor,
)
from cleaner.auditors.whitespace import WhitespaceAuditor

logger = structlog.get_logger()


class AuditorRegistry:
    """Ordered registry of auditor classes, keyed by auditor key."""

    def __init__(self, auditors: list[type[Auditor]] | None = None):
        self._auditors: dict[str, type[Auditor]] = {}
        for auditor in auditors or []:
            self.register(auditor)

    def register(self, auditor: type[Auditor]) -> type[Auditor]:
        """Register an auditor class.

        Raises:
            ValueError: If another auditor already uses the same key
        """
        key = auditor_key(auditor.name)
        if key in self._auditors:
            raise ValueError(f"Auditor key already registered: {key}")
        self._auditors[key] = auditor
        logger.debug("Registered auditor", auditor=auditor.name, key=key)
        return auditor

    def get(self, key: str) -> type[Auditor] | None:
        """Get an auditor class by key."""
        return self._auditors.get(key)

    def all(self) -> list[type[Auditor]]:
        """Get all registered auditor classes, in registration order."""
        return list(self._auditors.values())

    def repairable(self) -> list[type[RepairableAuditor]]:
        """Registered auditor classes that can fix."""
        return [a for a in self._auditors.values() if issubclass(a, RepairableAuditor)]

    def __len__(self) -> int:
        return len(self._auditors)


AUDIT_AUDITORS: list[type[Auditor]] = [
    WhitespaceAuditor,
    CommentsAuditor,
    ImportsAuditor,
    UnusedDirectivesAuditor,
    LintErrorsAuditor,
    DisablesAuditor,
    SwitchesAuditor,
    BrokenLinksAuditor,
]

FIX_AUDITORS: list[type[RepairableAuditor]] = [
    CommentsAuditor,
    ImportsAuditor,
    UnusedDirectivesAuditor,
    LintErrorsAuditor,
    WhitespaceAuditor,
]

COVERAGE_AUDITORS: list[type[Auditor]] = [
    ImportUsageAuditor,
    MissingCoverageAuditor,
]

SCORE_AUDITORS: list[type[Auditor]] = [
    FileScoreAuditor,
]

audit_registry = AuditorRegistry(AUDIT_AUDITORS)
fix_registry = AuditorRegistry(FIX_AUDITORS)
coverage_registry = AuditorRegistry(COVERAGE_AUDITORS)
score_registry = AuditorRegistry(SCORE_AUDITORS)
