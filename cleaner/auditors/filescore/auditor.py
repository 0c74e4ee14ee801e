"""File score auditor: ranks files by composite health score."""

from pathlib import Path

from cleaner.audit.base import AuditResult, Auditor, Issue
from cleaner.auditors.filescore.base import CompositeScorer, FileScore, Scorer, rank_scores
from cleaner.auditors.filescore.scorers import (
    AgeScorer,
    BalanceScorer,
    CoverageScorer,
    MaturityScorer,
    SizeScorer,
    StabilityScorer,
    UsageScorer,
)
from cleaner.categories import AuditCategory
from cleaner.graph.imports import build_import_graph
from cleaner.history import GitHistory


class FileScoreAuditor(Auditor):
    """Scores every in-scope file; higher is healthier."""

    name = "File Scores"
    category = AuditCategory.FILESCORE
    hint = "Higher score = healthier file"

    def __init__(self, *args, scorers: list[Scorer] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._files: list[Path] | None = None
        self.composite = CompositeScorer(scorers if scorers is not None else self._default_scorers())

    def _default_scorers(self) -> list[Scorer]:
        history = GitHistory(self.root_dir, self.settings.git_executable)
        return [
            CoverageScorer(self.settings.source_extension),
            SizeScorer(),
            MaturityScorer(self.root_dir, history),
            AgeScorer(self.root_dir, history),
            StabilityScorer(self.root_dir, history),
            BalanceScorer(self.scored_files),
            UsageScorer(
                self.root_dir,
                lambda: build_import_graph(self.root_dir, self.matcher, self.settings),
            ),
        ]

    def scored_files(self) -> list[Path]:
        """In-scope files, scanned once per run."""
        if self._files is None:
            self._files = self.scan_files()
        return self._files

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        # Scores are relative to the whole run, so per-file issues do not apply.
        return []

    def score_files(self, errors: list[str] | None = None) -> list[FileScore]:
        """Score every in-scope file, in scan order."""
        scores = []
        errors = errors if errors is not None else []
        for path in self.scored_files():
            content = self.read_file(path, errors)
            if content is None:
                continue
            scores.append(self.composite.score(self.relative(path), path, content))
        return scores

    def audit(self) -> AuditResult:
        """Score and rank files.

        The ranked list (worst files first in flop mode) is stored under
        `extra["scores"]`.
        """
        result = AuditResult(auditor=self.name, category=self.category, hint=self.hint)
        scores = self.score_files(result.errors)
        ranked = rank_scores(scores)
        shown = rank_scores(scores, worst=True) if self.options.flop else ranked

        result.files_scanned = len(scores)
        result.extra = {
            "files_analyzed": len(ranked),
            "max_score": ranked[0].total if ranked else 0,
            "flop": self.options.flop,
            "scores": shown,
        }

        self._logger.info("Files scored", files=len(ranked), flop=self.options.flop)
        return result
