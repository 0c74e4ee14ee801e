"""Composite file scoring."""

from .base import (
    CompositeScorer,
    FileScore,
    ScoreEntry,
    ScoreResult,
    Scorer,
    rank_scores,
)
from .scorers import (
    AgeScorer,
    BalanceScorer,
    CoverageScorer,
    MaturityScorer,
    SizeScorer,
    StabilityScorer,
    UsageScorer,
)
from .auditor import FileScoreAuditor

__all__ = [
    # Composite
    "CompositeScorer",
    "FileScore",
    "ScoreEntry",
    "ScoreResult",
    "Scorer",
    "rank_scores",
    # Scorers
    "AgeScorer",
    "BalanceScorer",
    "CoverageScorer",
    "MaturityScorer",
    "SizeScorer",
    "StabilityScorer",
    "UsageScorer",
    # Auditor
    "FileScoreAuditor",
]
