"""Composite file scoring.

A file's health score is the weighted sum of independent scorer plugins.
Each scorer returns points plus human-readable breakdown entries; the
composite never adjusts the total on its own.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

WORST_COUNT = 10


@dataclass(frozen=True)
class ScoreEntry:
    """One line of a score breakdown."""

    scorer: str
    points: float
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"scorer": self.scorer, "points": self.points, "description": self.description}


@dataclass
class ScoreResult:
    """Output of a single scorer for one file."""

    points: float
    breakdown: list[ScoreEntry] = field(default_factory=list)


@dataclass
class FileScore:
    """Composite score of one file."""

    file: str
    total: float
    breakdown: list[ScoreEntry] = field(default_factory=list)
    percent: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "score": self.total,
            "percent": self.percent,
            "breakdown": [entry.to_dict() for entry in self.breakdown],
        }


class Scorer(ABC):
    """A scoring heuristic.

    Scorers must not share mutable state between files, but may cache a
    one-time computation for the whole run (computed lazily on first use).
    """

    name: ClassVar[str]
    weight: ClassVar[float] = 1

    @abstractmethod
    def score(self, file_path: Path, content: str) -> ScoreResult:
        """Score one file."""

    def entry(self, points: float, description: str) -> ScoreResult:
        """Result with a single breakdown entry."""
        return ScoreResult(points, [ScoreEntry(self.name, points, description)])


class CompositeScorer:
    """Runs scorers in registration order and sums weighted points."""

    def __init__(self, scorers: list[Scorer]):
        self.scorers = scorers

    def score(self, relative_path: str, file_path: Path, content: str) -> FileScore:
        """Score one file with every scorer.

        Returns:
            FileScore with total = sum(points * weight) and the concatenated breakdown
        """
        total = 0.0
        breakdown: list[ScoreEntry] = []

        for scorer in self.scorers:
            result = scorer.score(file_path, content)
            total += result.points * scorer.weight
            breakdown.extend(result.breakdown)

        return FileScore(file=relative_path, total=total, breakdown=breakdown)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rank_scores(scores: list[FileScore], worst: bool = False) -> list[FileScore]:
    """Sort scores and compute run-relative percentages.

    Files are sorted by total (highest first, ties by path). Percentages are
    relative to the best file of the run. In worst mode the order is
    reversed and only the bottom WORST_COUNT files are kept.
    """
    ranked = sorted(scores, key=lambda s: (-s.total, s.file))
    max_total = ranked[0].total if ranked else 0

    for item in ranked:
        item.percent = round_half_up(item.total / max_total * 100) if max_total > 0 else 0

    if worst:
        return list(reversed(ranked))[:WORST_COUNT]
    return ranked
