"""File score heuristics."""

import statistics
from pathlib import Path
from typing import Callable

import structlog

from cleaner.auditors.filescore.base import Scorer, ScoreResult
from cleaner.graph.imports import ImportGraph
from cleaner.history import GitHistory, days_since

logger = structlog.get_logger()

# (upper bound on line count, points)
SIZE_BANDS = ((150, 10), (300, 7), (500, 4), (800, 2))
# (minimum days, points)
AGE_BANDS = ((365, 10), (180, 7), (90, 5), (30, 3))
STABILITY_BANDS = ((90, 10), (30, 7), (7, 4))
MATURITY_CAP = 10


def count_lines(content: str) -> int:
    return len(content.splitlines())


def _band_points(value: float, bands: tuple[tuple[int, int], ...], fallback: int, at_least: bool) -> int:
    for bound, points in bands:
        if (value >= bound) if at_least else (value <= bound):
            return points
    return fallback


class CoverageScorer(Scorer):
    """Rewards files that have a sibling test file."""

    name = "coverage"
    weight = 3

    def __init__(self, extension: str = ".js"):
        self.extension = extension

    def score(self, file_path: Path, content: str) -> ScoreResult:
        stem = file_path.name[: -len(self.extension)]
        test_file = file_path.with_name(f"{stem}.test{self.extension}")
        if test_file.is_file():
            return self.entry(10, "has test file")
        return self.entry(0, "no test file")


class SizeScorer(Scorer):
    """Smaller files score higher."""

    name = "size"
    weight = 1

    def score(self, file_path: Path, content: str) -> ScoreResult:
        lines = count_lines(content)
        points = _band_points(lines, SIZE_BANDS, fallback=0, at_least=False)
        return self.entry(points, f"{lines} lines")


class HistoryScorer(Scorer):
    """Base for scorers reading commit history."""

    def __init__(self, root_dir: str | Path, history: GitHistory, now: float | None = None):
        self.root_dir = Path(root_dir)
        self.history = history
        self.now = now

    def timestamps(self, file_path: Path) -> list[int]:
        return self.history.commit_timestamps(file_path.relative_to(self.root_dir).as_posix())


class MaturityScorer(HistoryScorer):
    """Files that went through more commits have been refined more."""

    name = "maturity"
    weight = 1

    def score(self, file_path: Path, content: str) -> ScoreResult:
        commits = len(self.timestamps(file_path))
        if commits == 0:
            return self.entry(0, "no history")
        return self.entry(min(commits, MATURITY_CAP), f"{commits} commits")


class AgeScorer(HistoryScorer):
    """Older files have proven themselves."""

    name = "age"
    weight = 1

    def score(self, file_path: Path, content: str) -> ScoreResult:
        timestamps = self.timestamps(file_path)
        if not timestamps:
            return self.entry(0, "no history")

        days = days_since(timestamps[-1], self.now)
        points = _band_points(days, AGE_BANDS, fallback=1, at_least=True)
        return self.entry(points, f"created {int(days)} days ago")


class StabilityScorer(HistoryScorer):
    """Files left untouched for a while are stable."""

    name = "stability"
    weight = 2

    def score(self, file_path: Path, content: str) -> ScoreResult:
        timestamps = self.timestamps(file_path)
        if not timestamps:
            return self.entry(0, "no history")

        days = days_since(timestamps[0], self.now)
        points = _band_points(days, STABILITY_BANDS, fallback=1, at_least=True)
        return self.entry(points, f"last changed {int(days)} days ago")


class BalanceScorer(Scorer):
    """Files close to the median size of the scored set are balanced.

    The median is computed once per run, on first use, over the files the
    provider returns.
    """

    name = "balance"
    weight = 1

    def __init__(self, files_provider: Callable[[], list[Path]]):
        self.files_provider = files_provider
        self._median: float | None = None

    @property
    def median(self) -> float:
        if self._median is None:
            counts = []
            for path in self.files_provider():
                try:
                    counts.append(count_lines(path.read_text(encoding="utf-8")))
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning("Failed to read file", path=str(path), error=str(e))
            self._median = statistics.median(counts) if counts else 0
        return self._median

    def score(self, file_path: Path, content: str) -> ScoreResult:
        lines = count_lines(content)
        median = self.median
        if median == 0:
            return self.entry(10, f"{lines} lines")

        ratio = lines / median
        if 0.5 <= ratio <= 2:
            points = 10
        elif 0.25 <= ratio <= 4:
            points = 5
        else:
            points = 2
        return self.entry(points, f"{lines} lines vs median {median:g}")


class UsageScorer(Scorer):
    """Files imported by many others are load-bearing."""

    name = "usage"
    weight = 2

    def __init__(self, root_dir: str | Path, graph_provider: Callable[[], ImportGraph]):
        self.root_dir = Path(root_dir)
        self.graph_provider = graph_provider
        self._graph: ImportGraph | None = None

    @property
    def graph(self) -> ImportGraph:
        if self._graph is None:
            self._graph = self.graph_provider()
        return self._graph

    def score(self, file_path: Path, content: str) -> ScoreResult:
        count = self.graph.count(file_path.relative_to(self.root_dir).as_posix())
        if count == 0:
            points = 0
        elif count == 1:
            points = 5
        elif count < 5:
            points = 8
        else:
            points = 10
        return self.entry(points, f"imported {count}x")
