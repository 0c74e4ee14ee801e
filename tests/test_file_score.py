"""Tests for composite file scoring."""

from pathlib import Path

import pytest

from cleaner.audit.base import AuditOptions
from cleaner.auditors.filescore import (
    AgeScorer,
    BalanceScorer,
    CompositeScorer,
    CoverageScorer,
    FileScore,
    FileScoreAuditor,
    MaturityScorer,
    ScoreResult,
    Scorer,
    SizeScorer,
    StabilityScorer,
    UsageScorer,
    rank_scores,
)
from cleaner.auditors.filescore.base import WORST_COUNT, round_half_up

DAY = 86400
NOW = 1_700_000_000


class TenPoints(Scorer):
    name = "ten"
    weight = 1

    def score(self, file_path: Path, content: str) -> ScoreResult:
        return self.entry(10, "always ten")


class FourPointsDouble(Scorer):
    name = "four"
    weight = 2

    def score(self, file_path: Path, content: str) -> ScoreResult:
        return self.entry(4, "always four")


class LineCount(Scorer):
    name = "lines"
    weight = 1

    def score(self, file_path: Path, content: str) -> ScoreResult:
        return self.entry(len(content.splitlines()), "line count")


class FakeHistory:
    """GitHistory stand-in with fixed timestamps (newest first)."""

    def __init__(self, timestamps: list[int]):
        self.timestamps = timestamps

    def commit_timestamps(self, relative_path: str) -> list[int]:
        return self.timestamps


class FakeGraph:
    def __init__(self, counts: dict[str, int]):
        self.counts = counts

    def count(self, relative_path: str) -> int:
        return self.counts.get(relative_path, 0)


class TestCompositeScorer:
    """Tests for the weighted sum."""

    def test_total_is_weighted_sum(self):
        """Test that total = 10*1 + 4*2 with entries in registration order."""
        composite = CompositeScorer([TenPoints(), FourPointsDouble()])

        score = composite.score("lib/a.js", Path("lib/a.js"), "")

        assert score.total == 18
        assert [entry.scorer for entry in score.breakdown] == ["ten", "four"]
        assert [entry.points for entry in score.breakdown] == [10, 4]

    def test_no_scorers(self):
        """Test that an empty composite scores zero."""
        assert CompositeScorer([]).score("a.js", Path("a.js"), "").total == 0


class TestRankScores:
    """Tests for ranking and run-relative percentages."""

    def test_sorted_with_percentages(self):
        """Test ordering and percentages relative to the best file."""
        scores = [
            FileScore("lib/low.js", 9),
            FileScore("lib/high.js", 18),
            FileScore("lib/mid.js", 12),
        ]

        ranked = rank_scores(scores)

        assert [s.file for s in ranked] == ["lib/high.js", "lib/mid.js", "lib/low.js"]
        assert [s.percent for s in ranked] == [100, 67, 50]

    def test_ties_broken_by_path(self):
        """Test that equal totals sort by file path."""
        ranked = rank_scores([FileScore("b.js", 5), FileScore("a.js", 5)])

        assert [s.file for s in ranked] == ["a.js", "b.js"]

    def test_worst_mode(self):
        """Test that worst mode keeps the bottom files, worst first."""
        scores = [FileScore(f"f{i:02}.js", i) for i in range(1, 13)]

        worst = rank_scores(scores, worst=True)

        assert len(worst) == WORST_COUNT
        assert worst[0].file == "f01.js"
        assert worst[-1].file == "f10.js"

    def test_all_zero(self):
        """Test that a run where every file scores zero has zero percentages."""
        ranked = rank_scores([FileScore("a.js", 0), FileScore("b.js", 0)])

        assert [s.percent for s in ranked] == [0, 0]

    def test_empty(self):
        assert rank_scores([]) == []

    def test_round_half_up(self):
        """Test percentage rounding."""
        assert round_half_up(12.5) == 13
        assert round_half_up(12.49) == 12


class TestScorers:
    """Tests for the built-in heuristics."""

    def test_coverage(self, make_project):
        """Test that a sibling test file earns full points."""
        root = make_project({"lib/a.js": "", "lib/a.test.js": "", "lib/b.js": ""})
        scorer = CoverageScorer()

        assert scorer.score(root / "lib/a.js", "").points == 10
        assert scorer.score(root / "lib/b.js", "").points == 0

    @pytest.mark.parametrize(
        ("lines", "points"),
        [(10, 10), (150, 10), (151, 7), (300, 7), (500, 4), (800, 2), (801, 0)],
    )
    def test_size_bands(self, lines: int, points: int):
        """Test the size bands."""
        assert SizeScorer().score(Path("a.js"), "x\n" * lines).points == points

    def test_maturity(self, tmp_path):
        """Test that commit count is capped."""
        assert MaturityScorer(tmp_path, FakeHistory([NOW] * 3)).score(tmp_path / "a.js", "").points == 3
        assert MaturityScorer(tmp_path, FakeHistory([NOW] * 15)).score(tmp_path / "a.js", "").points == 10

    @pytest.mark.parametrize(
        "scorer_cls", [MaturityScorer, AgeScorer, StabilityScorer]
    )
    def test_no_history(self, tmp_path, scorer_cls):
        """Test that files without history score zero."""
        result = scorer_cls(tmp_path, FakeHistory([]), now=NOW).score(tmp_path / "a.js", "")

        assert result.points == 0
        assert result.breakdown[0].description == "no history"

    @pytest.mark.parametrize(("days", "points"), [(400, 10), (200, 7), (100, 5), (40, 3), (5, 1)])
    def test_age_bands(self, tmp_path, days: int, points: int):
        """Test that age is measured from the first commit."""
        history = FakeHistory([NOW - DAY, NOW - days * DAY])

        assert AgeScorer(tmp_path, history, now=NOW).score(tmp_path / "a.js", "").points == points

    @pytest.mark.parametrize(("days", "points"), [(100, 10), (45, 7), (10, 4), (2, 1)])
    def test_stability_bands(self, tmp_path, days: int, points: int):
        """Test that stability is measured from the last commit."""
        history = FakeHistory([NOW - days * DAY, NOW - 1000 * DAY])

        assert StabilityScorer(tmp_path, history, now=NOW).score(tmp_path / "a.js", "").points == points

    def test_balance(self, make_project):
        """Test points by ratio to the median line count."""
        root = make_project({
            "a.js": "x\n" * 100,
            "b.js": "x\n" * 100,
            "c.js": "x\n" * 100,
        })
        scorer = BalanceScorer(lambda: sorted(root.glob("*.js")))

        assert scorer.score(root / "a.js", "x\n" * 100).points == 10
        assert scorer.score(root / "a.js", "x\n" * 300).points == 5
        assert scorer.score(root / "a.js", "x\n" * 1000).points == 2
        assert scorer.median == 100

    def test_balance_with_empty_set(self):
        """Test that an empty scored set counts every file as balanced."""
        assert BalanceScorer(lambda: []).score(Path("a.js"), "x\n").points == 10

    @pytest.mark.parametrize(("count", "points"), [(0, 0), (1, 5), (4, 8), (5, 10)])
    def test_usage(self, tmp_path, count: int, points: int):
        """Test the import count bands."""
        scorer = UsageScorer(tmp_path, lambda: FakeGraph({"lib/a.js": count}))

        assert scorer.score(tmp_path / "lib/a.js", "").points == points

    def test_usage_graph_built_once(self, tmp_path):
        """Test that the graph provider runs once per scorer."""
        calls = []

        def provider():
            calls.append(1)
            return FakeGraph({})

        scorer = UsageScorer(tmp_path, provider)
        scorer.score(tmp_path / "a.js", "")
        scorer.score(tmp_path / "b.js", "")

        assert len(calls) == 1


class TestFileScoreAuditor:
    """Tests for the score auditor."""

    def test_scores_in_scope_files(self, make_project):
        """Test that scores are ranked and excluded files are skipped."""
        root = make_project({
            "lib/big.js": "x\n" * 4,
            "lib/small.js": "x\n" * 2,
            "lib/small.test.js": "x\n",
            "scripts/build.js": "x\n",
        })
        auditor = FileScoreAuditor(root, scorers=[LineCount()])

        result = auditor.audit()

        scores = result.extra["scores"]
        assert [s.file for s in scores] == ["lib/big.js", "lib/small.js"]
        assert [s.percent for s in scores] == [100, 50]
        assert result.extra["max_score"] == 4
        assert result.files_scanned == 2
        assert result.clean

    def test_flop_mode(self, make_project):
        """Test that flop mode lists the worst files first."""
        root = make_project({"lib/big.js": "x\n" * 4, "lib/small.js": "x\n" * 2})
        auditor = FileScoreAuditor(root, options=AuditOptions(flop=True), scorers=[LineCount()])

        scores = auditor.audit().extra["scores"]

        assert [s.file for s in scores] == ["lib/small.js", "lib/big.js"]

    def test_result_serializes(self, make_project):
        """Test that score results convert to JSON-ready data."""
        root = make_project({"lib/a.js": "x\n"})

        data = FileScoreAuditor(root, scorers=[TenPoints()]).audit().to_dict()

        assert data["extra"]["scores"][0]["file"] == "lib/a.js"
        assert data["extra"]["scores"][0]["score"] == 10
        assert data["extra"]["scores"][0]["breakdown"][0]["scorer"] == "ten"
