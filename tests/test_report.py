"""Tests for ranking report formatting."""

import json

from pkgrank.builder import BuildFailure, BuildResult
from pkgrank.graph import ImportGraph
from pkgrank.pipeline import RankResult, StageResult
from pkgrank.report import format_ranking, limit_ranking, ranking_as_dict

LABELS = ["e", "d", "c", "b", "a"]
SCORES = [0.4, 0.25, 0.15, 0.12, 0.08]


class TestLimitRanking:
    def test_positive_limit_keeps_limit_plus_one(self):
        kept = limit_ranking(LABELS, SCORES, 2)
        assert [label for label, _ in kept] == ["e", "d", "c"]

    def test_limit_one(self):
        assert len(limit_ranking(LABELS, SCORES, 1)) == 2

    def test_limit_larger_than_results(self):
        assert len(limit_ranking(LABELS, SCORES, 16)) == 5

    def test_non_positive_is_unlimited(self):
        assert len(limit_ranking(LABELS, SCORES, 0)) == 5
        assert len(limit_ranking(LABELS, SCORES, -3)) == 5

    def test_empty(self):
        assert limit_ranking([], [], 2) == []


class TestFormatRanking:
    def test_line_format(self):
        lines = format_ranking(["fmt"], [0.123456789], 16)
        assert lines == ["0.123457 fmt"]

    def test_boundary_n2_emits_three_lines(self):
        lines = format_ranking(LABELS, SCORES, 2)
        assert lines == ["0.400000 e", "0.250000 d", "0.150000 c"]


class TestRankingAsDict:
    def test_full_report(self):
        g = ImportGraph()
        g.update_edge("a", "b")
        result = RankResult(
            labels=["b", "a"],
            scores=[0.6, 0.4],
            packages=["a", "c"],
            build=BuildResult(
                graph=g,
                packages=["a", "c"],
                failures=[BuildFailure(package="c", error="boom")],
            ),
            stages=[StageResult(stage="centrality", duration_ms=1.23456)],
            total_duration_ms=5.0,
        )
        report = ranking_as_dict(result, limit=0)
        assert report["ranking"] == [
            {"label": "b", "score": 0.6},
            {"label": "a", "score": 0.4},
        ]
        assert report["nodes"] == 2
        assert report["edges"] == 1
        assert report["partial"] is True
        assert report["failures"] == [{"package": "c", "error": "boom"}]
        assert report["stages"][0]["duration_ms"] == 1.235
        json.dumps(report)

    def test_without_build(self):
        report = ranking_as_dict(RankResult(), limit=16)
        assert report["nodes"] == 0
        assert report["edges"] == 0
        assert report["partial"] is False
        assert report["ranking"] == []
