"""
Tests for the scoring rubric.
"""

from __future__ import annotations

import pytest

from ia.rubric import DEFAULT_RUBRIC, Dimension, ScoringRubric


class TestTotalsAndGrades:
    """Test total and grade derivation."""

    def test_total_sums_dimensions(self) -> None:
        scores = {"market": 24, "problem": 20, "moat": 14, "feasibility": 12, "business": 8}
        assert DEFAULT_RUBRIC.total(scores) == 78

    def test_missing_dimension_counts_zero(self) -> None:
        assert DEFAULT_RUBRIC.total({"market": 10}) == 10

    @pytest.mark.parametrize(
        ("total", "grade"),
        [(100, "S"), (90, "S"), (89, "A"), (80, "A"), (79, "B"), (70, "B"), (69, "C"), (60, "C"), (59, "D"), (0, "D")],
    )
    def test_grade_bands(self, total: int, grade: str) -> None:
        assert DEFAULT_RUBRIC.grade_for(total) == grade

    def test_clamp_score(self) -> None:
        assert DEFAULT_RUBRIC.clamp_score("market", 35) == 30
        assert DEFAULT_RUBRIC.clamp_score("business", -2) == 0

    def test_unknown_dimension(self) -> None:
        with pytest.raises(KeyError):
            DEFAULT_RUBRIC.dimension("team")


class TestRadarChart:
    def test_radar_normalizes_to_ten(self) -> None:
        scores = {"market": 24, "problem": 20, "moat": 14, "feasibility": 12, "business": 8}
        assert DEFAULT_RUBRIC.radar_chart(scores) == [8, 8, 7, 8, 8]

    def test_radar_full_and_empty(self) -> None:
        full = {dim.key: dim.max_score for dim in DEFAULT_RUBRIC.dimensions}
        assert DEFAULT_RUBRIC.radar_chart(full) == [10] * 5
        assert DEFAULT_RUBRIC.radar_chart({}) == [0] * 5


class TestWeakAreas:
    """Test weak-area standardization and inference."""

    def test_standardize_maps_to_vocabulary(self) -> None:
        areas = DEFAULT_RUBRIC.standardize_weak_areas(["차별화 전략", "수익 모델 불명확"])
        assert areas == ["차별화", "수익 모델"]

    def test_standardize_keeps_unmatched(self) -> None:
        assert DEFAULT_RUBRIC.standardize_weak_areas(["팀 구성"]) == ["팀 구성"]

    def test_standardize_dedupes_and_caps(self) -> None:
        areas = DEFAULT_RUBRIC.standardize_weak_areas(
            ["시장", "시장 분석", "차별화", "타겟", "MVP"]
        )
        assert areas == ["시장 분석", "차별화", "타겟 정의"]

    def test_infer_lowest_ratio_dimensions(self) -> None:
        scores = {"market": 27, "problem": 5, "moat": 18, "feasibility": 2, "business": 9}
        assert DEFAULT_RUBRIC.infer_weak_areas(scores) == ["기술 구체화", "타겟 정의"]

    def test_infer_ties_keep_dimension_order(self) -> None:
        assert DEFAULT_RUBRIC.infer_weak_areas({}) == ["시장 분석", "타겟 정의"]


def test_custom_rubric() -> None:
    """A rubric with different bands and dimensions is honored."""
    rubric = ScoringRubric(
        dimensions=(Dimension("only", 50, "유일", 25),),
        grade_thresholds=(("PASS", 25),),
        standard_weak_areas=("유일",),
        lowest_grade="FAIL",
    )

    assert rubric.total({"only": 80}) == 80
    assert rubric.grade_for(30) == "PASS"
    assert rubric.grade_for(10) == "FAIL"
    assert rubric.radar_chart({"only": 25}) == [5]
