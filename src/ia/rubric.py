"""
Deterministic scoring rubric.

Five weighted dimensions, grade bands, radar normalization and weak-area
standardization. Everything here is a pure function of its inputs; the
scoring agent injects a ScoringRubric so tests can vary weights and bands.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from ia.validation import clamp, round_half_up

MAX_TOTAL_SCORE = 100
MAX_WEAK_AREAS = 3
INFERRED_WEAK_AREAS = 2


@dataclass(frozen=True)
class Dimension:
    """One scored dimension.

    Attributes:
        key: Dimension key in model output and dimension_scores.
        max_score: Upper bound; raw scores are clamped into [0, max_score].
        weak_area_label: Canonical weak-area label for this dimension.
        fallback_score: Score used when the model omits the dimension.
    """

    key: str
    max_score: int
    weak_area_label: str
    fallback_score: int


@dataclass(frozen=True)
class ScoringRubric:
    """Immutable rubric configuration."""

    dimensions: tuple[Dimension, ...]
    grade_thresholds: tuple[tuple[str, int], ...]
    standard_weak_areas: tuple[str, ...]
    lowest_grade: str = "D"

    @property
    def dimension_keys(self) -> tuple[str, ...]:
        return tuple(d.key for d in self.dimensions)

    def dimension(self, key: str) -> Dimension:
        for dim in self.dimensions:
            if dim.key == key:
                return dim
        raise KeyError(key)

    def clamp_score(self, key: str, raw: int) -> int:
        """Clamp a raw dimension score into ``[0, max_score]``."""
        return clamp(raw, 0, self.dimension(key).max_score)

    def total(self, scores: Mapping[str, int]) -> int:
        """Sum of dimension scores clamped to ``[0, 100]``."""
        return clamp(sum(scores.get(key, 0) for key in self.dimension_keys), 0, MAX_TOTAL_SCORE)

    def grade_for(self, total_score: int) -> str:
        """Map a total score onto its grade band."""
        for grade, threshold in self.grade_thresholds:
            if total_score >= threshold:
                return grade
        return self.lowest_grade

    def radar_chart(self, scores: Mapping[str, int]) -> list[int]:
        """Normalize each dimension to 0-10, in dimension order."""
        return [
            round_half_up(scores.get(dim.key, 0) / dim.max_score * 10)
            for dim in self.dimensions
        ]

    def standardize_weak_areas(self, areas: Iterable[str]) -> list[str]:
        """Map free-text weak areas onto the standard vocabulary.

        An area maps to the first standard label that contains it or that it
        contains; unmatched areas are kept verbatim. Duplicates are removed
        and the list is capped.
        """
        standardized: list[str] = []
        for area in areas:
            label = next(
                (std for std in self.standard_weak_areas if area in std or std in area),
                area,
            )
            if label not in standardized:
                standardized.append(label)
        return standardized[:MAX_WEAK_AREAS]

    def infer_weak_areas(self, scores: Mapping[str, int]) -> list[str]:
        """Labels of the lowest-ratio dimensions, ascending by score/max.

        Ties keep dimension order.
        """
        ranked = sorted(
            self.dimensions,
            key=lambda dim: scores.get(dim.key, 0) / dim.max_score,
        )
        return [dim.weak_area_label for dim in ranked[:INFERRED_WEAK_AREAS]]


DEFAULT_RUBRIC = ScoringRubric(
    dimensions=(
        Dimension("market", 30, "시장 분석", 15),
        Dimension("problem", 25, "타겟 정의", 13),
        Dimension("moat", 20, "차별화", 10),
        Dimension("feasibility", 15, "기술 구체화", 8),
        Dimension("business", 10, "수익 모델", 4),
    ),
    grade_thresholds=(("S", 90), ("A", 80), ("B", 70), ("C", 60)),
    standard_weak_areas=(
        "시장 분석",
        "기술 구체화",
        "타겟 정의",
        "차별화",
        "수익 모델",
        "MVP 정의",
    ),
)
