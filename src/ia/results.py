"""
Typed stage results.

Each stage result is a dataclass with three entry points:
- ``fallback()``: the schema-complete placeholder used when a stage fails
- ``from_payload(data)``: field-by-field decoding of a model's JSON object,
  defaulting every field independently
- ``to_dict()``: the persisted JSON shape

AggregateResult combines the five stage results with run metadata.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Mapping

from ia.rubric import DEFAULT_RUBRIC, ScoringRubric
from ia.types import ConfidenceLevel, StageName, TOTAL_STAGES, utc_now
from ia.validation import (
    as_int,
    as_mapping,
    as_text,
    as_text_list,
    first_present,
)

REQUIRED_ACTIONS = 3


# =============================================================================
# Summary
# =============================================================================


@dataclass
class SummaryResult:
    """One-line summary, core value and problem statement."""

    summary: str
    core_value: str
    problem_statement: str

    @classmethod
    def fallback(cls) -> SummaryResult:
        return cls(
            summary="아이디어 분석 요약 생성 중 오류 발생",
            core_value="핵심 가치 분석 필요",
            problem_statement="해결하려는 문제 정의 필요",
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> SummaryResult:
        default = cls.fallback()
        return cls(
            summary=as_text(data.get("summary"), default.summary),
            core_value=as_text(data.get("core_value"), default.core_value),
            problem_statement=as_text(data.get("problem_statement"), default.problem_statement),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Target users
# =============================================================================


@dataclass
class Persona:
    name: str
    age_range: str
    description: str

    @classmethod
    def from_payload(cls, data: Any) -> Persona | None:
        """Decode one persona; non-object entries yield None."""
        if not isinstance(data, Mapping):
            return None
        return cls(
            name=as_text(data.get("name"), "페르소나"),
            age_range=as_text(data.get("age_range"), "미정"),
            description=as_text(data.get("description"), ""),
        )


@dataclass
class TargetUsers:
    primary: str
    characteristics: list[str] = field(default_factory=list)
    personas: list[Persona] = field(default_factory=list)


@dataclass
class TargetUserResult:
    """Primary target, personas, pain points and goals."""

    target_users: TargetUsers
    pain_points: list[str] = field(default_factory=list)
    goals: list[str] = field(default_factory=list)

    @classmethod
    def fallback(cls) -> TargetUserResult:
        return cls(target_users=TargetUsers(primary="타겟 사용자 분석 필요"))

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> TargetUserResult:
        default = cls.fallback()
        users = as_mapping(data.get("target_users"))
        raw_personas = users.get("personas")
        personas = [
            persona
            for persona in (
                Persona.from_payload(item)
                for item in (raw_personas if isinstance(raw_personas, list) else [])
            )
            if persona is not None
        ]
        return cls(
            target_users=TargetUsers(
                primary=as_text(users.get("primary"), default.target_users.primary),
                characteristics=as_text_list(users.get("characteristics"), []),
                personas=personas,
            ),
            pain_points=as_text_list(first_present(data, "pain_points", "user_pain_points"), []),
            goals=as_text_list(first_present(data, "goals", "user_goals"), []),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Market analysis
# =============================================================================


def _competitor_names(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    names: list[str] = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("name")
        name = as_text(item, "")
        if name:
            names.append(name)
    return names


@dataclass
class MarketOverview:
    potential: str
    market_size: str
    trends: str
    competitors: list[str]
    differentiation: str


@dataclass
class MarketAnalysisResult:
    """Market potential, size, competitors, opportunities and risks."""

    market_analysis: MarketOverview
    opportunities: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)

    @classmethod
    def fallback(cls) -> MarketAnalysisResult:
        return cls(
            market_analysis=MarketOverview(
                potential="분석 필요",
                market_size="시장 규모 조사 필요",
                trends="트렌드 분석 필요",
                competitors=[],
                differentiation="차별화 전략 필요",
            )
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> MarketAnalysisResult:
        default = cls.fallback().market_analysis
        market = as_mapping(data.get("market_analysis"))
        return cls(
            market_analysis=MarketOverview(
                potential=as_text(market.get("potential"), default.potential),
                market_size=as_text(market.get("market_size"), default.market_size),
                trends=as_text(market.get("trends"), default.trends),
                competitors=_competitor_names(market.get("competitors")),
                differentiation=as_text(market.get("differentiation"), default.differentiation),
            ),
            opportunities=as_text_list(
                first_present(data, "opportunities", "market_opportunities"), []
            ),
            risks=as_text_list(first_present(data, "risks", "market_risks"), []),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Strategy
# =============================================================================


@dataclass
class Recommendations:
    mvp_features: list[str]
    challenges: list[str]
    next_steps: list[str]


@dataclass
class ActionItem:
    title: str
    description: str

    @classmethod
    def from_payload(cls, data: Any) -> ActionItem | None:
        if not isinstance(data, Mapping):
            return None
        return cls(
            title=as_text(data.get("title"), "액션"),
            description=as_text(data.get("description"), ""),
        )


FALLBACK_ACTIONS: tuple[ActionItem, ...] = (
    ActionItem("핵심 타깃 정의", "타겟 사용자를 구체화하세요"),
    ActionItem("MVP 범위 설정", "핵심 기능을 정의하세요"),
    ActionItem("경쟁사 분석", "경쟁 환경을 파악하세요"),
)


def normalize_actions(raw: Any) -> list[ActionItem]:
    """Validate actions to exactly three entries.

    Malformed entries are dropped, short lists are padded with the fallback
    actions at the missing positions, long lists are truncated.
    """
    actions = [
        action
        for action in (ActionItem.from_payload(item) for item in (raw if isinstance(raw, list) else []))
        if action is not None
    ][:REQUIRED_ACTIONS]
    for fallback in FALLBACK_ACTIONS[len(actions):REQUIRED_ACTIONS]:
        actions.append(ActionItem(fallback.title, fallback.description))
    return actions


@dataclass
class StrategyResult:
    """MVP features, challenges, next steps and three action items."""

    recommendations: Recommendations
    actions: list[ActionItem]

    @classmethod
    def fallback(cls) -> StrategyResult:
        return cls(
            recommendations=Recommendations(
                mvp_features=["MVP 기능 정의 필요"],
                challenges=["도전 과제 분석 필요"],
                next_steps=["다음 단계 계획 필요"],
            ),
            actions=normalize_actions([]),
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> StrategyResult:
        default = cls.fallback().recommendations
        recs = as_mapping(data.get("recommendations"))
        return cls(
            recommendations=Recommendations(
                mvp_features=as_text_list(recs.get("mvp_features"), default.mvp_features),
                challenges=as_text_list(recs.get("challenges"), default.challenges),
                next_steps=as_text_list(recs.get("next_steps"), default.next_steps),
            ),
            actions=normalize_actions(data.get("actions")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Scoring
# =============================================================================

UNKNOWN_ESTIMATE = "추정 필요"


@dataclass
class SizeEstimate:
    revenue: str = UNKNOWN_ESTIMATE
    users: str = UNKNOWN_ESTIMATE

    @classmethod
    def from_payload(cls, data: Any) -> SizeEstimate:
        data = as_mapping(data)
        return cls(
            revenue=as_text(data.get("revenue"), UNKNOWN_ESTIMATE),
            users=as_text(data.get("users"), UNKNOWN_ESTIMATE),
        )


@dataclass
class MarketSize:
    tam: SizeEstimate = field(default_factory=SizeEstimate)
    sam: SizeEstimate = field(default_factory=SizeEstimate)
    som: SizeEstimate = field(default_factory=SizeEstimate)

    @classmethod
    def from_payload(cls, data: Any) -> MarketSize:
        data = as_mapping(data)
        return cls(
            tam=SizeEstimate.from_payload(data.get("tam")),
            sam=SizeEstimate.from_payload(data.get("sam")),
            som=SizeEstimate.from_payload(data.get("som")),
        )


@dataclass
class CompetitorSplit:
    direct: list[str] = field(default_factory=list)
    indirect: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Any) -> CompetitorSplit:
        data = as_mapping(data)
        return cls(
            direct=_competitor_names(data.get("direct")),
            indirect=_competitor_names(data.get("indirect")),
        )


@dataclass
class DimensionScore:
    """Score and commentary for one rubric dimension.

    Only the market, moat and business dimensions carry their extra
    sub-objects; they are None elsewhere and omitted from ``to_dict``.
    """

    score: int
    breakdown: dict[str, Any] = field(default_factory=dict)
    feedback: str = ""
    market_size: MarketSize | None = None
    competitors: CompetitorSplit | None = None
    business_type: str | None = None
    revenue_model: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "score": self.score,
            "breakdown": dict(self.breakdown),
            "feedback": self.feedback,
        }
        if self.market_size is not None:
            data["market_size"] = asdict(self.market_size)
        if self.competitors is not None:
            data["competitors"] = asdict(self.competitors)
        if self.business_type is not None:
            data["business_type"] = self.business_type
        if self.revenue_model is not None:
            data["revenue_model"] = self.revenue_model
        return data


def dimension_extras(key: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """Default-filled extra sub-objects carried by some dimensions."""
    if key == "market":
        return {"market_size": MarketSize.from_payload(data.get("market_size"))}
    if key == "moat":
        return {"competitors": CompetitorSplit.from_payload(data.get("competitors"))}
    if key == "business":
        return {
            "business_type": as_text(data.get("business_type"), "미정"),
            "revenue_model": as_text(data.get("revenue_model"), "수익 모델 정의 필요"),
        }
    return {}


@dataclass
class ScoreSummary:
    overall: int
    weak_areas: list[str]
    strong_areas: list[str]
    improvement_tips: list[str]


@dataclass
class RequiredExpertise:
    roles: list[str]
    skills: list[str]
    description: str


FALLBACK_STRONG_AREAS = ["아이디어 독창성"]
FALLBACK_TIPS = ["분석 결과를 기반으로 개선점을 확인하세요"]
FALLBACK_EXPERTISE = RequiredExpertise(
    roles=["Developer", "Designer"],
    skills=["MVP", "스타트업"],
    description="분석 기반 전문성 추천이 필요합니다",
)


def _confidence(value: Any) -> str:
    text = as_text(value, "").lower()
    for level in ConfidenceLevel:
        if text == level.value.lower():
            return level.value
    return ConfidenceLevel.MEDIUM.value


@dataclass
class ScoringResult:
    """Rubric-scored assessment of the idea."""

    dimension_scores: dict[str, DimensionScore]
    total_score: int
    grade: str
    radar_chart_data: list[int]
    score: ScoreSummary
    required_expertise: RequiredExpertise
    confidence_level: str = ConfidenceLevel.MEDIUM.value

    @classmethod
    def fallback(cls, rubric: ScoringRubric = DEFAULT_RUBRIC) -> ScoringResult:
        dimensions = {
            dim.key: DimensionScore(score=dim.fallback_score, **dimension_extras(dim.key, {}))
            for dim in rubric.dimensions
        }
        result = cls.from_dimensions(dimensions, rubric)
        result.score.weak_areas = ["시장 분석", "기술 구체화"]
        return result

    @classmethod
    def from_dimensions(
        cls,
        dimensions: dict[str, DimensionScore],
        rubric: ScoringRubric = DEFAULT_RUBRIC,
        weak_areas: list[str] | None = None,
        strong_areas: list[str] | None = None,
        improvement_tips: list[str] | None = None,
        required_expertise: RequiredExpertise | None = None,
        confidence_level: str = ConfidenceLevel.MEDIUM.value,
    ) -> ScoringResult:
        """Derive totals, grade and radar data from clamped dimensions."""
        scores = {key: dim.score for key, dim in dimensions.items()}
        total = rubric.total(scores)
        return cls(
            dimension_scores=dimensions,
            total_score=total,
            grade=rubric.grade_for(total),
            radar_chart_data=rubric.radar_chart(scores),
            score=ScoreSummary(
                overall=total,
                weak_areas=weak_areas if weak_areas else rubric.infer_weak_areas(scores),
                strong_areas=list(strong_areas) if strong_areas is not None else list(FALLBACK_STRONG_AREAS),
                improvement_tips=list(improvement_tips) if improvement_tips is not None else list(FALLBACK_TIPS),
            ),
            required_expertise=required_expertise or RequiredExpertise(
                roles=list(FALLBACK_EXPERTISE.roles),
                skills=list(FALLBACK_EXPERTISE.skills),
                description=FALLBACK_EXPERTISE.description,
            ),
            confidence_level=confidence_level,
        )

    @classmethod
    def from_payload(
        cls,
        data: Mapping[str, Any],
        rubric: ScoringRubric = DEFAULT_RUBRIC,
    ) -> ScoringResult:
        raw_dimensions = as_mapping(data.get("dimension_scores"))
        dimensions: dict[str, DimensionScore] = {}
        for dim in rubric.dimensions:
            raw = raw_dimensions.get(dim.key)
            # A bare number is accepted as the dimension score.
            entry = raw if isinstance(raw, Mapping) else {"score": raw}
            dimensions[dim.key] = DimensionScore(
                score=rubric.clamp_score(dim.key, as_int(entry.get("score"), dim.fallback_score)),
                breakdown=as_mapping(entry.get("breakdown")),
                feedback=as_text(entry.get("feedback"), ""),
                **dimension_extras(dim.key, entry),
            )

        summary = as_mapping(data.get("score"))
        raw_weak = summary.get("weak_areas")
        weak_areas = (
            rubric.standardize_weak_areas(as_text_list(raw_weak, []))
            if isinstance(raw_weak, list)
            else None
        )

        expertise = as_mapping(data.get("required_expertise"))
        return cls.from_dimensions(
            dimensions,
            rubric,
            weak_areas=weak_areas,
            strong_areas=as_text_list(summary.get("strong_areas"), FALLBACK_STRONG_AREAS),
            improvement_tips=as_text_list(summary.get("improvement_tips"), FALLBACK_TIPS),
            required_expertise=RequiredExpertise(
                roles=as_text_list(expertise.get("roles"), FALLBACK_EXPERTISE.roles),
                skills=as_text_list(expertise.get("skills"), FALLBACK_EXPERTISE.skills),
                description=as_text(expertise.get("description"), FALLBACK_EXPERTISE.description),
            ),
            confidence_level=_confidence(data.get("confidence_level")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dimension_scores": {key: dim.to_dict() for key, dim in self.dimension_scores.items()},
            "total_score": self.total_score,
            "grade": self.grade,
            "radar_chart_data": list(self.radar_chart_data),
            "score": asdict(self.score),
            "required_expertise": asdict(self.required_expertise),
            "confidence_level": self.confidence_level,
        }


StageResult = (
    SummaryResult | TargetUserResult | MarketAnalysisResult | StrategyResult | ScoringResult
)


# =============================================================================
# Aggregate
# =============================================================================


@dataclass
class AnalysisMetadata:
    """Stage bookkeeping for one run.

    ``agents_completed + agents_failed == agents_total``. The mock analysis
    runs no agents and reports zero for all three.
    """

    agents_total: int = TOTAL_STAGES
    agents_completed: int = 0
    agents_failed: int = 0
    failed_agents: list[str] = field(default_factory=list)
    confidence_level: str = ConfidenceLevel.MEDIUM.value
    elapsed_seconds: float = 0.0
    agent_sequence: list[str] = field(default_factory=lambda: [s.value for s in StageName])

    @property
    def partial_success(self) -> bool:
        """Some, but not all, stages fell back."""
        return 0 < self.agents_failed < self.agents_total

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["partial_success"] = self.partial_success
        return data


@dataclass
class AggregateResult:
    """Output of one pipeline run."""

    idea: str
    summary: SummaryResult
    target_user: TargetUserResult
    market_analysis: MarketAnalysisResult
    strategy: StrategyResult
    scoring: ScoringResult
    metadata: AnalysisMetadata = field(default_factory=AnalysisMetadata)
    analyzed_at: datetime = field(default_factory=utc_now)

    @property
    def score(self) -> ScoreSummary:
        """Backward compatible score block (``score.overall``)."""
        return self.scoring.score

    def to_dict(self) -> dict[str, Any]:
        """Flat union of the stage results plus run fields."""
        data: dict[str, Any] = {}
        for result in (self.summary, self.target_user, self.market_analysis, self.strategy, self.scoring):
            data.update(result.to_dict())
        data["analyzed_at"] = self.analyzed_at.isoformat()
        data["idea"] = self.idea
        data["metadata"] = self.metadata.to_dict()
        return data
