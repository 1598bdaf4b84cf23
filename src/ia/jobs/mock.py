"""Placeholder analysis used when no language model is configured."""

from __future__ import annotations

from ia.results import (
    AggregateResult,
    AnalysisMetadata,
    DimensionScore,
    MarketAnalysisResult,
    MarketOverview,
    Persona,
    Recommendations,
    RequiredExpertise,
    ScoringResult,
    StrategyResult,
    SummaryResult,
    TargetUserResult,
    TargetUsers,
    dimension_extras,
    normalize_actions,
)
from ia.rubric import DEFAULT_RUBRIC

# Sums to 70.
MOCK_DIMENSION_SCORES = {
    "market": 21,
    "problem": 18,
    "moat": 14,
    "feasibility": 11,
    "business": 6,
}


def mock_analysis_result(idea: str) -> AggregateResult:
    """Schema-complete placeholder result with ``score.overall == 70``.

    The content is fixed and does not depend on the idea text.
    """
    scoring = ScoringResult.from_dimensions(
        {
            key: DimensionScore(score=score, **dimension_extras(key, {}))
            for key, score in MOCK_DIMENSION_SCORES.items()
        },
        DEFAULT_RUBRIC,
        weak_areas=["시장 분석"],
        strong_areas=["아이디어 독창성"],
        improvement_tips=["타겟 시장의 규모를 구체화하세요"],
        required_expertise=RequiredExpertise(
            roles=["Developer", "Designer"],
            skills=["React", "UI/UX"],
            description="풀스택 개발자와 UI/UX 디자이너 필요",
        ),
    )

    return AggregateResult(
        idea=idea,
        summary=SummaryResult(
            summary="AI 분석이 완료되었습니다.",
            core_value="핵심 가치 분석 필요",
            problem_statement="해결하려는 문제 정의 필요",
        ),
        target_user=TargetUserResult(
            target_users=TargetUsers(
                primary="20-30대 초기 창업자 및 예비 창업자",
                characteristics=[
                    "IT/스타트업에 관심 있는 대학생",
                    "사이드프로젝트를 찾는 개발자/디자이너",
                ],
                personas=[
                    Persona(
                        name="열정적 대학생 창업가",
                        age_range="20-25세",
                        description="IT 관련 학과를 전공하며 창업에 관심이 많은 대학생.",
                    )
                ],
            )
        ),
        market_analysis=MarketAnalysisResult(
            market_analysis=MarketOverview(
                potential="높음",
                market_size="분석 중",
                trends="AI 기반 서비스 성장세",
                competitors=[],
                differentiation="커뮤니티 기반 신뢰 플랫폼",
            )
        ),
        strategy=StrategyResult(
            recommendations=Recommendations(
                mvp_features=["핵심 기능 1", "핵심 기능 2", "핵심 기능 3"],
                challenges=["초기 사용자 확보 → 타겟 마케팅 권장"],
                next_steps=["베타 테스트 진행", "피드백 기반 개선"],
            ),
            actions=normalize_actions(
                [
                    {"title": "타깃 정의", "description": "명확한 페르소나 설정"},
                    {"title": "경쟁 분석", "description": "유사 서비스 5개 이상 조사"},
                ]
            ),
        ),
        scoring=scoring,
        metadata=AnalysisMetadata(
            agents_total=0,
            agents_completed=0,
            agents_failed=0,
            confidence_level=scoring.confidence_level,
            agent_sequence=[],
        ),
    )
