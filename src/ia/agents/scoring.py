"""
Scoring Agent (Stage 5).

Scores the idea on the rubric dimensions and derives the total, grade,
radar chart data and weak areas deterministically. The model only proposes
per-dimension scores and commentary; every number is clamped and every
derived field is recomputed from the clamped scores.
"""

from __future__ import annotations

from typing import Any, Mapping

from ia.agents.base import StageAgent
from ia.llm.base import ChatModel
from ia.results import ScoringResult
from ia.rubric import DEFAULT_RUBRIC, ScoringRubric
from ia.types import StageName

DIMENSION_DESCRIPTIONS = {
    "market": "시장성: 시장 규모(TAM/SAM/SOM), 성장성, 수요",
    "problem": "문제 정의: 타겟의 명확성, 문제의 심각도",
    "moat": "차별화: 경쟁사 대비 우위, 진입 장벽",
    "feasibility": "실현 가능성: 기술 구체화, MVP 범위",
    "business": "비즈니스 모델: 수익 구조, 지속 가능성",
}


def build_scoring_system_prompt(rubric: ScoringRubric) -> str:
    """Render the scoring system prompt for a rubric."""
    dimension_lines = "\n".join(
        f"- {dim.key} (0-{dim.max_score}점): {DIMENSION_DESCRIPTIONS.get(dim.key, dim.weak_area_label)}"
        for dim in rubric.dimensions
    )
    weak_areas_list = ", ".join(rubric.standard_weak_areas)

    return f"""당신은 스타트업 아이디어 평가 전문가입니다.
분석 결과를 종합하여 객관적인 점수와 개선점을 제시합니다.

평가 기준 (합계 {sum(d.max_score for d in rubric.dimensions)}점):
{dimension_lines}

반드시 다음 JSON 형식으로만 응답하세요:
```json
{{
  "dimension_scores": {{
    "market": {{
      "score": 20,
      "breakdown": {{"size": 8, "growth": 7, "demand": 5}},
      "feedback": "시장성 평가 (50자 이내)",
      "market_size": {{
        "tam": {{"revenue": "전체 시장 규모", "users": "전체 사용자 수"}},
        "sam": {{"revenue": "유효 시장 규모", "users": "유효 사용자 수"}},
        "som": {{"revenue": "수익 시장 규모", "users": "목표 사용자 수"}}
      }}
    }},
    "problem": {{"score": 18, "breakdown": {{}}, "feedback": "문제 정의 평가"}},
    "moat": {{
      "score": 12,
      "breakdown": {{}},
      "feedback": "차별화 평가",
      "competitors": {{"direct": ["직접 경쟁사"], "indirect": ["간접 경쟁사"]}}
    }},
    "feasibility": {{"score": 10, "breakdown": {{}}, "feedback": "실현 가능성 평가"}},
    "business": {{
      "score": 6,
      "breakdown": {{}},
      "feedback": "비즈니스 모델 평가",
      "business_type": "B2C/B2B/B2B2C",
      "revenue_model": "수익 모델 설명"
    }}
  }},
  "score": {{
    "weak_areas": ["약점 영역1", "약점 영역2"],
    "strong_areas": ["강점 영역1", "강점 영역2"],
    "improvement_tips": ["개선 팁 1", "개선 팁 2", "개선 팁 3"]
  }},
  "required_expertise": {{
    "roles": ["필요한 역할1", "필요한 역할2"],
    "skills": ["스킬1", "스킬2", "스킬3"],
    "description": "필요한 전문성에 대한 설명 (50자 이내)"
  }},
  "confidence_level": "High/Medium/Low"
}}
```

규칙:
- 각 차원 점수는 0 이상 최대 점수 이하의 정수, 현실적으로 평가
- weak_areas는 반드시 다음 중에서만 선택: {weak_areas_list}
- weak_areas는 2-3개 선택
- strong_areas는 구체적인 강점 2-3개
- improvement_tips는 실행 가능한 구체적인 조언 3개
- roles는 Developer, Designer, Marketer, PM 등
- skills는 구체적인 기술/역량 5개 이내
- confidence_level은 분석 데이터 충분도에 따라 결정
- JSON 외의 다른 텍스트는 출력하지 않음
"""


class ScoringAgent(StageAgent):
    """Scores the idea against a rubric.

    Total, grade and radar data never come from the model: they are
    recomputed from the clamped dimension scores.
    """

    stage = StageName.SCORING
    depends_on = (
        StageName.SUMMARY,
        StageName.TARGET_USER,
        StageName.MARKET_ANALYSIS,
        StageName.STRATEGY,
    )
    closing_instruction = "위 분석 결과를 종합하여 아이디어 점수와 필요 전문성을 평가해주세요."

    def __init__(self, llm: ChatModel, rubric: ScoringRubric = DEFAULT_RUBRIC) -> None:
        """Initialize the scoring agent.

        Args:
            llm: Chat model this stage talks to.
            rubric: Dimensions, grade thresholds and weak-area labels.
        """
        super().__init__(llm)
        self.rubric = rubric
        self.system_prompt = build_scoring_system_prompt(rubric)

    def fallback(self) -> ScoringResult:
        return ScoringResult.fallback(self.rubric)

    def decode(self, payload: Mapping[str, Any]) -> ScoringResult:
        result = ScoringResult.from_payload(payload, self.rubric)
        self.log_info(
            "Idea scored",
            total_score=result.total_score,
            grade=result.grade,
            weak_areas=result.score.weak_areas,
        )
        return result
