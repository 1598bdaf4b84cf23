"""
Strategy Agent (Stage 4).

Derives MVP features, challenges, next steps and exactly three action
items from everything analyzed so far.
"""

from __future__ import annotations

from typing import Any, Mapping

from ia.agents.base import StageAgent
from ia.results import StrategyResult
from ia.types import StageName

STRATEGY_SYSTEM_PROMPT = """당신은 스타트업 전략 및 제품 기획 전문가입니다.
아이디어 분석 결과를 바탕으로 실행 가능한 전략을 수립합니다.

반드시 다음 JSON 형식으로만 응답하세요:
```json
{
  "recommendations": {
    "mvp_features": ["MVP 필수 기능 1 (구체적으로 작성)", "MVP 필수 기능 2", "MVP 필수 기능 3"],
    "challenges": ["예상 도전과제 1 → 대응 방안", "예상 도전과제 2 → 대응 방안"],
    "next_steps": ["다음 단계 1", "다음 단계 2", "다음 단계 3"]
  },
  "actions": [
    {"title": "액션 제목 (10자 이내)", "description": "액션 상세 설명 (50자 이내)"},
    {"title": "두 번째 액션", "description": "설명"},
    {"title": "세 번째 액션", "description": "설명"}
  ]
}
```

규칙:
- MVP 기능은 반드시 3-5개, 우선순위가 높은 것부터 나열
- 도전과제는 구체적인 대응 방안과 함께 제시
- 다음 단계는 실행 가능한 구체적인 액션으로 작성
- actions는 반드시 3개, 첫 번째가 가장 중요한 액션
- JSON 외의 다른 텍스트는 출력하지 않음
"""


class StrategyAgent(StageAgent):
    """Turns the analysis into an execution strategy."""

    stage = StageName.STRATEGY
    depends_on = (StageName.SUMMARY, StageName.TARGET_USER, StageName.MARKET_ANALYSIS)
    system_prompt = STRATEGY_SYSTEM_PROMPT
    closing_instruction = "위 분석 결과를 바탕으로 실행 전략과 액션 아이템을 도출해주세요."

    def fallback(self) -> StrategyResult:
        return StrategyResult.fallback()

    def decode(self, payload: Mapping[str, Any]) -> StrategyResult:
        return StrategyResult.from_payload(payload)
