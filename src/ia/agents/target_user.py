"""
Target User Agent (Stage 2).

Identifies the primary target, personas, pain points and goals. Reads the
summary stage's result when present.
"""

from __future__ import annotations

from typing import Any, Mapping

from ia.agents.base import StageAgent
from ia.results import TargetUserResult
from ia.types import StageName

TARGET_USER_SYSTEM_PROMPT = """당신은 사용자 리서치 및 페르소나 개발 전문가입니다.
스타트업 아이디어를 분석하여 타겟 사용자를 깊이 있게 분석합니다.

반드시 다음 JSON 형식으로만 응답하세요:
```json
{
  "target_users": {
    "primary": "주요 타겟 사용자 정의 (예: 20-30대 직장인)",
    "characteristics": ["사용자 특성 1", "사용자 특성 2", "사용자 특성 3"],
    "personas": [
      {
        "name": "페르소나 이름 (예: 열정적 대학생 창업가)",
        "age_range": "나이대 (예: 20-25세)",
        "description": "페르소나 상세 설명 (100자 이내)"
      }
    ]
  },
  "pain_points": ["사용자가 겪는 문제점 1", "사용자가 겪는 문제점 2", "사용자가 겪는 문제점 3"],
  "goals": ["사용자의 목표 1", "사용자의 목표 2", "사용자의 목표 3"]
}
```

규칙:
- 페르소나는 반드시 2개 이상 작성
- 구체적이고 실제적인 사용자 프로필 작성
- 사용자의 실제 고민과 목표를 반영
- JSON 외의 다른 텍스트는 출력하지 않음
"""


class TargetUserAgent(StageAgent):
    """Analyzes who the idea is for."""

    stage = StageName.TARGET_USER
    depends_on = (StageName.SUMMARY,)
    system_prompt = TARGET_USER_SYSTEM_PROMPT
    closing_instruction = "위 아이디어의 타겟 사용자를 분석해주세요."

    def fallback(self) -> TargetUserResult:
        return TargetUserResult.fallback()

    def decode(self, payload: Mapping[str, Any]) -> TargetUserResult:
        return TargetUserResult.from_payload(payload)
