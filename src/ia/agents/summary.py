"""
Summary Agent (Stage 1).

Extracts a one-line summary, the core value and the problem statement from
the raw idea. Runs on the cheapest configured model.
"""

from __future__ import annotations

from typing import Any, Mapping

from ia.agents.base import StageAgent
from ia.results import SummaryResult
from ia.types import StageName

SUMMARY_SYSTEM_PROMPT = """당신은 스타트업 아이디어 분석 전문가입니다.
사용자의 아이디어를 읽고 핵심 내용을 간결하게 요약합니다.

반드시 다음 JSON 형식으로만 응답하세요:
```json
{
  "summary": "아이디어의 한 줄 요약 (30자 이내)",
  "core_value": "이 아이디어가 제공하는 핵심 가치 (50자 이내)",
  "problem_statement": "해결하려는 문제 정의 (100자 이내)"
}
```

규칙:
- 간결하고 명확하게 작성
- 전문 용어보다 쉬운 표현 사용
- JSON 외의 다른 텍스트는 출력하지 않음
"""


class SummaryAgent(StageAgent):
    """Summarizes the idea."""

    stage = StageName.SUMMARY
    system_prompt = SUMMARY_SYSTEM_PROMPT
    closing_instruction = "위 아이디어를 요약해주세요."

    def fallback(self) -> SummaryResult:
        return SummaryResult.fallback()

    def decode(self, payload: Mapping[str, Any]) -> SummaryResult:
        return SummaryResult.from_payload(payload)
