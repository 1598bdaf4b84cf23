"""
Live market lookups through Google Search grounding.

Three lookups (market size, competitors, trends) run concurrently. Each is
bounded by its own timeout and a failing lookup yields None without
affecting the others.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from ia.llm.base import GroundedChatModel, LLMResponse
from ia.logging import get_logger

logger = get_logger(__name__)

SEARCH_SYSTEM_PROMPT = """당신은 시장 조사 리서처입니다.
웹 검색을 통해 최신 정보를 찾아 간결하게 정리합니다."""

MAX_SOURCES = 3


@dataclass(frozen=True)
class GroundingLookup:
    key: str
    label: str
    query: str
    refinement: str

    @property
    def search_text(self) -> str:
        return f"{self.query} {self.refinement}"


def build_lookups(industry: str) -> list[GroundingLookup]:
    """The three lookups for an industry, in prompt order."""
    return [
        GroundingLookup(
            key="market_size",
            label="시장 데이터",
            query=f"한국 {industry} 시장 규모",
            refinement="시장 규모 성장률 통계 2024",
        ),
        GroundingLookup(
            key="competitors",
            label="경쟁사 정보",
            query=f"한국 {industry} 주요 기업 스타트업",
            refinement="주요 기업 시장 점유율 경쟁사",
        ),
        GroundingLookup(
            key="trends",
            label="트렌드",
            query=f"{industry} 트렌드 전망",
            refinement="트렌드 동향 전망 2024 2025",
        ),
    ]


def build_search_prompt(query: str) -> str:
    return f"""다음 주제에 대해 웹 검색을 통해 최신 정보를 찾아주세요:

{query}

요청사항:
- 가능한 최신 데이터 (2024년 이후) 우선
- 구체적인 수치와 통계 포함
- 신뢰할 수 있는 출처 (정부 기관, 리서치 기관, 언론사) 우선
- 한국 시장 기준으로 답변
- 간결하고 핵심적인 정보만 제공

답변 형식:
- 주요 정보를 bullet point로 정리
- 출처가 있다면 명시"""


def format_grounded_response(response: LLMResponse, label: str) -> str | None:
    """Render a grounded answer with its top sources, or None if empty."""
    content = (response.content or "").strip()
    if not content:
        return None

    text = f"[{label} - 실시간 검색 결과]\n\n{content}"

    sources = response.metadata.get("grounding_chunks") or []
    if sources:
        text += "\n\n[출처]\n" + "\n".join(
            f"- {source.get('title') or source.get('url')}" for source in sources[:MAX_SOURCES]
        )

    queries = response.metadata.get("web_search_queries") or []
    if queries:
        text += f"\n[검색 쿼리: {queries[0]}]"

    return text


class GroundingDataGatherer:
    """Gathers live market context for one industry."""

    def __init__(self, llm: GroundedChatModel, timeout_seconds: float = 30.0) -> None:
        """Initialize the gatherer.

        Args:
            llm: Model able to answer with search grounding.
            timeout_seconds: Bound for each individual lookup.
        """
        self.llm = llm
        self.timeout_seconds = timeout_seconds

    async def gather(self, industry: str) -> dict[str, str | None]:
        """Run all lookups concurrently.

        Returns:
            Mapping of lookup key (market_size, competitors, trends) to the
            formatted result, or None for lookups that failed or were empty.
        """
        lookups = build_lookups(industry)
        logger.info("Gathering grounded market data", industry=industry)

        results = await asyncio.gather(*(self._lookup(lookup) for lookup in lookups))
        gathered = {lookup.key: result for lookup, result in zip(lookups, results)}

        found = [key for key, value in gathered.items() if value]
        logger.info(
            "Grounded market data gathered",
            industry=industry,
            gathered=found,
            gathered_count=f"{len(found)}/{len(lookups)}",
        )
        return gathered

    async def _lookup(self, lookup: GroundingLookup) -> str | None:
        try:
            response = await asyncio.wait_for(
                self.llm.grounded_chat(SEARCH_SYSTEM_PROMPT, build_search_prompt(lookup.search_text)),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Grounded lookup timed out", lookup=lookup.key)
            return None
        except Exception as e:
            logger.warning(
                "Grounded lookup failed",
                lookup=lookup.key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        return format_grounded_response(response, lookup.label)
