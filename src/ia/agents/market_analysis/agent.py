"""
Market Analysis Agent (Stage 3).

Analyzes market size, trends, competitors and differentiation. Three
retrieval modes, tried in order and degrading on error:

- grounding: live Google Search lookups appended to the prompt
- static: a bounded tool-calling loop over the static data tables
- none: a single direct model call
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

import orjson

from ia.agents.base import StageAgent
from ia.agents.market_analysis.grounding import GroundingDataGatherer
from ia.agents.market_analysis.industry import extract_industry
from ia.agents.market_analysis.prompts import (
    CLOSING_INSTRUCTION,
    DIRECT_SYSTEM_PROMPT,
    GROUNDING_SYSTEM_PROMPT,
    STATIC_TOOLS_SYSTEM_PROMPT,
    append_search_context,
)
from ia.agents.market_analysis.tools import TOOL_DEFINITIONS, execute_tool
from ia.config import Settings
from ia.exceptions import AgentError, EmptyResponseError
from ia.llm.base import ChatModel, GroundedChatModel, ToolChatModel
from ia.results import MarketAnalysisResult
from ia.types import StageContext, StageName


class MarketToolMode(str, Enum):
    """Where market data comes from."""

    GROUNDING = "grounding"
    STATIC = "static"
    NONE = "none"


@dataclass(frozen=True)
class MarketAnalysisConfig:
    """Retrieval settings for the market analysis stage.

    Attributes:
        mode: Preferred retrieval mode.
        lookup_timeout_seconds: Bound for each grounding lookup.
        max_tool_rounds: Maximum model turns in the static tool loop.
    """

    mode: MarketToolMode = MarketToolMode.GROUNDING
    lookup_timeout_seconds: float = 30.0
    max_tool_rounds: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> MarketAnalysisConfig:
        return cls(
            mode=MarketToolMode(settings.MARKET_TOOL_MODE),
            lookup_timeout_seconds=settings.GROUNDING_LOOKUP_TIMEOUT_SECONDS,
            max_tool_rounds=settings.MAX_TOOL_ROUNDS,
        )


class MarketAnalysisAgent(StageAgent):
    """Analyzes the market for the idea."""

    stage = StageName.MARKET_ANALYSIS
    depends_on = (StageName.SUMMARY, StageName.TARGET_USER)
    system_prompt = DIRECT_SYSTEM_PROMPT
    closing_instruction = CLOSING_INSTRUCTION

    def __init__(self, llm: ChatModel, config: MarketAnalysisConfig | None = None) -> None:
        """Initialize the market analysis agent.

        Args:
            llm: Chat model; grounding and tool modes need the matching
                capability and are skipped without it.
            config: Retrieval settings.
        """
        super().__init__(llm)
        self.config = config or MarketAnalysisConfig()

    def fallback(self) -> MarketAnalysisResult:
        return MarketAnalysisResult.fallback()

    def decode(self, payload: Mapping[str, Any]) -> MarketAnalysisResult:
        return MarketAnalysisResult.from_payload(payload)

    def _can_ground(self) -> bool:
        return isinstance(self.llm, GroundedChatModel) and getattr(
            self.llm, "supports_grounding", True
        )

    def _can_use_tools(self) -> bool:
        return isinstance(self.llm, ToolChatModel)

    async def _analyze(self, context: StageContext) -> MarketAnalysisResult:
        mode = self.config.mode
        # An empty reply ends the stage with the fallback. Errors and
        # unparseable replies move on to the next mode.

        if mode is MarketToolMode.GROUNDING:
            if self._can_ground():
                try:
                    return await self._analyze_with_grounding(context)
                except EmptyResponseError:
                    raise
                except Exception as e:
                    self.log_warning(
                        "Grounded market analysis failed, falling back to static tools",
                        error=str(e),
                        error_type=type(e).__name__,
                    )
            mode = MarketToolMode.STATIC

        if mode is MarketToolMode.STATIC:
            if self._can_use_tools():
                try:
                    return await self._analyze_with_static_tools(context)
                except EmptyResponseError:
                    raise
                except Exception as e:
                    self.log_warning(
                        "Static tool analysis failed, falling back to direct call",
                        error=str(e),
                        error_type=type(e).__name__,
                    )

        return await self._analyze_direct(context)

    async def _analyze_with_grounding(self, context: StageContext) -> MarketAnalysisResult:
        industry = extract_industry(context.idea, context.follow_up_answers)
        self.log_info("Using search grounding", industry=industry)

        gatherer = GroundingDataGatherer(self.llm, timeout_seconds=self.config.lookup_timeout_seconds)
        search_context = await gatherer.gather(industry)

        user_prompt = append_search_context(self.build_user_prompt(context), search_context)
        response = await self.llm.chat(GROUNDING_SYSTEM_PROMPT, user_prompt)
        return self.decode(self._parse_nonempty(response))

    async def _analyze_with_static_tools(self, context: StageContext) -> MarketAnalysisResult:
        self.log_info("Using static market tools")

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": STATIC_TOOLS_SYSTEM_PROMPT},
            {"role": "user", "content": self.build_user_prompt(context)},
        ]

        for round_number in range(1, self.config.max_tool_rounds + 1):
            response = await self.llm.chat_with_tools(messages, TOOL_DEFINITIONS)
            if not response.tool_calls:
                self.log_info("Tool loop finished", rounds=round_number)
                return self.decode(self._parse_nonempty(response.content))

            messages.append(
                {
                    "role": "assistant",
                    "content": response.content or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": orjson.dumps(call.arguments).decode(),
                            },
                        }
                        for call in response.tool_calls
                    ],
                }
            )
            for call in response.tool_calls:
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "name": call.name,
                        "content": execute_tool(call.name, call.arguments),
                    }
                )

        raise AgentError(
            "Tool loop did not produce an answer",
            context={"agent_name": self.name, "max_tool_rounds": self.config.max_tool_rounds},
        )

    async def _analyze_direct(self, context: StageContext) -> MarketAnalysisResult:
        response = await self.llm.chat(DIRECT_SYSTEM_PROMPT, self.build_user_prompt(context))
        return self.decode(self._parse_nonempty(response))

    def _parse_nonempty(self, content: str | None) -> dict[str, Any]:
        if not content or not content.strip():
            raise EmptyResponseError(
                "Model returned an empty response",
                context={"agent_name": self.name},
            )
        return self.parse_response(content)
