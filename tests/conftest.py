"""
Pytest configuration and fixtures for idea analysis tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Generator
from unittest.mock import patch

import orjson
import pytest

from ia.agents import (
    MarketAnalysisAgent,
    ScoringAgent,
    StageAgent,
    StrategyAgent,
    SummaryAgent,
    TargetUserAgent,
)
from ia.config import Settings, clear_settings_cache
from ia.llm.base import LLMResponse, ToolCall
from ia.store import SQLiteAnalysisStore
from ia.types import TOTAL_STAGES, StageName

IDEA = "우산 공유 앱"


class FakeChatModel:
    """Scripted chat model.

    Each call consumes the next scripted reply; the last reply repeats once
    the script runs out. A reply that is an exception instance is raised.
    """

    def __init__(self, *replies: str | Exception) -> None:
        self.replies = list(replies) or [""]
        self.calls: list[tuple[str, str]] = []

    def _next(self) -> Any:
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def chat(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self._next()


class FakeToolChatModel(FakeChatModel):
    """Chat model that also scripts tool-calling turns."""

    def __init__(self, *replies: str | Exception, tool_turns: list[LLMResponse | Exception]) -> None:
        super().__init__(*replies)
        self.tool_turns = list(tool_turns)
        self.tool_calls: list[list[dict[str, Any]]] = []

    async def chat_with_tools(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> LLMResponse:
        self.tool_calls.append(list(messages))
        turn = self.tool_turns.pop(0) if len(self.tool_turns) > 1 else self.tool_turns[0]
        if isinstance(turn, Exception):
            raise turn
        return turn


class FakeGroundedChatModel(FakeToolChatModel):
    """Chat model with tools and search grounding."""

    supports_grounding = True

    def __init__(
        self,
        *replies: str | Exception,
        grounded: LLMResponse | Exception,
        tool_turns: list[LLMResponse | Exception] | None = None,
    ) -> None:
        super().__init__(*replies, tool_turns=tool_turns or [text_response("")])
        self.grounded = grounded
        self.grounded_calls: list[str] = []

    async def grounded_chat(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        self.grounded_calls.append(user_prompt)
        if isinstance(self.grounded, Exception):
            raise self.grounded
        return self.grounded


class RecordingPublisher:
    """Progress publisher that records every event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    async def stage_progress(
        self,
        analysis_id: str,
        current_stage: int,
        total_stages: int = TOTAL_STAGES,
        stage_name: str | None = None,
    ) -> None:
        self.events.append(("stage_progress", (analysis_id, current_stage, total_stages, stage_name)))

    async def analysis_completed(self, analysis_id: str) -> None:
        self.events.append(("analysis_completed", analysis_id))

    @property
    def stages(self) -> list[int]:
        return [payload[1] for kind, payload in self.events if kind == "stage_progress"]


def as_json(data: dict[str, Any]) -> str:
    return orjson.dumps(data).decode()


def text_response(content: str, tool_calls: list[ToolCall] | None = None, **metadata: Any) -> LLMResponse:
    return LLMResponse(
        content=content,
        model="fake-model",
        provider="fake",
        tool_calls=tool_calls,
        metadata=metadata,
    )


SUMMARY_PAYLOAD = {
    "summary": "비 오는 날 우산을 빌려 쓰는 공유 서비스",
    "core_value": "갑작스러운 비에도 젖지 않는 이동",
    "problem_statement": "외출 중 갑자기 비가 오면 우산을 구하기 어렵다",
}

TARGET_USER_PAYLOAD = {
    "target_users": {
        "primary": "대중교통으로 출퇴근하는 20-30대 직장인",
        "characteristics": ["모바일 결제에 익숙", "짐을 줄이고 싶어함"],
        "personas": [
            {"name": "김지은", "age_range": "28세", "description": "지하철 출퇴근 직장인"},
        ],
    },
    "pain_points": ["편의점 우산 구매 비용", "집에 쌓이는 일회용 우산"],
    "goals": ["비 오는 날에도 가볍게 외출"],
}

MARKET_PAYLOAD = {
    "market_analysis": {
        "potential": "높음",
        "market_size": "공유경제 3조원",
        "trends": "구독형 공유 서비스 확산",
        "competitors": ["우산런", {"name": "레인박스"}],
        "differentiation": "역사 내 무인 대여함",
    },
    "opportunities": ["지자체 협력"],
    "risks": ["우산 분실"],
}

STRATEGY_PAYLOAD = {
    "recommendations": {
        "mvp_features": ["QR 대여", "반납 위치 지도"],
        "challenges": ["초기 대여함 설치 비용"],
        "next_steps": ["역사 한 곳에서 파일럿"],
    },
    "actions": [
        {"title": "파일럿 역 선정", "description": "유동 인구가 많은 역을 고르세요"},
        {"title": "대여함 제작", "description": "무인 대여함 시제품을 만드세요"},
        {"title": "요금제 실험", "description": "건당과 구독 요금을 비교하세요"},
    ],
}

SCORING_PAYLOAD = {
    "dimension_scores": {
        "market": {"score": 24, "feedback": "수요가 분명함"},
        "problem": {"score": 20},
        "moat": {"score": 14},
        "feasibility": {"score": 12},
        "business": {"score": 8, "business_type": "B2C", "revenue_model": "건당 대여료"},
    },
    "score": {
        "weak_areas": ["차별화 전략"],
        "strong_areas": ["명확한 문제 정의"],
        "improvement_tips": ["반납률을 측정하세요"],
    },
    "confidence_level": "High",
}


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing.

    Sets up a fake OpenAI key and temp storage paths.
    """
    env_vars = {
        "OPENAI_API_KEY": "sk-test-fake-openai-key-1234567890",
        "GEMINI_API_KEY": "",
        "DATABASE_PATH": str(temp_dir / "data" / "analyses.db"),
        "EVENT_LOG_DIR": str(temp_dir / "data" / "events"),
        "MOCK_STAGE_DELAY_SECONDS": "0",
        "LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(temp_dir: Path) -> Settings:
    """Settings with no language model configured and no simulated delay."""
    return Settings(
        _env_file=None,
        OPENAI_API_KEY=None,
        GEMINI_API_KEY=None,
        MOCK_STAGE_DELAY_SECONDS=0,
        DATABASE_PATH=temp_dir / "analyses.db",
        EVENT_LOG_DIR=temp_dir / "events",
    )


@pytest.fixture
def live_settings(temp_dir: Path) -> Settings:
    """Settings that select the real pipeline."""
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="sk-test-openai",
        GEMINI_API_KEY=None,
        MOCK_STAGE_DELAY_SECONDS=0,
        DATABASE_PATH=temp_dir / "analyses.db",
        EVENT_LOG_DIR=temp_dir / "events",
    )


@pytest.fixture
def store(temp_dir: Path) -> Generator[SQLiteAnalysisStore, None, None]:
    """Initialized SQLite analysis store."""
    analysis_store = SQLiteAnalysisStore(temp_dir / "analyses.db")
    analysis_store.init()
    yield analysis_store
    analysis_store.close()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


AGENT_TYPES = {
    StageName.SUMMARY: (SummaryAgent, SUMMARY_PAYLOAD),
    StageName.TARGET_USER: (TargetUserAgent, TARGET_USER_PAYLOAD),
    StageName.MARKET_ANALYSIS: (MarketAnalysisAgent, MARKET_PAYLOAD),
    StageName.STRATEGY: (StrategyAgent, STRATEGY_PAYLOAD),
    StageName.SCORING: (ScoringAgent, SCORING_PAYLOAD),
}


def make_agents(failing: tuple[StageName, ...] = ()) -> list[StageAgent]:
    """One agent per stage; agents in ``failing`` get an erroring model."""
    agents: list[StageAgent] = []
    for stage, (agent_type, payload) in AGENT_TYPES.items():
        reply = RuntimeError(f"{stage.value} down") if stage in failing else as_json(payload)
        agents.append(agent_type(FakeChatModel(reply)))
    return agents
