"""
Tests for the summary, target user and strategy agents.
"""

from __future__ import annotations

import asyncio

import pytest
from conftest import (
    IDEA,
    MARKET_PAYLOAD,
    STRATEGY_PAYLOAD,
    SUMMARY_PAYLOAD,
    TARGET_USER_PAYLOAD,
    FakeChatModel,
    as_json,
)

from ia.agents import StrategyAgent, SummaryAgent, TargetUserAgent, fail_soft
from ia.agents.base import render_base_context
from ia.results import (
    FALLBACK_ACTIONS,
    MarketAnalysisResult,
    StrategyResult,
    SummaryResult,
    TargetUserResult,
)
from ia.types import AnalysisRequest, StageContext, StageName


def make_context(idea: str = IDEA, **answers: str) -> StageContext:
    return StageContext(request=AnalysisRequest(idea=idea, follow_up_answers=answers))


def full_context() -> StageContext:
    context = make_context(target="직장인")
    context = context.with_result(StageName.SUMMARY, SummaryResult.from_payload(SUMMARY_PAYLOAD))
    context = context.with_result(
        StageName.TARGET_USER, TargetUserResult.from_payload(TARGET_USER_PAYLOAD)
    )
    return context.with_result(
        StageName.MARKET_ANALYSIS, MarketAnalysisResult.from_payload(MARKET_PAYLOAD)
    )


class TestBaseContext:
    """Test prompt rendering of the idea and follow-up answers."""

    def test_idea_only(self) -> None:
        assert render_base_context(IDEA, {}) == f"## 아이디어\n{IDEA}"

    def test_known_keys_are_translated(self) -> None:
        prompt = render_base_context(IDEA, {"target": "대학생", "problem": "비"})
        assert "## 추가 정보" in prompt
        assert "- 타겟 사용자: 대학생" in prompt
        assert "- 해결하려는 문제: 비" in prompt

    def test_unknown_keys_are_humanized(self) -> None:
        prompt = render_base_context(IDEA, {"revenue_plan": "구독"})
        assert "- Revenue plan: 구독" in prompt

    def test_blank_answers_are_skipped(self) -> None:
        prompt = render_base_context(IDEA, {"target": "  ", "differentiator": ""})
        assert "추가 정보" not in prompt


class TestFailSoft:
    """Test the fallback combinator."""

    @pytest.mark.asyncio
    async def test_success_passes_result_through(self) -> None:
        async def run(context: StageContext) -> SummaryResult:
            return SummaryResult("a", "b", "c")

        outcome = await fail_soft(run, SummaryResult.fallback)(make_context())

        assert outcome.fell_back is False
        assert outcome.result.summary == "a"
        assert outcome.error is None

    @pytest.mark.asyncio
    async def test_exception_yields_fallback(self) -> None:
        async def run(context: StageContext) -> SummaryResult:
            raise RuntimeError("boom")

        outcome = await fail_soft(run, SummaryResult.fallback)(make_context())

        assert outcome.fell_back is True
        assert outcome.result == SummaryResult.fallback()
        assert outcome.error == "RuntimeError: boom"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        async def run(context: StageContext) -> SummaryResult:
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await fail_soft(run, SummaryResult.fallback)(make_context())


class TestSummaryAgent:
    """Test stage 1."""

    @pytest.mark.asyncio
    async def test_decodes_response(self) -> None:
        llm = FakeChatModel(f"```json\n{as_json(SUMMARY_PAYLOAD)}\n```")
        outcome = await SummaryAgent(llm).analyze(make_context(target="직장인"))

        assert outcome.fell_back is False
        assert outcome.result.summary == SUMMARY_PAYLOAD["summary"]
        system_prompt, user_prompt = llm.calls[0]
        assert IDEA in user_prompt
        assert "타겟 사용자: 직장인" in user_prompt
        assert user_prompt.endswith("위 아이디어를 요약해주세요.")
        assert system_prompt == SummaryAgent.system_prompt

    @pytest.mark.asyncio
    async def test_missing_fields_use_defaults(self) -> None:
        llm = FakeChatModel(as_json({"summary": "짧은 요약"}))
        outcome = await SummaryAgent(llm).analyze(make_context())

        assert outcome.fell_back is False
        assert outcome.result.summary == "짧은 요약"
        assert outcome.result.core_value == SummaryResult.fallback().core_value

    @pytest.mark.asyncio
    async def test_unparseable_response_falls_back(self) -> None:
        outcome = await SummaryAgent(FakeChatModel("요약할 수 없습니다")).analyze(make_context())

        assert outcome.fell_back is True
        assert outcome.result == SummaryResult.fallback()
        assert "ResponseParseError" in (outcome.error or "")

    @pytest.mark.asyncio
    async def test_model_error_falls_back(self) -> None:
        llm = FakeChatModel(asyncio.TimeoutError())
        outcome = await SummaryAgent(llm).analyze(make_context())

        assert outcome.fell_back is True
        assert outcome.result.summary == "아이디어 분석 요약 생성 중 오류 발생"


class TestTargetUserAgent:
    """Test stage 2."""

    @pytest.mark.asyncio
    async def test_prompt_includes_summary_excerpt(self) -> None:
        llm = FakeChatModel(as_json(TARGET_USER_PAYLOAD))
        context = make_context().with_result(
            StageName.SUMMARY, SummaryResult.from_payload(SUMMARY_PAYLOAD)
        )
        outcome = await TargetUserAgent(llm).analyze(context)

        user_prompt = llm.calls[0][1]
        assert "## 아이디어 요약" in user_prompt
        assert SUMMARY_PAYLOAD["core_value"] in user_prompt
        assert user_prompt.endswith("위 아이디어의 타겟 사용자를 분석해주세요.")
        assert outcome.result.target_users.personas[0].name == "김지은"
        assert outcome.result.pain_points == TARGET_USER_PAYLOAD["pain_points"]

    @pytest.mark.asyncio
    async def test_runs_without_summary(self) -> None:
        llm = FakeChatModel(as_json(TARGET_USER_PAYLOAD))
        await TargetUserAgent(llm).analyze(make_context())

        assert "## 아이디어 요약" not in llm.calls[0][1]

    @pytest.mark.asyncio
    async def test_alternate_keys_and_bad_personas(self) -> None:
        payload = {
            "target_users": {"primary": "대학생", "personas": ["문자열", {"name": "민수"}]},
            "user_pain_points": ["우산 분실"],
            "user_goals": ["가벼운 외출"],
        }
        outcome = await TargetUserAgent(FakeChatModel(as_json(payload))).analyze(make_context())

        result = outcome.result
        assert [p.name for p in result.target_users.personas] == ["민수"]
        assert result.target_users.personas[0].age_range == "미정"
        assert result.pain_points == ["우산 분실"]
        assert result.goals == ["가벼운 외출"]

    @pytest.mark.asyncio
    async def test_fallback(self) -> None:
        outcome = await TargetUserAgent(FakeChatModel("")).analyze(make_context())

        assert outcome.fell_back is True
        assert outcome.result.target_users.primary == "타겟 사용자 분석 필요"
        assert outcome.result.pain_points == []


class TestStrategyAgent:
    """Test stage 4."""

    @pytest.mark.asyncio
    async def test_prompt_includes_upstream_excerpts(self) -> None:
        llm = FakeChatModel(as_json(STRATEGY_PAYLOAD))
        outcome = await StrategyAgent(llm).analyze(full_context())

        user_prompt = llm.calls[0][1]
        for heading in ("## 아이디어 요약", "## 타겟 사용자 분석", "## 시장 분석"):
            assert heading in user_prompt
        assert "주요 경쟁사: 우산런, 레인박스" in user_prompt
        assert user_prompt.index("## 아이디어 요약") < user_prompt.index("## 시장 분석")
        assert [a.title for a in outcome.result.actions] == [
            "파일럿 역 선정",
            "대여함 제작",
            "요금제 실험",
        ]

    @pytest.mark.asyncio
    async def test_actions_padded_to_three(self) -> None:
        payload = dict(STRATEGY_PAYLOAD, actions=[{"title": "하나", "description": "첫 번째"}, "잘못된 항목"])
        outcome = await StrategyAgent(FakeChatModel(as_json(payload))).analyze(full_context())

        actions = outcome.result.actions
        assert len(actions) == 3
        assert actions[0].title == "하나"
        assert actions[1].title == FALLBACK_ACTIONS[1].title
        assert actions[2].title == FALLBACK_ACTIONS[2].title

    @pytest.mark.asyncio
    async def test_actions_truncated_to_three(self) -> None:
        extra = [{"title": f"액션 {i}", "description": ""} for i in range(5)]
        payload = dict(STRATEGY_PAYLOAD, actions=extra)
        outcome = await StrategyAgent(FakeChatModel(as_json(payload))).analyze(full_context())

        assert [a.title for a in outcome.result.actions] == ["액션 0", "액션 1", "액션 2"]

    @pytest.mark.asyncio
    async def test_fallback_has_three_actions(self) -> None:
        outcome = await StrategyAgent(FakeChatModel(RuntimeError("down"))).analyze(full_context())

        assert outcome.fell_back is True
        assert outcome.result == StrategyResult.fallback()
        assert len(outcome.result.actions) == 3
