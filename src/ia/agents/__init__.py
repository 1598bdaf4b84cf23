"""
Agent package.

This package implements the stage agents for the 5-stage pipeline:
- SummaryAgent: Stage 1 - One-line summary, core value, problem statement
- TargetUserAgent: Stage 2 - Primary target, personas, pain points, goals
- MarketAnalysisAgent: Stage 3 - Market size, trends, competitors
- StrategyAgent: Stage 4 - MVP features, challenges, three action items
- ScoringAgent: Stage 5 - Rubric scores, grade, weak areas
"""

from ia.agents.base import StageAgent, fail_soft
from ia.agents.market_analysis import MarketAnalysisAgent, MarketAnalysisConfig, MarketToolMode
from ia.agents.scoring import ScoringAgent
from ia.agents.strategy import StrategyAgent
from ia.agents.summary import SummaryAgent
from ia.agents.target_user import TargetUserAgent

__all__ = [
    "MarketAnalysisAgent",
    "MarketAnalysisConfig",
    "MarketToolMode",
    "ScoringAgent",
    "StageAgent",
    "StrategyAgent",
    "SummaryAgent",
    "TargetUserAgent",
    "fail_soft",
]
