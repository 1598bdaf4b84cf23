"""
Market analysis stage.

- agent.py: MarketAnalysisAgent and its retrieval configuration
- industry.py: keyword-based industry classification
- grounding.py: concurrent Google Search grounded lookups
- tools.py: static market data tables and function tools
- prompts.py: per-mode system prompts
"""

from ia.agents.market_analysis.agent import (
    MarketAnalysisAgent,
    MarketAnalysisConfig,
    MarketToolMode,
)
from ia.agents.market_analysis.industry import DEFAULT_INDUSTRY, extract_industry

__all__ = [
    "DEFAULT_INDUSTRY",
    "MarketAnalysisAgent",
    "MarketAnalysisConfig",
    "MarketToolMode",
    "extract_industry",
]
