"""
Coordinator package.

- pipeline.py: AnalysisPipeline, the sequential 5-stage orchestrator
- progress.py: progress publishers and the append-only event log
"""

from ia.coordinator.pipeline import AnalysisPipeline, PipelineConfig, build_default_pipeline
from ia.coordinator.progress import (
    BestEffortPublisher,
    EventLogPublisher,
    ProgressEvent,
    ProgressPublisher,
    channel_name,
)

__all__ = [
    "AnalysisPipeline",
    "BestEffortPublisher",
    "EventLogPublisher",
    "PipelineConfig",
    "ProgressEvent",
    "ProgressPublisher",
    "build_default_pipeline",
    "channel_name",
]
