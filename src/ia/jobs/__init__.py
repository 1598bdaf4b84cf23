"""
Jobs package.

- analysis_job.py: AnalysisJob and enqueue_analysis
- mock.py: placeholder analysis for runs without a language model
"""

from ia.jobs.analysis_job import AnalysisJob, enqueue_analysis
from ia.jobs.mock import mock_analysis_result

__all__ = ["AnalysisJob", "enqueue_analysis", "mock_analysis_result"]
