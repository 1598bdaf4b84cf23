"""
Idea analysis pipeline.

Turns a free-text business idea into a structured, scored venture assessment
by running five dependent language-model stages.
"""

__version__ = "0.1.0"
