"""Prompt templates for planning, decisioning and page analysis"""
from .research_prompts import (
    PLANNER_PROMPT,
    REPLAN_CONTEXT,
    DECISION_PROMPT,
    CONTENT_ANALYSIS_PROMPT,
)

__all__ = [
    "PLANNER_PROMPT",
    "REPLAN_CONTEXT",
    "DECISION_PROMPT",
    "CONTENT_ANALYSIS_PROMPT",
]
