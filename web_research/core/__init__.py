"""Core module initialization"""
from .models import Finding, PageState, ResearchPlan, SearchQuery
from .actions import Action, ActionHistoryEntry, parse_action
from .memory import ResearchMemory, ResearchResult, RunState

__all__ = [
    "Finding",
    "PageState",
    "ResearchPlan",
    "SearchQuery",
    "Action",
    "ActionHistoryEntry",
    "parse_action",
    "ResearchMemory",
    "ResearchResult",
    "RunState",
]
