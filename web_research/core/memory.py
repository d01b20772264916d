"""
Research Memory
Findings, scratchpad notes, visited URLs, completed searches and action
history for a single run. Nothing here is shared between runs.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from .actions import (
    Action,
    ActionHistoryEntry,
    GoToPageAction,
    PerformSearchAction,
    SaveFindingAction,
    UpdateScratchpadAction,
)
from .models import Finding, ResearchPlan, SearchKey


class ResearchMemory:
    """Append-only working memory of a run."""

    def __init__(self):
        self.findings: List[Finding] = []
        self.scratchpad: str = ""
        # dicts keep insertion order, so they double as ordered sets
        self._visited: Dict[str, None] = {}
        self._completed: Dict[SearchKey, None] = {}

    @property
    def visited_urls(self) -> set:
        return set(self._visited)

    @property
    def completed_searches(self) -> set:
        return set(self._completed)

    def mark_visited(self, url: str) -> None:
        if url:
            self._visited.setdefault(url, None)

    def recent_visited(self, limit: int = 10) -> List[str]:
        return list(self._visited)[-limit:]

    def mark_search_completed(self, engine: str, query: str) -> bool:
        """Record a search. Returns False when the (engine, query) pair was already done."""
        key = (engine, query)
        if key in self._completed:
            return False
        self._completed[key] = None
        return True

    def is_search_completed(self, engine: str, query: str) -> bool:
        return (engine, query) in self._completed

    def recent_searches(self, limit: int = 5) -> List[str]:
        return [f"{engine}:{query}" for engine, query in list(self._completed)[-limit:]]

    def note(self, text: str) -> None:
        self.scratchpad += f"\n{text}" if self.scratchpad else text

    def scratchpad_tail(self, chars: int) -> str:
        return self.scratchpad[-chars:]

    def add_finding(self, finding: Finding) -> int:
        """Append a finding (no dedup) and return its 1-based number."""
        self.findings.append(finding)
        self.note(f"[Finding {len(self.findings)}] {finding.title} — {finding.url}")
        return len(self.findings)

    def record_action(self, action: Action, default_engine: str = "google") -> None:
        """Apply the memory side effects of an executed action."""
        if isinstance(action, UpdateScratchpadAction):
            self.note(action.new_data)
        elif isinstance(action, SaveFindingAction):
            self.add_finding(action.finding)
        elif isinstance(action, PerformSearchAction):
            self.mark_search_completed(action.engine or default_engine, action.query)
        elif isinstance(action, GoToPageAction):
            self.mark_visited(action.url)


@dataclass
class RunState:
    """Mutable state of one research run."""
    plan: Optional[ResearchPlan] = None
    memory: ResearchMemory = field(default_factory=ResearchMemory)
    history: List[ActionHistoryEntry] = field(default_factory=list)
    replans_used: int = 0
    current_search_index: int = 0
    steps_taken: int = 0
    # searches run since the current plan was adopted
    plan_searches: Set[SearchKey] = field(default_factory=set)

    def recent_history(self, window: int) -> List[ActionHistoryEntry]:
        return self.history[-window:] if window > 0 else []

    def remaining_searches(self):
        if self.plan is None:
            return []
        return self.plan.search_queries[self.current_search_index:]


class ResearchResult(BaseModel):
    """Outcome of one research run. Failures are reported here, never raised."""
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None
    findings: List[Finding] = Field(default_factory=list)
    history: List[ActionHistoryEntry] = Field(default_factory=list)
    plan: Optional[ResearchPlan] = None
    steps_taken: int = 0
    replans_used: int = 0

    @classmethod
    def from_state(cls, state: RunState, success: bool, **outcome) -> "ResearchResult":
        return cls(
            success=success,
            findings=list(state.memory.findings),
            history=list(state.history),
            plan=state.plan,
            steps_taken=state.steps_taken,
            replans_used=state.replans_used,
            **outcome,
        )
