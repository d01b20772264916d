"""
Decision Engine
Per-step structured call that turns (plan, memory, page state) into exactly
one next Action. Fails safe to finishTask so a bad model response ends the
run cleanly instead of erroring out.
"""
from abc import ABC, abstractmethod
from typing import Optional

from .actions import Action, FinishTaskAction, describe_action
from .logging import decision_logger
from .memory import RunState
from .models import PageState
from ..config import ResearchSettings
from ..prompts import DECISION_PROMPT
from ..providers.fallback import classify_error
from ..providers.structured import StructuredGenerator

SUMMARY_CHARS = 400
LINKS_SHOWN = 10
LINK_TEXT_CHARS = 80
RECENT_SEARCHES = 5
RECENT_FINDINGS = 4
NOTES_CHARS = 1000
RECENT_VISITED = 10


class DecisionEngine(ABC):
    """Strategy interface: research context -> one Action."""

    @abstractmethod
    async def decide_next_action(
        self,
        task: str,
        state: RunState,
        page: PageState,
        max_findings: int,
    ) -> Action:
        pass


def incomplete_result(state: RunState) -> FinishTaskAction:
    memory = state.memory
    return FinishTaskAction(
        result=(
            f"Research incomplete due to error. Collected {len(memory.findings)} findings "
            f"from {len(memory.completed_searches)} searches."
        )
    )


def build_decision_prompt(
    task: str,
    state: RunState,
    page: PageState,
    max_findings: int,
    history_window: int = 6,
) -> str:
    plan = state.plan
    memory = state.memory
    remaining = state.remaining_searches()
    findings = memory.findings
    progress = round(len(findings) / max_findings * 100) if max_findings else 100

    recent_findings = findings[-RECENT_FINDINGS:]
    first_number = len(findings) - len(recent_findings) + 1
    finding_lines = [f"{first_number + i}. {f.title}" for i, f in enumerate(recent_findings)]

    link_lines = [
        f"{i}. {(link.text[:LINK_TEXT_CHARS] or '(no text)')} — {link.url}"
        for i, link in enumerate(page.links[:LINKS_SHOWN], start=1)
    ]
    action_lines = [
        f"{i}. {describe_action(entry.action)}"
        for i, entry in enumerate(state.recent_history(history_window), start=1)
    ]

    return DECISION_PROMPT.format(
        task=task,
        strategy=plan.strategy,
        depth=plan.depth,
        extraction_strategy=plan.extraction.strategy,
        recommended_tools=", ".join(plan.extraction.tools),
        preferred_domains_line=(
            f"Preferred Domains: {', '.join(plan.target_domains)}\n" if plan.target_domains else ""
        ),
        remaining_count=len(remaining),
        remaining_searches="\n".join(
            f'{i}. "{s.query}" - {s.purpose} [{s.priority}]' for i, s in enumerate(remaining, start=1)
        ) or "(none)",
        completed_count=len(memory.completed_searches),
        completed_searches=", ".join(memory.recent_searches(RECENT_SEARCHES)) or "(none)",
        url=page.url,
        title=page.title,
        page_type="SEARCH RESULTS PAGE" if page.is_search_results_page else "Content Page",
        summary=page.content_summary[:SUMMARY_CHARS] or "N/A",
        shown_links=min(LINKS_SHOWN, len(page.links)),
        total_links=len(page.links),
        links="\n".join(link_lines) or "(none)",
        progress=progress,
        finding_count=len(findings),
        max_findings=max_findings,
        recent_findings="\n".join(finding_lines) or "(none yet)",
        notes=memory.scratchpad_tail(NOTES_CHARS) or "(empty)",
        recent_actions="\n".join(action_lines) or "(none yet)",
        recent_visited=", ".join(memory.recent_visited(RECENT_VISITED)) or "(none)",
        preferred_domains=", ".join(plan.target_domains) or "authoritative domains",
    )


class LLMDecisionEngine(DecisionEngine):
    """Decision engine backed by the structured-generation backend."""

    def __init__(self, generator: StructuredGenerator, settings: Optional[ResearchSettings] = None):
        self.generator = generator
        self.history_window = settings.history_window if settings else 6
        self.logger = decision_logger()

    async def decide_next_action(
        self,
        task: str,
        state: RunState,
        page: PageState,
        max_findings: int,
    ) -> Action:
        try:
            prompt = build_decision_prompt(task, state, page, max_findings, self.history_window)
            return await self.generator.generate(
                Action,
                prompt,
                schema_name="WebResearchAction",
                schema_description="Next systematic research action following the plan",
            )
        except Exception as e:
            reason, _ = classify_error(e)
            self.logger.error(f"Action decision failed ({reason.value}): {e}")
            return incomplete_result(state)
