"""
Research Planner
One structured call that turns the task into a ResearchPlan, with a
deterministic fallback so the loop always has a plan to follow.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from .logging import planner_logger
from .models import ExtractionApproach, Finding, ResearchPlan, SearchQuery
from ..prompts import PLANNER_PROMPT, REPLAN_CONTEXT
from ..providers.fallback import classify_error
from ..providers.structured import StructuredGenerator

REPLAN_NOTES_CHARS = 600
REPLAN_FINDING_TITLES = 5


@dataclass
class PlanningContext:
    """What a replan gets to see about the run so far."""
    previous_plan: Optional[ResearchPlan] = None
    findings: List[Finding] = field(default_factory=list)
    scratchpad: str = ""
    completed_searches: List[str] = field(default_factory=list)


class Planner(ABC):
    """Strategy interface: task (+ optional replan context) -> ResearchPlan."""

    @abstractmethod
    async def create_plan(
        self,
        task: str,
        start_url: Optional[str] = None,
        max_findings: int = 10,
        performance_mode: str = "balanced",
        prior_context: Optional[PlanningContext] = None,
    ) -> ResearchPlan:
        pass


def build_fallback_plan(task: str, max_findings: int = 10, engine: str = "google") -> ResearchPlan:
    """Two broad searches on the default engine: the task itself and a guide for it."""
    return ResearchPlan(
        strategy="Perform broad searches and extract top results",
        search_queries=[
            SearchQuery(
                query=task,
                engine=engine,
                purpose="General search for the main topic",
                priority="high",
            ),
            SearchQuery(
                query=f"{task} guide",
                engine=engine,
                purpose="Find comprehensive guides",
                priority="medium",
            ),
        ],
        target_domains=[],
        extraction=ExtractionApproach(
            tools=["getText", "getAllElements", "extractSearchResults"],
            strategy="Extract search results first, then visit top results for detailed content",
            selectors=["article", "main", ".content", "#content"],
        ),
        expected_findings=max(1, min(20, max_findings)),
        estimated_steps=20,
        depth="broad",
    )


def build_planner_prompt(
    task: str,
    start_url: Optional[str],
    max_findings: int,
    performance_mode: str,
    prior_context: Optional[PlanningContext] = None,
) -> str:
    context_block = ""
    if prior_context is not None:
        titles = [f.title for f in prior_context.findings[:REPLAN_FINDING_TITLES]]
        context_block = REPLAN_CONTEXT.format(
            previous_strategy=prior_context.previous_plan.strategy if prior_context.previous_plan else "(none)",
            completed_searches=", ".join(prior_context.completed_searches) or "(none)",
            finding_count=len(prior_context.findings),
            finding_titles=", ".join(titles) or "(none)",
            recent_notes=prior_context.scratchpad[-REPLAN_NOTES_CHARS:] or "(empty)",
        )

    return PLANNER_PROMPT.format(
        task=task,
        start_url_line=f"Starting Point: {start_url}\n" if start_url else "",
        max_findings=max_findings,
        performance_mode=performance_mode,
        context_block=context_block,
    )


class LLMPlanner(Planner):
    """Planner backed by the structured-generation backend."""

    def __init__(self, generator: StructuredGenerator, default_engine: str = "google"):
        self.generator = generator
        self.default_engine = default_engine
        self.logger = planner_logger()

    async def create_plan(
        self,
        task: str,
        start_url: Optional[str] = None,
        max_findings: int = 10,
        performance_mode: str = "balanced",
        prior_context: Optional[PlanningContext] = None,
    ) -> ResearchPlan:
        prompt = build_planner_prompt(task, start_url, max_findings, performance_mode, prior_context)
        try:
            return await self.generator.generate(
                ResearchPlan,
                prompt,
                schema_name="ResearchPlan",
                schema_description="A comprehensive plan for systematic web research",
            )
        except Exception as e:
            reason, _ = classify_error(e)
            self.logger.warning(f"Planning failed ({reason.value}): {e}. Using fallback plan")
            return build_fallback_plan(task, max_findings, self.default_engine)
