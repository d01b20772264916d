"""
Web Research Orchestrator

Drives one research run:
    PLANNING -> STEPPING -> (REPLANNING -> STEPPING) -> TERMINATED

Each step optionally runs the next planned search, observes the current page,
asks the decision engine for one action, executes it and applies its memory
side effects. The run ends on finishTask, on the auto-finish condition, when
max_steps is exhausted, or on an unexpected error. Failures are returned as a
ResearchResult with success=False; the browser is always closed.
"""
import asyncio
import time
from typing import Callable, Optional, Union

from .actions import (
    Action,
    ActionHistoryEntry,
    FinishTaskAction,
    PerformSearchAction,
    ReplanAction,
    SaveFindingAction,
    describe_action,
)
from .decision import DecisionEngine, LLMDecisionEngine, incomplete_result
from .executor import ActionExecutor
from .logging import SubsystemLogger, research_logger
from .memory import ResearchResult, RunState
from .models import PageState, ResearchPlan, is_http_url
from .observer import UNAVAILABLE_URL, PageObserver
from .planner import LLMPlanner, Planner, PlanningContext
from .trace import NullTrace, create_trace
from ..browser.analyzer import PageAnalyzer, WebPageAnalyzer
from ..browser.base import BrowserDriver
from ..browser.playwright_driver import PlaywrightBrowser
from ..config import BrowserConfig, ResearchSettings, TraceConfig, config
from ..providers import create_structured_generator
from ..providers.base import BaseLLMProvider
from ..providers.structured import StructuredGenerator

BrowserFactory = Callable[[], BrowserDriver]


class ResearchConfigurationError(ValueError):
    """The run cannot start: required configuration (e.g. the model) is missing."""


def seed_notes(plan: ResearchPlan) -> str:
    queries = ", ".join(q.query for q in plan.search_queries)
    return f"Research Plan:\n{plan.strategy}\n\nSearch Queries: {queries}\n"


class WebResearchAgent:
    """
    Autonomous planned web research agent.

    Planner and decision engine are strategies, so tests can inject scripted
    doubles; `from_model` wires the LLM-backed ones. Every call to `run` gets
    its own browser (from `browser_factory`), page cache and run state, so one
    agent may serve concurrent runs.
    """

    def __init__(
        self,
        planner: Planner,
        decision_engine: DecisionEngine,
        browser_factory: Optional[BrowserFactory] = None,
        analyzer: Optional[PageAnalyzer] = None,
        settings: Optional[ResearchSettings] = None,
        browser_config: Optional[BrowserConfig] = None,
        trace_config: Optional[TraceConfig] = None,
    ):
        self.planner = planner
        self.decision_engine = decision_engine
        self.browser_config = browser_config or config.browser
        self.browser_factory = browser_factory or (lambda: PlaywrightBrowser(self.browser_config))
        self.analyzer = analyzer
        self.settings = settings or config.research
        self.trace_config = trace_config
        self.logger = research_logger()

    @classmethod
    def from_model(
        cls,
        model: Optional[Union[BaseLLMProvider, StructuredGenerator]],
        settings: Optional[ResearchSettings] = None,
        browser_factory: Optional[BrowserFactory] = None,
        analyzer: Optional[PageAnalyzer] = None,
        trace_config: Optional[TraceConfig] = None,
    ) -> "WebResearchAgent":
        """Build an agent whose planner, decision engine and analyzer share one model."""
        if model is None:
            raise ResearchConfigurationError("A language model is required for web research")

        settings = settings or config.research
        generator = model if isinstance(model, StructuredGenerator) else create_structured_generator(model)
        if analyzer is None:
            analyzer = WebPageAnalyzer(
                generator,
                user_agent=config.browser.user_agent,
                summary_chars=settings.summary_chars,
            )
        return cls(
            planner=LLMPlanner(generator, default_engine=settings.default_engine),
            decision_engine=LLMDecisionEngine(generator, settings),
            browser_factory=browser_factory,
            analyzer=analyzer,
            settings=settings,
            trace_config=trace_config if trace_config is not None else config.trace,
        )

    async def run(
        self,
        task: str,
        start_url: Optional[str] = None,
        max_steps: Optional[int] = None,
        performance_mode: Optional[str] = None,
        max_findings: Optional[int] = None,
    ) -> ResearchResult:
        if not task or not task.strip():
            return ResearchResult(success=False, error="Task is required")

        max_steps = max_steps if max_steps is not None else self.settings.max_steps
        max_findings = max_findings if max_findings is not None else self.settings.max_findings
        mode = performance_mode or self.settings.performance_mode

        trace: NullTrace = NullTrace()
        log = self.logger.bind(run_id=trace.run_id)
        state = RunState()
        browser: Optional[BrowserDriver] = None

        try:
            browser = self.browser_factory()
            trace = create_trace(self.trace_config, run_id=trace.run_id)
            observer = PageObserver(
                browser,
                self.analyzer,
                self.settings,
                links_timeout_ms=self.browser_config.links_timeout_ms,
            )
            executor = ActionExecutor(
                browser,
                default_engine=self.settings.default_engine,
                navigation_timeout_ms=self.browser_config.navigation_timeout_ms,
                element_timeout_ms=self.browser_config.element_timeout_ms,
            )

            log.info(f"Starting research: {task} (mode={mode}, max_steps={max_steps}, max_findings={max_findings})")
            trace.start_run(task, {
                "start_url": start_url,
                "max_steps": max_steps,
                "max_findings": max_findings,
                "performance_mode": mode,
            })

            result = await self._run_loop(
                task, start_url, max_steps, mode, max_findings, state, observer, executor, trace, log
            )
        except Exception as e:
            log.error(f"Research failed: {e}", exc_info=True)
            result = ResearchResult.from_state(state, success=False, error=str(e) or type(e).__name__)
        finally:
            if browser is not None:
                try:
                    await browser.close()
                except Exception as e:
                    log.warning(f"Failed to close browser: {e}")

        try:
            trace.end_run(result.success, {
                "findings": len(result.findings),
                "steps": result.steps_taken,
                "replans": result.replans_used,
                "error": result.error,
            })
        except Exception as e:
            log.warning(f"Failed to write run trace: {e}")
        return result

    async def _run_loop(
        self,
        task: str,
        start_url: Optional[str],
        max_steps: int,
        mode: str,
        max_findings: int,
        state: RunState,
        observer: PageObserver,
        executor: ActionExecutor,
        trace: NullTrace,
        log: SubsystemLogger,
    ) -> ResearchResult:
        memory = state.memory

        state.plan = await self.planner.create_plan(task, start_url, max_findings, mode)
        memory.note(seed_notes(state.plan))
        trace.log_plan(state.plan)
        log.info(
            f"Research plan: {state.plan.strategy} "
            f"({len(state.plan.search_queries)} searches, depth={state.plan.depth})"
        )

        for step in range(1, max_steps + 1):
            state.steps_taken = step
            step_log = log.bind(step=step)

            if (step - 1) % self.settings.search_cadence == 0:
                await self._run_planned_search(state, executor, step, trace, step_log)

            page = await observer.observe(
                max_links=self.settings.links_for_mode(mode),
                do_deep_analysis=mode == "thorough" or step % self.settings.analysis_cadence == 0,
                fast=mode == "fast",
            )
            if page.url != UNAVAILABLE_URL:
                memory.mark_visited(page.url)
            trace.start_step(step, page.url)

            action = await self._decide(task, state, page, max_findings, step_log)
            trace.log_action(step, action)
            step_log.bind(tool=action.tool).debug(f"Action: {describe_action(action)}")

            started = time.perf_counter()
            outcome = await executor.execute(action)
            trace.log_action_result(step, action.tool, outcome, (time.perf_counter() - started) * 1000)
            if not outcome.success:
                step_log.warning(f"{action.tool} failed: {outcome.output}")

            state.history.append(ActionHistoryEntry(action=action, result=outcome))
            memory.record_action(action, self.settings.default_engine)

            if isinstance(action, PerformSearchAction):
                state.plan_searches.add((action.engine or self.settings.default_engine, action.query))
            elif isinstance(action, SaveFindingAction):
                step_log.info(f"Finding saved ({len(memory.findings)}/{max_findings}): {action.finding.title}")
            elif isinstance(action, ReplanAction):
                await self._replan(task, action, state, page, start_url, mode, max_findings, trace, step_log)
            elif isinstance(action, FinishTaskAction):
                step_log.info(f"Task completed with {len(memory.findings)} findings")
                return ResearchResult.from_state(state, success=True, result=action.result)

            if (
                len(memory.findings) >= max_findings
                and len(memory.completed_searches) >= len(state.plan.search_queries)
            ):
                summary = (
                    f"Research completed with {len(memory.findings)} findings "
                    f"from {len(memory.completed_searches)} searches."
                )
                step_log.info(summary)
                return ResearchResult.from_state(state, success=True, result=summary)

        log.warning(f"Max steps reached ({max_steps}) with {len(memory.findings)} findings")
        return ResearchResult.from_state(state, success=False, error="Max steps reached")

    async def _run_planned_search(
        self,
        state: RunState,
        executor: ActionExecutor,
        step: int,
        trace: NullTrace,
        log: SubsystemLogger,
    ) -> None:
        """Run the next planned query that has not been searched under the current plan."""
        queries = state.plan.search_queries
        while state.current_search_index < len(queries) and queries[state.current_search_index].key in state.plan_searches:
            state.current_search_index += 1
        if state.current_search_index >= len(queries):
            return

        planned = queries[state.current_search_index]
        state.current_search_index += 1
        state.plan_searches.add(planned.key)

        log.info(f'Planned search {state.current_search_index}/{len(queries)}: "{planned.query}" on {planned.engine}')
        outcome = await executor.execute(PerformSearchAction(query=planned.query, engine=planned.engine))
        state.memory.mark_search_completed(planned.engine, planned.query)
        trace.log_planned_search(step, planned.engine, planned.query, outcome.success)
        if not outcome.success:
            log.warning(f"Planned search failed: {outcome.output}")

        if self.settings.search_settle_ms > 0:
            await asyncio.sleep(self.settings.search_settle_ms / 1000)

    async def _decide(
        self,
        task: str,
        state: RunState,
        page: PageState,
        max_findings: int,
        log: SubsystemLogger,
    ) -> Action:
        try:
            return await self.decision_engine.decide_next_action(task, state, page, max_findings)
        except Exception as e:
            log.error(f"Decision engine failed: {e}")
            return incomplete_result(state)

    async def _replan(
        self,
        task: str,
        action: ReplanAction,
        state: RunState,
        page: PageState,
        start_url: Optional[str],
        mode: str,
        max_findings: int,
        trace: NullTrace,
        log: SubsystemLogger,
    ) -> None:
        if state.replans_used >= self.settings.max_replans:
            log.warning(
                f"Replan requested ({action.reason}) but the limit of {self.settings.max_replans} "
                f"replans is reached; continuing with the current plan"
            )
            return

        memory = state.memory
        context = PlanningContext(
            previous_plan=state.plan,
            findings=list(memory.findings),
            scratchpad=memory.scratchpad,
            completed_searches=memory.recent_searches(len(memory.completed_searches)),
        )
        plan = await self.planner.create_plan(
            task,
            start_url=page.url if is_http_url(page.url) else start_url,
            max_findings=max_findings,
            performance_mode=mode,
            prior_context=context,
        )
        state.plan = plan
        state.current_search_index = 0
        state.plan_searches.clear()
        state.replans_used += 1
        memory.note(f"[REPLANNED: {action.reason}]")
        trace.log_plan(plan, replanned=True, reason=action.reason)
        log.info(
            f"Replanned ({state.replans_used}/{self.settings.max_replans}): {plan.strategy} "
            f"({len(plan.search_queries)} searches)"
        )


async def run_web_research(
    task: str,
    model: Optional[Union[BaseLLMProvider, StructuredGenerator]],
    start_url: Optional[str] = None,
    max_steps: Optional[int] = None,
    performance_mode: Optional[str] = None,
    max_findings: Optional[int] = None,
    **agent_options,
) -> ResearchResult:
    """
    Run one research task end to end.

    Raises ResearchConfigurationError before any browser or model work when
    `model` is missing; every other failure is reported in the result.
    """
    agent = WebResearchAgent.from_model(model, **agent_options)
    return await agent.run(
        task,
        start_url=start_url,
        max_steps=max_steps,
        performance_mode=performance_mode,
        max_findings=max_findings,
    )
