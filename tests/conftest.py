"""
Pytest Configuration and Fixtures
In-memory doubles for the browser, page analyzer, planner, decision engine
and LLM provider, so no test touches a real browser or model.
"""
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from web_research.browser.analyzer import ExtractedText, PageAnalyzer
from web_research.browser.base import BrowserDriver, ToolResult
from web_research.config import ResearchSettings
from web_research.core.actions import Action, UpdateScratchpadAction
from web_research.core.decision import DecisionEngine
from web_research.core.models import ContentAnalysis, ExtractionApproach, ResearchPlan, SearchQuery
from web_research.core.orchestrator import WebResearchAgent
from web_research.core.planner import Planner
from web_research.providers.base import BaseLLMProvider, LLMResponse


class FakeBrowser(BrowserDriver):
    """
    Scripted browser.

    `pages` maps a URL (or URL prefix) to {"title", "links", "results"} where
    links are (text, href) pairs and results are search-result texts.
    Every call is recorded in `calls` as (method, *args).
    """

    def __init__(self, pages: Optional[Dict[str, Dict[str, Any]]] = None, start_url: str = "about:blank"):
        self.pages = pages or {}
        self.url = start_url
        self.calls: List[tuple] = []
        self.navigations: List[str] = []
        self.fail_page_info = False
        self.fail_navigation = False
        self.closed = 0

    def _page(self) -> Dict[str, Any]:
        if self.url in self.pages:
            return self.pages[self.url]
        for prefix, page in self.pages.items():
            if self.url.startswith(prefix):
                return page
        return {}

    async def navigate(self, url, wait_until="domcontentloaded", timeout_ms=None):
        self.calls.append(("navigate", url))
        if self.fail_navigation:
            return ToolResult.failed(f"Failed to navigate to {url}: timeout")
        self.navigations.append(url)
        self.url = url
        return ToolResult(success=True, output=f"Navigated to {url}", data={"url": url})

    async def click(self, selector, timeout_ms=None):
        self.calls.append(("click", selector))
        return ToolResult(success=True, output=f"Clicked element: {selector}")

    async def type_text(self, selector, text, timeout_ms=None):
        self.calls.append(("type_text", selector, text))
        return ToolResult(success=True, output=f"Typed into {selector}")

    async def get_text(self, selector, timeout_ms=None):
        self.calls.append(("get_text", selector))
        text = self._page().get("text", "")
        return ToolResult(success=True, output=text, data={"text": text})

    async def get_attribute(self, selector, attribute, timeout_ms=None):
        self.calls.append(("get_attribute", selector, attribute))
        return ToolResult(success=True, output="value", data={"value": "value"})

    async def get_all_elements(self, selector, attribute=None, get_text=False, wait_for_selector=True, timeout_ms=None):
        self.calls.append(("get_all_elements", selector))
        page = self._page()
        if selector == "a[href]":
            elements = [{"text": text, "attribute": href} for text, href in page.get("links", [])]
        else:
            elements = [{"text": text, "attribute": None} for text in page.get("results", [])]
        return ToolResult(success=True, output=f"Found {len(elements)} elements", data={"elements": elements})

    async def scroll_into_view(self, selector, timeout_ms=None):
        self.calls.append(("scroll_into_view", selector))
        return ToolResult(success=True, output=f"Scrolled to {selector}")

    async def get_current_page_info(self):
        self.calls.append(("get_current_page_info",))
        if self.fail_page_info:
            return ToolResult.failed("Failed to read page info: timeout")
        return ToolResult(success=True, data={"url": self.url, "title": self._page().get("title", "Untitled")})

    async def close(self):
        self.closed += 1

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


class FakeAnalyzer(PageAnalyzer):
    """Page analyzer that returns canned content and counts calls."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.analyze_calls: List[str] = []
        self.quick_calls: List[str] = []

    async def analyze(self, url, timeout_ms=20000, max_scrolls=1):
        self.analyze_calls.append(url)
        if self.fail:
            raise RuntimeError("analyzer down")
        return ContentAnalysis(
            main_content=f"Main content of {url}",
            title="Analyzed title",
            summary=f"Deep summary of {url}",
            key_points=["point one"],
            content_type="article",
            confidence=0.8,
        )

    async def quick_extract_text(self, url, timeout_ms=15000):
        self.quick_calls.append(url)
        if self.fail:
            raise RuntimeError("analyzer down")
        return ExtractedText(url=url, title="Extracted title", text=f"Quick text of {url} " * 200)


class ScriptedPlanner(Planner):
    """Returns the given plans in order; the last one repeats."""

    def __init__(self, plans: Sequence[ResearchPlan]):
        self.plans = list(plans)
        self.calls: List[Dict[str, Any]] = []

    async def create_plan(self, task, start_url=None, max_findings=10, performance_mode="balanced", prior_context=None):
        self.calls.append({
            "task": task,
            "start_url": start_url,
            "max_findings": max_findings,
            "performance_mode": performance_mode,
            "prior_context": prior_context,
        })
        index = min(len(self.calls) - 1, len(self.plans) - 1)
        return self.plans[index]


class ScriptedDecisionEngine(DecisionEngine):
    """
    Returns scripted actions in order, then `default` forever.
    An entry (or the default) may be an Action, an exception to raise, or a
    callable (state, page) -> Action.
    """

    def __init__(self, actions: Sequence[Union[Action, Exception, Callable]] = (), default=None):
        self.actions = list(actions)
        self.default = default or UpdateScratchpadAction(new_data="nothing new")
        self.pages = []

    async def decide_next_action(self, task, state, page, max_findings):
        self.pages.append(page)
        entry = self.actions.pop(0) if self.actions else self.default
        if isinstance(entry, Exception):
            raise entry
        if callable(entry) and not hasattr(entry, "tool"):
            return entry(state, page)
        return entry


class FakeProvider(BaseLLMProvider):
    """LLM provider that replays canned responses (strings or exceptions)."""

    def __init__(self, responses: Sequence[Union[str, Exception, LLMResponse]] = (), name: str = "fake", model: str = "fake-model"):
        self.responses = list(responses)
        self._name = name
        self._model = model
        self.requests: List[List[Any]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, messages, temperature=None, max_tokens=None, json_mode=False):
        self.requests.append(list(messages))
        if not self.responses:
            raise RuntimeError("No scripted response left (server error 500)")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, LLMResponse):
            return response
        return LLMResponse(content=response, finish_reason="stop")


def build_plan(queries: Sequence[str] = ("q1", "q2"), engine: str = "google", **overrides) -> ResearchPlan:
    data = dict(
        strategy="Search broadly, then read the best sources",
        search_queries=[
            SearchQuery(query=q, engine=engine, purpose=f"find {q}", priority="high")
            for q in queries
        ],
        target_domains=[],
        extraction=ExtractionApproach(tools=["getText", "extractSearchResults"], strategy="Extract results first"),
        expected_findings=5,
        estimated_steps=20,
        depth="focused",
    )
    data.update(overrides)
    return ResearchPlan(**data)


@pytest.fixture
def make_plan():
    """Factory for small research plans."""
    return build_plan


@pytest.fixture
def research_settings():
    """Default research settings without the post-search pause."""
    return ResearchSettings(search_settle_ms=0)


@pytest.fixture
def fake_browser():
    return FakeBrowser()


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer()


@pytest.fixture
def make_agent(research_settings, fake_analyzer):
    """
    Factory for agents wired to scripted doubles.

    Returns (agent, browser); the same FakeBrowser is handed to every run.
    """
    def factory(plans=None, actions=(), default=None, browser=None, settings=None, analyzer=None):
        browser = browser or FakeBrowser()
        agent = WebResearchAgent(
            planner=ScriptedPlanner(plans or [build_plan()]),
            decision_engine=ScriptedDecisionEngine(actions, default=default),
            browser_factory=lambda: browser,
            analyzer=analyzer if analyzer is not None else fake_analyzer,
            settings=settings or research_settings,
        )
        return agent, browser
    return factory
