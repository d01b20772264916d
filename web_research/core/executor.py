"""
Action Executor
Dispatch table from Action variant to a browser call. Memory-only and control
actions (updateScratchpad, saveFinding, replan, finishTask) have no browser
effect; the orchestrator applies them.
"""
import asyncio
from typing import Awaitable, Callable, Dict, Optional
from urllib.parse import quote_plus

from .actions import (
    Action,
    ClickElementAction,
    ExtractSearchResultsAction,
    FinishTaskAction,
    GetAllElementsAction,
    GetAttributeAction,
    GetTextAction,
    GoToPageAction,
    PerformSearchAction,
    ReplanAction,
    SaveFindingAction,
    ScrollToAction,
    SleepAction,
    TypeTextAction,
    UpdateScratchpadAction,
)
from .logging import executor_logger
from ..browser.base import DEFAULT_WAIT_UNTIL, BrowserDriver, ToolResult

SEARCH_URLS = {
    "google": "https://www.google.com/search?q=",
    "bing": "https://www.bing.com/search?q=",
    "duckduckgo": "https://duckduckgo.com/?q=",
}

# Result items on google, bing and duckduckgo
SEARCH_RESULT_SELECTOR = "div.g, li.b_algo, article[data-result]"
DEFAULT_MAX_RESULTS = 10


def build_search_url(query: str, engine: Optional[str] = None) -> str:
    """Search URL for the engine; unknown or missing engines use google."""
    base = SEARCH_URLS.get(engine or "google", SEARCH_URLS["google"])
    return base + quote_plus(query)


class ActionExecutor:
    """Executes one Action against the run's browser."""

    def __init__(
        self,
        browser: BrowserDriver,
        default_engine: str = "google",
        navigation_timeout_ms: int = 15000,
        element_timeout_ms: int = 5000,
    ):
        self.browser = browser
        self.default_engine = default_engine
        self.navigation_timeout_ms = navigation_timeout_ms
        self.element_timeout_ms = element_timeout_ms
        self.logger = executor_logger()
        self._handlers: Dict[type, Callable[[Action], Awaitable[ToolResult]]] = {
            PerformSearchAction: self._perform_search,
            GoToPageAction: self._go_to_page,
            ClickElementAction: self._click,
            TypeTextAction: self._type_text,
            GetTextAction: self._get_text,
            GetAttributeAction: self._get_attribute,
            GetAllElementsAction: self._get_all_elements,
            ExtractSearchResultsAction: self._extract_search_results,
            ScrollToAction: self._scroll_to,
            SleepAction: self._sleep,
            UpdateScratchpadAction: self._noted,
            SaveFindingAction: self._finding_saved,
            ReplanAction: self._control,
            FinishTaskAction: self._control,
        }

    async def execute(self, action: Action) -> ToolResult:
        handler = self._handlers.get(type(action))
        if handler is None:
            return ToolResult.failed(f"Unknown action: {getattr(action, 'tool', action)!r}")
        return await handler(action)

    async def _perform_search(self, action: PerformSearchAction) -> ToolResult:
        engine = action.engine or self.default_engine
        url = build_search_url(action.query, engine)
        self.logger.info(f'New search: "{action.query}" on {engine}')
        result = await self.browser.navigate(url, wait_until=DEFAULT_WAIT_UNTIL, timeout_ms=self.navigation_timeout_ms)
        data = dict(result.data or {})
        data.update({"engine": engine, "query": action.query, "search_url": url})
        return ToolResult(success=result.success, output=result.output, data=data)

    async def _go_to_page(self, action: GoToPageAction) -> ToolResult:
        self.logger.info(f"Navigating to: {action.url}")
        return await self.browser.navigate(action.url, wait_until=DEFAULT_WAIT_UNTIL, timeout_ms=self.navigation_timeout_ms)

    async def _click(self, action: ClickElementAction) -> ToolResult:
        return await self.browser.click(action.selector, timeout_ms=self.element_timeout_ms)

    async def _type_text(self, action: TypeTextAction) -> ToolResult:
        return await self.browser.type_text(action.selector, action.text, timeout_ms=self.element_timeout_ms)

    async def _get_text(self, action: GetTextAction) -> ToolResult:
        return await self.browser.get_text(action.selector, timeout_ms=self.element_timeout_ms)

    async def _get_attribute(self, action: GetAttributeAction) -> ToolResult:
        return await self.browser.get_attribute(action.selector, action.attribute, timeout_ms=self.element_timeout_ms)

    async def _get_all_elements(self, action: GetAllElementsAction) -> ToolResult:
        return await self.browser.get_all_elements(
            action.selector,
            attribute=action.extract_attribute,
            get_text=action.extract_text is not False,
            timeout_ms=self.element_timeout_ms,
        )

    async def _extract_search_results(self, action: ExtractSearchResultsAction) -> ToolResult:
        max_results = action.max_results or DEFAULT_MAX_RESULTS
        result = await self.browser.get_all_elements(
            SEARCH_RESULT_SELECTOR,
            get_text=True,
            timeout_ms=self.element_timeout_ms,
        )
        if not result.success:
            return result
        elements = (result.data or {}).get("elements", [])
        count = min(len(elements), max_results)
        self.logger.info(f"Extracted {count} search results")
        return ToolResult(
            success=True,
            output=f"Extracted {count} search results",
            data={"count": count, "results": elements[:count]},
        )

    async def _scroll_to(self, action: ScrollToAction) -> ToolResult:
        return await self.browser.scroll_into_view(action.selector, timeout_ms=self.element_timeout_ms)

    async def _sleep(self, action: SleepAction) -> ToolResult:
        await asyncio.sleep(action.ms / 1000)
        return ToolResult(success=True, output=f"Slept {action.ms}ms")

    async def _noted(self, action: UpdateScratchpadAction) -> ToolResult:
        return ToolResult(success=True, output="Scratchpad updated")

    async def _finding_saved(self, action: SaveFindingAction) -> ToolResult:
        return ToolResult(success=True, output=f"Finding saved: {action.finding.title}")

    async def _control(self, action: Action) -> ToolResult:
        return ToolResult(success=True, output=action.tool)
