"""
Page Observer
Reads the browser's current page into a PageState, memoized per URL for one run.
"""
from typing import Dict, List, Optional

from .logging import observer_logger
from .models import PageLink, PageState, is_http_url
from ..browser.analyzer import PageAnalyzer
from ..browser.base import BrowserDriver
from ..config import ResearchSettings

SEARCH_RESULT_PATTERNS = ("google.com/search", "bing.com/search", "duckduckgo.com")

UNAVAILABLE_URL = "about:blank"
UNAVAILABLE_TITLE = "Page unavailable"
UNAVAILABLE_SUMMARY = "Page timed out or failed to load"


def is_search_results_url(url: str) -> bool:
    return any(pattern in url for pattern in SEARCH_RESULT_PATTERNS)


def unavailable_page() -> PageState:
    return PageState(url=UNAVAILABLE_URL, title=UNAVAILABLE_TITLE, content_summary=UNAVAILABLE_SUMMARY)


class PageObserver:
    """
    Run-scoped page observer.

    The cache lives on the instance, so a fresh observer (and a fresh cache)
    is created for every run. A cache hit touches neither the browser nor the
    analyzer. Collaborator failures degrade the state instead of raising.
    """

    def __init__(
        self,
        browser: BrowserDriver,
        analyzer: Optional[PageAnalyzer] = None,
        settings: Optional[ResearchSettings] = None,
        links_timeout_ms: int = 3000,
    ):
        self.browser = browser
        self.analyzer = analyzer
        self.settings = settings or ResearchSettings()
        self.links_timeout_ms = links_timeout_ms
        self.cache: Dict[str, PageState] = {}
        self.logger = observer_logger()

    async def observe(self, max_links: int = 20, do_deep_analysis: bool = False, fast: bool = False) -> PageState:
        try:
            info = await self.browser.get_current_page_info()
        except Exception as e:
            self.logger.warning(f"Could not read current page: {e}")
            return unavailable_page()
        if not info.success or not info.data:
            self.logger.warning(f"Could not read current page: {info.output}")
            return unavailable_page()

        url = info.data.get("url") or UNAVAILABLE_URL
        title = info.data.get("title") or ""

        cached = self.cache.get(url)
        if cached is not None:
            self.logger.debug(f"Page cache hit: {url}")
            return cached

        is_search_page = is_search_results_url(url)
        links = await self._collect_links(max_links, fast)

        state = PageState(
            url=url,
            title=title,
            links=links,
            is_search_results_page=is_search_page,
        )
        if self.analyzer is not None and is_http_url(url):
            if do_deep_analysis:
                await self._deep_analysis(state, fast)
            else:
                await self._quick_extract(state, fast)

        self.cache[url] = state
        return state

    async def _collect_links(self, max_links: int, fast: bool) -> List[PageLink]:
        try:
            result = await self.browser.get_all_elements(
                "a[href]",
                attribute="href",
                get_text=True,
                wait_for_selector=False,
                timeout_ms=self.links_timeout_ms // 2 if fast else self.links_timeout_ms,
            )
        except Exception as e:
            self.logger.warning(f"Link extraction failed: {e}")
            return []
        if not result.success or not result.data:
            return []

        links = []
        for element in result.data.get("elements", []):
            href = element.get("attribute") or ""
            if not is_http_url(href):
                continue
            links.append(PageLink(text=(element.get("text") or "").strip(), url=href))
            if len(links) >= max_links:
                break
        return links

    async def _deep_analysis(self, state: PageState, fast: bool) -> None:
        timeout_ms = self.settings.deep_analysis_timeout_ms
        try:
            analysis = await self.analyzer.analyze(
                state.url,
                timeout_ms=timeout_ms // 2 if fast else timeout_ms,
                max_scrolls=0 if fast or state.is_search_results_page else 1,
            )
        except Exception as e:
            self.logger.warning(f"Deep analysis failed for {state.url}: {e}")
            return
        state.analysis = analysis
        state.content_summary = analysis.summary[:self.settings.summary_chars]
        if analysis.title and not state.title:
            state.title = analysis.title

    async def _quick_extract(self, state: PageState, fast: bool) -> None:
        timeout_ms = self.settings.quick_extract_timeout_ms
        try:
            extracted = await self.analyzer.quick_extract_text(
                state.url,
                timeout_ms=timeout_ms // 2 if fast else timeout_ms,
            )
        except Exception as e:
            self.logger.warning(f"Text extraction failed for {state.url}: {e}")
            return
        state.content_summary = extracted.text[:self.settings.summary_chars]
        if extracted.title and not state.title:
            state.title = extracted.title
