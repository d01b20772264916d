"""
Playwright Browser
Headless Chromium driver for the research loop.
One instance owns one browser, one context and one page for a single run.
"""
from typing import Any, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from .base import DEFAULT_WAIT_UNTIL, BrowserDriver, ToolResult
from ..config import BrowserConfig, config
from ..core.logging import browser_logger

# Runs in the page; returns text and/or one attribute for every match
_COLLECT_ELEMENTS_JS = """
(elements, opts) => elements.map(el => ({
    text: opts.getText ? (el.innerText || el.textContent || '').trim() : null,
    attribute: opts.attribute ? el.getAttribute(opts.attribute) : null,
}))
"""


class PlaywrightBrowser(BrowserDriver):
    """BrowserDriver on playwright.async_api. Chromium is launched on first use."""

    def __init__(self, browser_config: Optional[BrowserConfig] = None):
        self.config = browser_config or config.browser
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.logger = browser_logger()

    async def _ensure_page(self) -> Page:
        if self.page is not None:
            return self.page

        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(headless=self.config.headless)
            self.context = await self.browser.new_context(
                viewport=self.config.viewport,
                user_agent=self.config.user_agent,
            )
            self.page = await self.context.new_page()
            self.logger.info("Browser session started (Chromium)")
        except Exception:
            await self.close()
            raise
        return self.page

    def _timeout(self, timeout_ms: Optional[int]) -> int:
        return timeout_ms if timeout_ms is not None else self.config.element_timeout_ms

    async def navigate(self, url: str, wait_until: str = DEFAULT_WAIT_UNTIL, timeout_ms: Optional[int] = None) -> ToolResult:
        try:
            page = await self._ensure_page()
            await page.goto(url, wait_until=wait_until, timeout=timeout_ms or self.config.navigation_timeout_ms)
            return ToolResult(success=True, output=f"Navigated to {page.url}", data={"url": page.url})
        except Exception as e:
            return ToolResult.failed(f"Failed to navigate to {url}: {e}", url=url)

    async def click(self, selector: str, timeout_ms: Optional[int] = None) -> ToolResult:
        try:
            page = await self._ensure_page()
            await page.click(selector, timeout=self._timeout(timeout_ms))
            return ToolResult(success=True, output=f"Clicked element: {selector}")
        except Exception as e:
            return ToolResult.failed(f"Failed to click {selector}: {e}")

    async def type_text(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> ToolResult:
        try:
            page = await self._ensure_page()
            await page.fill(selector, text, timeout=self._timeout(timeout_ms))
            return ToolResult(success=True, output=f"Typed into {selector}")
        except Exception as e:
            return ToolResult.failed(f"Failed to type into {selector}: {e}")

    async def get_text(self, selector: str, timeout_ms: Optional[int] = None) -> ToolResult:
        try:
            page = await self._ensure_page()
            text = await page.locator(selector).first.inner_text(timeout=self._timeout(timeout_ms))
            return ToolResult(success=True, output=text, data={"text": text})
        except Exception as e:
            return ToolResult.failed(f"Failed to read text of {selector}: {e}")

    async def get_attribute(self, selector: str, attribute: str, timeout_ms: Optional[int] = None) -> ToolResult:
        try:
            page = await self._ensure_page()
            value = await page.locator(selector).first.get_attribute(attribute, timeout=self._timeout(timeout_ms))
            return ToolResult(success=True, output=value or "", data={"value": value})
        except Exception as e:
            return ToolResult.failed(f"Failed to read {attribute} of {selector}: {e}")

    async def get_all_elements(
        self,
        selector: str,
        attribute: Optional[str] = None,
        get_text: bool = False,
        wait_for_selector: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> ToolResult:
        try:
            page = await self._ensure_page()
            if wait_for_selector:
                await page.wait_for_selector(selector, timeout=self._timeout(timeout_ms))
            elements: List[Dict[str, Any]] = await page.eval_on_selector_all(
                selector,
                _COLLECT_ELEMENTS_JS,
                {"getText": get_text, "attribute": attribute},
            )
            return ToolResult(
                success=True,
                output=f"Found {len(elements)} elements for {selector}",
                data={"elements": elements},
            )
        except Exception as e:
            return ToolResult.failed(f"Failed to query {selector}: {e}", elements=[])

    async def scroll_into_view(self, selector: str, timeout_ms: Optional[int] = None) -> ToolResult:
        try:
            page = await self._ensure_page()
            await page.locator(selector).first.scroll_into_view_if_needed(timeout=self._timeout(timeout_ms))
            return ToolResult(success=True, output=f"Scrolled to {selector}")
        except Exception as e:
            return ToolResult.failed(f"Failed to scroll to {selector}: {e}")

    async def get_current_page_info(self) -> ToolResult:
        try:
            page = await self._ensure_page()
            title = await page.title()
            return ToolResult(success=True, output=title, data={"url": page.url, "title": title})
        except Exception as e:
            return ToolResult.failed(f"Failed to read page info: {e}")

    async def close(self) -> None:
        for resource in (self.page, self.context, self.browser):
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                self.logger.debug(f"Ignoring error while closing browser: {e}")
        if self.playwright is not None:
            try:
                await self.playwright.stop()
            except Exception as e:
                self.logger.debug(f"Ignoring error while stopping playwright: {e}")

        self.page = None
        self.context = None
        self.browser = None
        self.playwright = None
