"""
Tests for the Playwright Browser
The live test drives a real headless Chromium against a data: URL and is
skipped when Chromium cannot be launched.
"""
from urllib.parse import quote

import pytest

from web_research.browser import playwright_driver
from web_research.browser.playwright_driver import PlaywrightBrowser
from web_research.config import BrowserConfig

PAGE = """<html><head><title>Bundlers</title></head><body>
<main><h1>Bundlers</h1><p class="lead">Vite and esbuild</p></main>
<a href="https://vitejs.dev">Vite</a>
<a href="https://esbuild.github.io">esbuild</a>
<input name="q">
</body></html>"""


class BrokenPlaywright:
    async def start(self):
        raise RuntimeError("Executable doesn't exist")


class TestLifecycle:
    """Launch failures and cleanup without a real browser."""

    @pytest.mark.asyncio
    async def test_close_before_launch(self):
        browser = PlaywrightBrowser(BrowserConfig())
        await browser.close()
        await browser.close()
        assert browser.page is None

    @pytest.mark.asyncio
    async def test_launch_failure_is_a_result(self, monkeypatch):
        monkeypatch.setattr(playwright_driver, "async_playwright", lambda: BrokenPlaywright())
        browser = PlaywrightBrowser(BrowserConfig())

        result = await browser.navigate("https://vitejs.dev")
        info = await browser.get_current_page_info()

        assert result.success is False
        assert "Executable doesn't exist" in result.output
        assert info.success is False
        assert browser.playwright is None
        await browser.close()


class TestLiveBrowser:
    @pytest.mark.asyncio
    async def test_page_operations(self):
        browser = PlaywrightBrowser(BrowserConfig(headless=True))
        try:
            result = await browser.navigate("data:text/html," + quote(PAGE))
            if not result.success:
                pytest.skip(f"Chromium unavailable: {result.output}")

            info = await browser.get_current_page_info()
            assert info.data["title"] == "Bundlers"

            text = await browser.get_text("p.lead")
            assert text.data["text"] == "Vite and esbuild"

            links = await browser.get_all_elements("a[href]", attribute="href", get_text=True)
            assert [e["attribute"] for e in links.data["elements"]] == [
                "https://vitejs.dev",
                "https://esbuild.github.io",
            ]
            assert links.data["elements"][0]["text"] == "Vite"

            typed = await browser.type_text("input[name=q]", "rollup")
            assert typed.success
            value = await browser.get_attribute("a", "href")
            assert value.data["value"] == "https://vitejs.dev"

            missing = await browser.click("#does-not-exist", timeout_ms=200)
            assert missing.success is False
        finally:
            await browser.close()
