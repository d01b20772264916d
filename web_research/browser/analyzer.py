"""
Page Analyzer
Fetches a page over HTTP and turns it into readable text or a structured
ContentAnalysis, with SSRF protection on the fetched URL.
"""
import ipaddress
import json
import socket
from abc import ABC, abstractmethod
from typing import Optional, Tuple
from urllib.parse import urlparse

import httpx
import trafilatura
from pydantic import BaseModel

from ..core.logging import analyzer_logger
from ..core.models import ContentAnalysis
from ..prompts import CONTENT_ANALYSIS_PROMPT
from ..providers.structured import StructuredGenerator

# Private IP ranges to block for SSRF protection
PRIVATE_IP_RANGES = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

BLOCKED_HOSTNAMES = {
    "localhost",
    "0.0.0.0",
    "metadata.google.internal",
}

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_MAX_CHARS = 50000
# Text handed to the model for a deep analysis
ANALYSIS_PROMPT_CHARS = 12000


class PageFetchError(RuntimeError):
    """The page could not be fetched or yielded no readable content."""


class ExtractedText(BaseModel):
    """Cheap text-only view of a page."""
    url: str
    title: str = ""
    description: str = ""
    text: str = ""


def is_private_ip(ip_str: str) -> bool:
    try:
        ip = ipaddress.ip_address(ip_str)
        return any(ip in network for network in PRIVATE_IP_RANGES)
    except ValueError:
        return False


def is_safe_url(url: str) -> Tuple[bool, str]:
    """
    Check if a URL is safe to fetch (SSRF protection).

    Returns:
        Tuple of (is_safe, reason)
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False, f"Invalid scheme: {parsed.scheme or '(none)'}"

    hostname = parsed.hostname
    if not hostname:
        return False, "Missing hostname"

    if hostname.lower() in BLOCKED_HOSTNAMES:
        return False, f"Blocked hostname: {hostname}"
    if is_private_ip(hostname):
        return False, f"Private IP address blocked: {hostname}"

    try:
        for info in socket.getaddrinfo(hostname, None):
            ip_str = info[4][0]
            if is_private_ip(ip_str):
                return False, f"Hostname resolves to private IP: {ip_str}"
    except socket.gaierror:
        # Unresolvable here; let the HTTP client report it
        pass

    return True, "OK"


def extract_text_from_html(html: str) -> Tuple[str, str, str]:
    """Readable text, title and description of an HTML document."""
    text = trafilatura.extract(html, output_format="txt", include_comments=False) or ""
    metadata = trafilatura.extract_metadata(html)
    title = (metadata.title if metadata else None) or ""
    description = (metadata.description if metadata else None) or ""
    return text, title, description


class PageAnalyzer(ABC):
    """Turns a URL into page content for the observer."""

    @abstractmethod
    async def analyze(self, url: str, timeout_ms: int = 20000, max_scrolls: int = 1) -> ContentAnalysis:
        """Structured summary of the page."""
        pass

    @abstractmethod
    async def quick_extract_text(self, url: str, timeout_ms: int = 15000) -> ExtractedText:
        """Plain text and title of the page."""
        pass


class WebPageAnalyzer(PageAnalyzer):
    """
    HTTP page analyzer.

    Fetches with httpx, extracts with trafilatura and, when a structured
    generator is available, asks the model for a ContentAnalysis. Without a
    generator (or when the model fails) the analysis is text-only with zero
    confidence. `max_scrolls` has no effect on a plain HTTP fetch.
    """

    def __init__(
        self,
        generator: Optional[StructuredGenerator] = None,
        client: Optional[httpx.AsyncClient] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        max_chars: int = DEFAULT_MAX_CHARS,
        summary_chars: int = 1500,
        block_private_ips: bool = True,
    ):
        self.generator = generator
        self.client = client
        self.user_agent = user_agent
        self.max_chars = max_chars
        self.summary_chars = summary_chars
        self.block_private_ips = block_private_ips
        self.logger = analyzer_logger()

    async def _get(self, url: str, timeout_seconds: float) -> httpx.Response:
        headers = {"User-Agent": self.user_agent}
        if self.client is not None:
            return await self.client.get(url, headers=headers, timeout=timeout_seconds)
        async with httpx.AsyncClient(follow_redirects=True, max_redirects=5) as client:
            return await client.get(url, headers=headers, timeout=timeout_seconds)

    async def quick_extract_text(self, url: str, timeout_ms: int = 15000) -> ExtractedText:
        if self.block_private_ips:
            is_safe, reason = is_safe_url(url)
            if not is_safe:
                raise PageFetchError(f"URL blocked: {reason}")

        try:
            response = await self._get(url, timeout_ms / 1000)
        except httpx.TimeoutException as e:
            raise PageFetchError(f"Request timed out after {timeout_ms}ms") from e
        except httpx.RequestError as e:
            raise PageFetchError(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise PageFetchError(f"HTTP error: {response.status_code}")

        content_type = response.headers.get("content-type", "").lower()
        title = description = ""
        if "application/json" in content_type:
            text = json.dumps(response.json(), indent=2)
        elif "text/plain" in content_type or "text/markdown" in content_type:
            text = response.text
        else:
            text, title, description = extract_text_from_html(response.text)

        return ExtractedText(
            url=str(response.url),
            title=title,
            description=description,
            text=text[:self.max_chars],
        )

    async def analyze(self, url: str, timeout_ms: int = 20000, max_scrolls: int = 1) -> ContentAnalysis:
        page = await self.quick_extract_text(url, timeout_ms)
        text_only = ContentAnalysis(
            main_content=page.text,
            title=page.title,
            summary=page.text[:self.summary_chars],
        )
        if self.generator is None or not page.text:
            return text_only

        prompt = CONTENT_ANALYSIS_PROMPT.format(
            url=url,
            title=page.title or "(untitled)",
            description=page.description or "(none)",
            text=page.text[:ANALYSIS_PROMPT_CHARS],
        )
        try:
            return await self.generator.generate(
                ContentAnalysis,
                prompt,
                schema_name="ContentAnalysis",
                schema_description="Structured summary of one web page",
            )
        except Exception as e:
            self.logger.warning(f"Content analysis failed for {url}: {e}. Using text-only analysis")
            return text_only
