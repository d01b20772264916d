"""
Browser Driver Interface
Abstract base class for the headless browser the research loop drives.
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from pydantic import BaseModel

DEFAULT_WAIT_UNTIL = "domcontentloaded"


class ToolResult(BaseModel):
    """Result of one browser call or executed action"""
    success: bool
    output: str = ""
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def failed(cls, message: str, **data: Any) -> "ToolResult":
        return cls(success=False, output=message, data=data or None)


class BrowserDriver(ABC):
    """
    Abstract headless browser.

    Implementations report page-level failures (timeouts, missing selectors,
    navigation errors) as ToolResult(success=False) instead of raising.
    One driver instance belongs to exactly one research run.
    """

    @abstractmethod
    async def navigate(self, url: str, wait_until: str = DEFAULT_WAIT_UNTIL, timeout_ms: Optional[int] = None) -> ToolResult:
        """Navigate to a URL. data: {"url": final_url}"""
        pass

    @abstractmethod
    async def click(self, selector: str, timeout_ms: Optional[int] = None) -> ToolResult:
        pass

    @abstractmethod
    async def type_text(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> ToolResult:
        pass

    @abstractmethod
    async def get_text(self, selector: str, timeout_ms: Optional[int] = None) -> ToolResult:
        """Text content of the first match. data: {"text": str}"""
        pass

    @abstractmethod
    async def get_attribute(self, selector: str, attribute: str, timeout_ms: Optional[int] = None) -> ToolResult:
        """Attribute of the first match. data: {"value": str}"""
        pass

    @abstractmethod
    async def get_all_elements(
        self,
        selector: str,
        attribute: Optional[str] = None,
        get_text: bool = False,
        wait_for_selector: bool = True,
        timeout_ms: Optional[int] = None,
    ) -> ToolResult:
        """All matches. data: {"elements": [{"text": str | None, "attribute": str | None}]}"""
        pass

    @abstractmethod
    async def scroll_into_view(self, selector: str, timeout_ms: Optional[int] = None) -> ToolResult:
        pass

    @abstractmethod
    async def get_current_page_info(self) -> ToolResult:
        """Current location. data: {"url": str, "title": str}"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the browser session. Safe to call more than once."""
        pass
