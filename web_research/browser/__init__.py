"""
Browser Module
Headless browser driver interface. The Playwright driver and the HTTP page
analyzer live in their own modules and are imported from there.
"""
from .base import DEFAULT_WAIT_UNTIL, BrowserDriver, ToolResult

__all__ = [
    "DEFAULT_WAIT_UNTIL",
    "BrowserDriver",
    "ToolResult",
]
