"""
Action Protocol
The closed set of tools the decision engine may choose from, one per step.

Each variant is tagged by its `tool` literal; `Action` is a discriminated
union, so a payload validates into exactly one variant or is rejected.
"""
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from .models import Finding, SearchEngine, is_http_url
from ..browser.base import ToolResult


class PerformSearchAction(BaseModel):
    tool: Literal["performSearch"] = "performSearch"
    query: str = Field(min_length=1, description="Search query")
    engine: Optional[SearchEngine] = Field(default=None, description="Search engine, google when omitted")


class GoToPageAction(BaseModel):
    tool: Literal["goToPage"] = "goToPage"
    url: str = Field(description="Absolute http(s) URL to open")

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not is_http_url(value):
            raise ValueError(f"not a valid http(s) URL: {value!r}")
        return value


class ClickElementAction(BaseModel):
    tool: Literal["clickElement"] = "clickElement"
    selector: str = Field(description="CSS selector for the element to click")


class TypeTextAction(BaseModel):
    tool: Literal["typeText"] = "typeText"
    selector: str = Field(description="CSS selector for the input element")
    text: str


class GetTextAction(BaseModel):
    tool: Literal["getText"] = "getText"
    selector: str = Field(description="CSS selector for the element to get text from")


class GetAttributeAction(BaseModel):
    tool: Literal["getAttribute"] = "getAttribute"
    selector: str = Field(description="CSS selector for the element")
    attribute: str = Field(description="The attribute to read")


class GetAllElementsAction(BaseModel):
    tool: Literal["getAllElements"] = "getAllElements"
    selector: str = Field(description="CSS selector for elements to extract")
    extract_text: Optional[bool] = Field(default=None, description="Whether to extract text content")
    extract_attribute: Optional[str] = Field(default=None, description="Attribute to extract from elements")


class ExtractSearchResultsAction(BaseModel):
    tool: Literal["extractSearchResults"] = "extractSearchResults"
    max_results: Optional[int] = Field(default=None, ge=3, le=20, description="Maximum search results to extract")


class ScrollToAction(BaseModel):
    tool: Literal["scrollTo"] = "scrollTo"
    selector: str = Field(description="CSS selector for the element to scroll to")


class SleepAction(BaseModel):
    tool: Literal["sleep"] = "sleep"
    ms: int = Field(ge=50, le=5000, description="Milliseconds to pause")


class UpdateScratchpadAction(BaseModel):
    tool: Literal["updateScratchpad"] = "updateScratchpad"
    new_data: str = Field(description="New information to add to the research notes")


class SaveFindingAction(BaseModel):
    tool: Literal["saveFinding"] = "saveFinding"
    finding: Finding = Field(description="Structured research finding to keep")


class ReplanAction(BaseModel):
    tool: Literal["replan"] = "replan"
    reason: str = Field(description="Why replanning is needed")


class FinishTaskAction(BaseModel):
    tool: Literal["finishTask"] = "finishTask"
    result: str = Field(description="The final result or summary of the task")


Action = Annotated[
    Union[
        PerformSearchAction,
        GoToPageAction,
        ClickElementAction,
        TypeTextAction,
        GetTextAction,
        GetAttributeAction,
        GetAllElementsAction,
        ExtractSearchResultsAction,
        ScrollToAction,
        SleepAction,
        UpdateScratchpadAction,
        SaveFindingAction,
        ReplanAction,
        FinishTaskAction,
    ],
    Field(discriminator="tool"),
]

ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)

ACTION_TOOLS = (
    "performSearch", "goToPage", "clickElement", "typeText", "getText",
    "getAttribute", "getAllElements", "extractSearchResults", "scrollTo",
    "sleep", "updateScratchpad", "saveFinding", "replan", "finishTask",
)


def parse_action(payload: Dict[str, Any]) -> Action:
    """Validate a raw payload into exactly one Action variant."""
    return ACTION_ADAPTER.validate_python(payload)


def describe_action(action: Action) -> str:
    """Short label used in logs and in the decision prompt's history."""
    if isinstance(action, PerformSearchAction):
        return f'{action.tool} - "{action.query}"'
    return action.tool


class ActionHistoryEntry(BaseModel):
    """One executed step: the chosen action and what executing it returned."""
    action: Action
    result: ToolResult
