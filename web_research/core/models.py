"""
Research Data Model
Plans, search queries, findings and observed page state.
"""
from typing import Dict, List, Literal, Optional, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

SearchEngine = Literal["google", "bing", "duckduckgo"]
Priority = Literal["high", "medium", "low"]
ResearchDepth = Literal["broad", "focused", "deep"]
PerformanceMode = Literal["fast", "balanced", "thorough"]

# (engine, query) identity of a search
SearchKey = Tuple[str, str]

# Tools a plan may recommend for extraction
ToolName = Literal[
    "getText",
    "getAttribute",
    "getAllElements",
    "extractSearchResults",
    "clickElement",
    "typeText",
    "scrollTo",
]


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class SearchQuery(BaseModel):
    """One planned search. Identity for dedup is (engine, query)."""
    model_config = ConfigDict(frozen=True)

    query: str = Field(min_length=1, description="Search query to use")
    engine: SearchEngine = Field(default="google", description="Search engine to run the query on")
    purpose: str = Field(description="What this search aims to find")
    priority: Priority = Field(description="How important this search is to the task")

    @property
    def key(self) -> SearchKey:
        return (self.engine, self.query)


class ExtractionApproach(BaseModel):
    model_config = ConfigDict(frozen=True)

    tools: List[ToolName] = Field(description="Primary tools to use for data extraction")
    strategy: str = Field(description="How to extract the needed information")
    selectors: List[str] = Field(default_factory=list, description="CSS selectors to target for content")


class ResearchPlan(BaseModel):
    """Declarative research strategy. Immutable; a replan replaces it wholesale."""
    model_config = ConfigDict(frozen=True)

    strategy: str = Field(description="Overall research strategy and approach")
    search_queries: List[SearchQuery] = Field(min_length=1, description="Search queries to perform, best first")
    target_domains: List[str] = Field(
        default_factory=list,
        description="Preferred domains if any (e.g. .edu, .gov, wikipedia.org)",
    )
    extraction: ExtractionApproach
    expected_findings: int = Field(ge=1, le=20, description="Expected number of quality findings")
    estimated_steps: int = Field(ge=5, le=50, description="Estimated steps needed")
    depth: ResearchDepth = Field(description="Cast a wide net (broad) or dig into fewer sources (deep)")


class Finding(BaseModel):
    """A structured, user-facing unit of research output."""
    title: str = Field(min_length=1)
    url: str = Field(description="Absolute http(s) URL of the source")
    summary: Optional[str] = None
    source: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not is_http_url(value):
            raise ValueError(f"not a valid http(s) URL: {value!r}")
        return value


class PageLink(BaseModel):
    text: str = ""
    url: str


class ContentAnalysis(BaseModel):
    """Structured summary of one page produced by the page analyzer."""
    main_content: str = Field(default="", description="The main textual content of the page, cleaned")
    title: str = Field(default="", description="The primary title or heading of the page")
    summary: str = Field(default="", description="A concise summary of the page content")
    key_points: List[str] = Field(default_factory=list, description="Important bullet points")
    content_type: Literal["article", "product", "documentation", "news", "blog", "landing", "other"] = "other"
    relevant_links: List[Dict[str, str]] = Field(
        default_factory=list,
        description="Important links as {url, text, description}",
    )
    data_points: List[Dict[str, str]] = Field(
        default_factory=list,
        description="Structured data points as {label, value, type}",
    )
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Confidence in the extraction quality")


class PageState(BaseModel):
    """Observed state of the current browser page, cached per URL for one run."""
    url: str
    title: str = ""
    content_summary: str = ""
    links: List[PageLink] = Field(default_factory=list)
    is_search_results_page: bool = False
    analysis: Optional[ContentAnalysis] = None

