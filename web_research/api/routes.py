"""
API Routes
REST endpoints for running research tasks.
"""
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..core.logging import api_logger
from ..core.memory import ResearchResult
from ..core.models import PerformanceMode
from ..core.orchestrator import ResearchConfigurationError, WebResearchAgent
from ..providers import create_provider

router = APIRouter()

AgentFactory = Callable[[Optional[str], Optional[str]], WebResearchAgent]


# Request models
class ResearchRequest(BaseModel):
    task: str = Field(min_length=1)
    start_url: Optional[str] = None
    max_steps: Optional[int] = Field(default=None, ge=1, le=100)
    performance_mode: Optional[PerformanceMode] = None
    max_findings: Optional[int] = Field(default=None, ge=1, le=20)
    provider: Optional[str] = None  # gemini, openai, deepseek or ollama
    model: Optional[str] = None


def build_agent(provider: Optional[str] = None, model: Optional[str] = None) -> WebResearchAgent:
    """Agent backed by the named (or configured default) provider."""
    try:
        llm = create_provider(provider, model)
    except ValueError as e:
        raise ResearchConfigurationError(str(e)) from e
    return WebResearchAgent.from_model(llm)


def get_agent_factory() -> AgentFactory:
    return build_agent


@router.post("/research", response_model=ResearchResult)
async def research(request: ResearchRequest, agent_factory: AgentFactory = Depends(get_agent_factory)):
    """Run one research task to completion and return its result"""
    log = api_logger()
    try:
        agent = agent_factory(request.provider, request.model)
    except ResearchConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.error(f"Could not create research agent: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    log.info(f"Research request: {request.task}")
    try:
        return await agent.run(
            request.task,
            start_url=request.start_url,
            max_steps=request.max_steps,
            performance_mode=request.performance_mode,
            max_findings=request.max_findings,
        )
    except Exception as e:
        log.error(f"Research run crashed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
