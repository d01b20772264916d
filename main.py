"""
Web Research Agent - Main Entry Point
FastAPI application with CORS.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web_research import __version__
from web_research.api.routes import router
from web_research.config import config
from web_research.core.logging import configure_from_config, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    configure_from_config()
    log = get_logger("api")
    log.info("Starting Web Research Agent")
    log.info(f"LLM provider: {config.llm.default_provider} (fallbacks: {config.llm.fallback_chain or 'none'})")
    log.info(f"Research defaults: max_steps={config.research.max_steps}, mode={config.research.performance_mode}")
    yield
    log.info("Shutting down Web Research Agent")


app = FastAPI(
    title="Web Research Agent",
    description="Autonomous planned web research over a headless browser",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=config.server.host,
        port=config.server.port,
    )
