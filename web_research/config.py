"""
Web Research Configuration
Loads configuration from config.yaml and API keys from .env
"""
import os
import logging
from pathlib import Path
from dotenv import load_dotenv
import yaml
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal


PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")

logger = logging.getLogger(__name__)

PerformanceMode = Literal["fast", "balanced", "thorough"]
SearchEngine = Literal["google", "bing", "duckduckgo"]


def load_yaml_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from config.yaml, falling back to defaults when absent"""
    config_path = config_path or Path(os.getenv("WEB_RESEARCH_CONFIG", PROJECT_ROOT / "config.yaml"))

    if not config_path.exists():
        logger.debug(f"Configuration file not found: {config_path}, using defaults")
        return {}

    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


class GeminiConfig(BaseModel):
    """Gemini provider configuration"""
    model: str = "gemini-2.0-flash"
    temperature: float = 0.3
    max_tokens: int = 8192
    api_key: Optional[str] = os.getenv("GOOGLE_API_KEY")


class DeepSeekConfig(BaseModel):
    """DeepSeek provider configuration"""
    model: str = "deepseek-chat"
    base_url: str = "https://api.deepseek.com"
    temperature: float = 0.3
    max_tokens: int = 4096
    api_key: Optional[str] = os.getenv("DEEPSEEK_API_KEY")


class OpenAIConfig(BaseModel):
    """OpenAI provider configuration"""
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 4096
    api_key: Optional[str] = os.getenv("OPENAI_API_KEY")


class OllamaConfig(BaseModel):
    """Ollama (local, OpenAI-compatible) configuration"""
    model: str = "llama3"
    base_url: str = "http://localhost:11434/v1"


class LLMConfig(BaseModel):
    """LLM Provider Configuration"""
    default_provider: str = "gemini"
    gemini: GeminiConfig = GeminiConfig()
    deepseek: DeepSeekConfig = DeepSeekConfig()
    openai: OpenAIConfig = OpenAIConfig()
    ollama: OllamaConfig = OllamaConfig()
    fallback_chain: List[str] = []
    timeout_seconds: Optional[float] = 60.0


class BrowserConfig(BaseModel):
    headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    viewport: Dict[str, int] = {"width": 1280, "height": 720}
    navigation_timeout_ms: int = 15000
    element_timeout_ms: int = 5000
    links_timeout_ms: int = 3000


class ResearchSettings(BaseModel):
    """Run-level knobs for the research loop"""
    max_steps: int = 35
    max_findings: int = 10
    max_replans: int = Field(default=2, ge=0)
    performance_mode: PerformanceMode = "balanced"
    default_engine: SearchEngine = "google"
    # Planned searches run on step 1 and every search_cadence steps after it
    search_cadence: int = Field(default=3, ge=1)
    # Deep analysis runs when step % analysis_cadence == 0 (always in thorough mode)
    analysis_cadence: int = Field(default=2, ge=1)
    search_settle_ms: int = Field(default=1000, ge=0)
    history_window: int = Field(default=6, ge=0)
    max_links: Dict[str, int] = {"fast": 15, "balanced": 20, "thorough": 30}
    summary_chars: int = 1500
    deep_analysis_timeout_ms: int = 20000
    quick_extract_timeout_ms: int = 15000

    def links_for_mode(self, mode: str) -> int:
        return self.max_links.get(mode, self.max_links.get("balanced", 20))


class TraceConfig(BaseModel):
    """Run trace configuration"""
    enabled: bool = False
    trace_dir: str = "./traces"
    include_content: bool = True
    max_content_length: int = 10000


class ServerConfig(BaseModel):
    """Server Configuration"""
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = ["*"]


class LoggingConfig(BaseModel):
    """Logging Configuration"""
    level: str = "INFO"
    log_dir: str = "./logs"
    max_days: int = 15
    json_format: bool = True
    console_colors: bool = True
    timezone: str = "UTC"


class Config(BaseModel):
    """Main Configuration - loaded from config.yaml"""
    llm: LLMConfig = LLMConfig()
    browser: BrowserConfig = BrowserConfig()
    research: ResearchSettings = ResearchSettings()
    trace: TraceConfig = TraceConfig()
    server: ServerConfig = ServerConfig()
    logging: LoggingConfig = LoggingConfig()

    project_root: Path = PROJECT_ROOT


def create_config_from_yaml(yaml_data: Dict[str, Any]) -> Config:
    """Create Config object from YAML data"""
    # Build LLM config with API keys from env
    llm_data = yaml_data.get("llm", {})
    llm_config = LLMConfig(
        default_provider=llm_data.get("provider", "gemini"),
        gemini=GeminiConfig(**llm_data.get("gemini", {})),
        deepseek=DeepSeekConfig(**llm_data.get("deepseek", {})),
        openai=OpenAIConfig(**llm_data.get("openai", {})),
        ollama=OllamaConfig(**llm_data.get("ollama", {})),
        fallback_chain=llm_data.get("fallback_chain", []),
        timeout_seconds=llm_data.get("timeout_seconds", 60.0),
    )

    return Config(
        llm=llm_config,
        browser=BrowserConfig(**yaml_data.get("browser", {})),
        research=ResearchSettings(**yaml_data.get("research", {})),
        trace=TraceConfig(**yaml_data.get("trace", {})),
        server=ServerConfig(**yaml_data.get("server", {})),
        logging=LoggingConfig(**yaml_data.get("logging", {})),
    )


# Create global config instance
config = create_config_from_yaml(load_yaml_config())


def reload_config():
    """Reload configuration from config.yaml"""
    global config
    config = create_config_from_yaml(load_yaml_config())
    return config
