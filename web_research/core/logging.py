"""
Logging Infrastructure Module

Provides:
- File logging with daily rotation
- JSON structured output (one object per line)
- Subsystem loggers with colored prefixes
- Run context (run_id, step) carried on every record
"""
import os
import sys
import json
import logging
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime
from typing import Optional, Dict, Any
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

ROOT_LOGGER_NAME = "web_research"
LOG_FILE_NAME = "research.log"

DEFAULT_LOG_DIR = "./logs"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_DAYS = 15
DEFAULT_JSON_FORMAT = True
DEFAULT_TIMEZONE = "UTC"

# Record attributes copied into JSON output when present
CONTEXT_FIELDS = ("run_id", "step", "tool", "url")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def __init__(self, tz: Optional[ZoneInfo] = None):
        super().__init__()
        self.tz = tz

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.now(self.tz).isoformat(),
            "level": record.levelname,
            "subsystem": getattr(record, 'subsystem', record.name),
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Colored console output with subsystem prefixes."""

    COLORS = {
        'DEBUG': '\033[90m',     # Gray
        'INFO': '\033[36m',      # Cyan
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    SUBSYSTEM_COLORS = ['\033[36m', '\033[32m', '\033[33m', '\033[34m', '\033[35m', '\033[31m']

    def __init__(self, use_colors: bool = True, tz: Optional[ZoneInfo] = None):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()
        self.tz = tz

    def _subsystem_color(self, subsystem: str) -> str:
        hash_val = sum(ord(c) for c in subsystem)
        return self.SUBSYSTEM_COLORS[hash_val % len(self.SUBSYSTEM_COLORS)]

    def format(self, record: logging.LogRecord) -> str:
        subsystem = getattr(record, 'subsystem', record.name)
        if subsystem.startswith(f'{ROOT_LOGGER_NAME}.'):
            subsystem = subsystem[len(ROOT_LOGGER_NAME) + 1:]

        timestamp = datetime.now(self.tz).strftime('%H:%M:%S')
        step = getattr(record, 'step', None)
        step_tag = f" #{step}" if step is not None else ""
        message = record.getMessage()

        if self.use_colors:
            level_color = self.COLORS.get(record.levelname, '')
            sub_color = self._subsystem_color(subsystem)
            return (
                f"\033[90m{timestamp}\033[0m {sub_color}[{subsystem}{step_tag}]\033[0m "
                f"{level_color}{message}{self.RESET}"
            )
        return f"{timestamp} [{subsystem}{step_tag}] {message}"


class SubsystemLogger(logging.LoggerAdapter):
    """Logger adapter that adds subsystem and run context."""

    def __init__(self, logger: logging.Logger, subsystem: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, {'subsystem': subsystem})
        self.subsystem = subsystem
        self.context = dict(context or {})

    def process(self, msg, kwargs):
        extra = kwargs.setdefault('extra', {})
        for key, value in self.context.items():
            extra.setdefault(key, value)
        extra['subsystem'] = self.subsystem
        return msg, kwargs

    def child(self, name: str) -> "SubsystemLogger":
        """Create a child logger with extended subsystem path."""
        return SubsystemLogger(self.logger, f"{self.subsystem}/{name}", self.context)

    def bind(self, **context: Any) -> "SubsystemLogger":
        """Return a logger that stamps the given context on every record."""
        return SubsystemLogger(self.logger, self.subsystem, {**self.context, **context})


class LoggingManager:
    """Centralized logging configuration manager."""

    _instance: Optional["LoggingManager"] = None
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if LoggingManager._initialized:
            return

        self.log_dir = DEFAULT_LOG_DIR
        self.log_level = DEFAULT_LOG_LEVEL
        self.max_days = DEFAULT_MAX_DAYS
        self.json_format = DEFAULT_JSON_FORMAT
        self.timezone = DEFAULT_TIMEZONE
        self.tz_info: Optional[ZoneInfo] = None
        self.root_logger: Optional[logging.Logger] = None
        self._file_handler: Optional[TimedRotatingFileHandler] = None
        self._console_handler: Optional[logging.StreamHandler] = None

    def configure(
        self,
        log_dir: Optional[str] = None,
        log_level: Optional[str] = None,
        max_days: Optional[int] = None,
        json_format: Optional[bool] = None,
        console_colors: bool = True,
        timezone: str = DEFAULT_TIMEZONE,
        file_logging: bool = True,
    ):
        """Configure the logging system."""
        if log_dir:
            self.log_dir = log_dir
        if log_level:
            self.log_level = log_level.upper()
        if max_days is not None:
            self.max_days = max_days
        if json_format is not None:
            self.json_format = json_format

        if timezone:
            self.timezone = timezone
            try:
                self.tz_info = ZoneInfo(timezone)
            except (ZoneInfoNotFoundError, ValueError):
                self.tz_info = None

        self._setup_logging(console_colors, file_logging)
        LoggingManager._initialized = True

    def _setup_logging(self, console_colors: bool = True, file_logging: bool = True):
        self.root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.root_logger.setLevel(getattr(logging, self.log_level, logging.INFO))

        for handler in list(self.root_logger.handlers):
            handler.close()
        self.root_logger.handlers.clear()
        self._file_handler = None

        if file_logging:
            os.makedirs(self.log_dir, exist_ok=True)
            self._file_handler = TimedRotatingFileHandler(
                filename=self.get_log_file_path(),
                when="midnight",
                interval=1,
                backupCount=self.max_days,
                encoding="utf-8"
            )
            self._file_handler.suffix = "%Y-%m-%d"
            if self.json_format:
                self._file_handler.setFormatter(JSONFormatter(tz=self.tz_info))
            else:
                self._file_handler.setFormatter(
                    logging.Formatter('%(asctime)s [%(name)s] %(levelname)s: %(message)s')
                )
            self.root_logger.addHandler(self._file_handler)

        self._console_handler = logging.StreamHandler(sys.stdout)
        self._console_handler.setFormatter(ColoredConsoleFormatter(use_colors=console_colors, tz=self.tz_info))
        self.root_logger.addHandler(self._console_handler)

        self.root_logger.propagate = False

    def get_log_file_path(self) -> str:
        return os.path.join(self.log_dir, LOG_FILE_NAME)

    def get_subsystem_logger(self, subsystem: str) -> SubsystemLogger:
        # Unconfigured loggers propagate to the stdlib root so that pytest's caplog sees them
        return SubsystemLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{subsystem}"), subsystem)


_manager = LoggingManager()


def configure_logging(
    log_dir: Optional[str] = None,
    log_level: Optional[str] = None,
    max_days: Optional[int] = None,
    json_format: Optional[bool] = None,
    console_colors: bool = True,
    timezone: str = DEFAULT_TIMEZONE,
    file_logging: bool = True,
):
    """Configure the logging system. Call once at startup."""
    _manager.configure(
        log_dir=log_dir,
        log_level=log_level,
        max_days=max_days,
        json_format=json_format,
        console_colors=console_colors,
        timezone=timezone,
        file_logging=file_logging,
    )


def configure_from_config(cfg=None):
    """Configure logging from the `logging` section of the loaded config."""
    if cfg is None:
        from ..config import config as cfg
    settings = cfg.logging
    configure_logging(
        log_dir=settings.log_dir,
        log_level=settings.level,
        max_days=settings.max_days,
        json_format=settings.json_format,
        console_colors=settings.console_colors,
        timezone=settings.timezone,
    )


def get_logger(subsystem: str) -> SubsystemLogger:
    """
    Get a subsystem logger.

    Usage:
        log = get_logger("browser")
        log.info("Browser initialized")

        step_log = log.bind(run_id="abc123", step=4)
        step_log.debug("Navigating to URL")
    """
    return _manager.get_subsystem_logger(subsystem)


def get_log_file_path() -> str:
    """Get the current log file path."""
    return _manager.get_log_file_path()


@lru_cache(maxsize=32)
def _cached_logger(subsystem: str) -> SubsystemLogger:
    return get_logger(subsystem)


def research_logger() -> SubsystemLogger:
    return _cached_logger("research")


def planner_logger() -> SubsystemLogger:
    return _cached_logger("planner")


def decision_logger() -> SubsystemLogger:
    return _cached_logger("decision")


def observer_logger() -> SubsystemLogger:
    return _cached_logger("observer")


def executor_logger() -> SubsystemLogger:
    return _cached_logger("executor")


def browser_logger() -> SubsystemLogger:
    return _cached_logger("browser")


def analyzer_logger() -> SubsystemLogger:
    return _cached_logger("analyzer")


def llm_logger() -> SubsystemLogger:
    return _cached_logger("llm")


def api_logger() -> SubsystemLogger:
    return _cached_logger("api")
