"""
Centralized logging configuration for the workflow builder.

Features:
- Colored console output per log level
- Provider request/response logging with request ids and timing
- API keys are never written: query-string keys are redacted and only
  header names are logged
"""

import logging
import re
import sys
from typing import Dict, Optional, Union
from pathlib import Path


class Colors:
    """ANSI color codes for terminal output"""
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


_KEY_PARAM_PATTERN = re.compile(r"([?&]key=)[^&]+")
_PREVIEW_LENGTH = 500


def redact_url(url: str) -> str:
    """Hide API keys passed in the query string."""
    return _KEY_PARAM_PATTERN.sub(r"\1***", url)


def _preview(text: str) -> str:
    if len(text) > _PREVIEW_LENGTH:
        return text[:_PREVIEW_LENGTH] + "..."
    return text


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name and logger name"""

    COLORS = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.MAGENTA,
    }

    def format(self, record):
        formatted = super().format(record)

        level_color = self.COLORS.get(record.levelno, Colors.WHITE)
        formatted = formatted.replace(
            record.levelname,
            f"{level_color}{record.levelname}{Colors.RESET}",
            1
        )

        if record.name:
            formatted = formatted.replace(
                f"{record.name} - ",
                f"{Colors.BLUE}{record.name}{Colors.RESET} - ",
                1
            )

        return formatted


class LLMLogger:
    """Specialized logger for provider calls"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log_api_call_start(self, endpoint: str, method: str = "POST", request_id: Optional[str] = None):
        """Log the start of an inbound API call"""
        self.logger.info(f"→ {method} {endpoint} [{request_id or '-'}]")

    def log_api_call_end(self, endpoint: str, method: str = "POST", request_id: Optional[str] = None,
                         duration_ms: Optional[float] = None, status: str = "completed"):
        """Log the end of an inbound API call"""
        duration = f" in {duration_ms:.2f}ms" if duration_ms is not None else ""
        self.logger.info(f"← {method} {endpoint} [{request_id or '-'}] {status}{duration}")

    def log_llm_request(self, provider: str, model: str, url: str, headers: Dict[str, str],
                        prompt: str, request_id: Optional[str] = None):
        """Log an outgoing provider request without credentials"""
        self.logger.info(
            f"🤖 LLM REQUEST [{request_id or '-'}] {provider}/{model} -> {redact_url(url)}"
        )
        self.logger.debug(f"Header names: {sorted(headers.keys())}")
        self.logger.debug(f"Prompt: {_preview(prompt)}")

    def log_llm_response(self, provider: str, model: str, response: str,
                         request_id: Optional[str] = None, duration_ms: Optional[float] = None):
        """Log a provider response preview"""
        duration = f" ({duration_ms:.2f}ms)" if duration_ms is not None else ""
        self.logger.info(
            f"🤖 LLM RESPONSE [{request_id or '-'}] {provider}/{model}{duration}, {len(response)} chars"
        )
        self.logger.debug(f"Response: {_preview(response)}")

    def log_llm_error(self, provider: str, model: str, error: str, request_id: Optional[str] = None):
        """Log a provider failure"""
        self.logger.error(f"❌ LLM ERROR [{request_id or '-'}] {provider}/{model}: {error}")


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "detailed",
    log_file: Optional[Union[str, Path]] = None,
    enable_colors: bool = True
) -> logging.Logger:
    """
    Set up centralized logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format style ('simple', 'detailed', 'json')
        log_file: Optional file path for logging
        enable_colors: Whether to enable colored output (terminal only)

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)

    use_colors = enable_colors and sys.stdout.isatty()
    if log_format == "simple":
        fmt, datefmt = "%(levelname)s - %(message)s", None
    elif log_format == "json":
        fmt = '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
        datefmt = None
        use_colors = False
    else:
        fmt, datefmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s", "%Y-%m-%d %H:%M:%S"

    formatter_cls = ColoredFormatter if use_colors else logging.Formatter
    console_handler.setFormatter(formatter_cls(fmt, datefmt=datefmt))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        # File output is never colored
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        root_logger.addHandler(file_handler)

    # httpx logs full request URLs at INFO, which would include Gemini keys
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name"""
    return logging.getLogger(name)


def get_llm_logger(name: str) -> LLMLogger:
    """Get an LLM logger for the specified logger name"""
    return LLMLogger(logging.getLogger(name))


def configure_logging_from_settings():
    """Configure logging based on application settings"""
    from core.config import settings

    log_level = "DEBUG" if settings.debug else settings.log_level
    setup_logging(
        log_level=log_level,
        log_file=settings.log_file,
        enable_colors=True
    )
    get_logger(__name__).info(f"🎨 Logging configured with level: {log_level}")
