"""
Centralized logging configuration for the exercise grader.

The CLI owns stdout, so log records go to stderr (and optionally to a
rotating file).
"""

import re
import sys
from pathlib import Path
from typing import Optional

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{function}:{line} | {message}"

_SECRET_PATTERNS = [
    # Google API keys (AIza...)
    (re.compile(r"AIza[a-zA-Z0-9_-]{35}"), "AIza[REDACTED]"),
    # OpenAI-style keys
    (re.compile(r"sk-[a-zA-Z0-9_-]{20,}"), "sk-[REDACTED]"),
    # Bearer tokens
    (re.compile(r"(Bearer\s+)[a-zA-Z0-9._-]{20,}"), r"\1[REDACTED]"),
    # key=... query parameters
    (re.compile(r"(key=)[a-zA-Z0-9_-]{20,}"), r"\1[REDACTED]"),
]


def sanitize_for_logging(text: str) -> str:
    """
    Mask API keys and tokens before they reach a log sink.

    Args:
        text: Text to sanitize

    Returns:
        Sanitized text with sensitive values masked
    """
    if not text:
        return text
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    serialize: bool = False
) -> None:
    """
    Configure Loguru sinks.

    Args:
        level: Log level for the console sink
        log_file: Optional path to a log file (always DEBUG)
        serialize: Emit JSON records instead of text on the console
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        serialize=serialize,
        backtrace=True,
        diagnose=False,  # Locals may contain image payloads or API keys
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            encoding="utf-8",
        )

    # Suppress noisy third-party loggers
    logger.disable("httpx")
    logger.disable("httpcore")
    logger.disable("PIL")
