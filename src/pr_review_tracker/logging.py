"""Centralized logging configuration using loguru.

Provides:
- Log level from Settings, overridable by --verbose/--quiet
- Standard library interception (SQLAlchemy, httpx, githubkit)
- Context binding for the tracked user and the PR being synced
- Optional rotating file output
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Libraries whose stdlib loggers are routed through loguru
_INTERCEPTED = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx", "httpcore", "githubkit")

_configured = False


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(name=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _console_format(record: Record) -> str:
    """Console line: time, level, source, optional user/PR context, message."""
    context = ""
    if "user" in record["extra"]:
        context += " <magenta>@{extra[user]}</magenta>"
    if "repo" in record["extra"]:
        context += " <magenta>{extra[repo]}#{extra[pr]}</magenta>"
    source = "{extra[name]}" if "name" in record["extra"] else "{name}"
    return (
        "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | "
        f"<cyan>{source}</cyan>{context} - <level>{{message}}</level>\n{{exception}}"
    )


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> Logger:
    """Configure logging for the application.

    Args:
        level: Base log level from config
        verbose: Use DEBUG (wins over quiet)
        quiet: Use WARNING
        log_file: Optional path for file logging with rotation
        rotation: When to rotate the log file (e.g., "10 MB", "1 day")
        retention: How long to keep rotated logs
        serialize: Write JSON lines to the log file

    Returns:
        Configured logger instance
    """
    global _configured

    effective_level: LogLevel = "DEBUG" if verbose else "WARNING" if quiet else level

    logger.remove()
    logger.add(sys.stderr, level=effective_level, format=_console_format, colorize=True)

    if log_file:
        # The file always gets everything, including context extras
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {function}:{line} | "
            "{extra} | {message}",
            rotation=rotation,
            retention=retention,
            compression="gz",
            serialize=serialize,
        )

    _intercept_stdlib_logging(effective_level)

    _configured = True
    return logger


def _intercept_stdlib_logging(level: LogLevel) -> None:
    """Route library loggers through loguru.

    SQLAlchemy echo output only appears at DEBUG; HTTP transport logs are
    held at WARNING unless debugging.
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    library_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _INTERCEPTED:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> Logger:
    """Get a logger with ``name`` bound as context.

    Usage:
        logger = get_logger(__name__)
        logger.info("Synced {} PRs", count)
    """
    return logger.bind(name=name)


def bind_user(login: str) -> Logger:
    """Logger carrying the tracked user being synced."""
    return logger.bind(name="sync", user=login)


def bind_pr(owner: str, repo: str, pr_number: int | None) -> Logger:
    """Logger carrying the PR being synced.

    Args:
        owner: Repository owner
        repo: Repository name
        pr_number: PR number (None when it could not be parsed from the link)
    """
    return logger.bind(name="sync", repo=f"{owner}/{repo}", pr=pr_number)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


def reset_logging() -> None:
    """Remove all sinks and forget configuration (for tests)."""
    global _configured
    logger.remove()
    _configured = False
