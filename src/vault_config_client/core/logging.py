"""Logging configuration for the Vault config client.

Provides structured logging through structlog with JSON or console
rendering. Library code only asks for loggers via ``get_logger``; the
application decides whether to call ``setup_logging``.
"""

import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

from .config import VaultSettings


def setup_logging(
    settings: VaultSettings,
    enable_json: bool = False,
    enable_rich: bool | None = None,
) -> None:
    """Configure client logging.

    Args:
        settings: Client settings
        enable_json: Render log events as JSON
        enable_rich: Force Rich formatting (None = use Rich unless JSON is on)
    """
    if enable_rich is None:
        enable_rich = not enable_json

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if enable_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=enable_rich))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if enable_rich and not enable_json:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_level=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt="%(message)s"))
    handler.setLevel(settings.log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # aiohttp is chatty at debug level
    for logger_name in ("aiohttp.client", "aiohttp.internal", "asyncio"):
        logging.getLogger(logger_name).setLevel(
            max(logging.WARNING, getattr(logging, settings.log_level))
        )

    get_logger(__name__).info(
        "Logging configured",
        log_level=settings.log_level,
        json_logging=enable_json,
        rich_logging=enable_rich,
    )


class ContextualLogger:
    """Logger with automatic context management."""

    def __init__(self, name: str, **context: Any) -> None:
        self._name = name
        self._logger = structlog.get_logger(name)
        self._context = context

    @property
    def name(self) -> str:
        return self._name

    def bind(self, **new_context: Any) -> "ContextualLogger":
        """Create a new logger with additional context."""
        combined_context = {**self._context, **new_context}
        return ContextualLogger(self._name, **combined_context)

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        """Internal logging method with context."""
        combined_kwargs = {**self._context, **kwargs}
        getattr(self._logger, level)(message, **combined_kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log("debug", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log("info", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log("warning", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        self._log("error", message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._log("exception", message, **kwargs)


def get_logger(name: str, **context: Any) -> ContextualLogger:
    """Get a contextual logger instance.

    Args:
        name: Logger name
        **context: Additional context to include in all log messages

    Returns:
        ContextualLogger: Configured logger instance
    """
    return ContextualLogger(name, **context)


@contextmanager
def log_context(**context: Any) -> Generator[None, None, None]:
    """Context manager for temporary logging context.

    Args:
        **context: Context to add to all log messages within this block
    """
    tokens = structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
