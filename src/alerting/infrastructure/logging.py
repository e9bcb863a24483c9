"""Structured logging utilities with evaluation context management."""

import contextvars
import sys
from typing import Any

from loguru import logger

# Context variables for the configuration/rule currently being evaluated
evaluation_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "evaluation_context", default={}
)


class LoggingContext:
    """
    Context manager for structured logging with automatic context injection.

    Asyncio tasks copy the current context when created, so a context entered
    inside one configuration worker never leaks into its siblings.

    Example:
        with LoggingContext(configuration_id="cfg-1"):
            logger.info("Evaluating configuration")  # Will include configuration_id
    """

    def __init__(self, **context_data):
        self.context_data = context_data
        self.token = None

    def __enter__(self):
        current = evaluation_context.get().copy()
        current.update(self.context_data)
        self.token = evaluation_context.set(current)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token:
            evaluation_context.reset(self.token)


def get_logging_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return evaluation_context.get().copy()


def _context_filter(record) -> bool:
    """Copy context variables into the record's extras."""
    record["extra"].setdefault("configuration_id", "-")
    record["extra"].setdefault("rule_id", "-")
    for key, value in evaluation_context.get().items():
        record["extra"][key] = value
    return True


def configure_structured_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure loguru to include evaluation context in all log messages.

    This should be called once at application startup; library code only logs.

    Args:
        level: Minimum level for the console sink
        log_file: Optional path for a rotating file sink
    """
    logger.remove()

    logger.add(
        sink=sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[configuration_id]}</cyan>:<cyan>{extra[rule_id]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        filter=_context_filter,
        level=level,
        colorize=True,
    )

    if log_file:
        logger.add(
            sink=log_file,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra} | {name}:{function}:{line} | {message}",
            filter=_context_filter,
            level="INFO",
            rotation="100 MB",
            retention="30 days",
            compression="zip",
            serialize=False,
        )
