"""
Centralized logging and error classification for streamchat.

Features:
- Structured logging with contextual information
- Error type detection and classification for request failures
- Performance timing for streaming calls
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from streamchat.llm.exceptions import ResponseStatusError, TransportError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


class StreamErrorHandler:
    """Maps request failures onto coarse categories for log filtering."""

    @staticmethod
    def classify_error(error: BaseException) -> str:
        """
        Classify an error raised while issuing or reading a streaming call.

        Args:
            error: The exception to classify

        Returns:
            The error category
        """
        if isinstance(error, ResponseStatusError | httpx.HTTPStatusError):
            return "http_status_error"
        if isinstance(error, httpx.TimeoutException | TimeoutError):
            return "timeout_error"
        if isinstance(error, TransportError | httpx.HTTPError):
            cause = error.__cause__
            if isinstance(cause, httpx.TimeoutException):
                return "timeout_error"
            return "transport_error"
        if isinstance(error, ValidationError | ValueError):
            return "parse_error"
        if isinstance(error, ConnectionError | OSError):
            return "connection_error"
        return "unknown_error"


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
    log_timing: bool = True,
):
    """
    Async context manager for operation logging and error handling.

    Failures are logged with their category and re-raised unchanged.
    Cancellation is not an ``Exception`` and passes through unlogged.

    Args:
        operation: Description of the operation
        context: Additional context for logging
        log_timing: Whether to log operation timing

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(
        operation=operation,
        **(context or {}),
    )

    operation_logger.info("Operation started")
    start_time = time.perf_counter() if log_timing else None

    try:
        yield operation_logger

        log_data: dict[str, Any] = {}
        if log_timing and start_time is not None:
            duration = round((time.perf_counter() - start_time) * 1000, 2)
            log_data["duration_ms"] = duration

        operation_logger.info("Operation completed successfully", **log_data)

    except Exception as e:
        error_log_data: dict[str, Any] = {
            "error_type": type(e).__name__,
            "error_category": StreamErrorHandler.classify_error(e),
            "error_message": str(e),
        }
        if log_timing and start_time is not None:
            duration = round((time.perf_counter() - start_time) * 1000, 2)
            error_log_data["duration_ms"] = duration

        operation_logger.error("Operation failed", **error_log_data)
        raise


class ContextualLogger:
    """Logger that maintains context across related operations."""

    def __init__(self, base_context: dict[str, Any] | None = None):
        self.base_context = base_context or {}
        self._logger = logger.bind(**self.base_context)

    def bind(self, **context: Any) -> ContextualLogger:
        """Create a new logger with additional context."""
        merged_context = {**self.base_context, **context}
        return ContextualLogger(merged_context)

    def info(self, message: str, **context: Any) -> None:
        self._logger.info(message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._logger.warning(message, **context)

    def error(self, message: str, **context: Any) -> None:
        self._logger.error(message, **context)

    def debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, **context)
