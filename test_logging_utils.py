#!/usr/bin/env python3
"""
Test script for logging utilities.

This validates that the centralized logging and error classification works
correctly.
"""

import asyncio

import httpx
import pytest
from pydantic import ValidationError

from streamchat.llm.exceptions import ResponseStatusError, TransportError
from streamchat.llm.streaming.models import StreamEvent
from streamchat.logging_utils import (
    ContextualLogger,
    StreamErrorHandler,
    operation_context,
)


class TestStreamErrorHandler:
    """Test the StreamErrorHandler class."""

    def test_classify_status_error(self):
        error = ResponseStatusError(
            "HTTP error! status: 429", "deepseek", "deepseek-chat", status_code=429
        )
        assert StreamErrorHandler.classify_error(error) == "http_status_error"

    def test_classify_transport_error(self):
        error = TransportError("HTTP error during streaming", "deepseek", "deepseek-chat")
        error.__cause__ = httpx.ReadError("reset")
        assert StreamErrorHandler.classify_error(error) == "transport_error"

    def test_classify_wrapped_timeout(self):
        error = TransportError("HTTP error during streaming", "deepseek", "deepseek-chat")
        error.__cause__ = httpx.ConnectTimeout("slow")
        assert StreamErrorHandler.classify_error(error) == "timeout_error"

    def test_classify_timeout_error(self):
        assert StreamErrorHandler.classify_error(TimeoutError("slow")) == "timeout_error"

    def test_classify_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            StreamEvent.model_validate_json("{oops")
        assert StreamErrorHandler.classify_error(exc_info.value) == "parse_error"

    def test_classify_connection_error(self):
        error = ConnectionError("Network unreachable")
        assert StreamErrorHandler.classify_error(error) == "connection_error"

    def test_classify_unknown_error(self):
        assert StreamErrorHandler.classify_error(RuntimeError("?")) == "unknown_error"


class TestOperationContext:
    """Test the operation_context manager."""

    @pytest.mark.asyncio
    async def test_success(self):
        async with operation_context("test_operation", context={"request_id": "r1"}) as log:
            assert log is not None

    @pytest.mark.asyncio
    async def test_failure_reraised(self):
        with pytest.raises(ValueError, match="Test error"):
            async with operation_context("test_operation"):
                raise ValueError("Test error")

    @pytest.mark.asyncio
    async def test_cancellation_passes_through(self):
        with pytest.raises(asyncio.CancelledError):
            async with operation_context("test_operation", log_timing=False):
                raise asyncio.CancelledError


class TestContextualLogger:
    """Test ContextualLogger."""

    def test_bind_merges_context(self):
        base = ContextualLogger({"provider": "deepseek"})
        bound = base.bind(request_id="abc")

        assert bound.base_context == {"provider": "deepseek", "request_id": "abc"}
        assert base.base_context == {"provider": "deepseek"}

    def test_logging_methods(self):
        log = ContextualLogger({"provider": "deepseek"})
        log.debug("debug", step=1)
        log.info("info", step=2)
        log.warning("warning", step=3)
        log.error("error", step=4)
