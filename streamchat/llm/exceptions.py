"""
Error types for streaming chat requests.

Every request-level failure carries the provider and model it was issued
against, so callers can log or display it without extra bookkeeping:
- HTTP status failures keep the status code and response headers
- Transport failures wrap the underlying httpx error
- Overlapping calls on one client are rejected up front
"""

from __future__ import annotations


class LLMError(Exception):
    """Base LLM error with rich context."""

    def __init__(
        self,
        message: str,
        provider: str,
        model: str,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.response_data = response_data or {}


class ResponseStatusError(LLMError):
    """The API answered with a non-2xx status; the body was never read."""
    pass


class TransportError(LLMError):
    """Network or protocol failure while sending or reading the stream."""
    pass


class RequestInFlightError(LLMError):
    """A second call was started while the client still had one in flight."""

    def __init__(self, request_id: str, provider: str, model: str):
        super().__init__(
            f"Request {request_id} is still in flight; abort it or wait for it "
            "before starting another",
            provider,
            model,
        )
        self.request_id = request_id
