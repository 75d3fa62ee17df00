"""
Streaming chat completion client with dataclass-based models.

This package provides:
- Type-safe request models
- Line-buffered SSE parsing with malformed-event recovery
- Per-call cancellation handles
- Typed terminal chunks instead of in-band marker strings
"""

from __future__ import annotations

from .exceptions import (
    LLMError,
    RequestInFlightError,
    ResponseStatusError,
    TransportError,
)
from .models import ChatMessage, ChatRequest, MessageRole, ProviderConfig
from .streaming.models import StreamChunk, StreamChunkType, StreamState
from .client import StreamingCall, StreamingChatClient

__all__ = [
    # Core models
    "ChatMessage",
    "ChatRequest",
    # Exceptions
    "LLMError",
    "MessageRole",
    "ProviderConfig",
    "RequestInFlightError",
    "ResponseStatusError",
    "StreamChunk",
    "StreamChunkType",
    "StreamState",
    # Client
    "StreamingCall",
    "StreamingChatClient",
    "TransportError",
]
