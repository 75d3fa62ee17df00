"""
Streaming functionality for the chat client.

This package contains:
- SSE line parsing with rolling-buffer reassembly
- The event wire model and the typed chunks handed to callers
"""

from __future__ import annotations

from .models import StreamChunk, StreamChunkType, StreamEvent, StreamState
from .parser import StreamingParser

__all__ = [
    "StreamChunk",
    "StreamChunkType",
    "StreamEvent",
    "StreamState",
    "StreamingParser",
]
