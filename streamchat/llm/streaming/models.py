"""
Streaming-specific models: the wire format of one event and the typed
chunks handed to callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

DONE_MARKER = "[DONE]"
ABORTED_MARKER = "[ABORTED]"


class StreamDelta(BaseModel):
    """Incremental portion of the model output."""
    content: str | None = None


class StreamChoice(BaseModel):
    delta: StreamDelta | None = None
    index: Any = None
    finish_reason: Any = None


class StreamEvent(BaseModel):
    """
    One decoded ``data:`` payload.

    Only ``choices[0].delta.content`` is consumed; ``id``, ``model``,
    ``usage`` and friends are ignored.
    """
    choices: list[Any] = Field(default_factory=list)

    @field_validator("choices")
    @classmethod
    def _validate_first_choice(cls, choices: list[Any]) -> list[Any]:
        # Later choices are never read and stay unvalidated
        if choices:
            choices[0] = StreamChoice.model_validate(choices[0])
        return choices

    @property
    def content(self) -> str | None:
        if not self.choices:
            return None
        delta = self.choices[0].delta
        return delta.content if delta and delta.content else None


class SSEEventType(Enum):
    """Server-Sent Event types."""
    CHUNK = "chunk"
    COMPLETION = "completion"


@dataclass(frozen=True)
class RawSSEChunk:
    """A recognised ``data:`` line from the HTTP response."""
    event_type: SSEEventType
    data: StreamEvent | None
    raw_data: str


class StreamChunkType(Enum):
    """Types of chunks delivered to callers."""
    CONTENT = "content"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class StreamChunk:
    """Content fragment or terminal marker, delivered in arrival order."""
    chunk_type: StreamChunkType
    content: str | None = None

    @classmethod
    def content_chunk(cls, content: str) -> StreamChunk:
        return cls(StreamChunkType.CONTENT, content)

    @classmethod
    def completed(cls) -> StreamChunk:
        return cls(StreamChunkType.COMPLETED)

    @classmethod
    def aborted(cls) -> StreamChunk:
        return cls(StreamChunkType.ABORTED)

    @property
    def is_terminal(self) -> bool:
        return self.chunk_type is not StreamChunkType.CONTENT

    @property
    def text(self) -> str:
        """Display form; terminal chunks render as the legacy markers."""
        if self.chunk_type is StreamChunkType.COMPLETED:
            return DONE_MARKER
        if self.chunk_type is StreamChunkType.ABORTED:
            return ABORTED_MARKER
        return self.content or ""


class StreamState(Enum):
    """Lifecycle of one streaming call."""
    PENDING = "pending"
    READING = "reading"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_final(self) -> bool:
        return self in (StreamState.COMPLETED, StreamState.ABORTED, StreamState.FAILED)
