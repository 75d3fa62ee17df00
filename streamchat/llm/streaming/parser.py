"""
Line-buffered SSE parser for chat completion streams.

Text arrives in arbitrarily sized pieces; complete lines are cut from a
rolling buffer and the trailing partial line waits for the next read, so the
events produced do not depend on how the transport chunked the body.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterable
from contextlib import aclosing

import httpx
import structlog
from pydantic import ValidationError

from .models import DONE_MARKER, RawSSEChunk, SSEEventType, StreamEvent

DATA_PREFIX = "data: "
MAX_LOGGED_PAYLOAD = 200

logger = structlog.get_logger(__name__)


class StreamingParser:
    """SSE parser that skips malformed events instead of failing the stream."""

    def __init__(self) -> None:
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict[str, int]:
        return {
            'total_lines': 0,
            'ignored_lines': 0,
            'total_chunks': 0,
            'content_chunks': 0,
            'error_chunks': 0,
        }

    async def parse_sse_stream(
        self,
        response: httpx.Response,
        chunk_size: int | None = None,
    ) -> AsyncGenerator[RawSSEChunk]:
        """Parse a streamed httpx response, decoding text incrementally."""
        async with (
            aclosing(response.aiter_text(chunk_size=chunk_size)) as text_chunks,
            aclosing(self.parse_text_stream(text_chunks)) as events,
        ):
            async for chunk in events:
                yield chunk

    async def parse_text_stream(
        self, text_chunks: AsyncIterable[str]
    ) -> AsyncGenerator[RawSSEChunk]:
        """
        Yield recognised events in arrival order.

        Stops right after the ``[DONE]`` event; anything following it in the
        raw stream is never looked at. A partial last line left when the
        input ends is dropped.
        """
        buffer = ""

        async for text in text_chunks:
            buffer += text
            *lines, buffer = buffer.split("\n")

            for line in lines:
                chunk = self.parse_line(line)
                if chunk is None:
                    continue

                yield chunk

                if chunk.event_type == SSEEventType.COMPLETION:
                    return

    def parse_line(self, raw_line: str) -> RawSSEChunk | None:
        """Parse one complete line; None for lines that carry no event."""
        self.stats['total_lines'] += 1
        line = raw_line.removesuffix("\r")

        if not line.startswith(DATA_PREFIX):
            self.stats['ignored_lines'] += 1
            return None

        payload = line[len(DATA_PREFIX):]

        if payload == DONE_MARKER:
            self.stats['total_chunks'] += 1
            return RawSSEChunk(
                event_type=SSEEventType.COMPLETION,
                data=None,
                raw_data=payload,
            )

        try:
            event = StreamEvent.model_validate_json(payload)
        except ValidationError as e:
            self.stats['error_chunks'] += 1
            logger.warning(
                "Skipping malformed stream event",
                error_count=e.error_count(),
                error_message=str(e),
                raw_data=payload[:MAX_LOGGED_PAYLOAD],
            )
            return None

        self.stats['total_chunks'] += 1
        if event.content:
            self.stats['content_chunks'] += 1

        return RawSSEChunk(
            event_type=SSEEventType.CHUNK,
            data=event,
            raw_data=payload,
        )

    def get_stats(self) -> dict[str, int]:
        """Get streaming statistics for monitoring."""
        return self.stats.copy()

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self.stats = self._empty_stats()
