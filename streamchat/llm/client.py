"""
Streaming chat completion client.

One call posts the conversation with ``stream: true`` and forwards each
content delta to the caller as it arrives, followed by exactly one terminal
chunk (completed or aborted). Failures are raised instead of signalled.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncGenerator, Callable, Mapping, Sequence
from contextlib import aclosing
from typing import Any

import httpx

from streamchat.config import Configuration
from streamchat.logging_utils import ContextualLogger, operation_context

from .exceptions import RequestInFlightError, ResponseStatusError, TransportError
from .models import ChatMessage, ProviderConfig, coerce_messages
from .streaming.models import SSEEventType, StreamChunk, StreamState
from .streaming.parser import StreamingParser

ChunkHandler = Callable[[StreamChunk], None]
MessageInput = Sequence[ChatMessage | Mapping[str, Any]]


class StreamingCall:
    """
    Cancellation handle for one streaming request.

    ``cancel()`` may be called from any coroutine on the same event loop.
    A cancel that lands before the request task starts skips the HTTP
    request entirely; either way the handler sees a single aborted chunk.
    """

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        self.state = StreamState.PENDING
        self._task: asyncio.Task[StreamState] | None = None
        self._cancel_requested = False

    def bind_task(self, task: asyncio.Task[StreamState]) -> None:
        self._task = task

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    @property
    def done(self) -> bool:
        return self.state.is_final

    def cancel(self) -> bool:
        """Request cancellation. Returns False if it had no effect."""
        if self._cancel_requested or self.state.is_final:
            return False

        self._cancel_requested = True
        if self.state is StreamState.READING and self._task is not None:
            self._task.cancel()
        return True

    async def wait(self) -> StreamState:
        """Wait for the call to finish and return its final state.

        Re-raises the failure of a failed call.
        """
        if self._task is None:
            raise RuntimeError(f"Request {self.request_id} was never started")
        return await self._task


class StreamingChatClient:
    """
    HTTP client for streamed chat completions.

    Tracks at most one in-flight call; starting another before the first has
    finished (or been aborted) raises ``RequestInFlightError``.
    """

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self.client: httpx.AsyncClient = http_client or httpx.AsyncClient(
            timeout=config.timeout
        )
        self.parser = StreamingParser()
        self._current_call: StreamingCall | None = None
        self._log = ContextualLogger(
            {"provider": config.provider, "model": config.model}
        )

    @classmethod
    def from_configuration(
        cls,
        configuration: Configuration | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> StreamingChatClient:
        """Build a client for the active provider; the API key is read here once."""
        configuration = configuration or Configuration()
        llm_config = {
            **configuration.get_llm_config(),
            "http_client": configuration.get_http_client_config(),
        }
        provider_config = ProviderConfig.from_dict(
            configuration.active_provider, llm_config, configuration.llm_api_key
        )
        return cls(provider_config, http_client)

    @property
    def current_call(self) -> StreamingCall | None:
        return self._current_call

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    async def stream_chat(
        self, messages: MessageInput
    ) -> AsyncGenerator[StreamChunk]:
        """
        Yield content chunks, then one completed chunk.

        The completed chunk is yielded after the response has been closed,
        both for ``data: [DONE]`` and for a body that simply ends.
        """
        request = self.config.build_request(coerce_messages(messages))

        try:
            async with self.client.stream(
                "POST",
                self.config.url,
                headers=self._headers(),
                json=request.to_payload(),
            ) as response:
                # FAIL FAST: the body of an error response is never read
                if not response.is_success:
                    raise ResponseStatusError(
                        f"HTTP error! status: {response.status_code}",
                        provider=self.config.provider,
                        model=self.config.model,
                        status_code=response.status_code,
                        response_data={"headers": dict(response.headers)},
                    )

                async with aclosing(self.parser.parse_sse_stream(response)) as events:
                    async for event in events:
                        if event.event_type == SSEEventType.COMPLETION:
                            break
                        if event.data is not None and event.data.content:
                            yield StreamChunk.content_chunk(event.data.content)

        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP error during streaming: {e!s}",
                provider=self.config.provider,
                model=self.config.model,
            ) from e

        yield StreamChunk.completed()

    def start_streaming_chat(
        self, messages: MessageInput, on_chunk: ChunkHandler
    ) -> StreamingCall:
        """Start a call in its own task and return its cancellation handle."""
        current = self._current_call
        if current is not None:
            raise RequestInFlightError(
                current.request_id, self.config.provider, self.config.model
            )

        call = StreamingCall(uuid.uuid4().hex)
        self._current_call = call
        call.bind_task(
            asyncio.create_task(
                self._run_call(call, list(messages), on_chunk),
                name=f"streamchat-{call.request_id}",
            )
        )
        return call

    async def send_streaming_chat(
        self, messages: MessageInput, on_chunk: ChunkHandler
    ) -> None:
        """Stream one chat completion into ``on_chunk``.

        Returns normally on completion and on abort; raises on failure.
        """
        call = self.start_streaming_chat(messages, on_chunk)
        await call.wait()

    def abort_current_request(self) -> None:
        """Cancel the in-flight call, if any, and forget it immediately."""
        call = self._current_call
        if call is None:
            return

        self._current_call = None
        call.cancel()

    async def _run_call(
        self,
        call: StreamingCall,
        messages: MessageInput,
        on_chunk: ChunkHandler,
    ) -> StreamState:
        call_log = self._log.bind(request_id=call.request_id)

        try:
            if call.cancel_requested:
                self._deliver_abort(call, on_chunk, call_log)
                return call.state

            call.state = StreamState.READING
            async with operation_context(
                "stream_chat",
                context={
                    "request_id": call.request_id,
                    "model": self.config.model,
                    "message_count": len(messages),
                },
            ):
                async with aclosing(self.stream_chat(messages)) as chunks:
                    async for chunk in chunks:
                        if chunk.is_terminal:
                            # Final before the handler sees it; cancel() is then a no-op
                            call.state = StreamState.COMPLETED
                        on_chunk(chunk)

            call.state = StreamState.COMPLETED

        except asyncio.CancelledError:
            if not call.cancel_requested:
                # Cancelled from outside, not through the handle
                call.state = StreamState.FAILED
                raise
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                task.uncancel()
            self._deliver_abort(call, on_chunk, call_log)

        except Exception:
            call.state = StreamState.FAILED
            raise

        finally:
            if self._current_call is call:
                self._current_call = None

        return call.state

    @staticmethod
    def _deliver_abort(
        call: StreamingCall, on_chunk: ChunkHandler, call_log: ContextualLogger
    ) -> None:
        call.state = StreamState.ABORTED
        call_log.warning("Request aborted")
        on_chunk(StreamChunk.aborted())

    def get_statistics(self) -> dict[str, Any]:
        """Get client statistics for monitoring."""
        return {
            "provider": self.config.provider,
            "model": self.config.model,
            "in_flight": self._current_call is not None,
            "streaming": self.parser.get_stats(),
        }

    async def close(self) -> None:
        """Abort any in-flight call and close the HTTP client if we own it."""
        self.abort_current_request()
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> StreamingChatClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
