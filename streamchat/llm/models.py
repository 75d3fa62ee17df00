"""
Core dataclasses for chat completion requests.

This module provides the request-side models:
- Message roles and immutable conversation messages
- The per-call request payload
- Provider connection settings
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx


class MessageRole(Enum):
    """OpenAI-compatible message roles accepted by the chat endpoint."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """One conversation message, in the order the caller supplied it."""
    role: MessageRole
    content: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatMessage:
        return cls(role=MessageRole(data["role"]), content=data["content"])

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def coerce_messages(
    messages: Sequence[ChatMessage | Mapping[str, Any]],
) -> list[ChatMessage]:
    """Accept dataclass messages or plain ``{"role", "content"}`` mappings."""
    return [
        m if isinstance(m, ChatMessage) else ChatMessage.from_dict(m)
        for m in messages
    ]


@dataclass(frozen=True)
class ChatRequest:
    """Request body for one streamed chat completion.

    Built fresh for every call and discarded afterwards.
    """
    model: str
    messages: tuple[ChatMessage, ...]
    temperature: float = 0.5
    stream: bool = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            "temperature": self.temperature,
            "stream": self.stream,
        }


@dataclass(frozen=True)
class ProviderConfig:
    """Provider configuration."""
    provider: str
    base_url: str
    endpoint: str
    model: str
    api_key: str
    system_prompt: str
    temperature: float = 0.5

    # Connection settings; a None timeout waits indefinitely
    connect_timeout: float | None = 10.0
    read_timeout: float | None = None
    write_timeout: float | None = 10.0
    pool_timeout: float | None = 10.0

    @classmethod
    def from_dict(
        cls, provider: str, config: Mapping[str, Any], api_key: str
    ) -> ProviderConfig:
        http_config = config.get("http_client", {})
        return cls(
            provider=provider,
            base_url=config["base_url"],
            endpoint=config["endpoint"],
            model=config["model"],
            api_key=api_key,
            system_prompt=config["system_prompt"],
            temperature=config["temperature"],
            connect_timeout=http_config.get("connect_timeout", 10.0),
            read_timeout=http_config.get("read_timeout"),
            write_timeout=http_config.get("write_timeout", 10.0),
            pool_timeout=http_config.get("pool_timeout", 10.0),
        )

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/") + self.endpoint

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout,
        )

    def system_message(self) -> ChatMessage:
        return ChatMessage(role=MessageRole.SYSTEM, content=self.system_prompt)

    def build_request(self, messages: Sequence[ChatMessage]) -> ChatRequest:
        """Prepend the system preamble to the caller's conversation."""
        return ChatRequest(
            model=self.model,
            messages=(self.system_message(), *messages),
            temperature=self.temperature,
            stream=True,
        )
