"""Streamed chat completions from DeepSeek-compatible APIs."""

from streamchat.llm import (
    ChatMessage,
    MessageRole,
    StreamChunk,
    StreamChunkType,
    StreamingCall,
    StreamingChatClient,
)

__all__ = [
    "ChatMessage",
    "MessageRole",
    "StreamChunk",
    "StreamChunkType",
    "StreamingCall",
    "StreamingChatClient",
]
