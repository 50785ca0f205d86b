"""Pydantic models for the chat wire format.

This package contains the Pydantic models used for validating and
serializing chat requests and replies.
"""

from ic_llm.models.chat import (
    AssistantMessagePayload,
    ChatReply,
    ChatRequest,
    SimpleChatRequest,
)

__all__ = [
    "AssistantMessagePayload",
    "ChatReply",
    "ChatRequest",
    "SimpleChatRequest",
]
