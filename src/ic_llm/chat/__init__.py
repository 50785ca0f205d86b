"""Conversation data types, wire codec and request builder.

This package provides the chat message variants, the conversion to and
from the canister wire format, and the ChatBuilder that sends one request.
"""

from ic_llm.chat.builder import ChatBuilder, ChatMethod
from ic_llm.chat.codec import (
    decode_message,
    decode_response,
    decode_tool,
    encode_message,
    encode_messages,
    encode_response,
    encode_tool,
)
from ic_llm.chat.types import (
    AssistantMessage,
    ChatMessage,
    ChatResponse,
    FunctionCall,
    Model,
    SystemMessage,
    ToolCall,
    ToolCallArgument,
    ToolMessage,
    UserMessage,
)

__all__ = [
    # Builder
    "ChatBuilder",
    "ChatMethod",
    # Message types
    "ChatMessage",
    "UserMessage",
    "SystemMessage",
    "AssistantMessage",
    "ToolMessage",
    "ToolCall",
    "FunctionCall",
    "ToolCallArgument",
    "ChatResponse",
    "Model",
    # Wire codec
    "encode_message",
    "encode_messages",
    "encode_tool",
    "encode_response",
    "decode_message",
    "decode_tool",
    "decode_response",
]
