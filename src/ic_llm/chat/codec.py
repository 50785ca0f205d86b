"""Conversion between chat data types and the wire format.

Messages and tools are externally tagged on the wire: a message is encoded
as a single-key dict whose key is the message role and whose value is the
message body. Decoding validates bodies against the pydantic schemas in
ic_llm.models.chat and raises ProtocolError on any shape violation.
"""

import logging
from typing import Any

from pydantic import ValidationError

from ic_llm.chat.types import (
    AssistantMessage,
    ChatMessage,
    ChatResponse,
    FunctionCall,
    SystemMessage,
    ToolCall,
    ToolCallArgument,
    ToolMessage,
    UserMessage,
)
from ic_llm.errors import ProtocolError
from ic_llm.models.chat import (
    AssistantMessagePayload,
    ChatReply,
    ContentPayload,
    FunctionPayload,
    ToolCallPayload,
    ToolResultPayload,
)
from ic_llm.tools.types import Function, Parameters, Property, Tool

logger = logging.getLogger(__name__)

TOOL_TAG = "function"


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def encode_tool_call(call: ToolCall) -> dict[str, Any]:
    """Encode a tool call body."""
    arguments = call.function.arguments
    if not isinstance(arguments, str):
        arguments = [{"name": arg.name, "value": arg.value} for arg in arguments]
    return {
        "id": call.id,
        "function": {"name": call.function.name, "arguments": arguments},
    }


def encode_assistant_body(message: AssistantMessage) -> dict[str, Any]:
    """Encode the untagged body of an assistant message."""
    return _drop_none(
        {
            "content": message.content,
            "tool_calls": [encode_tool_call(call) for call in message.tool_calls],
        }
    )


def encode_message(message: ChatMessage) -> dict[str, Any]:
    """Encode a chat message as an externally tagged dict.

    Args:
        message: Any chat message variant

    Returns:
        dict: e.g. {"user": {"content": "Hello"}}

    Raises:
        TypeError: If the value is not a chat message
    """
    if isinstance(message, (UserMessage, SystemMessage)):
        body = {"content": message.content}
    elif isinstance(message, AssistantMessage):
        body = encode_assistant_body(message)
    elif isinstance(message, ToolMessage):
        body = {"content": message.content, "tool_call_id": message.tool_call_id}
    else:
        raise TypeError(f"Not a chat message: {message!r}")

    return {message.role: body}


def encode_messages(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Encode a conversation, preserving order."""
    return [encode_message(message) for message in messages]


def encode_tool(tool: Tool) -> dict[str, Any]:
    """Encode a tool declaration as {"function": {...}}.

    Optional fields that are unset are omitted from the output.
    """
    function = tool.function
    body: dict[str, Any] = {"name": function.name}
    if function.description is not None:
        body["description"] = function.description

    if function.parameters is not None:
        parameters = function.parameters
        encoded: dict[str, Any] = {"type": parameters.type}
        if parameters.properties is not None:
            encoded["properties"] = [
                _drop_none(
                    {
                        "type": prop.type,
                        "name": prop.name,
                        "description": prop.description,
                        "enum": list(prop.enum) if prop.enum is not None else None,
                    }
                )
                for prop in parameters.properties
            ]
        if parameters.required is not None:
            encoded["required"] = list(parameters.required)
        body["parameters"] = encoded

    return {TOOL_TAG: body}


def encode_response(response: ChatResponse) -> dict[str, Any]:
    """Encode a reply as {"message": {...}}."""
    return {"message": encode_assistant_body(response.message)}


def _untag(data: Any, what: str) -> tuple[str, Any]:
    if not isinstance(data, dict) or len(data) != 1:
        raise ProtocolError(f"Expected a single-key tagged {what}, got: {data!r}")
    return next(iter(data.items()))


def _assistant_from_payload(payload: AssistantMessagePayload) -> AssistantMessage:
    return AssistantMessage(
        content=payload.content,
        tool_calls=[_tool_call_from_payload(call) for call in payload.tool_calls],
    )


def _tool_call_from_payload(payload: ToolCallPayload) -> ToolCall:
    arguments = payload.function.arguments
    if not isinstance(arguments, str):
        arguments = [ToolCallArgument(name=a.name, value=a.value) for a in arguments]
    return ToolCall(
        id=payload.id,
        function=FunctionCall(name=payload.function.name, arguments=arguments),
    )


def decode_message(data: Any) -> ChatMessage:
    """Decode an externally tagged chat message.

    Args:
        data: e.g. {"tool": {"content": "...", "tool_call_id": "..."}}

    Returns:
        ChatMessage: The decoded message

    Raises:
        ProtocolError: If the tag is unknown or the body is malformed
    """
    tag, body = _untag(data, "message")
    try:
        if tag == UserMessage.role:
            return UserMessage(content=ContentPayload.model_validate(body).content)
        elif tag == SystemMessage.role:
            return SystemMessage(content=ContentPayload.model_validate(body).content)
        elif tag == AssistantMessage.role:
            return _assistant_from_payload(
                AssistantMessagePayload.model_validate(body)
            )
        elif tag == ToolMessage.role:
            payload = ToolResultPayload.model_validate(body)
            return ToolMessage(
                content=payload.content, tool_call_id=payload.tool_call_id
            )
    except ValidationError as e:
        raise ProtocolError(f"Malformed {tag} message: {e}") from e

    raise ProtocolError(f"Unknown message role: {tag}")


def decode_tool(data: Any) -> Tool:
    """Decode an externally tagged tool declaration.

    Raises:
        ProtocolError: If the tag is not "function" or the body is malformed
    """
    tag, body = _untag(data, "tool")
    if tag != TOOL_TAG:
        raise ProtocolError(f"Unknown tool kind: {tag}")

    try:
        payload = FunctionPayload.model_validate(body)
        parameters = None
        if payload.parameters is not None:
            parameters = Parameters(
                type=payload.parameters.type,
                properties=(
                    [Property(**p.model_dump()) for p in payload.parameters.properties]
                    if payload.parameters.properties is not None
                    else None
                ),
                required=payload.parameters.required,
            )
    except (ValidationError, ValueError) as e:
        raise ProtocolError(f"Malformed tool declaration: {e}") from e

    return Tool(
        function=Function(
            name=payload.name,
            description=payload.description,
            parameters=parameters,
        )
    )


def decode_response(data: Any) -> ChatResponse:
    """Decode a chat reply.

    Args:
        data: Reply dict of shape {"message": {...}}

    Returns:
        ChatResponse: The decoded reply

    Raises:
        ProtocolError: If the reply does not match the expected shape
    """
    try:
        reply = ChatReply.model_validate(data)
    except ValidationError as e:
        logger.error(f"Reply does not match the chat reply schema: {e}")
        raise ProtocolError(f"Malformed chat reply: {e}") from e

    message = _assistant_from_payload(reply.message)
    logger.debug(
        f"Decoded reply: content_length={len(message.text)}, "
        f"tool_calls={len(message.tool_calls)}"
    )
    return ChatResponse(message=message)
