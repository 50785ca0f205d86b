"""Pydantic models for the chat wire format.

This module defines the request and reply schemas exchanged with the LLM
canister. Message and tool variants are externally tagged on the wire
(e.g. {"user": {"content": "..."}}); the tag is handled by
ic_llm.chat.codec, these models describe the tagged bodies.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolCallArgumentPayload(BaseModel):
    """A name/value argument of a tool call."""

    name: str
    value: str


class FunctionCallPayload(BaseModel):
    """The function part of a tool call."""

    name: str
    arguments: list[ToolCallArgumentPayload] | str = Field(
        default_factory=list,
        description="Argument pairs, or a JSON-encoded object on newer replies",
    )


class ToolCallPayload(BaseModel):
    """A tool invocation requested by the model."""

    id: str
    function: FunctionCallPayload


class AssistantMessagePayload(BaseModel):
    """Body of an assistant message, also used as the reply message."""

    content: str | None = None
    tool_calls: list[ToolCallPayload] = Field(default_factory=list)


class ContentPayload(BaseModel):
    """Body of a user or system message."""

    content: str


class ToolResultPayload(BaseModel):
    """Body of a tool result message."""

    content: str
    tool_call_id: str


class PropertyPayload(BaseModel):
    """A parameter of a function tool."""

    type: str
    name: str
    description: str | None = None
    enum: list[str] | None = None


class ParametersPayload(BaseModel):
    """The parameter schema of a function tool."""

    type: str = "object"
    properties: list[PropertyPayload] | None = None
    required: list[str] | None = None


class FunctionPayload(BaseModel):
    """Body of a function tool declaration."""

    name: str
    description: str | None = None
    parameters: ParametersPayload | None = None


class SimpleChatRequest(BaseModel):
    """Request body of the v0_chat method."""

    model: str = Field(description="Model identifier, e.g. llama3.1:8b")
    messages: list[dict[str, Any]] = Field(
        description="Externally tagged chat messages, oldest first"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "model": "llama3.1:8b",
                "messages": [{"user": {"content": "How big is the sun?"}}],
            }
        }
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the wire dict, omitting unset optional fields."""
        return self.model_dump(exclude_none=True)


class ChatRequest(SimpleChatRequest):
    """Request body of the v1_chat method."""

    tools: list[dict[str, Any]] | None = Field(
        default=None,
        description="Externally tagged tool declarations; omitted when empty",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "model": "llama3.1:8b",
                "messages": [
                    {"user": {"content": "What's the balance of account abc123?"}}
                ],
                "tools": [
                    {
                        "function": {
                            "name": "icp_account_balance",
                            "description": "Lookup the balance of an ICP account",
                            "parameters": {
                                "type": "object",
                                "properties": [
                                    {
                                        "type": "string",
                                        "name": "account",
                                        "description": "The ICP account to look up",
                                    }
                                ],
                                "required": ["account"],
                            },
                        }
                    }
                ],
            }
        }
    )


class ChatReply(BaseModel):
    """Reply body of both chat methods."""

    message: AssistantMessagePayload
