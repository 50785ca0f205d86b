"""Data types for conversations with the LLM canister.

This module defines the message variants exchanged with the model, the
tool calls the model may emit, and the decoded reply.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

logger = logging.getLogger(__name__)


class Model(str, Enum):
    """Models served by the LLM canister."""

    LLAMA3_1_8B = "llama3.1:8b"
    QWEN3_32B = "qwen3:32b"
    LLAMA4_SCOUT = "llama4-scout"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ToolCallArgument:
    """A single named argument of a tool call."""

    name: str
    value: str


@dataclass(frozen=True)
class FunctionCall:
    """The function a tool call asks to run.

    The arguments are either an ordered list of name/value pairs or, on the
    newer wire version, a JSON-encoded object.

    Attributes:
        name: Requested tool name (not guaranteed to be a registered tool)
        arguments: Argument pairs or a JSON object string
    """

    name: str
    arguments: list[ToolCallArgument] | str = field(default_factory=list)

    def get(self, argument: str) -> str | None:
        """Look up an argument value by name (case-sensitive, first match).

        Args:
            argument: Argument name

        Returns:
            str | None: The value, or None if the argument is absent
        """
        return self.arguments_map().get(argument)

    def arguments_map(self) -> dict[str, str]:
        """Return the arguments as a name to value mapping.

        The first occurrence of a name wins. Non-string JSON values are
        rendered back to JSON text and null values count as absent. An
        undecodable JSON payload yields an empty mapping.
        """
        if isinstance(self.arguments, str):
            return self._decode_json_arguments()

        result: dict[str, str] = {}
        for arg in self.arguments:
            result.setdefault(arg.name, arg.value)
        return result

    def _decode_json_arguments(self) -> dict[str, str]:
        if not self.arguments.strip():
            return {}
        try:
            decoded = json.loads(self.arguments)
        except json.JSONDecodeError as e:
            logger.warning(f"Undecodable arguments for tool call {self.name}: {e}")
            return {}
        if not isinstance(decoded, dict):
            logger.warning(
                f"Arguments for tool call {self.name} are not a JSON object"
            )
            return {}
        # null counts as absent
        return {
            str(key): value if isinstance(value, str) else json.dumps(value)
            for key, value in decoded.items()
            if value is not None
        }


@dataclass(frozen=True)
class ToolCall:
    """A model-issued request to execute one tool."""

    id: str
    function: FunctionCall


@dataclass(frozen=True)
class UserMessage:
    """A message from the user."""

    role: ClassVar[str] = "user"

    content: str


@dataclass(frozen=True)
class SystemMessage:
    """A system instruction."""

    role: ClassVar[str] = "system"

    content: str


@dataclass(frozen=True)
class AssistantMessage:
    """A turn produced by the model.

    Attributes:
        content: The reply text; None when the model only requested tools
        tool_calls: Tool invocations requested by the model, in order
    """

    role: ClassVar[str] = "assistant"

    content: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)

    @property
    def text(self) -> str:
        """The reply text, empty when absent."""
        return self.content or ""


@dataclass(frozen=True)
class ToolMessage:
    """The result of a tool call, correlated by its id."""

    role: ClassVar[str] = "tool"

    content: str
    tool_call_id: str


# Union type for all message variants
ChatMessage = UserMessage | SystemMessage | AssistantMessage | ToolMessage


@dataclass(frozen=True)
class ChatResponse:
    """The decoded reply of a chat request."""

    message: AssistantMessage
