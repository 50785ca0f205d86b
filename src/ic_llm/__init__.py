"""ic-llm: Client library for conversations with the LLM canister.

This package provides the chat message and tool schema types, fluent
builders for chat requests and tools, transports to the remote canister,
and a dispatch loop that runs model-requested tools locally.
"""

from ic_llm.chat import (
    AssistantMessage,
    ChatBuilder,
    ChatMessage,
    ChatMethod,
    ChatResponse,
    FunctionCall,
    Model,
    SystemMessage,
    ToolCall,
    ToolCallArgument,
    ToolMessage,
    UserMessage,
)
from ic_llm.config import LLM_CANISTER_ID, IcLlmSettings
from ic_llm.dispatch import DispatchResult, DispatchState, ToolDispatchLoop
from ic_llm.errors import (
    EndpointResolutionError,
    IcLlmError,
    ProtocolError,
    ToolArgumentMissingError,
    ToolExecutionError,
    ToolNotFoundError,
    TransportError,
    TransportErrorKind,
)
from ic_llm.tools import (
    ParameterBuilder,
    ParameterType,
    Tool,
    ToolBuilder,
    ToolRegistry,
)
from ic_llm.transport import HttpTransport, ScriptedTransport, Transport
from ic_llm.transport.factory import create_transport

__version__ = "0.1.0"


def chat(
    model: Model | str,
    transport: Transport,
    *,
    canister_id: str = LLM_CANISTER_ID,
) -> ChatBuilder:
    """Create a ChatBuilder for the given model.

    Chain with_messages() and with_tools() before calling send().

    Example:
        >>> response = await ic_llm.chat(Model.LLAMA3_1_8B, transport).with_messages(
        ...     [UserMessage(content="How big is the sun?")]
        ... ).send()
    """
    return ChatBuilder(model, transport, canister_id=canister_id)


def tool(name: str) -> ToolBuilder:
    """Create a ToolBuilder with the given function name."""
    return ToolBuilder(name)


def parameter(name: str, type_: ParameterType | str) -> ParameterBuilder:
    """Create a ParameterBuilder with the given name and type.

    Raises:
        ValueError: If type_ is not string, boolean or number
    """
    return ParameterBuilder(name, type_)


async def prompt(
    model: Model | str,
    prompt_str: str,
    transport: Transport,
    *,
    canister_id: str = LLM_CANISTER_ID,
) -> str:
    """Send a single user message and return the reply text.

    Example:
        >>> await ic_llm.prompt(Model.LLAMA3_1_8B, "What's the speed of light?", transport)
    """
    response = await (
        chat(model, transport, canister_id=canister_id)
        .with_messages([UserMessage(content=prompt_str)])
        .send()
    )
    return response.message.text


__all__ = [
    "__version__",
    # Convenience API
    "chat",
    "prompt",
    "tool",
    "parameter",
    # Messages
    "AssistantMessage",
    "ChatMessage",
    "ChatResponse",
    "FunctionCall",
    "Model",
    "SystemMessage",
    "ToolCall",
    "ToolCallArgument",
    "ToolMessage",
    "UserMessage",
    # Builders
    "ChatBuilder",
    "ChatMethod",
    "ParameterBuilder",
    "ParameterType",
    "Tool",
    "ToolBuilder",
    # Tools and dispatch
    "ToolRegistry",
    "ToolDispatchLoop",
    "DispatchResult",
    "DispatchState",
    # Transport and configuration
    "Transport",
    "HttpTransport",
    "ScriptedTransport",
    "create_transport",
    "IcLlmSettings",
    "LLM_CANISTER_ID",
    # Errors
    "IcLlmError",
    "EndpointResolutionError",
    "TransportError",
    "TransportErrorKind",
    "ProtocolError",
    "ToolNotFoundError",
    "ToolArgumentMissingError",
    "ToolExecutionError",
]
