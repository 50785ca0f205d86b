"""Exception hierarchy for ic-llm.

Fatal errors (endpoint resolution, transport, protocol, tool contract
violations) propagate to the caller and end the current exchange.
Recoverable tool errors are raised by the tool registry only to be turned
into tool-result content that is fed back to the model.
"""

from enum import Enum


class IcLlmError(Exception):
    """Base class for all ic-llm errors."""


class EndpointResolutionError(IcLlmError):
    """The configured remote identity cannot be resolved to a service address."""


class TransportErrorKind(str, Enum):
    """Why a transport round-trip failed."""

    UNREACHABLE = "unreachable"
    MALFORMED_RESPONSE = "malformed_response"
    REMOTE_ERROR = "remote_error"


class TransportError(IcLlmError):
    """The request/response exchange with the remote endpoint failed.

    Attributes:
        kind: The failure category reported by the transport
    """

    def __init__(self, message: str, kind: TransportErrorKind) -> None:
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"[{self.kind.value}] {super().__str__()}"


class ProtocolError(IcLlmError):
    """A payload was delivered but does not match the expected wire shape."""


class ToolNotFoundError(IcLlmError):
    """The model requested a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ToolArgumentMissingError(IcLlmError):
    """A tool call lacks an argument the tool declares as required."""

    def __init__(self, tool_name: str, argument: str) -> None:
        super().__init__(
            f"Missing required argument '{argument}' for tool '{tool_name}'"
        )
        self.tool_name = tool_name
        self.argument = argument


class ToolExecutionError(IcLlmError):
    """A tool executor broke its contract by raising or returning a non-string."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name
