"""Type definitions for tool declarations.

Tools are advertised to the model as function schemas. A schema carries the
function name, an optional description and an optional object-typed
parameter list.
"""

from dataclasses import dataclass
from enum import Enum


class ParameterType(str, Enum):
    """Types a tool parameter can have."""

    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Property:
    """A single parameter of a function tool.

    Attributes:
        type: One of "string", "boolean" or "number"
        name: Parameter name
        description: Optional human-readable description
        enum: Optional list of allowed values, in the declared order
    """

    type: str
    name: str
    description: str | None = None
    enum: list[str] | None = None


@dataclass(frozen=True)
class Parameters:
    """The parameter schema of a function tool."""

    type: str = "object"
    properties: list[Property] | None = None
    required: list[str] | None = None

    def __post_init__(self) -> None:
        """Validate that every required name refers to a declared property."""
        declared = {prop.name for prop in self.properties or []}
        unknown = [name for name in self.required or [] if name not in declared]
        if unknown:
            raise ValueError(f"Required parameters without a property: {unknown}")


@dataclass(frozen=True)
class Function:
    """A function the model may ask the caller to run."""

    name: str
    description: str | None = None
    parameters: Parameters | None = None


@dataclass(frozen=True)
class Tool:
    """A tool declaration. Functions are the only kind of tool."""

    function: Function

    @property
    def name(self) -> str:
        """The name of the underlying function."""
        return self.function.name
