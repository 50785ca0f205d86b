"""Fluent builders for tool declarations.

Every configuration step returns a new builder, so a partially configured
builder can be shared and extended without affecting other users.

Example:
    >>> weather = (
    ...     ToolBuilder("get_weather")
    ...     .with_description("Get current weather for a location")
    ...     .with_parameter(
    ...         ParameterBuilder("location", ParameterType.STRING)
    ...         .with_description("The location to get weather for")
    ...         .is_required()
    ...     )
    ...     .build()
    ... )
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace

from ic_llm.tools.types import Function, Parameters, ParameterType, Property, Tool


@dataclass(frozen=True)
class ParameterBuilder:
    """Builder for a single tool parameter."""

    name: str
    type: ParameterType
    description: str | None = None
    required: bool = False
    enum_values: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        """Reject parameter types outside string, boolean and number."""
        try:
            parameter_type = ParameterType(self.type)
        except ValueError:
            allowed = ", ".join(t.value for t in ParameterType)
            raise ValueError(
                f"Unsupported type {self.type!r} for parameter {self.name!r} "
                f"(expected one of: {allowed})"
            ) from None
        object.__setattr__(self, "type", parameter_type)

    def with_description(self, description: str) -> "ParameterBuilder":
        """Add a description to the parameter."""
        return replace(self, description=description)

    def is_required(self) -> "ParameterBuilder":
        """Mark the parameter as required."""
        return replace(self, required=True)

    def with_enum_values(self, values: Iterable[str]) -> "ParameterBuilder":
        """Restrict the parameter to the given values, keeping their order."""
        return replace(self, enum_values=tuple(str(v) for v in values))

    def to_property(self) -> Property:
        """Convert the builder to a Property."""
        return Property(
            type=self.type.value,
            name=self.name,
            description=self.description,
            enum=list(self.enum_values) if self.enum_values is not None else None,
        )


@dataclass(frozen=True)
class ToolBuilder:
    """Builder for a function tool."""

    name: str
    description: str | None = None
    parameters: tuple[ParameterBuilder, ...] = ()

    def with_description(self, description: str) -> "ToolBuilder":
        """Add a description to the function."""
        return replace(self, description=description)

    def with_parameter(self, parameter: ParameterBuilder) -> "ToolBuilder":
        """Append a parameter to the function."""
        return replace(self, parameters=(*self.parameters, parameter))

    def build(self) -> Tool:
        """Build the final Tool.

        The parameter schema is omitted when no parameter was added, and
        its required list is omitted when no parameter is required.
        """
        parameters = None
        if self.parameters:
            required = [p.name for p in self.parameters if p.required]
            parameters = Parameters(
                type="object",
                properties=[p.to_property() for p in self.parameters],
                required=required or None,
            )

        return Tool(
            function=Function(
                name=self.name,
                description=self.description,
                parameters=parameters,
            )
        )
