"""Registry of locally executable tools.

The registry pairs each advertised tool schema with an executor. Executors
receive the call arguments as a name to value mapping and return the result
text, either directly or as an awaitable.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass

from ic_llm.errors import (
    ToolArgumentMissingError,
    ToolExecutionError,
    ToolNotFoundError,
)
from ic_llm.tools.builder import ToolBuilder
from ic_llm.tools.types import Tool

logger = logging.getLogger(__name__)

ToolResult = str | Awaitable[str]
ToolExecutor = Callable[[dict[str, str]], ToolResult]


@dataclass(frozen=True)
class RegisteredTool:
    """A tool schema together with the function that runs it."""

    tool: Tool
    executor: ToolExecutor

    @property
    def name(self) -> str:
        return self.tool.name

    @property
    def required_arguments(self) -> list[str]:
        """Names of the arguments the schema declares as required."""
        parameters = self.tool.function.parameters
        if parameters is None:
            return []
        return list(parameters.required or [])

    def bind(self, arguments: Mapping[str, str]) -> dict[str, str]:
        """Check the required arguments and return a private copy.

        Raises:
            ToolArgumentMissingError: For the first missing required argument
        """
        for name in self.required_arguments:
            if name not in arguments:
                raise ToolArgumentMissingError(self.name, name)
        return dict(arguments)


class ToolRegistry:
    """Mapping from tool name to schema and executor.

    Tools are listed in registration order.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    @classmethod
    def from_executors(cls, executors: Mapping[str, ToolExecutor]) -> "ToolRegistry":
        """Create a registry of bare tools (no description or parameters).

        Args:
            executors: Mapping from tool name to executor
        """
        registry = cls()
        for name, executor in executors.items():
            registry.register(ToolBuilder(name).build(), executor)
        return registry

    def register(self, tool: Tool, executor: ToolExecutor) -> None:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Duplicate tool name: {tool.name}")
        self._tools[tool.name] = RegisteredTool(tool=tool, executor=executor)
        logger.debug(f"Registered tool: {tool.name}")

    def tools(self) -> list[Tool]:
        """Schemas of all registered tools, to advertise to the model."""
        return [registered.tool for registered in self._tools.values()]

    def resolve(self, name: str) -> RegisteredTool:
        """Look up a tool by name.

        Raises:
            ToolNotFoundError: If no tool has that name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    async def execute(self, name: str, arguments: Mapping[str, str]) -> str:
        """Run a tool and return its result text.

        Unknown tools and missing required arguments are reported as the
        result text so the model can correct itself on its next turn.

        Args:
            name: Tool name requested by the model
            arguments: Call arguments by name

        Returns:
            str: The tool result or a description of the problem

        Raises:
            ToolExecutionError: If the executor raises or returns a non-string
        """
        try:
            registered = self.resolve(name)
            bound = registered.bind(arguments)
        except (ToolNotFoundError, ToolArgumentMissingError) as e:
            logger.warning(f"Tool call rejected: {e}")
            return str(e)

        try:
            result = registered.executor(bound)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Tool {name} raised: {e}")
            raise ToolExecutionError(name, f"executor raised {e!r}") from e

        if not isinstance(result, str):
            raise ToolExecutionError(
                name, f"executor returned {type(result).__name__}, expected str"
            )
        return result
