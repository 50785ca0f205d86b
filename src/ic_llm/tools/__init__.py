"""Tool declaration, schema building and execution layer.

This package provides the tool schema types advertised to the model, the
fluent builders that produce them, and the registry that runs tools when
the model asks for them.
"""

from ic_llm.tools.builder import ParameterBuilder, ToolBuilder
from ic_llm.tools.registry import RegisteredTool, ToolExecutor, ToolRegistry
from ic_llm.tools.types import Function, Parameters, ParameterType, Property, Tool

__all__ = [
    "Function",
    "ParameterBuilder",
    "ParameterType",
    "Parameters",
    "Property",
    "RegisteredTool",
    "Tool",
    "ToolBuilder",
    "ToolExecutor",
    "ToolRegistry",
]
