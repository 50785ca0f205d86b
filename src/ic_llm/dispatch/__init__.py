"""Tool dispatch loop for multi-turn exchanges."""

from ic_llm.dispatch.loop import (
    MAX_TOOL_ROUNDS_LIMIT,
    DispatchResult,
    DispatchState,
    ToolDispatchLoop,
)

__all__ = [
    "MAX_TOOL_ROUNDS_LIMIT",
    "DispatchResult",
    "DispatchState",
    "ToolDispatchLoop",
]
