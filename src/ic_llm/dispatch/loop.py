"""Tool dispatch loop.

This module orchestrates one conversation exchange with the LLM canister:
it sends the conversation, runs any tools the model asks for, appends the
results and resubmits until a final answer is produced. Tool calls are
executed one after another in the order the model issued them.

By default a single tool round is performed: the request that carries the
tool results does not advertise the tools again, and its reply is final.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum

from ic_llm.chat.builder import ChatBuilder, ChatMethod
from ic_llm.chat.types import (
    AssistantMessage,
    ChatMessage,
    ChatResponse,
    Model,
    SystemMessage,
    ToolMessage,
)
from ic_llm.config import LLM_CANISTER_ID, IcLlmSettings
from ic_llm.tools.registry import ToolRegistry
from ic_llm.tools.types import Tool
from ic_llm.transport.base import Transport

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 1
MAX_TOOL_ROUNDS_LIMIT = 8


class DispatchState(str, Enum):
    """Lifecycle of one exchange."""

    DRAFTING = "drafting"
    AWAITING_REPLY = "awaiting_reply"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a completed exchange.

    Attributes:
        answer: Final reply text (empty when the model sent no content)
        messages: The full conversation, ending with the final reply. Tool
            calls ignored after the round limit are removed from that reply,
            so every remaining call is answered by a ToolMessage.
        tool_rounds: Number of tool rounds executed
        transport_calls: Number of requests sent
    """

    answer: str
    messages: list[ChatMessage] = field(default_factory=list)
    tool_rounds: int = 0
    transport_calls: int = 0


class ToolDispatchLoop:
    """Runs conversations that may call local tools.

    One instance serves one conversation at a time; concurrent
    conversations should each use their own instance.

    Attributes:
        model: Model to chat with
        transport: Channel to the LLM canister
        registry: Tools the model may call
        system_prompt: Instruction prepended to every conversation
        max_tool_rounds: Maximum number of tool rounds per exchange
        state: Current position in the exchange lifecycle
    """

    def __init__(
        self,
        model: Model | str,
        transport: Transport,
        *,
        registry: ToolRegistry | None = None,
        system_prompt: str | None = None,
        canister_id: str = LLM_CANISTER_ID,
        method: ChatMethod | str = ChatMethod.V1,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        """Initialize the dispatch loop.

        Args:
            model: Model to chat with
            transport: Channel to the LLM canister
            registry: Tools the model may call (default: none)
            system_prompt: Optional instruction describing the assistant's role
            canister_id: Textual principal of the LLM canister
            method: Remote chat method
            max_tool_rounds: Tool rounds allowed per exchange, 1 to 8

        Raises:
            ValueError: If max_tool_rounds is out of range, or tools are
                registered for a v0_chat loop
        """
        if not 1 <= max_tool_rounds <= MAX_TOOL_ROUNDS_LIMIT:
            raise ValueError(
                f"max_tool_rounds must be between 1 and {MAX_TOOL_ROUNDS_LIMIT}, "
                f"got {max_tool_rounds}"
            )

        self.model = model
        self.transport = transport
        self.registry = registry if registry is not None else ToolRegistry()
        self.system_prompt = system_prompt
        self.canister_id = canister_id
        self.method = ChatMethod(method)
        if self.method is ChatMethod.V0 and len(self.registry):
            raise ValueError("v0_chat cannot advertise tools; use v1_chat")
        self.max_tool_rounds = max_tool_rounds
        self.state = DispatchState.DRAFTING

    @classmethod
    def from_settings(
        cls,
        settings: IcLlmSettings,
        transport: Transport,
        *,
        registry: ToolRegistry | None = None,
        system_prompt: str | None = None,
    ) -> "ToolDispatchLoop":
        """Create a dispatch loop configured from settings."""
        return cls(
            settings.model,
            transport,
            registry=registry,
            system_prompt=system_prompt,
            canister_id=settings.llm_canister_id,
            method=settings.chat_method,
            max_tool_rounds=settings.max_tool_rounds,
        )

    async def run(self, messages: Iterable[ChatMessage]) -> str:
        """Run an exchange and return the final answer.

        Args:
            messages: The caller's conversation, oldest first

        Returns:
            str: The final reply text, empty if the model sent none
        """
        result = await self.exchange(messages)
        return result.answer

    async def exchange(self, messages: Iterable[ChatMessage]) -> DispatchResult:
        """Run an exchange and return the answer with its full conversation.

        Raises:
            EndpointResolutionError: If the canister id is invalid
            TransportError: If a round-trip fails; no further calls are made
            ProtocolError: If a reply is malformed
            ToolExecutionError: If a tool executor breaks its contract
        """
        self.state = DispatchState.DRAFTING
        conversation = self._draft(messages)
        tools = self.registry.tools()
        tool_rounds = 0
        transport_calls = 0

        while True:
            offered = tools if tool_rounds < self.max_tool_rounds else []

            self.state = DispatchState.AWAITING_REPLY
            response = await self._send(conversation, offered)
            transport_calls += 1
            reply = response.message

            if not reply.tool_calls or tool_rounds >= self.max_tool_rounds:
                if reply.tool_calls:
                    logger.warning(
                        f"Ignoring {len(reply.tool_calls)} tool call(s) after "
                        f"{tool_rounds} tool round(s)"
                    )
                    reply = replace(reply, tool_calls=[])
                self.state = DispatchState.DONE
                logger.info(
                    f"Exchange done after {transport_calls} request(s) and "
                    f"{tool_rounds} tool round(s)"
                )
                return DispatchResult(
                    answer=reply.text,
                    messages=[*conversation, reply],
                    tool_rounds=tool_rounds,
                    transport_calls=transport_calls,
                )

            self.state = DispatchState.EXECUTING_TOOLS
            conversation = await self._execute_tool_calls(conversation, reply)
            tool_rounds += 1

    def _draft(self, messages: Iterable[ChatMessage]) -> list[ChatMessage]:
        conversation: list[ChatMessage] = []
        if self.system_prompt:
            conversation.append(SystemMessage(content=self.system_prompt))
        conversation.extend(messages)
        return conversation

    async def _send(
        self, conversation: list[ChatMessage], tools: list[Tool]
    ) -> ChatResponse:
        builder = ChatBuilder(
            self.model,
            self.transport,
            canister_id=self.canister_id,
            method=self.method,
        ).with_messages(conversation)
        if tools:
            builder = builder.with_tools(tools)
        return await builder.send()

    async def _execute_tool_calls(
        self, conversation: list[ChatMessage], reply: AssistantMessage
    ) -> list[ChatMessage]:
        """Run the reply's tool calls in order and return the extended conversation."""
        extended: list[ChatMessage] = [*conversation, reply]

        for call in reply.tool_calls:
            logger.debug(f"Executing tool call {call.id}: {call.function.name}")
            result = await self.registry.execute(
                call.function.name, call.function.arguments_map()
            )
            logger.debug(f"Tool call {call.id} result: {result!r}")
            extended.append(ToolMessage(content=result, tool_call_id=call.id))

        return extended
