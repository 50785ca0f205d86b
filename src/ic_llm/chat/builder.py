"""Fluent builder for chat requests to the LLM canister."""

import logging
from collections.abc import Iterable
from enum import Enum

from ic_llm.chat.codec import decode_response, encode_messages, encode_tool
from ic_llm.chat.types import ChatMessage, ChatResponse, Model
from ic_llm.config import LLM_CANISTER_ID
from ic_llm.endpoint import Principal
from ic_llm.models.chat import ChatRequest, SimpleChatRequest
from ic_llm.tools.types import Tool
from ic_llm.transport.base import Transport

logger = logging.getLogger(__name__)


class ChatMethod(str, Enum):
    """Remote chat methods, one per request shape."""

    V0 = "v0_chat"
    V1 = "v1_chat"


class ChatBuilder:
    """Builder for creating and sending one chat request.

    Configuration steps return a new builder holding its own copy of the
    messages and tools, so the caller's lists are never read again after
    being handed over. send() consumes the builder.

    Example:
        >>> response = await (
        ...     ChatBuilder(Model.LLAMA3_1_8B, transport)
        ...     .with_messages([
        ...         SystemMessage(content="You are a helpful assistant"),
        ...         UserMessage(content="How big is the sun?"),
        ...     ])
        ...     .send()
        ... )
    """

    def __init__(
        self,
        model: Model | str,
        transport: Transport,
        *,
        canister_id: str = LLM_CANISTER_ID,
        method: ChatMethod | str = ChatMethod.V1,
    ) -> None:
        """Create a chat builder.

        Args:
            model: Model to chat with
            transport: Channel used by send()
            canister_id: Textual principal of the LLM canister
            method: Remote method, which selects the request shape
        """
        self.model = str(model)
        self.transport = transport
        self.canister_id = canister_id
        self.method = ChatMethod(method)
        self._messages: tuple[ChatMessage, ...] = ()
        self._tools: tuple[Tool, ...] = ()
        self._sent = False

    @property
    def messages(self) -> list[ChatMessage]:
        """The configured messages."""
        return list(self._messages)

    @property
    def tools(self) -> list[Tool]:
        """The configured tools."""
        return list(self._tools)

    def _copy(
        self,
        messages: tuple[ChatMessage, ...] | None = None,
        tools: tuple[Tool, ...] | None = None,
    ) -> "ChatBuilder":
        builder = ChatBuilder(
            self.model,
            self.transport,
            canister_id=self.canister_id,
            method=self.method,
        )
        builder._messages = self._messages if messages is None else messages
        builder._tools = self._tools if tools is None else tools
        return builder

    def with_messages(self, messages: Iterable[ChatMessage]) -> "ChatBuilder":
        """Set the messages for the chat, replacing any previous ones."""
        return self._copy(messages=tuple(messages))

    def with_tools(self, tools: Iterable[Tool]) -> "ChatBuilder":
        """Set the tools for the chat, replacing any previous ones.

        Raises:
            ValueError: If tools are given to a v0_chat builder
        """
        tools = tuple(tools)
        if tools and self.method is ChatMethod.V0:
            raise ValueError("v0_chat requests cannot carry tools; use v1_chat")
        return self._copy(tools=tools)

    def build(self) -> SimpleChatRequest:
        """Assemble the outbound request without sending it.

        Returns:
            SimpleChatRequest for v0_chat, ChatRequest for v1_chat. The tools
            field is left unset when no tools are configured.
        """
        messages = encode_messages(list(self._messages))
        if self.method is ChatMethod.V0:
            return SimpleChatRequest(model=self.model, messages=messages)

        tools = [encode_tool(tool) for tool in self._tools] or None
        return ChatRequest(model=self.model, messages=messages, tools=tools)

    async def send(self) -> ChatResponse:
        """Send the chat request to the LLM canister.

        Returns:
            ChatResponse: The decoded reply

        Raises:
            RuntimeError: If this builder was already sent
            EndpointResolutionError: If the canister id is invalid; raised
                before the transport is called
            TransportError: If the round-trip fails
            ProtocolError: If the reply does not match the expected shape
        """
        if self._sent:
            raise RuntimeError("ChatBuilder.send() may only be called once")
        self._sent = True

        canister = Principal.from_text(self.canister_id)
        payload = self.build().to_payload()

        logger.debug(
            f"Sending {self.method.value} to {canister}: model={self.model}, "
            f"messages={len(self._messages)}, tools={len(self._tools)}"
        )
        reply = await self.transport.send(canister, self.method.value, payload)
        return decode_response(reply)
