"""Integration tests for the tool dispatch loop.

Runs complete exchanges against a scripted transport and checks the
requests the loop sends, the tool results it feeds back and the answer it
returns.
"""

import asyncio

import pytest

from ic_llm import (
    ToolDispatchLoop,
    ToolExecutionError,
    TransportError,
    TransportErrorKind,
    tool,
)
from ic_llm.chat import (
    AssistantMessage,
    FunctionCall,
    SystemMessage,
    ToolCall,
    ToolCallArgument,
    ToolMessage,
    UserMessage,
)
from ic_llm.dispatch import MAX_TOOL_ROUNDS_LIMIT, DispatchState
from ic_llm.tools import ToolRegistry
from ic_llm.transport import Transport


def tool_call(call_id: str, name: str, **arguments: str) -> ToolCall:
    """Build a tool call with name/value arguments."""
    return ToolCall(
        id=call_id,
        function=FunctionCall(
            name=name,
            arguments=[
                ToolCallArgument(name=key, value=value)
                for key, value in arguments.items()
            ],
        ),
    )


def requesting(*calls: ToolCall) -> AssistantMessage:
    """An assistant reply that only requests tools."""
    return AssistantMessage(tool_calls=list(calls))


class TestPlainReplies:
    """Tests for exchanges without tool calls."""

    @pytest.mark.asyncio
    async def test_single_call_returns_content(self, balance_loop, scripted_transport):
        """Test that a reply without tool calls ends the exchange."""
        scripted_transport.enqueue(AssistantMessage(content="Ask me about balances."))

        answer = await balance_loop.run([UserMessage(content="Hi")])

        assert answer == "Ask me about balances."
        assert len(scripted_transport.calls) == 1
        assert balance_loop.state is DispatchState.DONE

    @pytest.mark.asyncio
    async def test_missing_content_is_empty_answer(
        self, balance_loop, scripted_transport
    ):
        """Test that a reply without content yields an empty answer."""
        scripted_transport.enqueue({"message": {"tool_calls": []}})

        assert await balance_loop.run([UserMessage(content="Hi")]) == ""

    @pytest.mark.asyncio
    async def test_first_request_shape(
        self, balance_loop, scripted_transport, balance_system_prompt
    ):
        """Test that the system prompt leads and the tools are advertised."""
        scripted_transport.enqueue(AssistantMessage(content="ok"))

        await balance_loop.run([UserMessage(content="Hi")])

        call = scripted_transport.calls[0]
        assert call.method == "v1_chat"
        assert str(call.canister_id) == "w36hm-eqaaa-aaaal-qr76a-cai"
        assert call.payload["model"] == "qwen3:32b"
        assert call.payload["messages"] == [
            {"system": {"content": balance_system_prompt}},
            {"user": {"content": "Hi"}},
        ]
        assert [t["function"]["name"] for t in call.payload["tools"]] == [
            "lookup_icp_balance"
        ]

    @pytest.mark.asyncio
    async def test_without_registry_no_tools_sent(self, scripted_transport):
        """Test that the tools key is absent when no tools are registered."""
        scripted_transport.enqueue(AssistantMessage(content="ok"))
        loop = ToolDispatchLoop("llama3.1:8b", scripted_transport)

        await loop.run([UserMessage(content="Hi")])

        assert "tools" not in scripted_transport.calls[0].payload
        assert scripted_transport.calls[0].payload["messages"] == [
            {"user": {"content": "Hi"}}
        ]

    @pytest.mark.asyncio
    async def test_caller_messages_untouched(self, balance_loop, scripted_transport):
        """Test that the caller's conversation list is not modified."""
        scripted_transport.enqueue(requesting(tool_call("1", "get_weather")))
        scripted_transport.enqueue(AssistantMessage(content="done"))
        messages = [UserMessage(content="Hi")]

        await balance_loop.run(messages)

        assert messages == [UserMessage(content="Hi")]


class TestToolRounds:
    """Tests for exchanges that execute tools."""

    @pytest.mark.asyncio
    async def test_balance_lookup(
        self, balance_loop, scripted_transport, account_id, balance_system_prompt
    ):
        """Test the full balance lookup exchange."""
        scripted_transport.enqueue(
            requesting(tool_call("call_1", "lookup_icp_balance", account=account_id))
        )
        scripted_transport.enqueue(
            AssistantMessage(content="The account holds 100 ICP.")
        )

        result = await balance_loop.exchange(
            [UserMessage(content=f"What is the balance of {account_id}?")]
        )

        assert result.answer == "The account holds 100 ICP."
        assert result.tool_rounds == 1
        assert result.transport_calls == 2
        assert len(scripted_transport.calls) == 2

        second = scripted_transport.calls[1].payload
        assert "tools" not in second
        assert second["messages"][0] == {"system": {"content": balance_system_prompt}}
        assert second["messages"][2] == {
            "assistant": {
                "tool_calls": [
                    {
                        "id": "call_1",
                        "function": {
                            "name": "lookup_icp_balance",
                            "arguments": [{"name": "account", "value": account_id}],
                        },
                    }
                ]
            }
        }
        assert second["messages"][3] == {
            "tool": {
                "content": f"Balance of {account_id} is 100 ICP",
                "tool_call_id": "call_1",
            }
        }

    @pytest.mark.asyncio
    async def test_conversation_record(
        self, balance_loop, scripted_transport, account_id
    ):
        """Test that the result holds the full conversation in order."""
        request = requesting(
            tool_call("call_1", "lookup_icp_balance", account=account_id)
        )
        final = AssistantMessage(content="100 ICP")
        scripted_transport.enqueue(request)
        scripted_transport.enqueue(final)

        result = await balance_loop.exchange([UserMessage(content="Balance?")])

        assert [type(m) for m in result.messages] == [
            SystemMessage,
            UserMessage,
            AssistantMessage,
            ToolMessage,
            AssistantMessage,
        ]
        assert result.messages[2] == request
        assert result.messages[3] == ToolMessage(
            content=f"Balance of {account_id} is 100 ICP", tool_call_id="call_1"
        )
        assert result.messages[-1] == final

    @pytest.mark.asyncio
    async def test_multiple_calls_answered_in_order(
        self, balance_loop, scripted_transport, account_id
    ):
        """Test that every tool call gets a result in the order issued."""
        other = "b" * 64
        scripted_transport.enqueue(
            requesting(
                tool_call("call_a", "lookup_icp_balance", account=account_id),
                tool_call("call_b", "lookup_icp_balance", account=other),
                tool_call("call_c", "get_weather", location="NYC"),
            )
        )
        scripted_transport.enqueue(AssistantMessage(content="done"))

        await balance_loop.run([UserMessage(content="Balances?")])

        assert len(scripted_transport.calls) == 2
        results = [
            m["tool"]
            for m in scripted_transport.calls[1].payload["messages"]
            if "tool" in m
        ]
        assert [r["tool_call_id"] for r in results] == ["call_a", "call_b", "call_c"]
        assert results[0]["content"] == f"Balance of {account_id} is 100 ICP"
        assert results[1]["content"] == f"Balance of {other} is 100 ICP"
        assert results[2]["content"] == "Unknown tool: get_weather"

    @pytest.mark.asyncio
    async def test_unknown_tool_does_not_abort(self, balance_loop, scripted_transport):
        """Test that an unknown tool is reported back to the model."""
        scripted_transport.enqueue(
            requesting(tool_call("1", "get_weather", location="NYC"))
        )
        scripted_transport.enqueue(AssistantMessage(content="Only balances, sorry."))

        answer = await balance_loop.run([UserMessage(content="Weather?")])

        assert answer == "Only balances, sorry."
        tool_result = scripted_transport.calls[1].payload["messages"][-1]["tool"]
        assert "get_weather" in tool_result["content"]

    @pytest.mark.asyncio
    async def test_missing_argument_reported(self, balance_loop, scripted_transport):
        """Test that a missing required argument is named in the result."""
        scripted_transport.enqueue(requesting(tool_call("1", "lookup_icp_balance")))
        scripted_transport.enqueue(AssistantMessage(content="Which account?"))

        answer = await balance_loop.run([UserMessage(content="Balance?")])

        assert answer == "Which account?"
        tool_result = scripted_transport.calls[1].payload["messages"][-1]["tool"]
        assert "account" in tool_result["content"]

    @pytest.mark.asyncio
    async def test_invalid_account_fed_back(self, balance_loop, scripted_transport):
        """Test that a tool's own error text is passed back unchanged."""
        scripted_transport.enqueue(
            requesting(tool_call("1", "lookup_icp_balance", account="too-short"))
        )
        scripted_transport.enqueue(
            AssistantMessage(content="That account id is too short.")
        )

        answer = await balance_loop.run([UserMessage(content="Balance of too-short?")])

        assert answer == "That account id is too short."
        tool_result = scripted_transport.calls[1].payload["messages"][-1]["tool"]
        assert tool_result["content"] == "Account must be 64 characters long"

    @pytest.mark.asyncio
    async def test_json_string_arguments(
        self, balance_loop, scripted_transport, account_id
    ):
        """Test tool calls whose arguments arrive as a JSON string."""
        scripted_transport.enqueue(
            requesting(
                ToolCall(
                    id="1",
                    function=FunctionCall(
                        name="lookup_icp_balance",
                        arguments=f'{{"account": "{account_id}"}}',
                    ),
                )
            )
        )
        scripted_transport.enqueue(AssistantMessage(content="100 ICP"))

        await balance_loop.run([UserMessage(content="Balance?")])

        tool_result = scripted_transport.calls[1].payload["messages"][-1]["tool"]
        assert tool_result["content"] == f"Balance of {account_id} is 100 ICP"

    @pytest.mark.asyncio
    async def test_tool_calls_with_empty_registry(self, scripted_transport):
        """Test that tool calls are answered even with no tools registered."""
        scripted_transport.enqueue(requesting(tool_call("1", "lookup_icp_balance")))
        scripted_transport.enqueue(AssistantMessage(content="Sorry."))
        loop = ToolDispatchLoop("llama3.1:8b", scripted_transport)

        assert await loop.run([UserMessage(content="Balance?")]) == "Sorry."
        tool_result = scripted_transport.calls[1].payload["messages"][-1]["tool"]
        assert tool_result["content"] == "Unknown tool: lookup_icp_balance"


    @pytest.mark.asyncio
    async def test_null_json_argument_reported_missing(
        self, balance_loop, scripted_transport
    ):
        """Test that a null required argument is reported as missing."""
        scripted_transport.enqueue(
            requesting(
                ToolCall(
                    id="1",
                    function=FunctionCall(
                        name="lookup_icp_balance", arguments='{"account": null}'
                    ),
                )
            )
        )
        scripted_transport.enqueue(AssistantMessage(content="Which account?"))

        await balance_loop.run([UserMessage(content="Balance?")])

        tool_result = scripted_transport.calls[1].payload["messages"][-1]["tool"]
        assert tool_result["content"] == (
            "Missing required argument 'account' for tool 'lookup_icp_balance'"
        )


class TestRoundLimits:
    """Tests for the tool round limit."""

    @pytest.mark.asyncio
    async def test_calls_after_limit_ignored(
        self, balance_loop, scripted_transport, account_id
    ):
        """Test that a second request for tools ends the exchange."""
        scripted_transport.enqueue(
            requesting(tool_call("1", "lookup_icp_balance", account=account_id))
        )
        scripted_transport.enqueue(
            AssistantMessage(
                content="Let me check again.",
                tool_calls=[tool_call("2", "lookup_icp_balance", account=account_id)],
            )
        )
        scripted_transport.enqueue(AssistantMessage(content="never sent"))

        result = await balance_loop.exchange([UserMessage(content="Balance?")])

        assert result.answer == "Let me check again."
        assert result.tool_rounds == 1
        assert len(scripted_transport.calls) == 2
        assert scripted_transport.remaining == 1
        final = result.messages[-1]
        assert final == AssistantMessage(content="Let me check again.")
        assert isinstance(result.messages[-2], ToolMessage)

    @pytest.mark.asyncio
    async def test_multiple_rounds(
        self, scripted_transport, balance_registry, account_id
    ):
        """Test that tools stay available until the round limit."""
        loop = ToolDispatchLoop(
            "qwen3:32b",
            scripted_transport,
            registry=balance_registry,
            max_tool_rounds=2,
        )
        scripted_transport.enqueue(
            requesting(tool_call("1", "lookup_icp_balance", account="short"))
        )
        scripted_transport.enqueue(
            requesting(tool_call("2", "lookup_icp_balance", account=account_id))
        )
        scripted_transport.enqueue(AssistantMessage(content="100 ICP"))

        result = await loop.exchange([UserMessage(content="Balance?")])

        assert result.answer == "100 ICP"
        assert result.tool_rounds == 2
        assert len(scripted_transport.calls) == 3
        assert "tools" in scripted_transport.calls[0].payload
        assert "tools" in scripted_transport.calls[1].payload
        assert "tools" not in scripted_transport.calls[2].payload

    @pytest.mark.parametrize("rounds", [0, MAX_TOOL_ROUNDS_LIMIT + 1])
    def test_round_limit_bounds(self, scripted_transport, rounds):
        """Test that the round limit must be between 1 and 8."""
        with pytest.raises(ValueError, match="max_tool_rounds"):
            ToolDispatchLoop("llama3.1:8b", scripted_transport, max_tool_rounds=rounds)

    def test_v0_rejects_tools(self, scripted_transport, balance_registry):
        """Test that a v0_chat loop cannot carry tools."""
        with pytest.raises(ValueError, match="v0_chat"):
            ToolDispatchLoop(
                "llama3.1:8b",
                scripted_transport,
                registry=balance_registry,
                method="v0_chat",
            )


class TestFailures:
    """Tests for fatal errors during an exchange."""

    @pytest.mark.asyncio
    async def test_unreachable_on_first_call(self, balance_loop, scripted_transport):
        """Test that a transport error propagates without further calls."""
        scripted_transport.enqueue(
            TransportError("connection refused", TransportErrorKind.UNREACHABLE)
        )
        scripted_transport.enqueue(AssistantMessage(content="never sent"))

        with pytest.raises(TransportError) as exc_info:
            await balance_loop.run([UserMessage(content="Hi")])

        assert exc_info.value.kind is TransportErrorKind.UNREACHABLE
        assert len(scripted_transport.calls) == 1
        assert scripted_transport.remaining == 1

    @pytest.mark.asyncio
    async def test_failure_after_tool_round(
        self, balance_loop, scripted_transport, account_id
    ):
        """Test that a transport error on the resubmission propagates."""
        scripted_transport.enqueue(
            requesting(tool_call("1", "lookup_icp_balance", account=account_id))
        )
        scripted_transport.enqueue(
            TransportError("trap", TransportErrorKind.REMOTE_ERROR)
        )

        with pytest.raises(TransportError):
            await balance_loop.run([UserMessage(content="Balance?")])
        assert len(scripted_transport.calls) == 2

    @pytest.mark.asyncio
    async def test_broken_executor(self, scripted_transport):
        """Test that an executor raising ends the exchange."""

        def broken(arguments):
            raise ConnectionError("ledger offline")

        registry = ToolRegistry()
        registry.register(tool("lookup_icp_balance").build(), broken)
        loop = ToolDispatchLoop("qwen3:32b", scripted_transport, registry=registry)
        scripted_transport.enqueue(requesting(tool_call("1", "lookup_icp_balance")))

        with pytest.raises(ToolExecutionError, match="lookup_icp_balance"):
            await loop.run([UserMessage(content="Balance?")])
        assert len(scripted_transport.calls) == 1

    @pytest.mark.asyncio
    async def test_loop_is_reusable(self, balance_loop, scripted_transport):
        """Test that a loop can run another exchange after finishing one."""
        scripted_transport.enqueue(AssistantMessage(content="first"))
        scripted_transport.enqueue(AssistantMessage(content="second"))

        assert await balance_loop.run([UserMessage(content="1")]) == "first"
        assert await balance_loop.run([UserMessage(content="2")]) == "second"
        assert balance_loop.state is DispatchState.DONE


class BlockingTransport(Transport):
    """Transport whose send never completes until cancelled."""

    def __init__(self) -> None:
        self.calls = 0
        self.started = asyncio.Event()

    async def send(self, canister_id, method, payload):
        self.calls += 1
        self.started.set()
        await asyncio.Event().wait()


class TestCancellation:
    """Tests for cancelling an exchange in flight."""

    @pytest.mark.asyncio
    async def test_cancel_during_send(self, balance_registry):
        """Test that cancellation propagates without further requests."""
        transport = BlockingTransport()
        loop = ToolDispatchLoop("qwen3:32b", transport, registry=balance_registry)

        task = asyncio.create_task(loop.run([UserMessage(content="Balance?")]))
        await transport.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert transport.calls == 1
        assert loop.state is DispatchState.AWAITING_REPLY
