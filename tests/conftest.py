"""Pytest configuration and shared fixtures for ic-llm tests.

This module provides common fixtures used across all test modules,
including test settings, scripted transports and a balance-lookup tool.
"""

import pytest

from ic_llm import ParameterType, parameter, tool
from ic_llm.config import IcLlmSettings
from ic_llm.tools import ToolRegistry
from ic_llm.transport import ScriptedTransport

ACCOUNT_ID = "a" * 64

BALANCE_SYSTEM_PROMPT = (
    "You are an assistant that exclusively performs ICP balance lookups. "
    "Use the 'lookup_icp_balance' tool when asked for an account balance."
)


async def lookup_balance(arguments: dict[str, str]) -> str:
    """Stand-in for a ledger balance lookup."""
    account = arguments["account"]
    if len(account) != 64:
        return "Account must be 64 characters long"
    try:
        int(account, 16)
    except ValueError:
        return "Invalid account"
    return f"Balance of {account} is 100 ICP"


@pytest.fixture
def test_settings():
    """Create test settings independent of the environment.

    Returns:
        IcLlmSettings: Settings instance configured for testing.
    """
    return IcLlmSettings(
        llm_canister_id="w36hm-eqaaa-aaaal-qr76a-cai",
        model="qwen3:32b",
        chat_method="v1_chat",
        max_tool_rounds=1,
        transport="http",
        gateway_url="http://gateway.test",
        ollama_host="http://localhost:11434",
        request_timeout=5.0,
    )


@pytest.fixture
def account_id():
    """A well-formed 64-character hex account identifier."""
    return ACCOUNT_ID


@pytest.fixture
def scripted_transport():
    """Create an empty scripted transport; tests enqueue replies."""
    return ScriptedTransport()


@pytest.fixture
def balance_tool():
    """The lookup_icp_balance tool schema."""
    return (
        tool("lookup_icp_balance")
        .with_description("Lookup the balance of an ICP account.")
        .with_parameter(
            parameter("account", ParameterType.STRING)
            .with_description("The ICP account (64-character hex string) to look up.")
            .is_required()
        )
        .build()
    )


@pytest.fixture
def balance_registry(balance_tool):
    """A registry holding the balance-lookup tool."""
    registry = ToolRegistry()
    registry.register(balance_tool, lookup_balance)
    return registry


@pytest.fixture
def balance_system_prompt():
    """System prompt restricting the assistant to balance lookups."""
    return BALANCE_SYSTEM_PROMPT
