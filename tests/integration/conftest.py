"""Pytest configuration for integration tests.

This module provides dispatch-loop fixtures wired to a scripted transport,
so whole exchanges run without a network.
"""

import pytest

from ic_llm import ToolDispatchLoop


@pytest.fixture
def balance_loop(
    scripted_transport, balance_registry, balance_system_prompt, test_settings
):
    """Create a dispatch loop that can look up ICP balances.

    Returns:
        ToolDispatchLoop: Loop using the scripted transport and balance tool
    """
    return ToolDispatchLoop.from_settings(
        test_settings,
        scripted_transport,
        registry=balance_registry,
        system_prompt=balance_system_prompt,
    )
