"""Transports to the LLM canister.

A transport performs the actual request/response exchange. The HTTP
transport talks to a canister gateway, the scripted transport replays
canned replies for tests.
"""

from ic_llm.transport.base import Transport
from ic_llm.transport.http import HttpTransport
from ic_llm.transport.memory import RecordedCall, ScriptedTransport

__all__ = ["HttpTransport", "RecordedCall", "ScriptedTransport", "Transport"]
