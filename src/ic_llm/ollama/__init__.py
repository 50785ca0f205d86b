"""Ollama-backed transport.

This package lets conversations run against a local Ollama server using
the same wire payloads that are sent to the LLM canister.
"""

from ic_llm.ollama.client import OllamaTransport

__all__ = ["OllamaTransport"]
