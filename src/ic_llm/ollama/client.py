"""Transport that serves chat requests from a local Ollama server.

This module adapts the canister wire format to ollama.AsyncClient so a
conversation can be developed and tested against a local model before it
is pointed at the LLM canister. The canister id is ignored; the Ollama host
is the endpoint.
"""

import json
import logging
import uuid
from typing import Any

import httpx
import ollama

from ic_llm.endpoint import Principal
from ic_llm.errors import TransportError, TransportErrorKind
from ic_llm.transport.base import Transport

logger = logging.getLogger(__name__)


def _to_ollama_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert tagged wire messages to Ollama role dicts.

    Tool results are labelled with the name of the tool whose call they
    answer, looked up from the preceding assistant tool calls.

    Args:
        messages: Wire messages, e.g. [{"user": {"content": "..."}}]

    Returns:
        List of message dicts in Ollama format: [{"role": "...", "content": "..."}, ...]
    """
    ollama_messages = []
    call_names: dict[str, str] = {}

    for message in messages:
        role, body = next(iter(message.items()))
        ollama_msg: dict[str, Any] = {
            "role": role,
            "content": body.get("content") or "",
        }

        if role == "assistant" and body.get("tool_calls"):
            ollama_msg["tool_calls"] = []
            for call in body["tool_calls"]:
                call_names[call["id"]] = call["function"]["name"]
                ollama_msg["tool_calls"].append(
                    {
                        "function": {
                            "name": call["function"]["name"],
                            "arguments": _arguments_to_dict(
                                call["function"]["arguments"]
                            ),
                        }
                    }
                )
        elif role == "tool" and body.get("tool_call_id") in call_names:
            ollama_msg["tool_name"] = call_names[body["tool_call_id"]]

        ollama_messages.append(ollama_msg)

    return ollama_messages


def _arguments_to_dict(arguments: list[dict[str, str]] | str) -> dict[str, Any]:
    if isinstance(arguments, str):
        try:
            decoded = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    result: dict[str, Any] = {}
    for arg in arguments:
        result.setdefault(arg["name"], arg["value"])
    return result


def _to_ollama_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert tagged wire tools to Ollama's JSON-schema tool format."""
    ollama_tools = []

    for tool in tools:
        function = tool["function"]
        ollama_function: dict[str, Any] = {"name": function["name"]}
        if "description" in function:
            ollama_function["description"] = function["description"]

        parameters = function.get("parameters")
        if parameters is not None:
            properties = {}
            for prop in parameters.get("properties", []):
                schema = {"type": prop["type"]}
                if "description" in prop:
                    schema["description"] = prop["description"]
                if "enum" in prop:
                    schema["enum"] = prop["enum"]
                properties[prop["name"]] = schema

            ollama_function["parameters"] = {
                "type": parameters["type"],
                "properties": properties,
                "required": parameters.get("required", []),
            }

        ollama_tools.append({"type": "function", "function": ollama_function})

    return ollama_tools


def _from_ollama_response(response: Any) -> dict[str, Any]:
    """Convert an Ollama chat response to the wire reply shape.

    Ollama does not assign tool call ids, so each call gets a fresh one.
    """
    # Convert the response to a dict if it's not already
    if hasattr(response, "model_dump"):
        response = response.model_dump()
    elif not isinstance(response, dict):
        response = vars(response)

    message = response.get("message") or {}
    tool_calls = []
    for call in message.get("tool_calls") or []:
        function = call.get("function") or {}
        arguments = function.get("arguments") or {}
        tool_calls.append(
            {
                "id": f"call_{uuid.uuid4().hex[:10]}",
                "function": {
                    "name": function.get("name", ""),
                    "arguments": [
                        {
                            "name": str(name),
                            "value": (
                                value if isinstance(value, str) else json.dumps(value)
                            ),
                        }
                        for name, value in arguments.items()
                        if value is not None
                    ],
                },
            }
        )

    reply: dict[str, Any] = {"tool_calls": tool_calls}
    if message.get("content"):
        reply["content"] = message["content"]
    return {"message": reply}


class OllamaTransport(Transport):
    """Transport backed by ollama.AsyncClient.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        _client: The underlying ollama.AsyncClient instance
    """

    def __init__(self, host: str) -> None:
        """Initialize the Ollama transport.

        Args:
            host: The Ollama server URL
        """
        self.host = host
        self._client = ollama.AsyncClient(host=host)
        logger.info(f"OllamaTransport initialized with host: {host}")

    async def send(
        self,
        canister_id: Principal,
        method: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        messages = _to_ollama_messages(payload.get("messages", []))
        tools = _to_ollama_tools(payload.get("tools") or []) or None

        logger.debug(
            f"Sending {method} for {canister_id} to Ollama: "
            f"model={payload.get('model')}, messages={len(messages)}, "
            f"tools={len(tools or [])}"
        )

        try:
            response = await self._client.chat(
                model=payload.get("model", ""),
                messages=messages,
                tools=tools,
                stream=False,
            )
        except ollama.ResponseError as e:
            logger.error(f"Ollama API error: {e}")
            raise TransportError(
                f"Ollama reported an error: {e}", TransportErrorKind.REMOTE_ERROR
            ) from e
        except (ConnectionError, httpx.TransportError) as e:
            logger.error(f"Ollama unreachable at {self.host}: {e}")
            raise TransportError(
                f"Unable to reach Ollama at {self.host}: {e}",
                TransportErrorKind.UNREACHABLE,
            ) from e

        try:
            return _from_ollama_response(response)
        except (AttributeError, TypeError) as e:
            raise TransportError(
                f"Unexpected Ollama response: {e}",
                TransportErrorKind.MALFORMED_RESPONSE,
            ) from e

    async def aclose(self) -> None:
        """Close the transport.

        ollama.AsyncClient doesn't require explicit cleanup in current
        versions; it uses httpx internally which handles cleanup.
        """
        logger.debug("OllamaTransport closed")
