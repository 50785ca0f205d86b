"""Abstract transport to the remote LLM canister."""

from abc import ABC, abstractmethod
from typing import Any

from ic_llm.endpoint import Principal


class Transport(ABC):
    """A request/response channel to a canister.

    Implementations perform exactly one round-trip per send() and raise
    TransportError for unreachable endpoints, undecodable responses and
    errors reported by the remote side. Retry and timeout policy belongs to
    the implementation; callers never retry.
    """

    @abstractmethod
    async def send(
        self,
        canister_id: Principal,
        method: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """Send a serialized request and return the serialized reply.

        Args:
            canister_id: Identity of the target canister
            method: Remote method name, e.g. "v1_chat"
            payload: The serialized request

        Returns:
            dict: The serialized reply

        Raises:
            TransportError: If the round-trip fails
        """
        ...

    async def aclose(self) -> None:
        """Release any resources held by the transport."""

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
