"""In-memory transport returning scripted replies."""

import copy
import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ic_llm.chat.codec import encode_response
from ic_llm.chat.types import AssistantMessage, ChatResponse
from ic_llm.endpoint import Principal
from ic_llm.errors import TransportError, TransportErrorKind
from ic_llm.transport.base import Transport

logger = logging.getLogger(__name__)

ScriptedReply = dict[str, Any] | AssistantMessage | ChatResponse | BaseException


@dataclass(frozen=True)
class RecordedCall:
    """A request received by a ScriptedTransport."""

    canister_id: Principal
    method: str
    payload: dict[str, Any]


class ScriptedTransport(Transport):
    """Transport double that replays a fixed script of replies.

    Each send() records the request and consumes the next scripted entry:
    wire dicts are returned as-is, AssistantMessage and ChatResponse values
    are encoded first, and exceptions are raised. Sending past the end of
    the script raises TransportError.

    Attributes:
        calls: Requests received so far, in order
    """

    def __init__(self, replies: Iterable[ScriptedReply] = ()) -> None:
        self._replies: deque[ScriptedReply] = deque(replies)
        self.calls: list[RecordedCall] = []

    @property
    def remaining(self) -> int:
        """Number of scripted replies not yet consumed."""
        return len(self._replies)

    def enqueue(self, reply: ScriptedReply) -> None:
        """Append a reply to the script."""
        self._replies.append(reply)

    async def send(
        self,
        canister_id: Principal,
        method: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        self.calls.append(RecordedCall(canister_id, method, copy.deepcopy(payload)))
        logger.debug(f"Scripted call #{len(self.calls)} to {canister_id}/{method}")

        if not self._replies:
            raise TransportError(
                "No scripted reply left", TransportErrorKind.REMOTE_ERROR
            )

        reply = self._replies.popleft()
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, AssistantMessage):
            return encode_response(ChatResponse(message=reply))
        if isinstance(reply, ChatResponse):
            return encode_response(reply)
        return copy.deepcopy(reply)
