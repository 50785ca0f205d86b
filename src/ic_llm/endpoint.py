"""Canister identity parsing and endpoint resolution.

The remote LLM service is addressed by a principal. Its textual form is the
lowercase base32 encoding (without padding) of a big-endian CRC32 checksum
followed by the raw principal bytes, split into groups of five characters
separated by dashes, e.g. "w36hm-eqaaa-aaaal-qr76a-cai".
"""

import base64
import binascii
import logging
import zlib
from dataclasses import dataclass

import httpx

from ic_llm.errors import EndpointResolutionError

logger = logging.getLogger(__name__)

MAX_PRINCIPAL_LENGTH = 29
CHECKSUM_LENGTH = 4
GROUP_SIZE = 5


@dataclass(frozen=True)
class Principal:
    """Identity of a remote canister.

    Attributes:
        raw: The principal bytes without checksum
    """

    raw: bytes

    @classmethod
    def from_text(cls, text: str) -> "Principal":
        """Parse and validate the textual form of a principal.

        Args:
            text: Dash-grouped base32 principal text

        Returns:
            Principal: The parsed principal

        Raises:
            EndpointResolutionError: If the text is not a canonical principal
        """
        ungrouped = text.replace("-", "").upper()
        padding = "=" * (-len(ungrouped) % 8)
        try:
            decoded = base64.b32decode(ungrouped + padding)
        except (binascii.Error, ValueError) as e:
            raise EndpointResolutionError(
                f"Invalid principal text {text!r}: {e}"
            ) from e

        if len(decoded) < CHECKSUM_LENGTH:
            raise EndpointResolutionError(f"Invalid principal text {text!r}: too short")

        checksum, raw = decoded[:CHECKSUM_LENGTH], decoded[CHECKSUM_LENGTH:]
        if len(raw) > MAX_PRINCIPAL_LENGTH:
            raise EndpointResolutionError(f"Invalid principal text {text!r}: too long")
        if _checksum(raw) != checksum:
            raise EndpointResolutionError(
                f"Invalid principal text {text!r}: checksum mismatch"
            )

        principal = cls(raw)
        if principal.to_text() != text:
            raise EndpointResolutionError(
                f"Invalid principal text {text!r}: expected {principal.to_text()!r}"
            )
        return principal

    def to_text(self) -> str:
        """Render the canonical textual form."""
        encoded = (
            base64.b32encode(_checksum(self.raw) + self.raw)
            .decode("ascii")
            .lower()
            .rstrip("=")
        )
        return "-".join(
            encoded[i : i + GROUP_SIZE] for i in range(0, len(encoded), GROUP_SIZE)
        )

    def __str__(self) -> str:
        return self.to_text()


def _checksum(raw: bytes) -> bytes:
    return zlib.crc32(raw).to_bytes(CHECKSUM_LENGTH, "big")


def resolve_gateway_url(url: str) -> httpx.URL:
    """Validate the base URL of an HTTP gateway.

    Args:
        url: Absolute http(s) URL

    Returns:
        httpx.URL: The parsed URL

    Raises:
        EndpointResolutionError: If the URL is malformed or not http(s)
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise EndpointResolutionError(f"Invalid gateway URL {url!r}: {e}") from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise EndpointResolutionError(
            f"Invalid gateway URL {url!r}: expected an absolute http(s) URL"
        )

    logger.debug(f"Resolved gateway URL: {parsed}")
    return parsed
