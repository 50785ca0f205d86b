"""JSON-over-HTTP transport built on httpx.

Requests are POSTed as JSON to {gateway_url}/canisters/{canister_id}/{method}
and the JSON reply body is returned as-is.
"""

import logging
from typing import Any

import httpx

from ic_llm.endpoint import Principal, resolve_gateway_url
from ic_llm.errors import TransportError, TransportErrorKind
from ic_llm.transport.base import Transport

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0

# Top-level keys a gateway uses to report a failed call
ERROR_KEYS = ("error", "Err")


class HttpTransport(Transport):
    """Async HTTP transport for a canister gateway.

    The gateway URL is validated at construction, so a misconfigured
    endpoint fails before any request is attempted.

    Attributes:
        gateway_url: The validated gateway base URL
        _client: The underlying httpx.AsyncClient
        _owns_client: Whether aclose() should close _client
    """

    def __init__(
        self,
        gateway_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            gateway_url: Absolute http(s) base URL of the gateway
            timeout: Request timeout in seconds
            client: Optional preconfigured client (e.g. with a mock transport);
                the caller keeps ownership and closes it

        Raises:
            EndpointResolutionError: If gateway_url is not a usable URL
        """
        self.gateway_url = resolve_gateway_url(gateway_url)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        logger.info(f"HttpTransport initialized with gateway: {self.gateway_url}")

    def url_for(self, canister_id: Principal, method: str) -> httpx.URL:
        """Build the request URL for a canister method."""
        base = str(self.gateway_url).rstrip("/")
        return httpx.URL(f"{base}/canisters/{canister_id}/{method}")

    async def send(
        self,
        canister_id: Principal,
        method: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        url = self.url_for(canister_id, method)
        logger.debug(f"POST {url}")

        try:
            response = await self._client.post(url, json=payload)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error(f"Gateway unreachable at {url}: {e}")
            raise TransportError(
                f"Unable to reach {url}: {e}", TransportErrorKind.UNREACHABLE
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP request to {url} failed: {e}")
            raise TransportError(
                f"Request to {url} failed: {e}", TransportErrorKind.UNREACHABLE
            ) from e

        if response.is_error:
            logger.error(f"Gateway returned HTTP {response.status_code} for {url}")
            raise TransportError(
                f"HTTP {response.status_code}: {response.text}",
                TransportErrorKind.REMOTE_ERROR,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Response from {url} is not valid JSON: {e}",
                TransportErrorKind.MALFORMED_RESPONSE,
            ) from e

        if not isinstance(body, dict):
            raise TransportError(
                f"Response from {url} is not a JSON object",
                TransportErrorKind.MALFORMED_RESPONSE,
            )

        for key in ERROR_KEYS:
            if key in body:
                raise TransportError(
                    f"Canister reported an error: {body[key]}",
                    TransportErrorKind.REMOTE_ERROR,
                )

        return body

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
        logger.debug("HttpTransport closed")
