"""Construct the transport selected by configuration."""

import logging

from ic_llm.config import IcLlmSettings
from ic_llm.ollama import OllamaTransport
from ic_llm.transport.base import Transport
from ic_llm.transport.http import HttpTransport

logger = logging.getLogger(__name__)


def create_transport(settings: IcLlmSettings) -> Transport:
    """Create the transport named by settings.transport.

    Args:
        settings: Configuration to read the transport choice from

    Returns:
        Transport: An HttpTransport or OllamaTransport

    Raises:
        EndpointResolutionError: If the HTTP gateway URL is invalid
    """
    if settings.transport == "ollama":
        return OllamaTransport(host=settings.ollama_host)

    logger.debug(f"Creating HTTP transport for {settings.gateway_url}")
    return HttpTransport(settings.gateway_url, timeout=settings.request_timeout)
