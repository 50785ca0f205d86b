"""Configuration module for ic-llm using pydantic-settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Principal of the LLM canister on mainnet
LLM_CANISTER_ID = "w36hm-eqaaa-aaaal-qr76a-cai"


class IcLlmSettings(BaseSettings):
    """Configuration settings for ic-llm.

    All settings can be overridden via environment variables with the IC_LLM_
    prefix. For example, IC_LLM_GATEWAY_URL will override the gateway_url
    setting.
    """

    # Remote endpoint
    llm_canister_id: str = LLM_CANISTER_ID

    # Model and request shape
    model: str = "llama3.1:8b"
    chat_method: Literal["v0_chat", "v1_chat"] = "v1_chat"

    # Tool dispatch
    max_tool_rounds: int = Field(default=1, ge=1, le=8)

    # Transport
    transport: Literal["http", "ollama"] = "http"
    gateway_url: str = "http://127.0.0.1:4943"
    ollama_host: str = "http://localhost:11434"
    request_timeout: float = 60.0

    model_config = SettingsConfigDict(env_prefix="IC_LLM_")
