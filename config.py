# config.py
# LLM gateway settings, read from the environment (a .env file is loaded by main.py).

"""
Environment variables use the DATA_CONTRACT_LLM_ prefix:
    DATA_CONTRACT_LLM_URL: Chat-completion endpoint (required for generation)
    DATA_CONTRACT_LLM_MODEL: Model name (default: gpt-3.5-turbo-16k)
    DATA_CONTRACT_LLM_MAX_TOKENS: Completion token limit (default: 8000)
    DATA_CONTRACT_LLM_TEMPERATURE: Sampling temperature (default: 0.2)
    DATA_CONTRACT_LLM_TIMEOUT: Request timeout in seconds (default: 120)

Empty variables are treated as unset.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "DATA_CONTRACT_LLM_"

DEFAULT_MODEL = "gpt-3.5-turbo-16k"
DEFAULT_MAX_TOKENS = 8000
DEFAULT_TEMPERATURE = 0.2
DEFAULT_TIMEOUT = 120.0


class GatewaySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_ignore_empty=True, extra="ignore")

    url: Optional[str] = Field(None, description="Endpoint that accepts chat-completion requests.")
    model: str = Field(DEFAULT_MODEL, description="Model name sent in the request body.")
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, gt=0)
    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds.")


def load_settings() -> GatewaySettings:
    return GatewaySettings()
