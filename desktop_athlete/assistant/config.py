"""Assistant configuration with environment variable loading.

Pydantic-based configuration for the hosted workout assistant and the
polling budgets of the conversation orchestrator.
Supports OpenAI directly or the backend-for-frontend functions over HTTP.
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class AssistantConfig(BaseModel):
    """Configuration for the Desktop Athlete assistant.

    Attributes:
        api_key: OpenAI API key (only needed for the ``openai`` gateway).
        base_url: API base URL (None for OpenAI default).
        assistant_id: Identifier of the hosted assistant that answers runs.
        gateway: Which transport to use, ``openai`` or ``functions``.
        functions_base_url: Base URL of the backend-for-frontend functions.
        request_timeout: Per-request timeout in seconds.
        max_retries: Transport-level retries per vendor call.
        max_message_length: Longest accepted message after sanitization.
        poll_interval: Seconds to wait between run status checks.
        max_polling_attempts: Polling budget for one send.
        max_run_retries: Dead-run replacement budget for one send.
        max_sessions: Most chat sessions kept in memory at once.
    """

    # Environment-provided defaults go through the same validators
    model_config = ConfigDict(validate_default=True)

    api_key: str = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", ""),
        description="API key for OpenAI",
    )
    base_url: str | None = Field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL") or None,
        description="API base URL (None for OpenAI default)",
    )
    assistant_id: str = Field(
        default_factory=lambda: os.getenv("ASSISTANT_ID", os.getenv("VITE_ASSISTANT_ID", "")),
        description="Hosted assistant identifier",
    )
    gateway: Literal["openai", "functions"] = Field(
        default_factory=lambda: os.getenv("ASSISTANT_GATEWAY", "openai").lower(),
        description="Transport used to reach the assistant",
    )
    functions_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "FUNCTIONS_BASE_URL", "http://localhost:8888/.netlify/functions"
        ),
        description="Base URL of the thread/run functions",
    )
    # Netlify functions are cut off at 10s
    request_timeout: float = Field(
        default_factory=lambda: _env_float("REQUEST_TIMEOUT", 8.0),
        gt=0.0,
        description="Per-request timeout in seconds",
    )
    max_retries: int = Field(default=2, ge=0, le=10)
    max_message_length: int = Field(
        default_factory=lambda: _env_int("MAX_MESSAGE_LENGTH", 800),
        ge=1,
        le=4000,
        description="Maximum characters per user message",
    )
    poll_interval: float = Field(
        default_factory=lambda: _env_float("POLL_INTERVAL", 1.5),
        ge=0.0,
        description="Seconds between run status checks",
    )
    max_polling_attempts: int = Field(
        default_factory=lambda: _env_int("MAX_POLLING_ATTEMPTS", 10),
        ge=1,
        description="Maximum run status checks per message",
    )
    max_run_retries: int = Field(
        default_factory=lambda: _env_int("MAX_RUN_RETRIES", 3),
        ge=0,
        description="Maximum dead runs replaced per message",
    )
    max_sessions: int = Field(
        default_factory=lambda: _env_int("MAX_SESSIONS", 1000),
        ge=1,
        description="Maximum chat sessions held in memory",
    )

    @field_validator("api_key", "assistant_id")
    @classmethod
    def strip_identifiers(cls, v: str) -> str:
        """Strip whitespace from credentials and identifiers."""
        return v.strip()

    @field_validator("assistant_id")
    @classmethod
    def validate_assistant_id(cls, v: str) -> str:
        """Validate that an assistant identifier is provided."""
        if not v:
            raise ValueError("Assistant ID required. Set ASSISTANT_ID in .env")
        return v

    @model_validator(mode="after")
    def validate_api_key(self) -> "AssistantConfig":
        """Require an API key when talking to OpenAI directly."""
        if self.gateway == "openai" and not self.api_key:
            raise ValueError("API key required. Set OPENAI_API_KEY in .env")
        return self


def get_assistant_config() -> AssistantConfig:
    """Create assistant configuration from environment.

    Returns:
        Configured AssistantConfig instance.

    Raises:
        ValueError: If the API key or assistant ID is missing.
    """
    return AssistantConfig()
