"""Gateway interface to the hosted assistant.

The orchestrator only sees these five operations. Implementations decide
whether they reach OpenAI directly or go through the thread/run functions.
"""

import json
from typing import Any, Protocol

from pydantic import BaseModel

from desktop_athlete.assistant.config import AssistantConfig
from desktop_athlete.models.schemas import ChatMessage, RunInfo


def content_to_text(content: Any) -> str:
    """Flatten vendor message content into displayable text.

    Content arrives either as plain text, as a list of content blocks, or as
    that list already JSON-encoded by the functions layer. Text blocks are
    joined with blank lines; other blocks are kept as JSON.
    """
    if isinstance(content, str):
        stripped = content.lstrip()
        if not stripped.startswith("["):
            return content
        try:
            content = json.loads(stripped)
        except ValueError:
            return content

    if not isinstance(content, list):
        return json.dumps(content, default=str)

    parts: list[str] = []
    for block in content:
        if isinstance(block, BaseModel):
            block = block.model_dump()
        if isinstance(block, str):
            parts.append(block)
            continue
        if isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, dict):
                text = text.get("value", "")
            parts.append(str(text or ""))
            continue
        parts.append(json.dumps(block, default=str))
    return "\n\n".join(parts)


class GatewayError(Exception):
    """Raised when an assistant operation fails upstream.

    Attributes:
        message: Human-readable description safe to show to the user.
        status_code: HTTP status of the failed call, when known.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AssistantGateway(Protocol):
    """Thread, message and run operations of the hosted assistant."""

    async def create_thread(self, seed: str) -> str:
        """Create a thread seeded with the first user message and return its ID."""
        ...

    async def create_message(self, thread_id: str, content: str) -> str:
        """Append a user message to an existing thread and return its ID."""
        ...

    async def create_run(self, thread_id: str, assistant_id: str) -> str:
        """Start a run on the thread, or return the run already in flight."""
        ...

    async def retrieve_run(self, thread_id: str, run_id: str) -> RunInfo:
        """Fetch the current status of a run."""
        ...

    async def list_messages(self, thread_id: str) -> list[ChatMessage]:
        """Return the thread's messages, oldest first."""
        ...

    async def aclose(self) -> None:
        """Release transport resources."""
        ...


def create_gateway(config: AssistantConfig) -> AssistantGateway:
    """Build the gateway selected by ``config.gateway``."""
    if config.gateway == "functions":
        from desktop_athlete.assistant.http_gateway import HttpFunctionsGateway

        return HttpFunctionsGateway(config=config)

    from desktop_athlete.assistant.openai_gateway import OpenAIAssistantGateway

    return OpenAIAssistantGateway(config=config)
