"""HTTP gateway to the thread/run functions.

Calls the backend-for-frontend endpoints that wrap the assistant API:

    POST create-thread   {"initialMessage": ...}
    POST create-message  {"threadId": ..., "question": ...}
    GET  run-thread      ?threadId=...&asstID=...
    GET  retrieve-run    ?thread=...&run=...
    GET  list-messages   ?threadId=...

Failed calls answer with ``{"error": "..."}``; that text is surfaced as is.
"""

import logging
import time
from typing import Any

import httpx

from desktop_athlete.assistant.config import AssistantConfig, get_assistant_config
from desktop_athlete.assistant.gateway import GatewayError, content_to_text
from desktop_athlete.models.schemas import ChatMessage, RunInfo

logger = logging.getLogger(__name__)

INVALID_RESPONSE = "Invalid response from assistant service"


class HttpFunctionsGateway:
    """Gateway that reaches the assistant through the functions endpoints."""

    def __init__(
        self,
        config: AssistantConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_assistant_config()
        self._client = client or httpx.AsyncClient(
            base_url=self._config.functions_base_url.rstrip("/") + "/",
            timeout=self._config.request_timeout,
        )

    async def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send a request and decode its JSON object body.

        Raises:
            GatewayError: On transport errors, non-2xx status, or a body
                that is not a JSON object.
        """
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"{fallback}: connection failed: {e}")
            raise GatewayError(fallback) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = body.get("error") if isinstance(body, dict) else None
            logger.error(f"{path} returned HTTP {response.status_code}: {message or fallback}")
            raise GatewayError(message or fallback, status_code=response.status_code)

        if not isinstance(body, dict):
            raise GatewayError(INVALID_RESPONSE, status_code=response.status_code)
        return body

    async def create_thread(self, seed: str) -> str:
        data = await self._request(
            "POST",
            "create-thread",
            "Failed to create thread",
            json={"initialMessage": seed},
        )
        thread_id = data.get("id")
        if not thread_id:
            raise GatewayError("Thread creation failed: no thread ID returned")
        return thread_id

    async def create_message(self, thread_id: str, content: str) -> str:
        data = await self._request(
            "POST",
            "create-message",
            "Failed to send message",
            json={"threadId": thread_id, "question": content},
        )
        return data.get("id", "")

    async def create_run(self, thread_id: str, assistant_id: str) -> str:
        data = await self._request(
            "GET",
            "run-thread",
            "Failed to create run",
            params={"threadId": thread_id, "asstID": assistant_id},
        )
        # A reused run comes back as {"run_id": ...}, a new one as the run object
        run_id = data.get("id") or data.get("run_id")
        if not run_id:
            raise GatewayError("Invalid run data: missing run ID")
        return run_id

    async def retrieve_run(self, thread_id: str, run_id: str) -> RunInfo:
        data = await self._request(
            "GET",
            "retrieve-run",
            "Failed to retrieve run status",
            params={"thread": thread_id, "run": run_id},
        )
        status = data.get("status")
        if not isinstance(status, str):
            raise GatewayError(INVALID_RESPONSE)
        last_error = data.get("last_error")
        if isinstance(last_error, dict):
            last_error = last_error.get("message")
        return RunInfo(id=data.get("id") or run_id, status=status, last_error=last_error)

    async def list_messages(self, thread_id: str) -> list[ChatMessage]:
        data = await self._request(
            "GET",
            "list-messages",
            "Failed to list messages",
            # Cache buster; some CDNs cache GET function responses
            params={"threadId": thread_id, "_": str(int(time.time() * 1000))},
        )
        raw = data.get("messages")
        if not isinstance(raw, list):
            raise GatewayError("Invalid message format received from API")

        try:
            # The vendor lists newest first unless asked otherwise
            if all(isinstance(m, dict) and "created_at" in m for m in raw):
                raw = sorted(raw, key=lambda m: m["created_at"])
            return [
                ChatMessage(role=m["role"], content=content_to_text(m.get("content", "")))
                for m in raw
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise GatewayError("Invalid message format received from API") from e

    async def aclose(self) -> None:
        await self._client.aclose()
