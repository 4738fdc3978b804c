"""OpenAI Assistants gateway.

Talks to the hosted assistant through the official ``openai`` SDK.

Notes on behavior:

1. **Run reuse** - A thread can only have one unfinished run. Before creating
   a run we look for one that is still queued or in progress and hand that
   back instead, so two overlapping requests collapse into one run.

2. **Short timeouts** - The same limits the functions layer uses (8s, two
   SDK retries) so a hung call turns into a failed poll instead of a stuck
   conversation.

3. **Error normalization** - SDK exceptions become GatewayError with a
   message that is safe to show to the user.
"""

import logging

import openai
from openai import AsyncOpenAI

from desktop_athlete.assistant.config import AssistantConfig, get_assistant_config
from desktop_athlete.assistant.gateway import GatewayError, content_to_text
from desktop_athlete.models.schemas import FINISHED_RUN_STATUSES, ChatMessage, RunInfo

logger = logging.getLogger(__name__)

_FINISHED = {status.value for status in FINISHED_RUN_STATUSES}

# Messages requested per page
_MESSAGE_PAGE_SIZE = 100


def _translate(exc: openai.OpenAIError, fallback: str) -> GatewayError:
    """Convert an SDK exception into a GatewayError."""
    status_code = getattr(exc, "status_code", None)
    logger.error(f"{fallback}: {exc}")
    return GatewayError(fallback, status_code=status_code)


class OpenAIAssistantGateway:
    """Gateway backed by the OpenAI Assistants API.

    Wraps AsyncOpenAI with:
    - Thread creation seeded with the first message
    - Active-run reuse when starting a run
    - Content flattening for listed messages
    - Centralized error translation
    """

    def __init__(
        self,
        config: AssistantConfig | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            config: Optional assistant configuration.
                    Loads from environment if not provided.
            client: Optional preconfigured SDK client.
        """
        self._config = config or get_assistant_config()
        self._client = client or self._create_client()

    def _create_client(self) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            timeout=self._config.request_timeout,
            max_retries=self._config.max_retries,
        )

    async def create_thread(self, seed: str) -> str:
        try:
            thread = await self._client.beta.threads.create(
                messages=[{"role": "user", "content": seed}],
            )
        except openai.OpenAIError as e:
            raise _translate(e, "Failed to create thread") from e

        if not thread.id:
            raise GatewayError("Thread creation failed: no thread ID returned")
        logger.info(f"Created thread {thread.id}")
        return thread.id

    async def create_message(self, thread_id: str, content: str) -> str:
        try:
            message = await self._client.beta.threads.messages.create(
                thread_id,
                role="user",
                content=content,
            )
        except openai.OpenAIError as e:
            raise _translate(e, "Failed to send message") from e
        return message.id

    async def create_run(self, thread_id: str, assistant_id: str) -> str:
        """Start a run, reusing one that is still in flight on the thread."""
        try:
            runs = await self._client.beta.threads.runs.list(thread_id)
            active = next((run for run in runs.data if run.status not in _FINISHED), None)
            if active is not None:
                logger.info(f"Reusing active run {active.id} ({active.status}) on {thread_id}")
                return active.id

            run = await self._client.beta.threads.runs.create(
                thread_id,
                assistant_id=assistant_id,
            )
        except openai.OpenAIError as e:
            raise _translate(e, "Failed to run thread") from e

        logger.info(f"Created run {run.id} on {thread_id}")
        return run.id

    async def retrieve_run(self, thread_id: str, run_id: str) -> RunInfo:
        try:
            run = await self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
        except openai.NotFoundError as e:
            raise _translate(e, "No run found with the specified ID") from e
        except openai.OpenAIError as e:
            raise _translate(e, "Failed to retrieve run") from e

        last_error = run.last_error.message if run.last_error else None
        return RunInfo(id=run.id, status=run.status, last_error=last_error)

    async def list_messages(self, thread_id: str) -> list[ChatMessage]:
        # The paginator fetches further pages as it is iterated
        try:
            return [
                ChatMessage(role=message.role, content=content_to_text(message.content))
                async for message in self._client.beta.threads.messages.list(
                    thread_id,
                    order="asc",
                    limit=_MESSAGE_PAGE_SIZE,
                )
            ]
        except openai.OpenAIError as e:
            raise _translate(e, "Failed to list messages") from e

    async def aclose(self) -> None:
        await self._client.close()
