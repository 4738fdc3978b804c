"""Conversation orchestration against the hosted assistant.

Turns one user message into the assistant's reply. The vendor runs the
assistant asynchronously, so a send is a small state machine:

    IDLE -> VALIDATING -> THREAD_ENSURED -> RUN_PENDING -> POLLING
    POLLING -> FETCHING_MESSAGES -> COMPLETED
    POLLING -> RUN_DEAD -> RUN_PENDING      (bounded by max_run_retries)
    POLLING -> POLL_EXHAUSTED               (bounded by max_polling_attempts)

A run that dies on the last polling attempt is not replaced; the send
ends in POLL_EXHAUSTED without leaving a fresh run behind.

Any failure ends in one of the ``*_FAILED`` / ``*_EXHAUSTED`` states and is
reported as text on the SendResult; nothing propagates to the caller.

Budgets:

1. **Polling attempts** - every status check consumes one attempt, whether
   it succeeded, errored, or found a dead run. Replacing a dead run does not
   reset the counter, so total waiting is bounded by
   ``poll_interval * max_polling_attempts``.

2. **Run retries** - a dead run (expired, failed, cancelled) is replaced by
   a fresh run at most ``max_run_retries`` times per send.

Both counters start at zero for every send.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from pydantic import BaseModel, Field

from desktop_athlete.assistant.config import AssistantConfig
from desktop_athlete.assistant.gateway import AssistantGateway, GatewayError
from desktop_athlete.chat.handles import ConversationHandles
from desktop_athlete.chat.sanitizer import sanitize_input
from desktop_athlete.models.schemas import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGE_LENGTH = 800

INVALID_INPUT_MESSAGE = "Please enter a valid message"
BUSY_MESSAGE = "A message is already being processed. Please wait."
POLL_EXHAUSTED_MESSAGE = "The assistant could not complete a reply. Please try again."
RETRIES_EXHAUSTED_MESSAGE = (
    "The assistant could not complete a reply after several attempts. Please try again."
)
GENERIC_FAILURE_MESSAGE = "Failed to handle message"


class SendState(str, Enum):
    """States of a single send operation."""

    IDLE = "idle"
    VALIDATING = "validating"
    THREAD_ENSURED = "thread_ensured"
    RUN_PENDING = "run_pending"
    POLLING = "polling"
    RUN_DEAD = "run_dead"
    FETCHING_MESSAGES = "fetching_messages"
    COMPLETED = "completed"
    POLL_EXHAUSTED = "poll_exhausted"
    RETRIES_EXHAUSTED = "retries_exhausted"
    VALIDATION_FAILED = "validation_failed"
    THREAD_FAILED = "thread_failed"
    RUN_CREATION_FAILED = "run_creation_failed"
    MESSAGES_FAILED = "messages_failed"
    BUSY = "busy"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {
        SendState.COMPLETED,
        SendState.POLL_EXHAUSTED,
        SendState.RETRIES_EXHAUSTED,
        SendState.VALIDATION_FAILED,
        SendState.THREAD_FAILED,
        SendState.RUN_CREATION_FAILED,
        SendState.MESSAGES_FAILED,
        SendState.BUSY,
    }
)

# Failure reported when something unexpected breaks out of a stage
_STAGE_FAILURES = {
    SendState.IDLE: SendState.VALIDATION_FAILED,
    SendState.VALIDATING: SendState.VALIDATION_FAILED,
    SendState.THREAD_ENSURED: SendState.THREAD_FAILED,
    SendState.RUN_PENDING: SendState.RUN_CREATION_FAILED,
    SendState.POLLING: SendState.POLL_EXHAUSTED,
    SendState.RUN_DEAD: SendState.RUN_CREATION_FAILED,
    SendState.FETCHING_MESSAGES: SendState.MESSAGES_FAILED,
}


class ConversationError(Exception):
    """Base class for failures that end a send operation."""

    state = SendState.VALIDATION_FAILED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputRejected(ConversationError):
    """Message was empty after sanitization or too long."""

    state = SendState.VALIDATION_FAILED


class ThreadFailed(ConversationError):
    """Thread could not be created or the message could not be attached."""

    state = SendState.THREAD_FAILED


class RunCreationFailed(ConversationError):
    """A run could not be started or reused on the thread."""

    state = SendState.RUN_CREATION_FAILED


class PollingExhausted(ConversationError):
    """The run did not complete within the polling attempts."""

    state = SendState.POLL_EXHAUSTED


class RetriesExhausted(ConversationError):
    """Too many runs died before one completed."""

    state = SendState.RETRIES_EXHAUSTED


class MessagesFailed(ConversationError):
    """The thread's messages could not be fetched after the run completed."""

    state = SendState.MESSAGES_FAILED


class PollingBudget(BaseModel):
    """Limits applied to one send operation.

    Attributes:
        poll_interval: Seconds to wait between status checks.
        max_polling_attempts: Status checks allowed per send.
        max_run_retries: Dead runs that may be replaced per send.
    """

    poll_interval: float = Field(default=1.5, ge=0.0)
    max_polling_attempts: int = Field(default=10, ge=1)
    max_run_retries: int = Field(default=3, ge=0)

    @classmethod
    def from_config(cls, config: AssistantConfig) -> "PollingBudget":
        return cls(
            poll_interval=config.poll_interval,
            max_polling_attempts=config.max_polling_attempts,
            max_run_retries=config.max_run_retries,
        )


class SendResult(BaseModel):
    """Outcome of one send operation.

    Attributes:
        messages: Thread messages, oldest first (empty on failure).
        error: User-facing error text, or None on success.
        state: Terminal state the operation ended in.
        polling_attempts: Status checks consumed.
        run_retries: Dead runs replaced.
    """

    messages: list[ChatMessage] = Field(default_factory=list)
    error: str | None = None
    state: SendState
    polling_attempts: int = 0
    run_retries: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def latest_reply(self) -> ChatMessage | None:
        """The newest assistant message, if any."""
        for message in reversed(self.messages):
            if message.role == "assistant":
                return message
        return None


class ConversationOrchestrator:
    """Sends user messages to the hosted assistant and collects replies.

    One orchestrator owns the handles of one conversation. Overlapping sends
    are refused with state BUSY instead of racing on those handles.
    """

    def __init__(
        self,
        gateway: AssistantGateway,
        assistant_id: str,
        handles: ConversationHandles | None = None,
        budget: PollingBudget | None = None,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            gateway: Transport for the five assistant operations.
            assistant_id: Hosted assistant that answers runs.
            handles: Existing handles to continue a conversation.
            budget: Polling and retry limits; defaults when omitted.
            max_message_length: Longest accepted sanitized message.
            sleep: Awaitable delay used between polls.
        """
        self._gateway = gateway
        self._assistant_id = assistant_id
        self.handles = handles or ConversationHandles()
        self._budget = budget or PollingBudget()
        self._max_message_length = max_message_length
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._state = SendState.IDLE
        self._polling_attempts = 0
        self._run_retries = 0
        self.messages: list[ChatMessage] = []

    @classmethod
    def from_config(
        cls,
        gateway: AssistantGateway,
        config: AssistantConfig,
        handles: ConversationHandles | None = None,
    ) -> "ConversationOrchestrator":
        return cls(
            gateway,
            assistant_id=config.assistant_id,
            handles=handles,
            budget=PollingBudget.from_config(config),
            max_message_length=config.max_message_length,
        )

    @property
    def state(self) -> SendState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def reset(self) -> None:
        """Forget the conversation so the next send starts a new thread."""
        self.handles.clear()
        self.messages = []
        self._state = SendState.IDLE

    async def send(self, message: str) -> SendResult:
        """Send one user message and wait for the assistant's reply.

        Args:
            message: Raw user input.

        Returns:
            SendResult with the thread messages on success, or error text
            and the failure state otherwise.
        """
        if self._lock.locked():
            logger.warning("Send refused: another message is in flight")
            return SendResult(error=BUSY_MESSAGE, state=SendState.BUSY)

        async with self._lock:
            self._state = SendState.IDLE
            self._polling_attempts = 0
            self._run_retries = 0
            try:
                messages = await self._send(message)
            except ConversationError as e:
                self._state = e.state
                logger.error(f"Send ended in {e.state.value}: {e.message}")
                return self._result(error=e.message)
            except Exception:
                self._state = _STAGE_FAILURES.get(self._state, SendState.MESSAGES_FAILED)
                logger.exception(f"Unexpected error while in {self._state.value}")
                return self._result(error=GENERIC_FAILURE_MESSAGE)

            self._state = SendState.COMPLETED
            self.messages = messages
            return self._result(messages=messages)

    def _result(
        self,
        messages: list[ChatMessage] | None = None,
        error: str | None = None,
    ) -> SendResult:
        return SendResult(
            messages=messages or [],
            error=error,
            state=self._state,
            polling_attempts=self._polling_attempts,
            run_retries=self._run_retries,
        )

    async def _send(self, message: str) -> list[ChatMessage]:
        self._state = SendState.VALIDATING
        text = self._validate(message)

        thread_id = await self._ensure_thread(text)

        # Never poll a run left over from a previous send
        self.handles.run_id = None
        run_id = await self._start_run(thread_id)

        await self._poll(thread_id, run_id)
        return await self._fetch_messages(thread_id)

    def _validate(self, message: str) -> str:
        text = sanitize_input(message) if isinstance(message, str) else ""
        if not text:
            raise InputRejected(INVALID_INPUT_MESSAGE)
        if len(text) > self._max_message_length:
            raise InputRejected(
                f"Message too long. Maximum {self._max_message_length} characters allowed."
            )
        return text

    async def _ensure_thread(self, text: str) -> str:
        thread_id = self.handles.thread_id
        if thread_id is None:
            try:
                thread_id = await self._gateway.create_thread(text)
            except GatewayError as e:
                raise ThreadFailed(e.message or "Failed to create thread") from e
            self.handles.thread_id = thread_id
            logger.info(f"Created thread {thread_id}")
        else:
            try:
                await self._gateway.create_message(thread_id, text)
            except GatewayError as e:
                raise ThreadFailed(e.message or "Failed to send message") from e
            logger.info(f"Added message to thread {thread_id}")

        self._state = SendState.THREAD_ENSURED
        return thread_id

    async def _start_run(self, thread_id: str) -> str:
        self._state = SendState.RUN_PENDING
        try:
            run_id = await self._gateway.create_run(thread_id, self._assistant_id)
        except GatewayError as e:
            raise RunCreationFailed(e.message or "Failed to create run") from e
        self.handles.run_id = run_id
        logger.info(f"Tracking run {run_id} on thread {thread_id}")
        return run_id

    async def _wait(self) -> None:
        # No point waiting once the last attempt is spent
        if self._polling_attempts < self._budget.max_polling_attempts:
            await self._sleep(self._budget.poll_interval)

    async def _poll(self, thread_id: str, run_id: str) -> None:
        budget = self._budget
        while self._polling_attempts < budget.max_polling_attempts:
            self._state = SendState.POLLING
            self._polling_attempts += 1
            logger.debug(
                f"Polling attempt {self._polling_attempts}/{budget.max_polling_attempts} "
                f"for run {run_id}"
            )

            try:
                run = await self._gateway.retrieve_run(thread_id, run_id)
            except (GatewayError, ValueError) as e:
                logger.warning(f"Status check for run {run_id} failed: {e}")
                await self._wait()
                continue

            if run.is_completed:
                logger.info(f"Run {run_id} completed after {self._polling_attempts} checks")
                return

            if run.is_dead:
                self._state = SendState.RUN_DEAD
                logger.warning(f"Run {run_id} {run.status}: {run.last_error or 'no details'}")
                if self._run_retries >= budget.max_run_retries:
                    raise RetriesExhausted(RETRIES_EXHAUSTED_MESSAGE)
                # No replacement once the last attempt is spent
                if self._polling_attempts >= budget.max_polling_attempts:
                    break
                self._run_retries += 1
                run_id = await self._start_run(thread_id)
                continue

            await self._wait()

        raise PollingExhausted(POLL_EXHAUSTED_MESSAGE)

    async def _fetch_messages(self, thread_id: str) -> list[ChatMessage]:
        self._state = SendState.FETCHING_MESSAGES
        try:
            return await self._gateway.list_messages(thread_id)
        except GatewayError as e:
            raise MessagesFailed(e.message or "Failed to list messages") from e
