from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class RunStatus(str, Enum):
    """Lifecycle states reported for an assistant run."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"

    @property
    def is_dead(self) -> bool:
        """Whether the run can no longer produce a reply and must be replaced."""
        return self in DEAD_RUN_STATUSES


DEAD_RUN_STATUSES = frozenset({RunStatus.EXPIRED, RunStatus.FAILED, RunStatus.CANCELLED})

# Runs outside this set still occupy the thread
FINISHED_RUN_STATUSES = DEAD_RUN_STATUSES | {RunStatus.COMPLETED, RunStatus.INCOMPLETE}


class ChatMessage(BaseModel):
    """A single message in the conversation.

    Attributes:
        role: The speaker identifier (user, assistant, or system).
        content: The message text.
    """

    role: Literal["user", "assistant", "system"] = Field(
        ..., description="Message role: 'user', 'assistant', or 'system'"
    )
    content: str = Field(..., description="The message content")


class RunInfo(BaseModel):
    """Snapshot of a run as returned by a status check.

    Attributes:
        id: Run identifier.
        status: Raw status string from the vendor.
        last_error: Vendor-provided failure description, if any.
    """

    id: str
    status: str
    last_error: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: object) -> object:
        """Accept enum members as well as raw strings."""
        if isinstance(v, Enum):
            return v.value
        return v

    @property
    def run_status(self) -> RunStatus | None:
        """Status as a RunStatus, or None for values this client does not know."""
        try:
            return RunStatus(self.status)
        except ValueError:
            return None

    @property
    def is_completed(self) -> bool:
        return self.run_status is RunStatus.COMPLETED

    @property
    def is_dead(self) -> bool:
        status = self.run_status
        return status is not None and status.is_dead
