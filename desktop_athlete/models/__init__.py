"""Pydantic models for API requests and responses.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ChatMessage: Individual message in conversation
    - ChatRequest: Incoming chat request payload
    - ChatResponse: Conversation state after a message was answered
    - SessionInfo: Chat session details
    - ErrorResponse: Error body returned by every failing endpoint
"""

from pydantic import BaseModel, Field, field_validator

from desktop_athlete.models.schemas import ChatMessage, RunInfo, RunStatus


class ChatRequest(BaseModel):
    """Request payload for the chat endpoint.

    Attributes:
        message: User's workout request or follow-up.
        session_id: Optional session for conversation continuity.
    """

    message: str = Field(..., description="The user's message")
    session_id: str | None = Field(None, description="Session ID for conversation continuity")

    @field_validator("session_id", mode="before")
    @classmethod
    def blank_session_is_none(cls, v: str | None) -> str | None:
        """Treat an empty session ID as absent."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ChatResponse(BaseModel):
    """Conversation state after the assistant replied.

    Attributes:
        session_id: Session identifier for follow-up messages.
        messages: All thread messages, oldest first.
        reply: The newest assistant message text.
        state: Terminal orchestration state.
    """

    session_id: str = Field(..., description="Session ID for this conversation")
    messages: list[ChatMessage] = Field(default_factory=list, description="Thread messages")
    reply: str | None = Field(None, description="Latest assistant reply")
    state: str = Field(..., description="Terminal state of the send operation")


class SessionInfo(BaseModel):
    """Information about a chat session.

    Attributes:
        session_id: Unique session identifier.
        thread_id: Assistant thread backing the session, once created.
        message_count: Number of messages seen in the session.
    """

    session_id: str = Field(..., description="Unique session identifier")
    thread_id: str | None = Field(None, description="Assistant thread identifier")
    message_count: int = Field(..., ge=0, description="Number of messages in session")


class ErrorResponse(BaseModel):
    """Error body returned by failing endpoints.

    Attributes:
        error: Human-readable error message.
        session_id: Session the failure belongs to, when there is one.
        state: Terminal orchestration state, for chat failures.
    """

    error: str
    session_id: str | None = None
    state: str | None = None


__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "RunInfo",
    "RunStatus",
    "SessionInfo",
]
