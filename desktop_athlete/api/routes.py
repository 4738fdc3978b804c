"""Chat endpoints for the workout assistant.

Sends user messages through the conversation orchestrator and manages the
per-session thread handles.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from desktop_athlete.chat import ConversationStore, SendState, SessionBusyError
from desktop_athlete.models import ChatRequest, ChatResponse, ErrorResponse, SessionInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

# HTTP status reported for each failed send state
FAILURE_STATUS = {
    SendState.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    SendState.BUSY: status.HTTP_409_CONFLICT,
    SendState.THREAD_FAILED: status.HTTP_502_BAD_GATEWAY,
    SendState.RUN_CREATION_FAILED: status.HTTP_502_BAD_GATEWAY,
    SendState.MESSAGES_FAILED: status.HTTP_502_BAD_GATEWAY,
    SendState.POLL_EXHAUSTED: status.HTTP_504_GATEWAY_TIMEOUT,
    SendState.RETRIES_EXHAUSTED: status.HTTP_504_GATEWAY_TIMEOUT,
}


def get_conversation_store(request: Request) -> ConversationStore:
    """Return the application's conversation store.

    Raises:
        HTTPException: 503 if the assistant was not configured at startup.
    """
    store = getattr(request.app.state, "conversations", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assistant is not configured",
        )
    return store


@router.post(
    "/messages",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def send_message(body: ChatRequest, request: Request) -> ChatResponse | JSONResponse:
    """Send a message and return the updated conversation.

    Creates the session on first use. The assistant's thread is kept even
    when a later step fails, so retrying with the same session_id continues
    the same conversation.

    Raises:
        400: Message empty after sanitization or too long.
        409: Another message for this session is still being answered.
        502: The assistant service rejected a call.
        504: The assistant did not finish in time.
    """
    store = get_conversation_store(request)
    session_id, orchestrator = store.get_or_create(body.session_id)

    result = await orchestrator.send(body.message)

    if not result.ok:
        status_code = FAILURE_STATUS.get(result.state, status.HTTP_500_INTERNAL_SERVER_ERROR)
        logger.warning(f"Chat send failed for {session_id}: {result.state.value}")
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=result.error or "Failed to handle message",
                session_id=session_id,
                state=result.state.value,
            ).model_dump(),
        )

    reply = result.latest_reply
    return ChatResponse(
        session_id=session_id,
        messages=result.messages,
        reply=reply.content if reply else None,
        state=result.state.value,
    )


@router.get(
    "/sessions/{session_id}",
    response_model=SessionInfo,
    responses={404: {"model": ErrorResponse}},
)
async def get_session(session_id: str, request: Request) -> SessionInfo:
    """Describe a chat session.

    Raises:
        404: Unknown session.
    """
    orchestrator = get_conversation_store(request).get(session_id)
    if orchestrator is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

    return SessionInfo(
        session_id=session_id,
        thread_id=orchestrator.handles.thread_id,
        message_count=len(orchestrator.messages),
    )


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def clear_session(session_id: str, request: Request) -> Response:
    """Forget a session's thread so the next message starts a new conversation.

    Raises:
        404: Unknown session.
        409: A message for this session is still being answered.
    """
    try:
        cleared = get_conversation_store(request).clear(session_id)
    except SessionBusyError as e:
        logger.warning(f"Refused to clear busy session {session_id}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A message is still being processed for this session",
        ) from e
    if not cleared:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
