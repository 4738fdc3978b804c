"""Per-session conversation state for the chat API."""

import logging
import uuid
from collections import OrderedDict
from collections.abc import Callable

from desktop_athlete.chat.orchestrator import ConversationOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 1000


class SessionBusyError(Exception):
    """A session cannot be cleared while one of its messages is in flight."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} is busy")
        self.session_id = session_id


class ConversationStore:
    """In-memory map of session IDs to their orchestrators.

    Each session owns one orchestrator and therefore one set of thread/run
    handles. ``clear`` drops the session so its next message starts a new
    thread.

    At most ``max_sessions`` sessions are kept. Starting one more drops the
    least recently used session that is not answering a message; sessions
    with a send in flight are never dropped.
    """

    def __init__(
        self,
        factory: Callable[[], ConversationOrchestrator],
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._factory = factory
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, ConversationOrchestrator] = OrderedDict()

    def get(self, session_id: str) -> ConversationOrchestrator | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str | None = None) -> tuple[str, ConversationOrchestrator]:
        """Return the orchestrator for ``session_id``, creating it if needed.

        A missing ID gets a fresh UUID. Using a session marks it as
        recently used.
        """
        session_id = session_id or str(uuid.uuid4())
        orchestrator = self._sessions.get(session_id)
        if orchestrator is None:
            self._evict()
            orchestrator = self._factory()
            self._sessions[session_id] = orchestrator
            logger.info(f"Started chat session {session_id}")
        else:
            self._sessions.move_to_end(session_id)
        return session_id, orchestrator

    def _evict(self) -> None:
        """Make room for one more session by dropping idle ones, oldest first."""
        idle = [sid for sid, orch in self._sessions.items() if not orch.busy]
        while len(self._sessions) >= self._max_sessions and idle:
            session_id = idle.pop(0)
            self._sessions.pop(session_id).reset()
            logger.info(f"Evicted idle chat session {session_id}")
        if len(self._sessions) >= self._max_sessions:
            logger.warning(
                f"All {len(self._sessions)} chat sessions are busy; exceeding max_sessions"
            )

    def clear(self, session_id: str) -> bool:
        """Forget a session. Returns False if it was unknown.

        Raises:
            SessionBusyError: A message for the session is still being answered.
        """
        orchestrator = self._sessions.get(session_id)
        if orchestrator is None:
            return False
        if orchestrator.busy:
            raise SessionBusyError(session_id)
        del self._sessions[session_id]
        orchestrator.reset()
        logger.info(f"Cleared chat session {session_id}")
        return True

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
