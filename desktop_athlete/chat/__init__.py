"""Conversation orchestration for the workout assistant.

Sequences thread, message and run calls into a single "send message and
get the reply" operation.

Responsibilities:
    - Input sanitization and length checks
    - Lazy thread creation and run reuse
    - Bounded run polling with dead-run replacement
    - Per-session handle storage with explicit clearing and a session cap
"""

from desktop_athlete.chat.handles import ConversationHandles
from desktop_athlete.chat.orchestrator import (
    ConversationOrchestrator,
    PollingBudget,
    SendResult,
    SendState,
)
from desktop_athlete.chat.sanitizer import sanitize_input
from desktop_athlete.chat.store import ConversationStore, SessionBusyError

__all__ = [
    "ConversationHandles",
    "ConversationOrchestrator",
    "ConversationStore",
    "PollingBudget",
    "SendResult",
    "SendState",
    "SessionBusyError",
    "sanitize_input",
]
