"""Thread and run handles for one conversation."""


class ConversationHandles:
    """Thread and run handles held in memory for one conversation.

    At most one run is tracked per thread; a send clears the previous run
    before a fresh one is requested. ``clear`` forgets both, so the next
    send starts a new thread.
    """

    def __init__(self, thread_id: str | None = None, run_id: str | None = None) -> None:
        self.thread_id = thread_id
        self.run_id = run_id

    def clear(self) -> None:
        self.thread_id = None
        self.run_id = None

    def __repr__(self) -> str:
        return f"ConversationHandles(thread_id={self.thread_id!r}, run_id={self.run_id!r})"
