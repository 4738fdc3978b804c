"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - fake_gateway: Scripted in-memory assistant gateway
    - sleeps: Record of poll delays requested by the orchestrator
    - orchestrator: ConversationOrchestrator wired to the fake gateway
    - async_client: HTTPX client for API testing against the fake gateway
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from desktop_athlete.api import create_app
from desktop_athlete.chat import ConversationOrchestrator, ConversationStore, PollingBudget
from desktop_athlete.models import ChatMessage, RunInfo

ASSISTANT_ID = "asst_test"


class FakeGateway:
    """In-memory assistant gateway driven by per-run status scripts.

    Each created run takes the next script from ``run_scripts``; every status
    check pops one entry, repeating the last. An Exception entry is raised
    instead of returned. ``errors`` makes an operation fail on every call.
    """

    def __init__(
        self,
        run_scripts: list[list[str | Exception]] | None = None,
        messages: list[ChatMessage] | None = None,
    ) -> None:
        self.run_scripts = list(run_scripts or [])
        self.messages = (
            messages
            if messages is not None
            else [ChatMessage(role="assistant", content="Try a 20 minute HIIT circuit.")]
        )
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, ...]] = []
        self._runs: dict[str, list[str | Exception]] = {}
        self._threads = 0

    def _record(self, name: str, *args: str) -> None:
        self.calls.append((name, *args))
        if name in self.errors:
            raise self.errors[name]

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def create_thread(self, seed: str) -> str:
        self._record("create_thread", seed)
        self._threads += 1
        return f"t{self._threads}"

    async def create_message(self, thread_id: str, content: str) -> str:
        self._record("create_message", thread_id, content)
        return f"msg{len(self.calls)}"

    async def create_run(self, thread_id: str, assistant_id: str) -> str:
        self._record("create_run", thread_id, assistant_id)
        run_id = f"r{len(self._runs) + 1}"
        self._runs[run_id] = list(self.run_scripts.pop(0) if self.run_scripts else ["completed"])
        return run_id

    async def retrieve_run(self, thread_id: str, run_id: str) -> RunInfo:
        self._record("retrieve_run", thread_id, run_id)
        script = self._runs[run_id]
        step = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(step, Exception):
            raise step
        return RunInfo(id=run_id, status=step)

    async def list_messages(self, thread_id: str) -> list[ChatMessage]:
        self._record("list_messages", thread_id)
        return list(self.messages)

    async def aclose(self) -> None:
        self.calls.append(("aclose",))


@pytest.fixture
def fake_gateway() -> FakeGateway:
    """Return a gateway whose runs complete on the first check."""
    return FakeGateway()


@pytest.fixture
def sleeps() -> list[float]:
    """Collect poll delays instead of actually waiting."""
    return []


@pytest.fixture
def orchestrator(fake_gateway: FakeGateway, sleeps: list[float]) -> ConversationOrchestrator:
    """Create an orchestrator with default budgets and a recording sleep.

    Args:
        fake_gateway: Scripted gateway.
        sleeps: List receiving each requested delay.

    Returns:
        Orchestrator that never really sleeps.
    """

    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)

    return ConversationOrchestrator(
        fake_gateway,
        assistant_id=ASSISTANT_ID,
        budget=PollingBudget(),
        sleep=record_sleep,
    )


@pytest.fixture
async def async_client(fake_gateway: FakeGateway) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        AsyncClient bound to an app whose sessions use the fake gateway.
    """
    store = ConversationStore(
        lambda: ConversationOrchestrator(
            fake_gateway,
            assistant_id=ASSISTANT_ID,
            budget=PollingBudget(poll_interval=0.0),
        )
    )
    transport = ASGITransport(app=create_app(store))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
