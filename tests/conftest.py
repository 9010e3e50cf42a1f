"""
Pytest Configuration and Fixtures

Every component gets a controllable clock and in-process storage.
No test touches Google Sheets or Gemini.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from javali.agents import FinancialAssistant
from javali.audit import AuditLogger
from javali.errors import StorageError
from javali.goals import GoalTracker
from javali.ledger import FinancialLedger
from javali.memory import MemoryAssembler
from javali.orchestrator import FinanceTracker
from javali.services.completion import OfflineCompletionService
from javali.services.storage import InMemoryAuditStorage, InMemoryStore


FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
USER_ID = "user_test"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FailingStore(InMemoryStore):
    """In-process store whose named methods raise StorageError."""

    def __init__(self, *failing: str):
        super().__init__()
        self.failing = set(failing)

    def _check(self, name: str):
        if name in self.failing:
            raise StorageError(f"{name} unavailable")

    async def insert_conversation(self, record):
        self._check("insert_conversation")
        return await super().insert_conversation(record)

    async def select_conversations(self, user_id, **kwargs):
        self._check("select_conversations")
        return await super().select_conversations(user_id, **kwargs)

    async def upsert_preferences(self, preferences):
        self._check("upsert_preferences")
        return await super().upsert_preferences(preferences)

    async def select_preferences(self, user_id):
        self._check("select_preferences")
        return await super().select_preferences(user_id)

    async def insert_financial_context(self, record):
        self._check("insert_financial_context")
        return await super().insert_financial_context(record)

    async def select_financial_context(self, user_id, **kwargs):
        self._check("select_financial_context")
        return await super().select_financial_context(user_id, **kwargs)

    async def upsert_goal(self, user_id, goal):
        self._check("upsert_goal")
        return await super().upsert_goal(user_id, goal)


class GatedStore(InMemoryStore):
    """
    In-process store whose reads block until `expected` reads are in
    flight at once. Reads issued one after another never open the gate
    and fail with TimeoutError.
    """

    def __init__(self, expected: int, timeout: float = 1.0):
        super().__init__()
        self.expected = expected
        self.timeout = timeout
        self.in_flight = 0
        self._gate = asyncio.Event()

    async def _wait_for_peers(self):
        self.in_flight += 1
        if self.in_flight >= self.expected:
            self._gate.set()
        await asyncio.wait_for(self._gate.wait(), self.timeout)

    async def select_conversations(self, user_id, **kwargs):
        await self._wait_for_peers()
        return await super().select_conversations(user_id, **kwargs)

    async def select_preferences(self, user_id):
        await self._wait_for_peers()
        return await super().select_preferences(user_id)

    async def select_financial_context(self, user_id, **kwargs):
        await self._wait_for_peers()
        return await super().select_financial_context(user_id, **kwargs)


class FailingAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise StorageError("audit sheet unavailable")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(clock):
    return FinancialLedger(clock=clock)


@pytest.fixture
def goals(clock):
    return GoalTracker(clock=clock)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage, user_id=USER_ID)


@pytest.fixture
def memory(store, clock, audit_logger):
    return MemoryAssembler(
        store,
        user_id=USER_ID,
        session_id="session_test",
        clock=clock,
        audit_logger=audit_logger,
    )


@pytest.fixture
def completion():
    return OfflineCompletionService(reply="Cut back on takeout this month.")


@pytest.fixture
def assistant(memory, completion, audit_logger):
    return FinancialAssistant(memory, completion, audit_logger)


@pytest.fixture
def tracker(ledger, goals, memory, assistant, store, audit_logger, clock):
    return FinanceTracker(
        ledger=ledger,
        goals=goals,
        memory=memory,
        assistant=assistant,
        store=store,
        audit_logger=audit_logger,
        clock=clock,
    )
