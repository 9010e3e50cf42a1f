"""
Tests for the Google Sheets store.

A fake client hands out in-memory worksheets that mimic the handful of
gspread calls the store makes.
"""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from javali.errors import StorageError
from javali.goals import GoalTracker
from javali.models.audit import AuditEventBuilder
from javali.models.memory import (
    ConversationRecord,
    FinancialContextRecord,
    FinancialContextType,
    UserPreferences,
)
from javali.services.storage.google_sheets import (
    CONVERSATION_COLUMNS,
    GoogleSheetsAuditStorage,
    GoogleSheetsMemoryStore,
)

from tests.conftest import FIXED_NOW, FakeClock


class FakeWorksheet:
    def __init__(self, columns):
        self.rows = [list(columns)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(cell) for cell in row])

    def update(self, range_name, values):
        index = int(range_name[1:]) - 1
        self.rows[index] = [str(cell) for cell in values[0]]


class BrokenWorksheet(FakeWorksheet):
    def get_all_values(self):
        raise RuntimeError("API quota exceeded")


class FakeClient:
    settings = SimpleNamespace(
        conversations_sheet_name="Conversations",
        preferences_sheet_name="Preferences",
        financial_context_sheet_name="FinancialContext",
        goals_sheet_name="Goals",
        audit_sheet_name="AuditLog",
    )

    def __init__(self, worksheet_type=FakeWorksheet):
        self.worksheet_type = worksheet_type
        self.sheets = {}

    def get_worksheet(self, title, columns, rows=1000):
        if title not in self.sheets:
            self.sheets[title] = self.worksheet_type(columns)
        return self.sheets[title]


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def sheets_store(client):
    return GoogleSheetsMemoryStore(client)


class TestConversations:

    @pytest.mark.asyncio
    async def test_insert_and_select(self, sheets_store, client):
        first = ConversationRecord(
            user_id="u1", session_id="s1", title="hi",
            content={"user_message": "hi"}, created_at=FIXED_NOW,
        )
        second = ConversationRecord(
            user_id="u1", session_id="s2", created_at=FIXED_NOW + timedelta(minutes=1),
        )
        other_user = ConversationRecord(user_id="u2", session_id="s1", created_at=FIXED_NOW)
        for record in (first, second, other_user):
            await sheets_store.insert_conversation(record)

        assert client.sheets["Conversations"].rows[0] == CONVERSATION_COLUMNS

        newest = await sheets_store.select_conversations("u1")
        assert [c.id for c in newest] == [second.id, first.id]
        assert newest[1].content == {"user_message": "hi"}

        in_session = await sheets_store.select_conversations("u1", session_id="s1")
        assert [c.id for c in in_session] == [first.id]

    @pytest.mark.asyncio
    async def test_failures_become_storage_errors(self):
        store = GoogleSheetsMemoryStore(FakeClient(BrokenWorksheet))
        with pytest.raises(StorageError):
            await store.select_conversations("u1")


class TestPreferences:

    @pytest.mark.asyncio
    async def test_upsert_replaces_row(self, sheets_store, client):
        await sheets_store.upsert_preferences(UserPreferences(
            user_id="u1", monthly_budget=Decimal("100"),
            financial_goals=["house"], updated_at=FIXED_NOW,
        ))
        await sheets_store.upsert_preferences(UserPreferences(
            user_id="u1", monthly_budget=Decimal("200"), updated_at=FIXED_NOW,
        ))

        assert len(client.sheets["Preferences"].rows) == 2  # header + one user
        prefs = await sheets_store.select_preferences("u1")
        assert prefs.monthly_budget == Decimal("200")
        assert prefs.financial_goals is None
        assert await sheets_store.select_preferences("nobody") is None


class TestFinancialContext:

    @pytest.mark.asyncio
    async def test_select_filters_by_type(self, sheets_store):
        for kind, amount in [("expense", "10"), ("income", "20"), ("expense", None)]:
            await sheets_store.insert_financial_context(FinancialContextRecord(
                user_id="u1",
                context_type=kind,
                amount=Decimal(amount) if amount else None,
                date_recorded=FIXED_NOW,
                created_at=FIXED_NOW,
            ))

        expenses = await sheets_store.select_financial_context(
            "u1", context_type=FinancialContextType.EXPENSE
        )
        assert [r.amount for r in expenses] == [None, Decimal("10")]


class TestGoals:

    @pytest.mark.asyncio
    async def test_goal_snapshot_upsert(self, sheets_store, client):
        tracker = GoalTracker(clock=FakeClock())
        goal = tracker.create_goal({
            "name": "Trip",
            "target_amount": "1200",
            "target_date": FIXED_NOW + timedelta(days=90),
            "category": "vacation",
            "priority": "high",
        })
        await sheets_store.upsert_goal("u1", goal)
        tracker.deposit_to_goal(goal.id, 400)
        await sheets_store.upsert_goal("u1", goal)

        assert len(client.sheets["Goals"].rows) == 2
        [stored] = await sheets_store.select_goals("u1")
        assert stored.current_amount == Decimal("400")
        assert stored.monthly_target == Decimal("267")
        assert stored.is_completed is False


class TestAuditStorage:

    @pytest.mark.asyncio
    async def test_append_and_read(self, client):
        storage = GoogleSheetsAuditStorage(client)
        event = AuditEventBuilder.storage_error("save goal", "boom", user_id="u1")

        assert await storage.append_event(event) is True

        [read] = await storage.get_recent_events()
        assert read.event_id == event.event_id
        assert read.error_message == "boom"
        assert read.details == {"operation": "save goal"}
