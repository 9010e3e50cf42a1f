"""
In-Process Store Implementation

Keeps every record in plain Python containers. Used by the test suite
and as the fallback when no remote store is configured. Data lives only
as long as the process.

Goals and preferences are copied on the way in and out so callers can
never mutate stored state by holding on to a returned object.
"""

from typing import Optional
from uuid import UUID

from javali.models.audit import AuditEvent
from javali.models.goals import Goal
from javali.models.memory import (
    ConversationRecord,
    ConversationType,
    FinancialContextRecord,
    FinancialContextType,
    UserPreferences,
)
from javali.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    MemoryStoreInterface,
)


class InMemoryStore(MemoryStoreInterface):
    """Dictionary-backed implementation of the store interface."""

    def __init__(self):
        self._conversations: list[ConversationRecord] = []
        self._conversation_ids: set[UUID] = set()
        self._preferences: dict[str, UserPreferences] = {}
        self._financial_context: list[FinancialContextRecord] = []
        self._goals: dict[str, dict[UUID, Goal]] = {}

    async def insert_conversation(
        self,
        record: ConversationRecord,
    ) -> ConversationRecord:
        if record.id in self._conversation_ids:
            raise DuplicateError(f"Conversation already stored: {record.id}")
        self._conversations.append(record)
        self._conversation_ids.add(record.id)
        return record

    async def select_conversations(
        self,
        user_id: str,
        conversation_type: Optional[ConversationType] = None,
        session_id: Optional[str] = None,
        limit: Optional[int] = 50,
        newest_first: bool = True,
    ) -> list[ConversationRecord]:
        matches = [
            c for c in self._conversations
            if c.user_id == user_id
            and (conversation_type is None or c.conversation_type == conversation_type)
            and (session_id is None or c.session_id == session_id)
        ]
        # Iterate newest insertion first so equal timestamps keep write order
        ordered = sorted(
            reversed(matches) if newest_first else matches,
            key=lambda c: c.created_at,
            reverse=newest_first,
        )
        return ordered if limit is None else ordered[:limit]

    async def upsert_preferences(
        self,
        preferences: UserPreferences,
    ) -> UserPreferences:
        self._preferences[preferences.user_id] = preferences.model_copy(deep=True)
        return preferences

    async def select_preferences(
        self,
        user_id: str,
    ) -> Optional[UserPreferences]:
        stored = self._preferences.get(user_id)
        return stored.model_copy(deep=True) if stored else None

    async def insert_financial_context(
        self,
        record: FinancialContextRecord,
    ) -> FinancialContextRecord:
        self._financial_context.append(record)
        return record

    async def select_financial_context(
        self,
        user_id: str,
        context_type: Optional[FinancialContextType] = None,
        limit: int = 100,
    ) -> list[FinancialContextRecord]:
        matches = [
            r for r in reversed(self._financial_context)
            if r.user_id == user_id
            and (context_type is None or r.context_type == context_type)
        ]
        matches.sort(key=lambda r: r.date_recorded, reverse=True)
        return matches[:limit]

    async def upsert_goal(self, user_id: str, goal: Goal) -> Goal:
        self._goals.setdefault(user_id, {})[goal.id] = goal.model_copy(deep=True)
        return goal

    async def select_goals(self, user_id: str) -> list[Goal]:
        return [g.model_copy(deep=True) for g in self._goals.get(user_id, {}).values()]


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed audit log."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
