"""
Memory / Context Assembler

Per-user memory kept in the external store: conversations, one
preferences record, and financial-context records. Assembles the
context bundle handed to the completion service.

DESIGN DECISION: User and session identity are constructor arguments,
not module globals, so two users can be served by one process and tests
never share state.

FAILURE POLICY:
- Direct reads and writes surface StorageError to the caller
- assemble_context never fails because of the store: each sub-fetch that
  fails is replaced by an empty value and named in degraded_sources
"""

import asyncio
import secrets
import string
from typing import Optional, Union

import structlog

from javali.aggregation import group_sum_by, sum_amounts
from javali.audit import AuditLogger
from javali.clock import Clock, system_clock
from javali.config import get_settings
from javali.models.memory import (
    ContextBundle,
    ConversationEntry,
    ConversationRecord,
    ConversationType,
    FinancialContextEntry,
    FinancialContextRecord,
    FinancialContextSummary,
    FinancialContextType,
    PreferencesFields,
    UserPreferences,
)
from javali.services.storage import MemoryStoreInterface
from javali.validation import parse_input


logger = structlog.get_logger(__name__)

_SESSION_ALPHABET = string.digits + string.ascii_lowercase

# Record counts read by get_financial_summary
_SUMMARY_EXPENSES = 30
_SUMMARY_INCOME = 30
_SUMMARY_GOALS = 10
_SUMMARY_RECENT = 10


def _count_active_goals(records: list[FinancialContextRecord]) -> int:
    """
    Distinct goals among newest-first goal records whose latest record is
    not completed. Records without a goal_id count as one goal each.
    """
    seen = set()
    active = 0
    for record in records:
        key = record.metadata.get("goal_id") or record.id
        if key in seen:
            continue
        seen.add(key)
        if not record.metadata.get("is_completed"):
            active += 1
    return active


class MemoryAssembler:
    """
    Memory of one user within one session.

    The session id changes only through new_session().
    """

    def __init__(
        self,
        store: MemoryStoreInterface,
        user_id: str,
        session_id: Optional[str] = None,
        clock: Clock = system_clock,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._user_id = user_id
        self._clock = clock
        self._audit_logger = audit_logger
        self._settings = get_settings().app
        self._session_id = session_id or self._generate_session_id()

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def session_id(self) -> str:
        return self._session_id

    def _generate_session_id(self) -> str:
        """session_<epoch millis>_<9 random base36 chars>"""
        millis = int(self._clock().timestamp() * 1000)
        suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(9))
        return f"session_{millis}_{suffix}"

    def new_session(self) -> str:
        """Start a new session and return its id."""
        self._session_id = self._generate_session_id()
        return self._session_id

    # =========================================================================
    # CONVERSATIONS
    # =========================================================================

    async def record_conversation(
        self,
        entry: Union[ConversationEntry, dict],
    ) -> ConversationRecord:
        """
        Store a conversation under the current user and session.

        Raises:
            ValidationError: malformed entry
            StorageError: the store rejected the write
        """
        payload = parse_input(ConversationEntry, entry)
        record = ConversationRecord(
            **payload.model_dump(),
            user_id=self._user_id,
            session_id=self._session_id,
            created_at=self._clock(),
        )
        stored = await self._store.insert_conversation(record)

        if self._audit_logger:
            await self._audit_logger.log_conversation_recorded(
                conversation_id=stored.id,
                conversation_type=stored.conversation_type.value,
                user_id=self._user_id,
                session_id=self._session_id,
            )
        return stored

    async def list_conversations(
        self,
        kind: Optional[ConversationType] = None,
        limit: Optional[int] = None,
    ) -> list[ConversationRecord]:
        """Conversations of this user, newest first."""
        return await self._store.select_conversations(
            self._user_id,
            conversation_type=kind,
            limit=(
                self._settings.conversation_list_limit if limit is None else limit
            ),
        )

    async def list_session_conversations(
        self,
        session_id: Optional[str] = None,
    ) -> list[ConversationRecord]:
        """Every conversation of one session (default: the current one), oldest first."""
        return await self._store.select_conversations(
            self._user_id,
            session_id=session_id or self._session_id,
            limit=None,
            newest_first=False,
        )

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    async def upsert_preferences(
        self,
        fields: Union[PreferencesFields, dict],
    ) -> UserPreferences:
        """
        Replace this user's preferences wholesale.

        Fields not given are cleared. Use update_preferences to change
        individual fields.
        """
        payload = parse_input(PreferencesFields, fields)
        preferences = UserPreferences(
            **payload.model_dump(),
            user_id=self._user_id,
            updated_at=self._clock(),
        )
        stored = await self._store.upsert_preferences(preferences)

        if self._audit_logger:
            await self._audit_logger.log_preferences_saved(self._user_id)
        return stored

    async def get_preferences(self) -> Optional[UserPreferences]:
        return await self._store.select_preferences(self._user_id)

    async def update_preferences(
        self,
        changes: Union[PreferencesFields, dict],
    ) -> Optional[UserPreferences]:
        """
        Overlay `changes` on the stored preferences and save the result.

        Returns None, without writing, when the user has no preferences yet.
        """
        patch = parse_input(PreferencesFields, changes).model_dump(exclude_unset=True)
        current = await self.get_preferences()
        if current is None:
            return None

        merged = current.editable_fields().model_dump()
        merged.update(patch)
        return await self.upsert_preferences(merged)

    # =========================================================================
    # FINANCIAL CONTEXT
    # =========================================================================

    async def save_financial_context(
        self,
        entry: Union[FinancialContextEntry, dict],
    ) -> FinancialContextRecord:
        """Store a financial-context record. date_recorded defaults to now."""
        payload = parse_input(FinancialContextEntry, entry)
        now = self._clock()
        record = FinancialContextRecord(
            **payload.model_dump(exclude={"date_recorded"}),
            user_id=self._user_id,
            date_recorded=payload.date_recorded or now,
            created_at=now,
        )
        return await self._store.insert_financial_context(record)

    async def list_financial_context(
        self,
        context_type: Optional[FinancialContextType] = None,
        limit: int = 100,
    ) -> list[FinancialContextRecord]:
        """Financial-context records, newest date_recorded first."""
        return await self._store.select_financial_context(
            self._user_id,
            context_type=context_type,
            limit=limit,
        )

    async def get_financial_summary(self) -> FinancialContextSummary:
        """
        Totals over the most recent income, expense and goal records.

        The three reads run concurrently. If any fails, the first failure
        is raised once all three have settled.
        """
        results = await asyncio.gather(
            self.list_financial_context(FinancialContextType.EXPENSE, _SUMMARY_EXPENSES),
            self.list_financial_context(FinancialContextType.INCOME, _SUMMARY_INCOME),
            self.list_financial_context(FinancialContextType.GOAL, _SUMMARY_GOALS),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                raise result
        expenses, income, goals = results

        total_income = sum_amounts(r.amount or 0 for r in income)
        total_expenses = sum_amounts(r.amount or 0 for r in expenses)

        def by_category(records):
            return group_sum_by(
                records,
                key_fn=lambda r: r.category or "other",
                amount_fn=lambda r: r.amount or 0,
            )

        recent = sorted(
            [*expenses, *income],
            key=lambda r: r.date_recorded,
            reverse=True,
        )[:_SUMMARY_RECENT]

        return FinancialContextSummary(
            total_income=total_income,
            total_expenses=total_expenses,
            balance=total_income - total_expenses,
            expenses_by_category=by_category(expenses),
            income_by_category=by_category(income),
            active_goals=_count_active_goals(goals),
            recent_transactions=recent,
        )

    # =========================================================================
    # CONTEXT
    # =========================================================================

    async def assemble_context(
        self,
        query: str,
        limit: Optional[int] = None,
    ) -> ContextBundle:
        """
        Gather recent conversations, financial context and preferences.

        Args:
            query: The question the context is for
            limit: Financial-context records fetched are limit * 2

        Never raises for store failures. Sub-fetches that fail come back
        empty and are listed in `degraded_sources`.
        """
        if limit is None:
            limit = self._settings.context_limit

        conversations, financial, preferences = await asyncio.gather(
            self._store.select_conversations(
                self._user_id,
                limit=self._settings.context_recent_conversations,
            ),
            self._store.select_financial_context(self._user_id, limit=limit * 2),
            self._store.select_preferences(self._user_id),
            return_exceptions=True,
        )

        for result in (conversations, financial, preferences):
            # Cancellation is not a store failure
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        degraded = []
        if isinstance(conversations, Exception):
            degraded.append(self._degrade("conversations", conversations))
            conversations = []
        if isinstance(financial, Exception):
            degraded.append(self._degrade("financial_context", financial))
            financial = []
        if isinstance(preferences, Exception):
            degraded.append(self._degrade("preferences", preferences))
            preferences = None

        bundle = ContextBundle(
            query=query,
            timestamp=self._clock(),
            recent_conversations=conversations,
            financial_context=financial,
            preferences=preferences,
            degraded_sources=degraded,
        )

        if self._audit_logger:
            await self._audit_logger.log_context_assembled(
                user_id=self._user_id,
                session_id=self._session_id,
                conversation_count=len(bundle.recent_conversations),
                financial_count=len(bundle.financial_context),
                has_preferences=bundle.preferences is not None,
                degraded_sources=degraded,
            )
        return bundle

    def _degrade(self, source: str, error: Exception) -> str:
        logger.warning(
            "context_source_failed",
            source=source,
            user_id=self._user_id,
            error=str(error),
        )
        return source
