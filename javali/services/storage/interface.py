"""
Abstract Store Interface

DESIGN DECISION: The finance core never talks to a database directly.
It depends on this interface, which allows us to:
1. Swap Google Sheets for a relational store later
2. Use in-memory storage for testing
3. Keep business logic decoupled from the wire protocol

Every call is a coroutine: a real store is network-bound, and callers
such as MemoryAssembler.assemble_context rely on several calls running
concurrently. Implementations must surface any I/O failure as
StorageError (or a subclass).

Reads are only required to see writes made earlier by the same process.
"""

from abc import ABC, abstractmethod
from typing import Optional

from javali.errors import StorageError
from javali.models.audit import AuditEvent
from javali.models.goals import Goal
from javali.models.memory import (
    ConversationRecord,
    ConversationType,
    FinancialContextRecord,
    FinancialContextType,
    UserPreferences,
)


class MemoryStoreInterface(ABC):
    """
    Abstract interface for the persistent store.

    Four record kinds, all keyed by user id: conversations, preferences,
    financial-context records and goals.
    """

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_conversation(
        self,
        record: ConversationRecord,
    ) -> ConversationRecord:
        """
        Append a conversation record.

        Returns:
            The record as stored

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def select_conversations(
        self,
        user_id: str,
        conversation_type: Optional[ConversationType] = None,
        session_id: Optional[str] = None,
        limit: Optional[int] = 50,
        newest_first: bool = True,
    ) -> list[ConversationRecord]:
        """
        Conversations of one user, ordered by created_at.

        Args:
            user_id: Owner of the records
            conversation_type: Only this kind, if given
            session_id: Only this session, if given
            limit: Maximum number of records (None for all)
            newest_first: Sort direction

        Raises:
            StorageError: If the read fails
        """
        pass

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    @abstractmethod
    async def upsert_preferences(
        self,
        preferences: UserPreferences,
    ) -> UserPreferences:
        """
        Insert or wholly replace the preferences of `preferences.user_id`.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def select_preferences(
        self,
        user_id: str,
    ) -> Optional[UserPreferences]:
        """
        The preferences record of a user.

        Returns:
            The record, or None if the user has none (not an error)
        """
        pass

    # -------------------------------------------------------------------------
    # Financial context
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_financial_context(
        self,
        record: FinancialContextRecord,
    ) -> FinancialContextRecord:
        """
        Append a financial-context record.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def select_financial_context(
        self,
        user_id: str,
        context_type: Optional[FinancialContextType] = None,
        limit: int = 100,
    ) -> list[FinancialContextRecord]:
        """
        Financial-context records of one user, newest date_recorded first.

        Raises:
            StorageError: If the read fails
        """
        pass

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    @abstractmethod
    async def upsert_goal(self, user_id: str, goal: Goal) -> Goal:
        """
        Insert or replace a goal snapshot, keyed by goal id.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def select_goals(self, user_id: str) -> list[Goal]:
        """
        All goal snapshots of a user.

        Raises:
            StorageError: If the read fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
