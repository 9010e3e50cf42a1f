"""
Main Orchestrator for Javali

This module ties together all the components behind one facade that
the presentation layer calls:
1. Ledger (transaction → validate → append → mirror to memory)
2. Goals (create / deposit / update → recompute → mirror to memory)
3. Memory and assistant (context → completion → remember)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Local state changes first; the store mirror follows
- Extracted (OCR/AI) data never reaches the ledger without confirmation
- Every mutation is audited

A StorageError while mirroring is raised AFTER the local change is kept,
so the caller can show a re-triable "not synced" state.
"""

from typing import Any, Optional, Union
from uuid import UUID

import pydantic
import structlog

from javali.agents import AssistantReply, FinancialAssistant
from javali.audit import AuditLogger
from javali.clock import Clock, system_clock
from javali.config import get_settings
from javali.errors import NotFoundError, StorageError, ValidationError
from javali.goals import GoalTracker
from javali.ledger import FinancialLedger
from javali.memory import MemoryAssembler
from javali.models.financial import (
    ExtractedTransaction,
    FinancialSummary,
    SummaryPeriod,
    Transaction,
    TransactionCreate,
    TransactionType,
)
from javali.models.goals import (
    Goal,
    GoalCreate,
    GoalProgress,
    GoalStats,
    GoalUpdate,
)
from javali.models.memory import (
    ContextBundle,
    ConversationEntry,
    ConversationRecord,
    ConversationType,
    FinancialContextSummary,
    FinancialContextType,
    PreferencesFields,
    UserPreferences,
)
from javali.services.completion import (
    CompletionServiceInterface,
    GeminiCompletionService,
    OfflineCompletionService,
)
from javali.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsMemoryStore,
    InMemoryStore,
    MemoryStoreInterface,
)
from javali.validation import require_positive


logger = structlog.get_logger(__name__)

# Fields an extraction must provide (or the user must fill in)
_EXTRACTION_REQUIRED = ("amount", "category", "type")
_EXTRACTION_FIELDS = ("amount", "date", "description", "establishment", "category", "type")


class FinanceTracker:
    """
    Facade over ledger, goals, memory and assistant for one user.

    Ledger and goal reads are synchronous; anything touching the store
    or the completion service is a coroutine.
    """

    def __init__(
        self,
        ledger: FinancialLedger,
        goals: GoalTracker,
        memory: MemoryAssembler,
        assistant: FinancialAssistant,
        store: MemoryStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = system_clock,
    ):
        self._ledger = ledger
        self._goals = goals
        self._memory = memory
        self._assistant = assistant
        self._store = store
        self._audit_logger = audit_logger
        self._clock = clock

    @property
    def user_id(self) -> str:
        return self._memory.user_id

    @property
    def session_id(self) -> str:
        return self._memory.session_id

    # =========================================================================
    # LEDGER
    # =========================================================================

    async def add_transaction(
        self,
        data: Union[TransactionCreate, dict],
    ) -> Transaction:
        """
        Add a transaction and mirror it into memory.

        Raises:
            ValidationError: rejected input (nothing changed)
            StorageError: the mirror failed (the transaction IS in the ledger)
        """
        transaction = self._ledger.add_transaction(data)
        await self._after_transaction(transaction)
        return transaction

    async def confirm_extraction(
        self,
        extraction: ExtractedTransaction,
        overrides: Optional[dict[str, Any]] = None,
    ) -> Transaction:
        """
        Turn a user-reviewed extraction into a ledger transaction.

        CRITICAL: Call this ONLY after the user confirmed the values.

        Args:
            extraction: The proposal from OCR/AI
            overrides: Values the user corrected or filled in

        Raises:
            ValidationError: amount, category or type still missing, or invalid
        """
        overrides = overrides or {}

        data = {
            field: getattr(extraction, field)
            for field in _EXTRACTION_FIELDS
            if getattr(extraction, field) is not None
        }
        data.update(overrides)

        for field in _EXTRACTION_REQUIRED:
            if data.get(field) is None:
                raise ValidationError(
                    f"{field} is required to confirm an extraction",
                    field=field,
                )
        data.setdefault("date", self._clock())
        data.setdefault("description", data.get("establishment") or "")
        data["confidence"] = extraction.confidence

        transaction = self._ledger.add_transaction(data)

        if self._audit_logger:
            await self._audit_logger.log_extraction_confirmed(
                transaction_id=transaction.id,
                confidence=extraction.confidence,
                overridden_fields=sorted(
                    field for field, value in overrides.items()
                    if getattr(extraction, field, None) != value
                ),
            )
        await self._after_transaction(transaction)
        return transaction

    async def _after_transaction(self, transaction: Transaction) -> None:
        if self._audit_logger:
            await self._audit_logger.log_transaction_added(
                transaction_id=transaction.id,
                transaction_type=transaction.type.value,
                amount=transaction.amount,
                category=transaction.category,
            )

        context_type = (
            FinancialContextType.INCOME
            if transaction.type == TransactionType.INCOME
            else FinancialContextType.EXPENSE
        )
        await self._mirror("mirror transaction", self._memory.save_financial_context({
            "context_type": context_type,
            "category": transaction.category,
            "amount": transaction.amount,
            "description": transaction.description or transaction.establishment,
            "date_recorded": transaction.date,
            "metadata": {
                "transaction_id": str(transaction.id),
                "payment_method": (
                    transaction.payment_method.value
                    if transaction.payment_method else None
                ),
                "is_recurring": transaction.is_recurring,
            },
        }))

    def get_transactions(self) -> list[Transaction]:
        return self._ledger.get_transactions()

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        return self._ledger.get_transaction(transaction_id)

    def get_summary(self, period: Optional[SummaryPeriod] = None) -> FinancialSummary:
        return self._ledger.get_summary(period)

    # =========================================================================
    # GOALS
    # =========================================================================

    async def create_goal(self, data: Union[GoalCreate, dict]) -> Goal:
        """
        Create a goal and mirror it into memory.

        Raises:
            ValidationError: rejected input (nothing changed)
            StorageError: the mirror failed (the goal IS tracked)
        """
        goal = self._goals.create_goal(data)

        if self._audit_logger:
            await self._audit_logger.log_goal_created(
                goal_id=goal.id,
                name=goal.name,
                target_amount=goal.target_amount,
                monthly_target=goal.monthly_target,
            )
            if goal.is_completed:
                await self._audit_logger.log_goal_completed(goal.id, goal.name)

        await self._mirror_goal(
            goal,
            amount=goal.current_amount,
            description=f"Goal created: {goal.name}",
        )
        return goal

    async def deposit_to_goal(
        self,
        goal_id: UUID,
        amount,
        description: Optional[str] = None,
    ) -> Goal:
        """
        Deposit into a goal.

        Unlike GoalTracker.deposit_to_goal, which returns True, the facade
        returns the updated goal so callers can render it without a
        second lookup.

        Returns:
            The goal after the deposit

        Raises:
            NotFoundError: unknown goal
            ValidationError: amount <= 0
            StorageError: the mirror failed (the deposit IS applied)
        """
        was_completed = self._goals.get_goal(goal_id).is_completed
        deposited = require_positive(amount, "amount")
        self._goals.deposit_to_goal(goal_id, deposited, description)
        goal = self._goals.get_goal(goal_id)

        if self._audit_logger:
            await self._audit_logger.log_goal_movement(
                goal_id=goal.id,
                amount=deposited,
                current_amount=goal.current_amount,
                monthly_target=goal.monthly_target,
            )
            if goal.is_completed and not was_completed:
                await self._audit_logger.log_goal_completed(goal.id, goal.name)

        await self._mirror_goal(
            goal,
            amount=deposited,
            description=description or f"Deposit to {goal.name}",
        )
        return goal

    async def withdraw_from_goal(
        self,
        goal_id: UUID,
        amount,
        description: Optional[str] = None,
    ) -> Goal:
        """
        Withdraw from a goal. Only the goal snapshot is mirrored.

        Returns the updated goal, like deposit_to_goal.
        """
        self._goals.get_goal(goal_id)
        withdrawn = require_positive(amount, "amount")
        self._goals.withdraw_from_goal(goal_id, withdrawn, description)
        goal = self._goals.get_goal(goal_id)

        if self._audit_logger:
            await self._audit_logger.log_goal_movement(
                goal_id=goal.id,
                amount=withdrawn,
                current_amount=goal.current_amount,
                monthly_target=goal.monthly_target,
                withdrawal=True,
            )

        await self._mirror("save goal", self._store.upsert_goal(self.user_id, goal))
        return goal

    async def update_goal(
        self,
        goal_id: UUID,
        changes: Union[GoalUpdate, dict],
    ) -> Optional[Goal]:
        """
        Patch a goal.

        Returns:
            The updated goal, or None if no goal has this id
        """
        try:
            before = self._goals.get_goal(goal_id).model_dump()
        except NotFoundError:
            return None

        goal = self._goals.update_goal(goal_id, changes)

        after = goal.model_dump()
        changed = [name for name, value in after.items() if before[name] != value]
        if not changed:
            return goal

        if self._audit_logger:
            await self._audit_logger.log_goal_updated(goal.id, changed)
            if goal.is_completed and not before["is_completed"]:
                await self._audit_logger.log_goal_completed(goal.id, goal.name)

        await self._mirror("save goal", self._store.upsert_goal(self.user_id, goal))
        return goal

    async def _mirror_goal(self, goal: Goal, amount, description: str) -> None:
        await self._mirror("save goal", self._store.upsert_goal(self.user_id, goal))
        await self._mirror("mirror goal", self._memory.save_financial_context({
            "context_type": FinancialContextType.GOAL,
            "category": goal.category,
            "amount": amount,
            "description": description,
            "metadata": {
                "goal_id": str(goal.id),
                "target_amount": str(goal.target_amount),
                "current_amount": str(goal.current_amount),
                "monthly_target": str(goal.monthly_target),
                "is_completed": goal.is_completed,
            },
        }))

    async def restore_goals(self) -> int:
        """Load this user's goal snapshots from the store. Returns goals added."""
        snapshots = await self._store.select_goals(self.user_id)
        added = self._goals.restore_goals(snapshots)
        logger.info("goals_restored", user_id=self.user_id, count=added)
        return added

    def get_goal(self, goal_id: UUID) -> Goal:
        return self._goals.get_goal(goal_id)

    def list_goals(self) -> list[Goal]:
        return self._goals.list_goals()

    def get_progress(self, goal_id: UUID) -> GoalProgress:
        return self._goals.get_progress(goal_id)

    def get_stats(self) -> GoalStats:
        return self._goals.get_stats()

    # =========================================================================
    # MEMORY & ASSISTANT
    # =========================================================================

    async def record_conversation(
        self,
        entry: Union[ConversationEntry, dict],
    ) -> ConversationRecord:
        return await self._memory.record_conversation(entry)

    async def assemble_context(
        self,
        query: str,
        limit: Optional[int] = None,
    ) -> ContextBundle:
        return await self._memory.assemble_context(query, limit)

    async def upsert_preferences(
        self,
        fields: Union[PreferencesFields, dict],
    ) -> UserPreferences:
        return await self._memory.upsert_preferences(fields)

    async def update_preferences(
        self,
        changes: Union[PreferencesFields, dict],
    ) -> Optional[UserPreferences]:
        return await self._memory.update_preferences(changes)

    async def get_preferences(self) -> Optional[UserPreferences]:
        return await self._memory.get_preferences()

    async def get_financial_summary(self) -> FinancialContextSummary:
        return await self._memory.get_financial_summary()

    async def chat(
        self,
        message: str,
        conversation_type: ConversationType = ConversationType.CHAT,
    ) -> AssistantReply:
        """Ask the assistant. CompletionError propagates."""
        return await self._assistant.ask(message, conversation_type)

    async def new_session(self) -> str:
        session_id = self._memory.new_session()
        if self._audit_logger:
            await self._audit_logger.log_session_started(self.user_id, session_id)
        return session_id

    async def _mirror(self, operation: str, write) -> None:
        """Await a store write; audit and re-raise a StorageError."""
        try:
            await write
        except StorageError as e:
            logger.error("mirror_failed", operation=operation, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation=operation,
                    error_message=str(e),
                    user_id=self.user_id,
                )
            raise


def create_tracker(
    user_id: Optional[str] = None,
    use_storage: bool = True,
    clock: Clock = system_clock,
) -> FinanceTracker:
    """
    Factory function to create all application components.

    Args:
        user_id: Whose data to work on. Defaults to the configured user.
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage.

    Falls back to the in-process store when Sheets is not configured,
    and to the offline completion service when Gemini is not.
    """
    user_id = user_id or get_settings().app.default_user_id

    store: MemoryStoreInterface = InMemoryStore()
    audit_storage: Optional[AuditStorageInterface] = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            store = GoogleSheetsMemoryStore(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except (pydantic.ValidationError, StorageError) as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))

    completion: CompletionServiceInterface
    try:
        completion = GeminiCompletionService()
    except pydantic.ValidationError as e:
        logger.warning("completion_not_configured", error=str(e))
        completion = OfflineCompletionService()

    audit_logger = AuditLogger(audit_storage, user_id=user_id)
    memory = MemoryAssembler(
        store,
        user_id=user_id,
        clock=clock,
        audit_logger=audit_logger,
    )

    return FinanceTracker(
        ledger=FinancialLedger(clock=clock),
        goals=GoalTracker(clock=clock),
        memory=memory,
        assistant=FinancialAssistant(memory, completion, audit_logger),
        store=store,
        audit_logger=audit_logger,
        clock=clock,
    )
