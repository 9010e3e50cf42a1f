"""
Audit Logger

DESIGN DECISION: Every mutation of money, goals or memory is logged.
This provides:
1. Traceability of every balance the user sees
2. Debugging capability when the store or the model misbehaves
3. A history the user can read in their own spreadsheet

The audit logger:
- Is async so it can share the event loop with the store calls
- Never raises: a failing audit sink must not undo a user action
- Stamps events with the user and session they belong to
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from javali.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from javali.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        user_id: Optional[str] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            user_id: Stamped on events that do not carry a user already.
        """
        self._storage = storage
        self._user_id = user_id
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        if event.user_id is None and self._user_id is not None:
            event = event.model_copy(update={"user_id": self._user_id})

        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_added(
        self,
        transaction_id: UUID,
        transaction_type: str,
        amount: Decimal,
        category: str,
    ) -> None:
        """Log a new ledger transaction."""
        await self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=str(amount),
            category=category,
        ))

    async def log_extraction_confirmed(
        self,
        transaction_id: UUID,
        confidence: float,
        overridden_fields: list[str],
    ) -> None:
        """Log user confirmation of an extracted transaction."""
        await self.log(AuditEventBuilder.extraction_confirmed(
            transaction_id=transaction_id,
            confidence=confidence,
            overridden_fields=overridden_fields,
        ))

    async def log_goal_created(
        self,
        goal_id: UUID,
        name: str,
        target_amount: Decimal,
        monthly_target: Decimal,
    ) -> None:
        await self.log(AuditEventBuilder.goal_created(
            goal_id=goal_id,
            name=name,
            target_amount=str(target_amount),
            monthly_target=str(monthly_target),
        ))

    async def log_goal_updated(
        self,
        goal_id: UUID,
        changed_fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.goal_updated(
            goal_id=goal_id,
            changed_fields=changed_fields,
        ))

    async def log_goal_movement(
        self,
        goal_id: UUID,
        amount: Decimal,
        current_amount: Decimal,
        monthly_target: Decimal,
        withdrawal: bool = False,
    ) -> None:
        """Log a deposit (or withdrawal) on a goal."""
        build = (
            AuditEventBuilder.goal_withdrawal if withdrawal
            else AuditEventBuilder.goal_deposit
        )
        await self.log(build(
            goal_id=goal_id,
            amount=str(amount),
            current_amount=str(current_amount),
            monthly_target=str(monthly_target),
        ))

    async def log_goal_completed(self, goal_id: UUID, name: str) -> None:
        await self.log(AuditEventBuilder.goal_completed(goal_id=goal_id, name=name))

    async def log_conversation_recorded(
        self,
        conversation_id: UUID,
        conversation_type: str,
        user_id: str,
        session_id: str,
    ) -> None:
        await self.log(AuditEventBuilder.conversation_recorded(
            conversation_id=conversation_id,
            conversation_type=conversation_type,
            user_id=user_id,
            session_id=session_id,
        ))

    async def log_preferences_saved(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.preferences_saved(user_id=user_id))

    async def log_session_started(self, user_id: str, session_id: str) -> None:
        await self.log(AuditEventBuilder.session_started(
            user_id=user_id,
            session_id=session_id,
        ))

    async def log_context_assembled(
        self,
        user_id: str,
        session_id: str,
        conversation_count: int,
        financial_count: int,
        has_preferences: bool,
        degraded_sources: list[str],
    ) -> None:
        """Log a context assembly; logged as a warning if anything was degraded."""
        await self.log(AuditEventBuilder.context_assembled(
            user_id=user_id,
            session_id=session_id,
            conversation_count=conversation_count,
            financial_count=financial_count,
            has_preferences=has_preferences,
            degraded_sources=degraded_sources,
        ))

    async def log_completion_generated(
        self,
        user_id: str,
        session_id: str,
        prompt_chars: int,
        response_chars: int,
    ) -> None:
        await self.log(AuditEventBuilder.completion_generated(
            user_id=user_id,
            session_id=session_id,
            prompt_chars=prompt_chars,
            response_chars=response_chars,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a store failure."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
        ))

    async def log_completion_error(
        self,
        service: str,
        error_message: str,
        transient: bool,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a completion service failure."""
        await self.log(AuditEventBuilder.completion_error(
            service=service,
            error_message=error_message,
            transient=transient,
            user_id=user_id,
        ))
