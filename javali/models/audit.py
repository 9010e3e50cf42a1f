"""
Audit Models for Javali

Every mutation in the finance core is logged for audit purposes.
This provides:
1. Complete traceability of money movements and goal changes
2. Debugging information when the store or completion service fails
3. The ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger
    TRANSACTION_ADDED = "transaction_added"
    EXTRACTION_CONFIRMED = "extraction_confirmed"

    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_DEPOSIT = "goal_deposit"
    GOAL_WITHDRAWAL = "goal_withdrawal"
    GOAL_COMPLETED = "goal_completed"

    # Memory
    CONVERSATION_RECORDED = "conversation_recorded"
    PREFERENCES_SAVED = "preferences_saved"
    SESSION_STARTED = "session_started"
    CONTEXT_ASSEMBLED = "context_assembled"
    CONTEXT_DEGRADED = "context_degraded"

    # Assistant
    COMPLETION_GENERATED = "completion_generated"

    # Failures
    STORAGE_ERROR = "storage_error"
    COMPLETION_ERROR = "completion_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'conversation')"
    )
    entity_id: Optional[UUID] = None

    # Who and in which session
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         user_id, session_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            self.user_id or "",
            self.session_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn_id, "expense", "42.00", "food")
        event = AuditEventBuilder.goal_deposit(goal_id, "400", "800", "267")
    """

    @staticmethod
    def transaction_added(
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added: {transaction_type} {amount} ({category})",
            details={
                "type": transaction_type,
                "amount": amount,
                "category": category,
            },
        )

    @staticmethod
    def extraction_confirmed(
        transaction_id: UUID,
        confidence: float,
        overridden_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_CONFIRMED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"User confirmed extracted transaction ({confidence:.0%} confidence)",
            details={
                "confidence": confidence,
                "overridden_fields": overridden_fields,
            },
        )

    @staticmethod
    def goal_created(
        goal_id: UUID,
        name: str,
        target_amount: str,
        monthly_target: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_CREATED,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal created: {name}",
            details={
                "target_amount": target_amount,
                "monthly_target": monthly_target,
            },
        )

    @staticmethod
    def goal_updated(
        goal_id: UUID,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_UPDATED,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal updated: {', '.join(changed_fields) or 'no changes'}",
            details={"changed_fields": changed_fields},
        )

    @staticmethod
    def goal_deposit(
        goal_id: UUID,
        amount: str,
        current_amount: str,
        monthly_target: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_DEPOSIT,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Deposit of {amount} to goal",
            details={
                "amount": amount,
                "current_amount": current_amount,
                "monthly_target": monthly_target,
            },
        )

    @staticmethod
    def goal_withdrawal(
        goal_id: UUID,
        amount: str,
        current_amount: str,
        monthly_target: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_WITHDRAWAL,
            severity=AuditSeverity.WARNING,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Withdrawal of {amount} from goal",
            details={
                "amount": amount,
                "current_amount": current_amount,
                "monthly_target": monthly_target,
            },
        )

    @staticmethod
    def goal_completed(goal_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_COMPLETED,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal reached: {name}",
        )

    @staticmethod
    def conversation_recorded(
        conversation_id: UUID,
        conversation_type: str,
        user_id: str,
        session_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONVERSATION_RECORDED,
            entity_type="conversation",
            entity_id=conversation_id,
            user_id=user_id,
            session_id=session_id,
            description=f"Conversation recorded ({conversation_type})",
            details={"conversation_type": conversation_type},
        )

    @staticmethod
    def preferences_saved(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_SAVED,
            entity_type="preferences",
            user_id=user_id,
            description="User preferences saved",
        )

    @staticmethod
    def session_started(user_id: str, session_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            user_id=user_id,
            session_id=session_id,
            description="New session started",
        )

    @staticmethod
    def context_assembled(
        user_id: str,
        session_id: str,
        conversation_count: int,
        financial_count: int,
        has_preferences: bool,
        degraded_sources: list[str],
    ) -> AuditEvent:
        degraded = bool(degraded_sources)
        return AuditEvent(
            event_type=(
                AuditEventType.CONTEXT_DEGRADED if degraded
                else AuditEventType.CONTEXT_ASSEMBLED
            ),
            severity=AuditSeverity.WARNING if degraded else AuditSeverity.INFO,
            entity_type="context",
            user_id=user_id,
            session_id=session_id,
            description=(
                f"Context assembled without: {', '.join(degraded_sources)}"
                if degraded else "Context assembled"
            ),
            details={
                "conversation_count": conversation_count,
                "financial_count": financial_count,
                "has_preferences": has_preferences,
                "degraded_sources": degraded_sources,
            },
        )

    @staticmethod
    def completion_generated(
        user_id: str,
        session_id: str,
        prompt_chars: int,
        response_chars: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMPLETION_GENERATED,
            user_id=user_id,
            session_id=session_id,
            description="Assistant reply generated",
            details={
                "prompt_chars": prompt_chars,
                "response_chars": response_chars,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def completion_error(
        service: str,
        error_message: str,
        transient: bool,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMPLETION_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Completion service error: {service}",
            error_message=error_message,
            details={
                "service": service,
                "transient": transient,
            },
        )
