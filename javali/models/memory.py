"""
Memory Models

Records kept by the MemoryAssembler in the external store, and the
transient ContextBundle handed to the completion service.

Conversations and financial-context records are append-only.
Preferences are one record per user, replaced wholesale on save.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from javali.clock import ensure_aware


class ConversationType(str, Enum):
    CHAT = "chat"
    FINANCIAL_ADVICE = "financial_advice"
    GOAL_PLANNING = "goal_planning"


class FinancialContextType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    GOAL = "goal"
    INSIGHT = "insight"


# =============================================================================
# CONVERSATIONS
# =============================================================================

class ConversationEntry(BaseModel):
    """What a caller supplies to record a conversation."""

    conversation_type: ConversationType = ConversationType.CHAT
    title: Optional[str] = Field(default=None, max_length=200)
    content: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ConversationRecord(ConversationEntry):
    """A stored conversation, stamped with user, session and time."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    session_id: str
    created_at: datetime

    @field_validator('created_at')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)


# =============================================================================
# PREFERENCES
# =============================================================================

class PreferencesFields(BaseModel):
    """The user-editable part of a preferences record."""

    monthly_budget: Optional[Decimal] = Field(default=None, ge=0, allow_inf_nan=False)
    financial_goals: Optional[list[str]] = None
    spending_categories: Optional[list[str]] = None
    notification_settings: Optional[dict[str, Any]] = None
    ai_personality: Optional[dict[str, Any]] = None


class UserPreferences(PreferencesFields):
    """The single preferences record of a user."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    updated_at: datetime

    @field_validator('updated_at')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    def editable_fields(self) -> PreferencesFields:
        return PreferencesFields(
            **self.model_dump(include=set(PreferencesFields.model_fields))
        )


# =============================================================================
# FINANCIAL CONTEXT
# =============================================================================

class FinancialContextEntry(BaseModel):
    """What a caller supplies to record a piece of financial context."""

    context_type: FinancialContextType
    category: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, allow_inf_nan=False)
    description: Optional[str] = None
    date_recorded: Optional[datetime] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class FinancialContextRecord(FinancialContextEntry):
    """A stored financial-context record."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    date_recorded: datetime
    created_at: datetime

    @field_validator('date_recorded', 'created_at')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class FinancialContextSummary(BaseModel):
    """Totals derived from recent financial-context records."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)
    income_by_category: dict[str, Decimal] = Field(default_factory=dict)
    active_goals: int = 0
    recent_transactions: list[FinancialContextRecord] = Field(default_factory=list)


# =============================================================================
# CONTEXT BUNDLE
# =============================================================================

class ContextBundle(BaseModel):
    """
    Context handed to the completion service with a query.

    Transient: rebuilt on every request. `degraded_sources` names the
    sub-fetches that failed and were replaced by an empty value.
    """

    query: str
    timestamp: datetime
    recent_conversations: list[ConversationRecord] = Field(default_factory=list)
    financial_context: list[FinancialContextRecord] = Field(default_factory=list)
    preferences: Optional[UserPreferences] = None
    degraded_sources: list[str] = Field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_sources)
