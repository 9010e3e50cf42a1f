"""
Ledger Data Models

These models define the schemas for money flowing through the ledger.
They are designed to:
1. Reject malformed input before anything is stored
2. Keep monetary values exact (Decimal, never float)
3. Be serializable for storage and logging

DESIGN DECISION: A stored Transaction is frozen. The ledger is
append-only; corrections are new transactions.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from javali.clock import ensure_aware


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money for a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class CategoryType(str, Enum):
    """Which transaction types a category applies to."""
    INCOME = "income"
    EXPENSE = "expense"
    BOTH = "both"


class PaymentMethod(str, Enum):
    """How a transaction was paid."""
    CREDIT = "credit"
    DEBIT = "debit"
    CASH = "cash"
    PIX = "pix"
    TRANSFER = "transfer"
    OTHER = "other"


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """A transaction category. Loaded once, never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    color: str
    icon: str
    type: CategoryType

    def applies_to(self, transaction_type: TransactionType) -> bool:
        return self.type == CategoryType.BOTH or self.type.value == transaction_type.value


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionCreate(BaseModel):
    """
    Input for a new ledger transaction.

    Everything a Transaction has except its id. The category is checked
    against the registry by the ledger, not here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount (positive, finite)"
    )
    date: datetime = Field(
        ...,
        description="When the transaction happened"
    )
    description: str = Field(
        default="",
        max_length=500,
        description="Free-text description"
    )
    establishment: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Where the money was spent or came from"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category id from the registry"
    )
    type: TransactionType
    payment_method: Optional[PaymentMethod] = None
    is_recurring: bool = False
    tags: list[str] = Field(default_factory=list)
    confidence: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Set when the transaction was inferred (OCR/AI)"
    )

    @field_validator('date')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class Transaction(TransactionCreate):
    """A transaction stored in the ledger."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)


class ExtractedTransaction(BaseModel):
    """
    A transaction proposed by an inferential process (receipt OCR, AI).

    CRITICAL: This is PROPOSED data, NOT verified.
    It only becomes a Transaction after the user confirms it.
    """

    amount: Optional[Decimal] = Field(default=None, gt=0, allow_inf_nan=False)
    date: Optional[datetime] = None
    description: Optional[str] = None
    establishment: Optional[str] = None
    category: Optional[str] = None
    type: Optional[TransactionType] = None
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Overall confidence in the extraction (0-1)"
    )
    suggestions: list[str] = Field(default_factory=list)


# =============================================================================
# SUMMARIES
# =============================================================================

class SummaryPeriod(BaseModel):
    """Half-open time window: start <= date < end."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator('start', 'end')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    @classmethod
    def month_of(cls, instant: datetime) -> "SummaryPeriod":
        """The calendar month containing `instant`, in `instant`'s zone."""
        instant = ensure_aware(instant)
        start = instant.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        # Day 28 + 4 days always lands in the following month
        following = (start.replace(day=28) + timedelta(days=4)).replace(day=1)
        return cls(start=start, end=following)

    @classmethod
    def everything(cls) -> "SummaryPeriod":
        return cls(
            start=datetime.min.replace(tzinfo=timezone.utc),
            end=datetime.max.replace(tzinfo=timezone.utc),
        )


class CategoryBreakdown(BaseModel):
    """One row of a summary's category ranking."""

    category: str
    amount: Decimal
    percentage: Decimal = Field(
        ...,
        description="Share of income + expenses, 2 decimal places"
    )


class FinancialSummary(BaseModel):
    """Income/expense totals for one period."""

    period: SummaryPeriod
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    transaction_count: int = 0
    top_categories: list[CategoryBreakdown] = Field(default_factory=list)
