"""
Savings Goal Models

A Goal carries two derived fields, `is_completed` and `monthly_target`.
They are written only by the GoalTracker's recompute step; callers never
set them directly.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from javali.clock import ensure_aware


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalTransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class GoalCategory(BaseModel):
    """A goal category. Distinct taxonomy from transaction categories."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    color: str
    icon: str


class GoalCreate(BaseModel):
    """Input for a new goal."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    target_amount: Decimal = Field(..., gt=0, allow_inf_nan=False)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0, allow_inf_nan=False)
    target_date: datetime
    category: str = Field(..., min_length=1)
    priority: GoalPriority

    @field_validator('target_date')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class GoalUpdate(BaseModel):
    """
    Partial update for a goal.

    Only fields the caller explicitly sets are applied
    (see `model_dump(exclude_unset=True)`).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    target_amount: Optional[Decimal] = Field(default=None, gt=0, allow_inf_nan=False)
    current_amount: Optional[Decimal] = Field(default=None, ge=0, allow_inf_nan=False)
    target_date: Optional[datetime] = None
    category: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[GoalPriority] = None

    @field_validator('target_date')
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(v) if v is not None else v


class Goal(BaseModel):
    """A savings goal owned by the GoalTracker."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    description: Optional[str] = None
    target_amount: Decimal
    current_amount: Decimal = Decimal("0")
    target_date: datetime
    created_date: datetime
    category: str
    priority: GoalPriority

    # Derived
    is_completed: bool = False
    monthly_target: Decimal = Decimal("0")


class GoalTransaction(BaseModel):
    """One movement of money into or out of a goal. Append-only."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    goal_id: UUID
    amount: Decimal = Field(..., gt=0)
    date: datetime
    description: str
    type: GoalTransactionType


class GoalProgress(BaseModel):
    """Progress view of a single goal, as of the time it was computed."""

    goal_id: UUID
    progress_percentage: Decimal = Field(
        ...,
        description="current / target * 100; may exceed 100"
    )
    remaining_amount: Decimal
    days_remaining: int = Field(
        ...,
        description="Negative when the target date has passed"
    )
    months_remaining: int
    monthly_target: Decimal
    is_completed: bool
    is_overdue: bool


class GoalStats(BaseModel):
    """Aggregates over every goal."""

    total_goals: int = 0
    completed_goals: int = 0
    total_target_amount: Decimal = Decimal("0")
    total_saved_amount: Decimal = Decimal("0")
    monthly_target_sum: Decimal = Decimal("0")
    average_progress: Decimal = Decimal("0")
