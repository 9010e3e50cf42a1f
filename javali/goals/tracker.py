"""
Goal Tracker

Owns savings goals and their money movements.

DESIGN DECISION: `is_completed` and `monthly_target` are derived values.
They are written in exactly one place, `_recompute`, which every mutating
entry point (create, update, deposit, withdraw) calls. A deposit therefore
produces the same goal that create_goal would have produced with the new
current amount and the original target date.

MONTHLY TARGET:
    months_remaining = max(1, ceil((target_date - now) / 30 days))
    monthly_target   = max(0, ceil((target - current) / months_remaining))

The one-month floor means a goal whose deadline has passed (or falls
inside the current month) gets a one-month catch-up target instead of a
division by zero or a negative month count. The 30-day month is kept as
an approximation; calendar months are not used.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID, uuid4

from javali.aggregation import ceil_amount, mean, round_money, sum_amounts
from javali.clock import Clock, system_clock
from javali.config import get_settings
from javali.errors import NotFoundError, ValidationError
from javali.models.goals import (
    Goal,
    GoalCreate,
    GoalProgress,
    GoalStats,
    GoalTransaction,
    GoalTransactionType,
    GoalUpdate,
)
from javali.registry import is_known_goal_category
from javali.validation import parse_input, require_positive


# Fields whose change invalidates the derived values
_DERIVATION_INPUTS = ("target_amount", "current_amount", "target_date")

# Fields an update may change but never set to None
_REQUIRED_FIELDS = (
    "name", "target_amount", "current_amount", "target_date", "category", "priority",
)


def _ceil_div(numerator: timedelta, denominator: timedelta) -> int:
    return -((-numerator) // denominator)


class GoalTracker:
    """
    In-memory store of goals and goal transactions.

    Goals are mutated only through this class. Goal transactions are
    append-only.
    """

    def __init__(
        self,
        clock: Clock = system_clock,
        days_per_month: Optional[int] = None,
    ):
        self._goals: dict[UUID, Goal] = {}
        self._transactions: list[GoalTransaction] = []
        self._clock = clock
        self._month = timedelta(
            days=days_per_month or get_settings().app.days_per_month
        )

    # =========================================================================
    # DERIVED FIELDS
    # =========================================================================

    def months_remaining(self, goal: Goal) -> int:
        """Whole 30-day months until the target date, never less than 1."""
        return max(1, _ceil_div(goal.target_date - self._clock(), self._month))

    def _recompute(self, goal: Goal) -> None:
        """Refresh the derived fields of `goal` in place, reading "now" afresh."""
        months = self.months_remaining(goal)
        outstanding = goal.target_amount - goal.current_amount
        goal.monthly_target = max(Decimal("0"), ceil_amount(outstanding / months))
        goal.is_completed = goal.current_amount >= goal.target_amount

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def create_goal(self, data: Union[GoalCreate, dict]) -> Goal:
        """
        Create a goal.

        A target date in the past is accepted; it degrades to the
        one-month floor.

        Raises:
            ValidationError: missing name, non-positive target, negative
                             current amount, unknown category or priority
        """
        payload = parse_input(GoalCreate, data)
        self._check_category(payload.category)

        goal = Goal(
            **payload.model_dump(),
            created_date=self._clock(),
        )
        self._recompute(goal)
        self._goals[goal.id] = goal
        return goal

    def update_goal(
        self,
        goal_id: UUID,
        changes: Union[GoalUpdate, dict],
    ) -> Optional[Goal]:
        """
        Shallow-overwrite the fields set in `changes`.

        Derived fields are recomputed only if the target amount, current
        amount or target date actually changed, so an empty patch leaves
        the goal untouched.

        Returns:
            The updated goal, or None if no goal has this id.
        """
        goal = self._goals.get(goal_id)
        if goal is None:
            return None

        patch = parse_input(GoalUpdate, changes).model_dump(exclude_unset=True)
        for field in _REQUIRED_FIELDS:
            if field in patch and patch[field] is None:
                raise ValidationError(f"{field} cannot be cleared", field=field)
        if "category" in patch:
            self._check_category(patch["category"])

        changed = [name for name, value in patch.items() if getattr(goal, name) != value]
        for name in changed:
            setattr(goal, name, patch[name])

        if any(name in _DERIVATION_INPUTS for name in changed):
            self._recompute(goal)

        return goal

    def deposit_to_goal(
        self,
        goal_id: UUID,
        amount,
        description: Optional[str] = None,
    ) -> bool:
        """
        Add money to a goal and re-derive its targets.

        Raises:
            NotFoundError: unknown goal
            ValidationError: amount <= 0
        """
        goal = self.get_goal(goal_id)
        amount = require_positive(amount, "amount")

        self._append_transaction(
            goal, amount, GoalTransactionType.DEPOSIT, description or "Deposit"
        )
        goal.current_amount += amount
        self._recompute(goal)
        return True

    def withdraw_from_goal(
        self,
        goal_id: UUID,
        amount,
        description: Optional[str] = None,
    ) -> bool:
        """
        Take money out of a goal and re-derive its targets.

        Raises:
            NotFoundError: unknown goal
            ValidationError: amount <= 0, or more than the goal holds
        """
        goal = self.get_goal(goal_id)
        amount = require_positive(amount, "amount")
        if amount > goal.current_amount:
            raise ValidationError(
                f"Cannot withdraw {amount}: goal holds {goal.current_amount}",
                field="amount",
            )

        self._append_transaction(
            goal, amount, GoalTransactionType.WITHDRAWAL, description or "Withdrawal"
        )
        goal.current_amount -= amount
        self._recompute(goal)
        return True

    def restore_goals(self, goals: list[Goal]) -> int:
        """
        Load goal snapshots read back from the store.

        Goals already tracked are left alone. Derived fields are
        recomputed against the current clock.

        Returns:
            Number of goals added
        """
        added = 0
        for snapshot in goals:
            if snapshot.id in self._goals:
                continue
            goal = snapshot.model_copy(deep=True)
            self._recompute(goal)
            self._goals[goal.id] = goal
            added += 1
        return added

    def _append_transaction(
        self,
        goal: Goal,
        amount: Decimal,
        kind: GoalTransactionType,
        description: str,
    ) -> GoalTransaction:
        transaction = GoalTransaction(
            id=uuid4(),
            goal_id=goal.id,
            amount=amount,
            date=self._clock(),
            description=description,
            type=kind,
        )
        self._transactions.append(transaction)
        return transaction

    def _check_category(self, category: str) -> None:
        if not is_known_goal_category(category):
            raise ValidationError(f"Unknown goal category: {category}", field="category")

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_goal(self, goal_id: UUID) -> Goal:
        goal = self._goals.get(goal_id)
        if goal is None:
            raise NotFoundError("goal", goal_id)
        return goal

    def list_goals(self) -> list[Goal]:
        """Incomplete goals first; newest created first within each group."""
        newest_first = sorted(
            self._goals.values(),
            key=lambda g: g.created_date,
            reverse=True,
        )
        return sorted(newest_first, key=lambda g: g.is_completed)

    def get_goal_transactions(self, goal_id: UUID) -> list[GoalTransaction]:
        """Movements of one goal, newest first."""
        self.get_goal(goal_id)
        return sorted(
            (t for t in reversed(self._transactions) if t.goal_id == goal_id),
            key=lambda t: t.date,
            reverse=True,
        )

    def get_progress(self, goal_id: UUID) -> GoalProgress:
        goal = self.get_goal(goal_id)
        now = self._clock()
        days_remaining = _ceil_div(goal.target_date - now, timedelta(days=1))

        return GoalProgress(
            goal_id=goal.id,
            progress_percentage=round_money(
                goal.current_amount / goal.target_amount * 100
            ),
            remaining_amount=max(Decimal("0"), goal.target_amount - goal.current_amount),
            days_remaining=days_remaining,
            months_remaining=self.months_remaining(goal),
            monthly_target=goal.monthly_target,
            is_completed=goal.is_completed,
            is_overdue=not goal.is_completed and goal.target_date < now,
        )

    def get_stats(self) -> GoalStats:
        """
        Aggregate statistics.

        average_progress is the mean of current/target*100 over every goal.
        It is not clamped, so an overfunded goal can pull it above 100.
        """
        goals = list(self._goals.values())
        open_goals = [g for g in goals if not g.is_completed]

        return GoalStats(
            total_goals=len(goals),
            completed_goals=len(goals) - len(open_goals),
            total_target_amount=sum_amounts(g.target_amount for g in goals),
            total_saved_amount=sum_amounts(g.current_amount for g in goals),
            monthly_target_sum=sum_amounts(g.monthly_target for g in open_goals),
            average_progress=mean(
                g.current_amount / g.target_amount * 100 for g in goals
            ),
        )
