"""
Tests for the goal tracker.

Clock fixed at 2024-06-15 12:00 UTC; months are 30 days.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from javali.errors import NotFoundError, ValidationError
from javali.goals import GoalTracker
from javali.models.goals import GoalTransactionType

from tests.conftest import FIXED_NOW


def goal_input(target="1200", days=90, current=None, **extra):
    data = {
        "name": "Trip",
        "target_amount": target,
        "target_date": FIXED_NOW + timedelta(days=days),
        "category": "vacation",
        "priority": "medium",
        **extra,
    }
    if current is not None:
        data["current_amount"] = current
    return data


class TestCreateGoal:
    """Tests for goal creation and the monthly target formula."""

    def test_three_months_out(self, goals):
        goal = goals.create_goal(goal_input("1200", days=90))

        assert goals.months_remaining(goal) == 3
        assert goal.monthly_target == Decimal("400")
        assert goal.current_amount == Decimal("0")
        assert goal.is_completed is False
        assert goal.created_date == FIXED_NOW

    def test_partial_month_rounds_up(self, goals):
        goal = goals.create_goal(goal_input("1200", days=95))
        assert goals.months_remaining(goal) == 4
        assert goal.monthly_target == Decimal("300")

    def test_target_date_now_is_one_month(self, goals):
        goal = goals.create_goal(goal_input("1200", days=0))
        assert goals.months_remaining(goal) == 1
        assert goal.monthly_target == Decimal("1200")

    def test_past_target_date_is_accepted(self, goals):
        goal = goals.create_goal(goal_input("500", days=-40))
        assert goals.months_remaining(goal) == 1
        assert goal.monthly_target == Decimal("500")

    def test_funded_goal_is_completed_with_zero_target(self, goals):
        goal = goals.create_goal(goal_input("1000", current="1500"))
        assert goal.is_completed is True
        assert goal.monthly_target == Decimal("0")

    def test_rejects_non_positive_target(self, goals):
        with pytest.raises(ValidationError):
            goals.create_goal(goal_input("0"))

    def test_rejects_negative_current(self, goals):
        with pytest.raises(ValidationError):
            goals.create_goal(goal_input(current="-1"))

    def test_rejects_missing_name(self, goals):
        data = goal_input()
        del data["name"]
        with pytest.raises(ValidationError):
            goals.create_goal(data)

    def test_rejects_unknown_category(self, goals):
        with pytest.raises(ValidationError) as exc:
            goals.create_goal(goal_input(category="yachts"))
        assert exc.value.field == "category"

    def test_rejects_unknown_priority(self, goals):
        with pytest.raises(ValidationError):
            goals.create_goal(goal_input(priority="urgent"))

    def test_days_per_month_is_configurable(self, clock):
        tracker = GoalTracker(clock=clock, days_per_month=31)
        goal = tracker.create_goal(goal_input("1200", days=90))
        assert tracker.months_remaining(goal) == 3


class TestDeposit:
    """Tests for deposits and withdrawals."""

    def test_deposit_recomputes_monthly_target(self, goals):
        goal = goals.create_goal(goal_input("1200", days=90))

        assert goals.deposit_to_goal(goal.id, 400) is True

        goal = goals.get_goal(goal.id)
        assert goal.current_amount == Decimal("400")
        # 800 / 3 = 266.67, rounded up
        assert goal.monthly_target == Decimal("267")

    def test_deposit_matches_fresh_creation(self, goals):
        goal = goals.create_goal(goal_input("1200", days=90))
        goals.deposit_to_goal(goal.id, "250.50")

        fresh = goals.create_goal(goal_input("1200", days=90, current="250.50"))
        assert goals.get_goal(goal.id).monthly_target == fresh.monthly_target

    def test_deposit_reads_clock_again(self, goals, clock):
        goal = goals.create_goal(goal_input("1200", days=90))
        clock.advance(days=31)

        goals.deposit_to_goal(goal.id, 0.01)

        # 59 days left: 1199.99 over two months, not three
        assert goals.months_remaining(goal) == 2
        assert goals.get_goal(goal.id).monthly_target == Decimal("600")

    def test_deposits_never_raise_monthly_target(self, goals):
        goal = goals.create_goal(goal_input("1000", days=120))
        previous = goal.monthly_target
        for amount in ["1", "99", "300", "600"]:
            goals.deposit_to_goal(goal.id, amount)
            current = goals.get_goal(goal.id).monthly_target
            assert current <= previous
            previous = current
        assert goals.get_goal(goal.id).is_completed is True

    def test_deposit_completing_goal(self, goals):
        goal = goals.create_goal(goal_input("100"))
        goals.deposit_to_goal(goal.id, 150)

        goal = goals.get_goal(goal.id)
        assert goal.is_completed is True
        assert goal.monthly_target == Decimal("0")

    @pytest.mark.parametrize("amount", [0, -10])
    def test_deposit_rejects_non_positive_amount(self, goals, amount):
        goal = goals.create_goal(goal_input())
        with pytest.raises(ValidationError):
            goals.deposit_to_goal(goal.id, amount)
        assert goals.get_goal(goal.id).current_amount == 0
        assert goals.get_goal_transactions(goal.id) == []

    def test_deposit_to_unknown_goal(self, goals):
        with pytest.raises(NotFoundError):
            goals.deposit_to_goal(uuid4(), 10)

    def test_deposit_appends_transaction(self, goals):
        goal = goals.create_goal(goal_input())
        goals.deposit_to_goal(goal.id, 10)
        goals.deposit_to_goal(goal.id, 20, description="Bonus")

        history = goals.get_goal_transactions(goal.id)
        assert [(t.amount, t.description) for t in history] == [
            (Decimal("20"), "Bonus"),
            (Decimal("10"), "Deposit"),
        ]
        assert all(t.type == GoalTransactionType.DEPOSIT for t in history)

    def test_withdraw(self, goals):
        goal = goals.create_goal(goal_input("1200", days=90, current="600"))
        goals.withdraw_from_goal(goal.id, 300)

        goal = goals.get_goal(goal.id)
        assert goal.current_amount == Decimal("300")
        assert goal.monthly_target == Decimal("300")
        assert goals.get_goal_transactions(goal.id)[0].type == GoalTransactionType.WITHDRAWAL

    def test_withdraw_more_than_saved(self, goals):
        goal = goals.create_goal(goal_input(current="100"))
        with pytest.raises(ValidationError):
            goals.withdraw_from_goal(goal.id, "100.01")
        assert goals.get_goal(goal.id).current_amount == Decimal("100")


class TestUpdateGoal:
    """Tests for partial updates."""

    def test_unknown_goal_returns_none(self, goals):
        assert goals.update_goal(uuid4(), {"name": "X"}) is None

    def test_empty_patch_changes_nothing(self, goals, clock):
        goal = goals.create_goal(goal_input("1200", days=90))
        before = goal.model_dump()
        clock.advance(days=45)

        updated = goals.update_goal(goal.id, {})

        assert updated.model_dump() == before

    def test_name_change_does_not_recompute(self, goals, clock):
        goal = goals.create_goal(goal_input("1200", days=90))
        clock.advance(days=45)

        updated = goals.update_goal(goal.id, {"name": "Japan"})

        assert updated.name == "Japan"
        assert updated.monthly_target == Decimal("400")

    def test_target_change_recomputes(self, goals):
        goal = goals.create_goal(goal_input("1200", days=90))
        updated = goals.update_goal(goal.id, {"target_amount": "1500"})
        assert updated.monthly_target == Decimal("500")

    def test_target_date_change_recomputes(self, goals):
        goal = goals.create_goal(goal_input("1200", days=90))
        updated = goals.update_goal(
            goal.id, {"target_date": FIXED_NOW + timedelta(days=180)}
        )
        assert updated.monthly_target == Decimal("200")

    def test_current_amount_change_can_complete(self, goals):
        goal = goals.create_goal(goal_input("1200"))
        updated = goals.update_goal(goal.id, {"current_amount": "1200"})
        assert updated.is_completed is True
        assert updated.monthly_target == Decimal("0")

    def test_required_field_cannot_be_cleared(self, goals):
        goal = goals.create_goal(goal_input())
        with pytest.raises(ValidationError):
            goals.update_goal(goal.id, {"name": None})
        assert goals.get_goal(goal.id).name == "Trip"

    def test_invalid_patch_is_rejected_before_mutation(self, goals):
        goal = goals.create_goal(goal_input("1200"))
        with pytest.raises(ValidationError):
            goals.update_goal(goal.id, {"name": "New", "target_amount": "-5"})
        assert goals.get_goal(goal.id).name == "Trip"


class TestQueries:
    """Tests for listing, progress and stats."""

    def test_list_goals_incomplete_first_then_newest(self, goals, clock):
        a = goals.create_goal(goal_input(name="A"))
        clock.advance(days=1)
        b = goals.create_goal(goal_input(name="B", target="100", current="100"))
        clock.advance(days=1)
        c = goals.create_goal(goal_input(name="C"))

        assert [g.id for g in goals.list_goals()] == [c.id, a.id, b.id]

    def test_progress(self, goals):
        goal = goals.create_goal(goal_input("1000", days=45, current="250"))

        progress = goals.get_progress(goal.id)

        assert progress.progress_percentage == Decimal("25.00")
        assert progress.remaining_amount == Decimal("750")
        assert progress.days_remaining == 45
        assert progress.months_remaining == 2
        assert progress.monthly_target == Decimal("375")
        assert progress.is_overdue is False

    def test_progress_of_overdue_goal(self, goals):
        goal = goals.create_goal(goal_input("1000", days=-2))
        progress = goals.get_progress(goal.id)
        assert progress.days_remaining == -2
        assert progress.is_overdue is True

    def test_progress_of_overfunded_goal(self, goals):
        goal = goals.create_goal(goal_input("100", current="150"))
        progress = goals.get_progress(goal.id)
        assert progress.progress_percentage == Decimal("150.00")
        assert progress.remaining_amount == Decimal("0")

    def test_stats_without_goals(self, goals):
        stats = goals.get_stats()
        assert stats.total_goals == 0
        assert stats.average_progress == Decimal("0")

    def test_stats(self, goals):
        open_goal = goals.create_goal(goal_input("1000", days=90, current="250"))
        goals.create_goal(goal_input("500", current="500"))

        stats = goals.get_stats()

        assert stats.total_goals == 2
        assert stats.completed_goals == 1
        assert stats.total_target_amount == Decimal("1500")
        assert stats.total_saved_amount == Decimal("750")
        assert stats.monthly_target_sum == open_goal.monthly_target == Decimal("250")
        assert stats.average_progress == Decimal("62.50")

    def test_get_unknown_goal(self, goals):
        with pytest.raises(NotFoundError):
            goals.get_goal(uuid4())

    def test_restore_goals_skips_known_ids(self, goals, clock):
        goal = goals.create_goal(goal_input("1200", days=90))
        snapshot = goal.model_copy(deep=True)

        other = GoalTracker(clock=clock)
        assert other.restore_goals([snapshot]) == 1
        assert other.restore_goals([snapshot]) == 0
        assert other.get_goal(goal.id).monthly_target == Decimal("400")
