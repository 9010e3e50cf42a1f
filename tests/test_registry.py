"""Tests for the category registry."""

from javali.models.financial import CategoryType, TransactionType
from javali.registry import (
    CATEGORIES,
    GOAL_CATEGORIES,
    categories_for,
    get_category,
    get_goal_category,
    is_known_category,
    is_known_goal_category,
)


class TestTransactionCategories:

    def test_ids_are_unique(self):
        ids = [c.id for c in CATEGORIES]
        assert len(ids) == len(set(ids))

    def test_lookup(self):
        food = get_category("food")
        assert food is not None
        assert food.type == CategoryType.EXPENSE

    def test_unknown_category(self):
        assert get_category("yachts") is None
        assert not is_known_category("yachts")

    def test_categories_for_income(self):
        ids = [c.id for c in categories_for(TransactionType.INCOME)]
        assert ids == ["salary", "freelance", "investment", "bonus", "refund"]

    def test_expense_category_does_not_apply_to_income(self):
        assert not get_category("rent").applies_to(TransactionType.INCOME)


class TestGoalCategories:

    def test_all_goal_categories_exist(self):
        expected = {"personal", "business", "emergency", "vacation",
                    "education", "home", "car", "other"}
        assert {c.id for c in GOAL_CATEGORIES} == expected

    def test_goal_category_lookup(self):
        assert get_goal_category("vacation").name == "Travel"
        assert is_known_goal_category("emergency")
        assert not is_known_goal_category("food")
