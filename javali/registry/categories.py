"""
Category Registry

Static lookup of transaction categories and goal categories.
Loaded once at import; never mutated.
"""

from typing import Optional

from javali.models.financial import Category, CategoryType, TransactionType
from javali.models.goals import GoalCategory


CATEGORIES: tuple[Category, ...] = (
    # Expenses
    Category(id="food", name="Food", color="#FF6B6B", icon="🍽️", type=CategoryType.EXPENSE),
    Category(id="transport", name="Transport", color="#4ECDC4", icon="🚗", type=CategoryType.EXPENSE),
    Category(id="health", name="Health", color="#45B7D1", icon="🏥", type=CategoryType.EXPENSE),
    Category(id="entertainment", name="Entertainment", color="#96CEB4", icon="🎮", type=CategoryType.EXPENSE),
    Category(id="shopping", name="Shopping", color="#FECA57", icon="🛍️", type=CategoryType.EXPENSE),
    Category(id="bills", name="Bills", color="#FF9FF3", icon="📋", type=CategoryType.EXPENSE),
    Category(id="education", name="Education", color="#A8E6CF", icon="📚", type=CategoryType.EXPENSE),
    Category(id="rent", name="Rent", color="#FFB347", icon="🏠", type=CategoryType.EXPENSE),

    # Income
    Category(id="salary", name="Salary", color="#68D391", icon="💰", type=CategoryType.INCOME),
    Category(id="freelance", name="Freelance", color="#81E6D9", icon="💻", type=CategoryType.INCOME),
    Category(id="investment", name="Investments", color="#90CDF4", icon="📈", type=CategoryType.INCOME),
    Category(id="bonus", name="Bonus", color="#F6AD55", icon="🎁", type=CategoryType.INCOME),
    Category(id="refund", name="Refund", color="#B794F6", icon="💸", type=CategoryType.INCOME),
)

GOAL_CATEGORIES: tuple[GoalCategory, ...] = (
    GoalCategory(id="personal", name="Personal", color="#00FF88", icon="👤"),
    GoalCategory(id="business", name="Business", color="#1E90FF", icon="💼"),
    GoalCategory(id="emergency", name="Emergency", color="#FF4D6D", icon="🚨"),
    GoalCategory(id="vacation", name="Travel", color="#FFD700", icon="✈️"),
    GoalCategory(id="education", name="Education", color="#9370DB", icon="📚"),
    GoalCategory(id="home", name="Home", color="#32CD32", icon="🏠"),
    GoalCategory(id="car", name="Vehicle", color="#FF6347", icon="🚗"),
    GoalCategory(id="other", name="Other", color="#A9A9A9", icon="🎯"),
)

_CATEGORIES_BY_ID = {category.id: category for category in CATEGORIES}
_GOAL_CATEGORIES_BY_ID = {category.id: category for category in GOAL_CATEGORIES}


def get_category(category_id: str) -> Optional[Category]:
    return _CATEGORIES_BY_ID.get(category_id)


def is_known_category(category_id: str) -> bool:
    return category_id in _CATEGORIES_BY_ID


def categories_for(transaction_type: TransactionType) -> list[Category]:
    """Categories usable with a transaction type, in registry order."""
    return [c for c in CATEGORIES if c.applies_to(transaction_type)]


def get_goal_category(category_id: str) -> Optional[GoalCategory]:
    return _GOAL_CATEGORIES_BY_ID.get(category_id)


def is_known_goal_category(category_id: str) -> bool:
    return category_id in _GOAL_CATEGORIES_BY_ID
