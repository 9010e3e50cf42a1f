"""Category registry package."""

from javali.registry.categories import (
    CATEGORIES,
    GOAL_CATEGORIES,
    categories_for,
    get_category,
    get_goal_category,
    is_known_category,
    is_known_goal_category,
)

__all__ = [
    "CATEGORIES",
    "GOAL_CATEGORIES",
    "categories_for",
    "get_category",
    "get_goal_category",
    "is_known_category",
    "is_known_goal_category",
]
