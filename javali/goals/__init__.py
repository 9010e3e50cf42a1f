"""Savings goal tracking package."""

from javali.goals.tracker import GoalTracker

__all__ = ["GoalTracker"]
