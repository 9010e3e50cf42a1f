"""Financial assistant agent."""

from javali.agents.assistant import (
    AssistantReply,
    FinancialAssistant,
    render_context,
    suggest_follow_ups,
)

__all__ = [
    "AssistantReply",
    "FinancialAssistant",
    "render_context",
    "suggest_follow_ups",
]
