"""
Financial Assistant

DESIGN DECISION: The assistant is a thin loop around three collaborators:
1. MemoryAssembler builds the context (never fails on store errors)
2. The completion service writes the reply
3. MemoryAssembler records the question/answer pair

BOUNDARIES:
- CAN: Answer from the assembled context and general finance knowledge
- CANNOT: Change ledger or goal state
- CANNOT: Hide a completion failure behind a canned answer

The reply is worth more than its record: if saving the conversation
fails, the answer is still returned and the failure is audited.
"""

from typing import Optional

import structlog
from pydantic import BaseModel, Field

from javali.audit import AuditLogger
from javali.errors import CompletionError, StorageError, ValidationError
from javali.memory import MemoryAssembler
from javali.models.memory import ContextBundle, ConversationRecord, ConversationType
from javali.services.completion import CompletionServiceInterface


logger = structlog.get_logger(__name__)


SYSTEM_PROMPT = """You are a financial assistant specialized in managing expenses and income.
Help the user with:
- Spending analysis
- Saving tips
- Financial planning
- Expense categorization
- Setting financial goals

Be concise, practical and always focused on personal finance.
Use the user's context below when it is relevant. Never invent amounts
that are not in the context."""


# (keywords, suggestions), first match wins
FOLLOW_UPS = [
    (
        ("spend", "spent", "expense", "gasto", "despesa"),
        ["View spending report", "Set a spending limit", "Categorize expenses"],
    ),
    (
        ("goal", "target", "meta", "objetivo"),
        ["Create a new goal", "View goal progress", "Adjust existing goals"],
    ),
    (
        ("saving", "save", "economia", "poupar"),
        ["Saving tips", "Find unnecessary expenses", "Build a savings plan"],
    ),
]

DEFAULT_FOLLOW_UPS = ["View dashboard", "Add an expense", "Create a financial goal"]


class AssistantReply(BaseModel):
    """What the user gets back from one question."""

    message: str
    suggestions: list[str] = Field(default_factory=list)
    context: ContextBundle
    conversation: Optional[ConversationRecord] = Field(
        default=None,
        description="The stored exchange; None if it could not be saved"
    )


def suggest_follow_ups(message: str) -> list[str]:
    """Keyword-based follow-up actions for a user message."""
    lowered = message.lower()
    for keywords, suggestions in FOLLOW_UPS:
        if any(keyword in lowered for keyword in keywords):
            return list(suggestions)
    return list(DEFAULT_FOLLOW_UPS)


def render_context(bundle: ContextBundle) -> str:
    """Plain-text rendering of a context bundle for a prompt."""
    lines = [f"Current date: {bundle.timestamp.strftime('%Y-%m-%d')}"]

    prefs = bundle.preferences
    if prefs is not None:
        if prefs.monthly_budget is not None:
            lines.append(f"Monthly budget: {prefs.monthly_budget}")
        if prefs.financial_goals:
            lines.append(f"Stated goals: {', '.join(prefs.financial_goals)}")
        if prefs.spending_categories:
            lines.append(f"Tracked categories: {', '.join(prefs.spending_categories)}")

    if bundle.financial_context:
        lines.append("Recent financial activity:")
        for record in bundle.financial_context:
            amount = f" {record.amount}" if record.amount is not None else ""
            category = f" ({record.category})" if record.category else ""
            description = f": {record.description}" if record.description else ""
            lines.append(
                f"- {record.date_recorded.strftime('%Y-%m-%d')} "
                f"{record.context_type.value}{amount}{category}{description}"
            )

    if bundle.recent_conversations:
        lines.append("Recent conversations:")
        for conversation in bundle.recent_conversations:
            summary = (
                conversation.title
                or conversation.content.get("user_message")
                or conversation.conversation_type.value
            )
            lines.append(f"- {summary}")

    if bundle.degraded_sources:
        lines.append(f"Unavailable right now: {', '.join(bundle.degraded_sources)}")

    return "\n".join(lines)


class FinancialAssistant:
    """
    Answers user questions with memory-backed context.

    Holds no state of its own; everything lives in the MemoryAssembler.
    """

    def __init__(
        self,
        memory: MemoryAssembler,
        completion: CompletionServiceInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._memory = memory
        self._completion = completion
        self._audit_logger = audit_logger

    async def ask(
        self,
        message: str,
        conversation_type: ConversationType = ConversationType.CHAT,
    ) -> AssistantReply:
        """
        Answer a message and remember the exchange.

        Raises:
            ValidationError: empty message
            CompletionError: the model produced no reply
        """
        if not message or not message.strip():
            raise ValidationError("Message cannot be empty", field="message")

        bundle = await self._memory.assemble_context(message)
        prompt_context = f"{SYSTEM_PROMPT}\n\n{render_context(bundle)}"

        try:
            reply = await self._completion.complete(message, prompt_context)
        except CompletionError as e:
            if self._audit_logger:
                await self._audit_logger.log_completion_error(
                    service=self._completion.service_name,
                    error_message=str(e),
                    transient=e.transient,
                    user_id=self._memory.user_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_completion_generated(
                user_id=self._memory.user_id,
                session_id=self._memory.session_id,
                prompt_chars=len(message) + len(prompt_context),
                response_chars=len(reply),
            )

        suggestions = suggest_follow_ups(message)
        conversation = await self._remember(message, reply, suggestions, conversation_type)

        return AssistantReply(
            message=reply,
            suggestions=suggestions,
            context=bundle,
            conversation=conversation,
        )

    async def _remember(
        self,
        message: str,
        reply: str,
        suggestions: list[str],
        conversation_type: ConversationType,
    ) -> Optional[ConversationRecord]:
        try:
            return await self._memory.record_conversation({
                "conversation_type": conversation_type,
                "title": message.strip()[:50],
                "content": {
                    "user_message": message,
                    "assistant_message": reply,
                    "suggestions": suggestions,
                },
                "metadata": {"service": self._completion.service_name},
            })
        except StorageError as e:
            logger.warning(
                "conversation_not_saved",
                user_id=self._memory.user_id,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="record_conversation",
                    error_message=str(e),
                    user_id=self._memory.user_id,
                )
            return None
