"""
Offline Completion Service

Deterministic stand-in for the hosted model. Used when no Gemini API key
is configured and by the test suite. Makes no network calls.
"""

from typing import Optional

from javali.errors import CompletionError
from javali.services.completion.interface import CompletionServiceInterface


class OfflineCompletionService(CompletionServiceInterface):
    """
    Returns a canned reply and remembers every prompt it was given.

    Pass `error` to make every call fail, for exercising error paths.
    """

    def __init__(
        self,
        reply: Optional[str] = None,
        error: Optional[CompletionError] = None,
    ):
        self._reply = reply
        self._error = error
        self.calls: list[tuple[str, Optional[str]]] = []

    @property
    def service_name(self) -> str:
        return "offline"

    async def complete(
        self,
        prompt: str,
        context: Optional[str] = None,
    ) -> str:
        self.calls.append((prompt, context))
        if self._error is not None:
            raise self._error
        if self._reply:
            return self._reply
        return (
            "The assistant is running offline. "
            f"Your question was recorded: {prompt.strip()}"
        )
