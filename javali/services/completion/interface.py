"""
Abstract Completion Service Interface

The assistant depends on this interface, never on a vendor SDK.
Any failure of an implementation, transient or permanent, must surface
as CompletionError. Retrying transient failures is the implementation's
business; callers never retry.
"""

from abc import ABC, abstractmethod
from typing import Optional


class CompletionServiceInterface(ABC):
    """Text-in, text-out language model."""

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Short identifier used in logs and audit events."""
        pass

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        context: Optional[str] = None,
    ) -> str:
        """
        Generate a reply.

        Args:
            prompt: The user message
            context: System instructions plus rendered context, if any

        Returns:
            The reply text (never empty)

        Raises:
            CompletionError: If no reply could be produced
        """
        pass
