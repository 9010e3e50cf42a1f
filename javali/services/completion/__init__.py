"""
Completion Services Package

Language-model adapters used by the financial assistant.
"""

from javali.services.completion.gemini import GeminiCompletionService
from javali.services.completion.interface import CompletionServiceInterface
from javali.services.completion.offline import OfflineCompletionService

__all__ = [
    "CompletionServiceInterface",
    "GeminiCompletionService",
    "OfflineCompletionService",
]
