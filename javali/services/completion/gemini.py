"""
Gemini Completion Service

DESIGN DECISION: Retries live here and nowhere else. Rate limits,
timeouts and 5xx responses are retried with exponential backoff;
everything else fails fast. Whatever is left after the last attempt is
raised as CompletionError so the core never sees an SDK exception.
"""

from typing import Optional

import google.generativeai as genai
import structlog
from google.api_core import exceptions as google_exceptions
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from javali.config import get_settings
from javali.errors import CompletionError
from javali.services.completion.interface import CompletionServiceInterface


logger = structlog.get_logger(__name__)

# Worth another attempt
TRANSIENT_ERRORS = (
    google_exceptions.ResourceExhausted,
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
)


class GeminiCompletionService(CompletionServiceInterface):
    """
    Completion service backed by Google Gemini.

    Uses gemini-1.5-flash by default: fast and cheap, good enough for
    short financial answers.
    """

    def __init__(self):
        self._settings = get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @property
    def service_name(self) -> str:
        return "gemini"

    async def _generate(self, contents: list[str]):
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "gemini_retry",
                        attempt=attempt.retry_state.attempt_number,
                    )
                return await self._model.generate_content_async(contents)

    async def complete(
        self,
        prompt: str,
        context: Optional[str] = None,
    ) -> str:
        contents = [context, prompt] if context else [prompt]

        try:
            response = await self._generate(contents)
        except TRANSIENT_ERRORS as e:
            raise CompletionError(f"Gemini unavailable: {e}", transient=True) from e
        except google_exceptions.GoogleAPIError as e:
            raise CompletionError(f"Gemini request failed: {e}") from e

        try:
            text = response.text.strip()
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked
            raise CompletionError(f"Gemini returned no text: {e}") from e

        if not text:
            raise CompletionError("Gemini returned an empty reply")
        return text
