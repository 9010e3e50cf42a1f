"""
Tests for the completion adapters.

The Gemini SDK model is replaced with a stub; no network calls are made.
"""

from types import SimpleNamespace

import pytest
from google.api_core import exceptions as google_exceptions

from javali.errors import CompletionError
from javali.services.completion import GeminiCompletionService, OfflineCompletionService


class StubModel:
    """Replays a script of responses and exceptions."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls = []

    async def generate_content_async(self, contents):
        self.calls.append(contents)
        outcome = self.script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class BlockedResponse:
    @property
    def text(self):
        raise ValueError("response was blocked")


@pytest.fixture
def gemini(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("GEMINI_MAX_ATTEMPTS", "1")
    return GeminiCompletionService()


class TestGemini:

    @pytest.mark.asyncio
    async def test_reply_text(self, gemini):
        gemini._model = StubModel(SimpleNamespace(text="  Spend less.  "))

        assert await gemini.complete("help", "system") == "Spend less."
        assert gemini._model.calls == [["system", "help"]]

    @pytest.mark.asyncio
    async def test_without_context(self, gemini):
        gemini._model = StubModel(SimpleNamespace(text="ok"))
        await gemini.complete("help")
        assert gemini._model.calls == [["help"]]

    @pytest.mark.asyncio
    async def test_transient_error(self, gemini):
        gemini._model = StubModel(google_exceptions.ServiceUnavailable("down"))

        with pytest.raises(CompletionError) as exc:
            await gemini.complete("help")
        assert exc.value.transient is True

    @pytest.mark.asyncio
    async def test_permanent_error_not_retried(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setenv("GEMINI_MAX_ATTEMPTS", "3")
        service = GeminiCompletionService()
        service._model = StubModel(google_exceptions.InvalidArgument("bad prompt"))

        with pytest.raises(CompletionError) as exc:
            await service.complete("help")
        assert exc.value.transient is False
        assert len(service._model.calls) == 1

    @pytest.mark.asyncio
    async def test_blocked_response(self, gemini):
        gemini._model = StubModel(BlockedResponse())
        with pytest.raises(CompletionError):
            await gemini.complete("help")

    @pytest.mark.asyncio
    async def test_empty_response(self, gemini):
        gemini._model = StubModel(SimpleNamespace(text="   "))
        with pytest.raises(CompletionError):
            await gemini.complete("help")


class TestOffline:

    @pytest.mark.asyncio
    async def test_canned_reply(self):
        service = OfflineCompletionService(reply="fixed")
        assert await service.complete("q", "ctx") == "fixed"
        assert service.calls == [("q", "ctx")]

    @pytest.mark.asyncio
    async def test_injected_error(self):
        service = OfflineCompletionService(error=CompletionError("nope"))
        with pytest.raises(CompletionError):
            await service.complete("q")
