"""Unit tests for prompt composition and AIResponder."""

import asyncio

import pytest

from talk2ai.ai.responder import AIResponder, compose_prompt
from talk2ai.errors import ProviderError
from talk2ai.models.conversation import ConversationTurn


@pytest.mark.unit
class TestComposePrompt:
    """Test cases for compose_prompt."""

    def test_neither_system_prompt_nor_context(self):
        """Test a bare transcript is sent with an empty system text."""
        prompt = compose_prompt("  what time is it?  ")

        assert prompt.system_text == ""
        assert prompt.user_text == "what time is it?"
        assert prompt.history == []

    def test_system_prompt_and_context(self):
        """Test the context block follows the system prompt."""
        prompt = compose_prompt("question", system_prompt="Be brief.", context="Team sync")

        assert prompt.system_text == "Be brief.\n\nContext:\nTeam sync"

    def test_context_only(self):
        """Test context without a system prompt."""
        prompt = compose_prompt("question", context="Team sync")

        assert prompt.system_text == "Context:\nTeam sync"

    def test_history_messages(self):
        """Test earlier turns become alternating chat messages."""
        history = [
            ConversationTurn(transcript="first", ai_response="answer"),
            ConversationTurn(transcript="second"),
        ]

        prompt = compose_prompt("third", history=history)

        assert prompt.history == [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "answer"},
            {"role": "user", "content": "second"},
        ]


@pytest.mark.unit
class TestAIResponder:
    """Test cases for AIResponder."""

    def test_empty_transcript_makes_no_call(self, fake_ai):
        """Test a blank transcript never reaches the backend."""
        responder = AIResponder(fake_ai)

        assert asyncio.run(responder.respond("   ")) is None
        assert fake_ai.calls == []

    def test_respond(self, fake_ai):
        """Test a response is returned for a transcript."""
        responder = AIResponder(fake_ai)

        response = asyncio.run(responder.respond("hello", system_prompt="Be brief."))

        assert response == "reply to: hello"
        assert fake_ai.calls[0]["system_text"] == "Be brief."

    def test_missing_backend(self):
        """Test a responder without a backend fails with ProviderError."""
        responder = AIResponder(None)

        with pytest.raises(ProviderError):
            asyncio.run(responder.respond("hello"))

    def test_backend_error_is_wrapped(self, make_ai):
        """Test backend exceptions are wrapped with the provider id."""
        responder = AIResponder(make_ai(error=TimeoutError("too slow")))

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(responder.respond("hello"))

        assert exc_info.value.provider_id == "fake-ai"
