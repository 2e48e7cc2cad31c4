"""Prompt composition and the AI response step."""

import time
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..errors import ProviderError
from ..models.conversation import ConversationTurn
from .base import AbstractAIBackend

logger = logging.getLogger(__name__)


@dataclass
class ComposedPrompt:
    """Request payload handed to the AI backend."""
    system_text: str
    user_text: str
    history: List[Dict[str, str]]


def compose_prompt(transcript: str, system_prompt: Optional[str] = None,
                   context: Optional[str] = None,
                   history: Sequence[ConversationTurn] = ()) -> ComposedPrompt:
    """Combine system prompt, free-text context and transcript.

    Either, both or neither of `system_prompt` and `context` may be given.
    Earlier turns become alternating user/assistant messages; turns without
    a response contribute only their transcript.
    """
    parts = []
    if system_prompt and system_prompt.strip():
        parts.append(system_prompt.strip())
    if context and context.strip():
        parts.append(f"Context:\n{context.strip()}")

    messages: List[Dict[str, str]] = []
    for turn in history:
        if turn.transcript:
            messages.append({"role": "user", "content": turn.transcript})
        if turn.ai_response:
            messages.append({"role": "assistant", "content": turn.ai_response})

    return ComposedPrompt(
        system_text="\n\n".join(parts),
        user_text=transcript.strip(),
        history=messages,
    )


class AIResponder:
    """Sends composed prompts to the AI backend."""

    def __init__(self, backend: Optional[AbstractAIBackend]):
        self.backend = backend

    async def respond(self, transcript: str, system_prompt: Optional[str] = None,
                      context: Optional[str] = None,
                      history: Sequence[ConversationTurn] = ()) -> Optional[str]:
        """Get an AI response for a transcript.

        Returns:
            Response text, or None when the transcript is empty (no call made)

        Raises:
            ProviderError: No backend is configured or the backend failed
        """
        if not transcript or not transcript.strip():
            logger.info("Empty transcript, skipping AI response")
            return None

        if self.backend is None:
            raise ProviderError(None, "No AI provider selected")

        prompt = compose_prompt(transcript, system_prompt, context, history)
        provider_id = self.backend.provider_id
        start_time = time.time()
        logger.info(f"Requesting AI response from {provider_id} "
                    f"({len(prompt.user_text)} chars, {len(prompt.history)} history messages)")
        try:
            response = await self.backend.generate(prompt.system_text, prompt.user_text, prompt.history)
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"AI response failed via {provider_id}: {e}")
            raise ProviderError(provider_id, str(e)) from e

        logger.info(f"AI response received in {time.time() - start_time:.2f}s")
        return (response or "").strip()
