"""AI response module for talk2ai."""

from .base import AbstractAIBackend
from .responder import AIResponder, ComposedPrompt, compose_prompt

__all__ = [
    "AbstractAIBackend",
    "AIResponder",
    "ComposedPrompt",
    "compose_prompt",
]
