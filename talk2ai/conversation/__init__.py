"""Conversation storage."""

from .store import ConversationStore, TOPIC_NEW_CONVERSATION, TOPIC_CONVERSATION_SELECTED

__all__ = ["ConversationStore", "TOPIC_NEW_CONVERSATION", "TOPIC_CONVERSATION_SELECTED"]
