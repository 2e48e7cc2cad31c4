"""Append-only conversation log."""

import logging
import threading
from typing import Dict, List, Optional

from pubsub import pub

from ..models.conversation import Conversation, ConversationTurn
from ..storage.file_manager import FileManager

logger = logging.getLogger(__name__)

TOPIC_NEW_CONVERSATION = "conversation.new"
TOPIC_CONVERSATION_SELECTED = "conversation.selected"


class ConversationStore:
    """Owns all conversations and is the only writer of turns.

    Turns are appended to the active conversation only and are never edited
    or removed. Starting a new conversation retains the previous one for
    history.
    """

    def __init__(self, file_manager: Optional[FileManager] = None):
        self.file_manager = file_manager
        self._conversations: Dict[str, Conversation] = {}
        self._active_id: Optional[str] = None
        self._lock = threading.RLock()

    def load(self) -> None:
        """Restore conversations and the active id from storage."""
        if not self.file_manager:
            return
        with self._lock:
            for conversation in self.file_manager.load_conversations():
                self._conversations[conversation.id] = conversation
            active_id = self.file_manager.load_state().get("active_conversation_id")
            if active_id in self._conversations:
                self._active_id = active_id
        logger.info(f"Loaded {len(self._conversations)} conversations (active: {self._active_id})")

    @property
    def active_conversation(self) -> Optional[Conversation]:
        with self._lock:
            return self._conversations.get(self._active_id) if self._active_id else None

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with self._lock:
            return self._conversations.get(conversation_id)

    def list_conversations(self) -> List[Conversation]:
        with self._lock:
            return sorted(self._conversations.values(), key=lambda c: c.created_at)

    def start_new_conversation(self) -> Conversation:
        """Create an empty conversation and make it current."""
        with self._lock:
            conversation = Conversation()
            self._conversations[conversation.id] = conversation
            self._active_id = conversation.id
            self._persist(conversation)

        logger.info(f"Started new conversation: {conversation.id}")
        pub.sendMessage(TOPIC_NEW_CONVERSATION, conversation_id=conversation.id)
        return conversation

    def select_conversation(self, conversation_id: str) -> Conversation:
        """Make an existing conversation current.

        Raises:
            KeyError: Unknown conversation id
        """
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise KeyError(f"Unknown conversation: {conversation_id}")
            self._active_id = conversation_id
            if self.file_manager:
                self.file_manager.save_active_conversation_id(conversation_id)

        logger.info(f"Selected conversation: {conversation_id}")
        pub.sendMessage(TOPIC_CONVERSATION_SELECTED, conversation_id=conversation_id)
        return conversation

    def append_turn(self, turn: ConversationTurn) -> Conversation:
        """Append a turn to the active conversation, creating one if needed."""
        with self._lock:
            conversation = self.active_conversation
            if conversation is None:
                conversation = self.start_new_conversation()
            conversation._turns.append(turn)
            self._persist(conversation)

        logger.info(f"Appended turn {turn.id} to conversation {conversation.id} "
                    f"({len(conversation)} turns, response={'yes' if turn.ai_response else 'no'})")
        return conversation

    def _persist(self, conversation: Conversation) -> None:
        if not self.file_manager:
            return
        try:
            self.file_manager.save_conversation(conversation)
            self.file_manager.save_active_conversation_id(self._active_id)
        except OSError as e:
            logger.error(f"Failed to persist conversation {conversation.id}: {e}")
