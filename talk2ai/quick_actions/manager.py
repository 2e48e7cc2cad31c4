"""Registry and dispatch of reusable canned prompts."""

import logging
import threading
from typing import Dict, List, Optional, Sequence

from ..ai.responder import AIResponder
from ..errors import DuplicateLabelError
from ..models.conversation import ConversationTurn
from ..models.quick_action import QuickAction
from ..storage.file_manager import FileManager

logger = logging.getLogger(__name__)

TEXT_PLACEHOLDER = "{{TEXT}}"

DEFAULT_QUICK_ACTIONS = [
    ("What should I say?", "What should I say next in this conversation?"),
    ("Follow-up questions", "Suggest three good follow-up questions based on this:"),
    ("Fact-check", "Fact-check the following and point out anything incorrect:"),
    ("Recap", "Give a short recap of the discussion so far."),
]


class QuickActionManager:
    """Holds quick actions and sends them straight to the AI responder."""

    def __init__(self, responder: AIResponder, file_manager: Optional[FileManager] = None):
        self.responder = responder
        self.file_manager = file_manager
        self.is_managing = False  # Only controls whether edit controls are shown
        self._actions: Dict[str, QuickAction] = {}
        self._lock = threading.Lock()

    def load(self, seed_defaults: bool = True) -> None:
        """Load stored actions, seeding the defaults when none are stored."""
        stored = self.file_manager.load_quick_actions() if self.file_manager else None
        with self._lock:
            self._actions.clear()
            if stored is not None:
                for action in stored:
                    self._actions[action.id] = action
            elif seed_defaults:
                for label, template in DEFAULT_QUICK_ACTIONS:
                    action = QuickAction(label=label, prompt_template=template)
                    self._actions[action.id] = action
                self._persist()
        logger.info(f"Loaded {len(self._actions)} quick actions")

    def list(self) -> List[QuickAction]:
        with self._lock:
            return list(self._actions.values())

    def get(self, action_id: str) -> Optional[QuickAction]:
        with self._lock:
            return self._actions.get(action_id)

    def add(self, action: QuickAction) -> QuickAction:
        """Register an action.

        Raises:
            DuplicateLabelError: An action with exactly the same label exists
        """
        with self._lock:
            if any(existing.label == action.label for existing in self._actions.values()):
                raise DuplicateLabelError(action.label)
            self._actions[action.id] = action
            self._persist()
        logger.info(f"Added quick action: {action.label!r}")
        return action

    def remove(self, action_id: str) -> None:
        """Remove an action; unknown ids are ignored."""
        with self._lock:
            removed = self._actions.pop(action_id, None)
            if removed is None:
                return
            self._persist()
        logger.info(f"Removed quick action: {removed.label!r}")

    def set_managing(self, managing: bool) -> None:
        self.is_managing = managing

    @staticmethod
    def render(action: QuickAction, current_text: Optional[str]) -> str:
        """Fill the template with the current transcript or context."""
        text = (current_text or "").strip()
        if TEXT_PLACEHOLDER in action.prompt_template:
            return action.prompt_template.replace(TEXT_PLACEHOLDER, text)
        if not text:
            return action.prompt_template
        quoted = "\n".join(f"> {line}" for line in text.splitlines())
        return f"{action.prompt_template}\n\n{quoted}"

    async def dispatch(self, action_id: str, current_text: Optional[str],
                       system_prompt: Optional[str] = None, context: Optional[str] = None,
                       history: Sequence[ConversationTurn] = ()) -> Optional[str]:
        """Send an action to the AI responder without capturing audio.

        Raises:
            KeyError: Unknown action id
            ProviderError: The AI call failed
        """
        action = self.get(action_id)
        if action is None:
            raise KeyError(f"Unknown quick action: {action_id}")

        prompt = self.render(action, current_text)
        logger.info(f"Dispatching quick action {action.label!r}")
        return await self.responder.respond(prompt, system_prompt=system_prompt,
                                            context=context, history=history)

    def _persist(self) -> None:
        if self.file_manager:
            self.file_manager.save_quick_actions(list(self._actions.values()))
