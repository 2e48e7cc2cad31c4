"""JSON file storage for settings, quick actions and conversations."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.conversation import Conversation
from ..models.quick_action import QuickAction
from ..models.vad import VadConfig

logger = logging.getLogger(__name__)


class FileManager:
    """Manages persisted state under a data directory.

    Missing files yield defaults. Unreadable files are logged and treated as
    missing so a corrupt file never blocks startup.
    """

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.conversations_dir = self.data_dir / "conversations"
        self.logs_dir = self.data_dir / "logs"
        self.vad_config_file = self.data_dir / "vad_config.json"
        self.quick_actions_file = self.data_dir / "quick_actions.json"
        self.state_file = self.data_dir / "state.json"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.conversations_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {path}: {e}")
            return None

    def _write_json(self, path: Path, data: Any) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)
        logger.debug(f"Saved {path}")

    def load_vad_config(self) -> Optional[VadConfig]:
        data = self._read_json(self.vad_config_file)
        if data is None:
            return None
        try:
            return VadConfig.from_dict(data)
        except Exception as e:
            logger.error(f"Ignoring invalid stored VAD config: {e}")
            return None

    def save_vad_config(self, config: VadConfig) -> None:
        self._write_json(self.vad_config_file, config.to_dict())

    def load_quick_actions(self) -> Optional[List[QuickAction]]:
        data = self._read_json(self.quick_actions_file)
        if data is None:
            return None
        try:
            return [QuickAction.from_dict(item) for item in data]
        except (KeyError, TypeError) as e:
            logger.error(f"Ignoring invalid stored quick actions: {e}")
            return None

    def save_quick_actions(self, actions: List[QuickAction]) -> None:
        self._write_json(self.quick_actions_file, [a.to_dict() for a in actions])

    def load_state(self) -> Dict[str, Any]:
        return self._read_json(self.state_file) or {}

    def save_active_conversation_id(self, conversation_id: Optional[str]) -> None:
        state = self.load_state()
        state["active_conversation_id"] = conversation_id
        self._write_json(self.state_file, state)

    def save_conversation(self, conversation: Conversation) -> str:
        """Save a conversation and return the file path."""
        path = self.conversations_dir / f"{conversation.id}.json"
        self._write_json(path, conversation.to_dict())
        return str(path)

    def load_conversations(self) -> List[Conversation]:
        """Load all stored conversations ordered by creation time."""
        conversations = []
        for path in sorted(self.conversations_dir.glob("*.json")):
            data = self._read_json(path)
            if data is None:
                continue
            try:
                conversations.append(Conversation.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Skipping unreadable conversation {path.name}: {e}")
        conversations.sort(key=lambda c: c.created_at)
        logger.debug(f"Loaded {len(conversations)} conversations")
        return conversations
