"""Conversation data models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ConversationTurn:
    """A transcript and the AI response it produced. Immutable once created."""
    transcript: str
    ai_response: Optional[str] = None
    context_used: Optional[str] = None
    system_prompt_used: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "transcript": self.transcript,
            "ai_response": self.ai_response,
            "context_used": self.context_used,
            "system_prompt_used": self.system_prompt_used,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationTurn":
        return cls(
            id=data["id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            transcript=data.get("transcript", ""),
            ai_response=data.get("ai_response"),
            context_used=data.get("context_used"),
            system_prompt_used=data.get("system_prompt_used"),
        )


@dataclass
class Conversation:
    """Ordered, append-only log of turns.

    Turns are appended only by the ConversationStore; `turns` exposes a
    read-only tuple.
    """
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)
    _turns: List[ConversationTurn] = field(default_factory=list, repr=False)

    @property
    def turns(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    @property
    def title(self) -> str:
        """First transcript line, used when listing history."""
        for turn in self._turns:
            if turn.transcript:
                return turn.transcript.strip().splitlines()[0][:60]
        return "New conversation"

    def __len__(self) -> int:
        return len(self._turns)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "turns": [turn.to_dict() for turn in self._turns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Conversation":
        return cls(
            id=data["id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            _turns=[ConversationTurn.from_dict(t) for t in data.get("turns", [])],
        )
