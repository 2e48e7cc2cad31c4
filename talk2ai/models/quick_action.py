"""Quick action data model."""

import uuid
from dataclasses import dataclass, field, asdict
from typing import Any, Dict


@dataclass(frozen=True)
class QuickAction:
    """A saved prompt template dispatchable without a fresh recording."""
    label: str
    prompt_template: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuickAction":
        return cls(id=data["id"], label=data["label"], prompt_template=data["prompt_template"])
