"""Voice activity detection configuration."""

from dataclasses import dataclass, asdict, replace as dataclass_replace
from enum import Enum
from typing import Any, Dict

from ..errors import ValidationError


class CaptureMode(Enum):
    """How a capture segment is ended automatically."""
    VAD = "vad"
    CONTINUOUS = "continuous"


@dataclass(frozen=True)
class VadConfig:
    """Capture policy shared by the VAD engine, timer and controller.

    Instances are immutable; updates produce a new validated instance.
    """
    silence_threshold_db: float = -45.0
    silence_duration_ms: float = 1000.0
    max_recording_duration_secs: float = 180.0
    mode: CaptureMode = CaptureMode.VAD

    def __post_init__(self):
        if isinstance(self.mode, str):
            try:
                object.__setattr__(self, 'mode', CaptureMode(self.mode))
            except ValueError:
                raise ValidationError(f"Unknown capture mode: {self.mode!r}")
        self.validate()

    def validate(self) -> None:
        """Raise ValidationError if the configuration is unusable."""
        if self.max_recording_duration_secs <= 0:
            raise ValidationError("max_recording_duration_secs must be greater than 0")
        if self.mode is CaptureMode.VAD and self.silence_duration_ms <= 0:
            raise ValidationError("silence_duration_ms must be greater than 0 in vad mode")

    @property
    def is_continuous(self) -> bool:
        return self.mode is CaptureMode.CONTINUOUS

    def replace(self, **changes: Any) -> "VadConfig":
        """Return a validated copy with the given fields changed."""
        return dataclass_replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['mode'] = self.mode.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VadConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
