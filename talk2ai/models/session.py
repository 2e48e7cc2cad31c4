"""Capture session data models."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .audio import AudioFrame
from .vad import CaptureMode, VadConfig


class CaptureState(Enum):
    """States of the capture controller."""
    IDLE = "idle"
    SETUP_REQUIRED = "setup_required"
    CAPTURING = "capturing"
    PROCESSING = "processing"
    AI_PROCESSING = "ai_processing"
    ERROR = "error"


@dataclass
class CaptureSession:
    """One in-flight capture attempt, owned by the capture controller."""
    vad_config: VadConfig  # Snapshot taken at session start
    started_at: float
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    elapsed_secs: float = 0.0
    state: CaptureState = CaptureState.CAPTURING
    frames: List[AudioFrame] = field(default_factory=list)

    @property
    def mode(self) -> CaptureMode:
        return self.vad_config.mode

    @property
    def buffered_bytes(self) -> int:
        return sum(len(frame.data) for frame in self.frames)

    def audio_bytes(self) -> bytes:
        return b''.join(frame.data for frame in self.frames)
