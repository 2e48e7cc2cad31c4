"""Capture orchestration: VAD, recording timer and the capture controller."""

from .vad import VadEngine
from .timer import RecordingTimer, TimerTicker
from .controller import CaptureController, TOPIC_STATE, TOPIC_PROGRESS

__all__ = [
    "VadEngine",
    "RecordingTimer",
    "TimerTicker",
    "CaptureController",
    "TOPIC_STATE",
    "TOPIC_PROGRESS",
]
