"""Data models for the talk2ai application."""

from .audio import AudioFrame, AudioSegment, EndedReason
from .vad import CaptureMode, VadConfig
from .session import CaptureSession, CaptureState
from .conversation import Conversation, ConversationTurn
from .quick_action import QuickAction
from .events import (
    ControllerEvent,
    StartCaptureRequested,
    StopCaptureRequested,
    ManualStopAndSendRequested,
    AudioFrameReceived,
    TimerTick,
    PermissionChanged,
    DeviceError,
    VisibilityToggled,
    ErrorAcknowledged,
    VadConfigUpdated,
)

__all__ = [
    "AudioFrame",
    "AudioSegment",
    "EndedReason",
    "CaptureMode",
    "VadConfig",
    "CaptureSession",
    "CaptureState",
    "Conversation",
    "ConversationTurn",
    "QuickAction",
    # Controller events
    "ControllerEvent",
    "StartCaptureRequested",
    "StopCaptureRequested",
    "ManualStopAndSendRequested",
    "AudioFrameReceived",
    "TimerTick",
    "PermissionChanged",
    "DeviceError",
    "VisibilityToggled",
    "ErrorAcknowledged",
    "VadConfigUpdated",
]
