"""Typed inbound events delivered to the capture controller."""

from dataclasses import dataclass
from typing import Optional

from .audio import AudioFrame
from .vad import VadConfig


@dataclass
class ControllerEvent:
    """Base class for controller events."""


@dataclass
class StartCaptureRequested(ControllerEvent):
    timestamp: Optional[float] = None


@dataclass
class StopCaptureRequested(ControllerEvent):
    pass


@dataclass
class ManualStopAndSendRequested(ControllerEvent):
    pass


@dataclass
class AudioFrameReceived(ControllerEvent):
    frame: AudioFrame


@dataclass
class TimerTick(ControllerEvent):
    timestamp: float = 0.0


@dataclass
class PermissionChanged(ControllerEvent):
    granted: bool = True


@dataclass
class DeviceError(ControllerEvent):
    message: str = "Audio device error"


@dataclass
class VisibilityToggled(ControllerEvent):
    visible: bool = True


@dataclass
class ErrorAcknowledged(ControllerEvent):
    pass


@dataclass
class VadConfigUpdated(ControllerEvent):
    config: VadConfig
