"""Error taxonomy for the capture-and-converse pipeline."""

from typing import Optional


class Talk2AIError(Exception):
    """Base class for all talk2ai errors."""


class SetupRequiredError(Talk2AIError):
    """Platform capture permission is missing."""

    def __init__(self, message: str = "Audio capture permission is required"):
        super().__init__(message)


class CaptureDeviceError(Talk2AIError):
    """The audio device failed while a session was capturing."""


class BusyError(Talk2AIError):
    """A single-flight operation was requested while one is already running."""


class ProviderError(Talk2AIError):
    """A transcription or AI provider call failed.

    Args:
        provider_id: Identifier of the provider that failed
        message: Provider-supplied or transport error message
    """

    def __init__(self, provider_id: Optional[str], message: str):
        self.provider_id = provider_id or "unknown"
        self.message = message
        super().__init__(f"{self.provider_id}: {message}")


class DuplicateLabelError(Talk2AIError):
    """A quick action with the same label already exists."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Quick action label already exists: {label!r}")


class ValidationError(Talk2AIError):
    """Configuration or provider descriptor failed validation."""
