"""Audio sources and signal helpers.

`capture.AudioCapture` needs PyAudio and is imported explicitly by callers
that use a real device.
"""

from .levels import rms_dbfs, SILENCE_FLOOR_DB

__all__ = [
    "rms_dbfs",
    "SILENCE_FLOOR_DB",
]
