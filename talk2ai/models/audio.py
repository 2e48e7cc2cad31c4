"""Audio-related data models."""

import io
import wave
from dataclasses import dataclass
from enum import Enum

from ..audio.levels import rms_dbfs

BYTES_PER_SAMPLE = 2  # 16-bit audio


class EndedReason(Enum):
    """Why a capture segment was finalized."""
    SILENCE = "silence"
    MAX_DURATION = "maxDuration"
    MANUAL_STOP = "manualStop"


@dataclass
class AudioFrame:
    """A single timestamped chunk of PCM audio with its signal level."""
    data: bytes
    timestamp: float  # Time when this frame was captured (seconds)
    duration_ms: float
    level_db: float
    sequence_number: int = 0

    @property
    def end_time(self) -> float:
        return self.timestamp + self.duration_ms / 1000.0

    @classmethod
    def from_pcm(cls, data: bytes, timestamp: float, sample_rate: int = 16000,
                 channels: int = 1, sequence_number: int = 0) -> "AudioFrame":
        """Build a frame from raw 16-bit PCM, deriving duration and level."""
        bytes_per_second = sample_rate * channels * BYTES_PER_SAMPLE
        duration_ms = len(data) / bytes_per_second * 1000.0
        return cls(
            data=data,
            timestamp=timestamp,
            duration_ms=duration_ms,
            level_db=rms_dbfs(data),
            sequence_number=sequence_number,
        )


@dataclass
class AudioSegment:
    """A finalized span of captured audio, consumed once by transcription."""
    session_id: str
    audio_data: bytes
    duration_secs: float
    ended_reason: EndedReason
    sample_rate: int = 16000
    channels: int = 1

    def to_wav_bytes(self) -> bytes:
        """Wrap the raw PCM in a WAV container."""
        buffer = io.BytesIO()
        with wave.open(buffer, 'wb') as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(BYTES_PER_SAMPLE)
            wf.setframerate(self.sample_rate)
            wf.writeframes(self.audio_data)
        return buffer.getvalue()
