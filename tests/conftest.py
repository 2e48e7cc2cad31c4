"""Pytest configuration and fixtures for talk2ai tests."""

import pytest
import tempfile
import logging
from pathlib import Path
from unittest.mock import Mock, patch
from typing import List, Optional
import numpy as np
import wave

from pubsub import pub

from talk2ai.ai.base import AbstractAIBackend
from talk2ai.models.audio import AudioFrame
from talk2ai.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services or hardware")
    config.addinivalue_line("markers", "integration: tests that run the threaded pipeline")
    config.addinivalue_line("markers", "hardware: tests that need a real audio input device")


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop listeners and topics between tests so message specs do not leak."""
    yield
    pub.unsubAll()
    pub.getDefaultTopicMgr().delTopic("capture")
    pub.getDefaultTopicMgr().delTopic("audio")
    pub.getDefaultTopicMgr().delTopic("conversation")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000, amplitude=0.5):
        """Generate audio data for testing.

        Args:
            pattern: Type of audio pattern ('sine', 'noise', 'silence')
            duration_seconds: Duration of audio
            sample_rate: Sample rate in Hz
            amplitude: Peak amplitude relative to full scale

        Returns:
            bytes: Audio data as bytes
        """
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.linspace(0, duration_seconds, samples, False)
            wave_data = np.sin(2 * np.pi * 440 * t)
        elif pattern == "noise":
            wave_data = np.random.uniform(-1, 1, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        audio_data = (wave_data * amplitude * 32767).astype(np.int16)
        return audio_data.tobytes()

    return generate_audio


@pytest.fixture
def make_frame():
    """Build 100ms frames with a given level, timestamped back to back."""
    def factory(level_db: float, timestamp: float, duration_ms: float = 100.0) -> AudioFrame:
        samples = int(16000 * duration_ms / 1000.0)
        return AudioFrame(
            data=b'\x01\x00' * samples,
            timestamp=timestamp,
            duration_ms=duration_ms,
            level_db=level_db,
        )
    return factory


@pytest.fixture
def wav_file_factory(temp_data_dir, audio_test_data):
    """Write a WAV file from a list of (pattern, seconds) parts."""
    def factory(parts, name="test_audio.wav", sample_rate=16000):
        file_path = Path(temp_data_dir) / name
        with wave.open(str(file_path), 'wb') as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)
            wf.setframerate(sample_rate)
            for pattern, seconds in parts:
                wf.writeframes(audio_test_data(pattern, seconds, sample_rate))
        return str(file_path)
    return factory


class FakeTranscriptionBackend(AbstractTranscriptionBackend):
    """Returns canned transcripts and records the segments it saw."""

    def __init__(self, transcripts: Optional[List[str]] = None, error: Optional[Exception] = None):
        super().__init__("fake-stt")
        self.transcripts = list(transcripts or ["hello world"])
        self.error = error
        self.segments = []

    async def transcribe(self, segment):
        self.segments.append(segment)
        if self.error:
            raise self.error
        if len(self.transcripts) > 1:
            return self.transcripts.pop(0)
        return self.transcripts[0]


class FakeAIBackend(AbstractAIBackend):
    """Echoes the user text and records every request."""

    def __init__(self, response: Optional[str] = None, error: Optional[Exception] = None):
        super().__init__("fake-ai")
        self.response = response
        self.error = error
        self.calls = []

    async def generate(self, system_text, user_text, history):
        self.calls.append({"system_text": system_text, "user_text": user_text, "history": list(history)})
        if self.error:
            raise self.error
        return self.response if self.response is not None else f"reply to: {user_text}"


@pytest.fixture
def fake_stt():
    return FakeTranscriptionBackend()


@pytest.fixture
def fake_ai():
    return FakeAIBackend()


@pytest.fixture
def config_file(temp_data_dir):
    """Write a minimal configuration file and return its path."""
    def factory(extra: str = ""):
        path = Path(temp_data_dir) / "talk2ai.yaml"
        path.write_text(
            "audio:\n"
            "  sample_rate: 16000\n"
            "  chunk_size: 1600\n"
            "  channels: 1\n"
            "vad:\n"
            "  mode: vad\n"
            "  silence_threshold_db: -45\n"
            "  silence_duration_ms: 800\n"
            "  max_recording_duration_secs: 30\n"
            "prompts:\n"
            "  system_prompt: Be brief.\n"
            "providers:\n"
            "  stt:\n"
            "    provider: openai-whisper\n"
            "    variables:\n"
            "      API_KEY: test-key\n"
            "storage:\n"
            "  data_directory: data\n"
            "logging:\n"
            "  file_path: data/logs/talk2ai.log\n"
            + extra,
            encoding="utf-8",
        )
        return str(path)
    return factory


@pytest.fixture
def make_stt():
    return FakeTranscriptionBackend


@pytest.fixture
def make_ai():
    return FakeAIBackend


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 3200  # 100ms of silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
