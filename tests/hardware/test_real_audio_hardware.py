"""Real hardware tests for audio capture.

These tests require an input device (microphone) and verify that frames
from a real device flow through the level meter and into a capture session.

Run with: TALK2AI_HARDWARE_TESTS=1 pytest tests/hardware/ -v -s -m hardware
"""

import os
import time

import pytest

pyaudio = pytest.importorskip("pyaudio")

from talk2ai.ai.responder import AIResponder  # noqa: E402
from talk2ai.audio.capture import AudioCapture  # noqa: E402
from talk2ai.capture.controller import CaptureController  # noqa: E402
from talk2ai.conversation.store import ConversationStore  # noqa: E402
from talk2ai.models.audio import EndedReason  # noqa: E402
from talk2ai.models.vad import CaptureMode, VadConfig  # noqa: E402
from talk2ai.transcription.dispatcher import TranscriptionDispatcher  # noqa: E402

pytestmark = pytest.mark.skipif(not os.environ.get("TALK2AI_HARDWARE_TESTS"),
                                reason="set TALK2AI_HARDWARE_TESTS=1 to use the real microphone")


@pytest.mark.hardware
class TestRealAudioHardware:
    """Tests that require real audio hardware to run."""

    def test_real_microphone_frames(self):
        """Record 3 seconds and check frame cadence and levels."""
        print("\n" + "="*60)
        print("HARDWARE TEST: 3-second microphone capture")
        print("="*60)

        frames = []
        errors = []
        capture = AudioCapture(callback=frames.append, error_callback=errors.append,
                               sample_rate=16000, chunk_size=1600, channels=1)
        capture.start_recording()
        time.sleep(3.0)
        capture.stop_recording()

        levels = [f.level_db for f in frames]
        print(f"Frames: {len(frames)}, level range: {min(levels):.1f} .. {max(levels):.1f} dBFS")

        assert errors == []
        assert 25 <= len(frames) <= 35
        assert all(f.duration_ms == pytest.approx(100.0) for f in frames)
        assert all(-100.0 <= level <= 0.0 for level in levels)

    def test_real_microphone_continuous_session(self, fake_stt, fake_ai):
        """Feed real frames into a continuous session and stop it manually."""
        segments = []
        controller = CaptureController(
            vad_config=VadConfig(mode=CaptureMode.CONTINUOUS, max_recording_duration_secs=10),
            dispatcher=TranscriptionDispatcher(fake_stt),
            responder=AIResponder(fake_ai),
            store=ConversationStore(),
            segment_handler=segments.append,
        )
        capture = AudioCapture(callback=controller.on_audio_frame, error_callback=controller.on_device_error,
                               chunk_size=1600)

        controller.start_capture()
        capture.start_recording()
        time.sleep(2.0)
        segment = controller.stop_capture()
        capture.stop_recording()

        print(f"Segment: {segment.duration_secs:.2f}s, {len(segment.audio_data)} bytes")
        assert segment.ended_reason is EndedReason.MANUAL_STOP
        assert 1.5 <= segment.duration_secs <= 2.5
        assert segments == [segment]
