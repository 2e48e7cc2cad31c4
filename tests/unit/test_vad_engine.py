"""Unit tests for VadEngine."""

import pytest

from talk2ai.capture.vad import VadEngine
from talk2ai.models.vad import VadConfig


@pytest.mark.unit
class TestVadEngine:
    """Test cases for silence accumulation."""

    def test_speech_frames_never_end_segment(self, make_frame):
        """Test speech frames never end segment."""
        vad = VadEngine()
        config = VadConfig(silence_threshold_db=-45, silence_duration_ms=300)

        for i in range(50):
            assert vad.process(make_frame(-20.0, i * 0.1), config) is False
        assert vad.silence_ms == 0

    def test_silence_reaches_duration(self, make_frame):
        """Test silence reaches duration."""
        vad = VadEngine()
        config = VadConfig(silence_threshold_db=-45, silence_duration_ms=300)

        assert vad.process(make_frame(-60.0, 0.0), config) is False
        assert vad.process(make_frame(-60.0, 0.1), config) is False
        assert vad.process(make_frame(-60.0, 0.2), config) is True

    def test_accumulator_resets_after_firing(self, make_frame):
        """Test accumulator resets after firing."""
        vad = VadEngine()
        config = VadConfig(silence_threshold_db=-45, silence_duration_ms=200)

        vad.process(make_frame(-60.0, 0.0), config)
        assert vad.process(make_frame(-60.0, 0.1), config) is True
        assert vad.silence_ms == 0
        assert vad.process(make_frame(-60.0, 0.2), config) is False

    def test_speech_resets_accumulator(self, make_frame):
        """Test speech resets accumulator."""
        vad = VadEngine()
        config = VadConfig(silence_threshold_db=-45, silence_duration_ms=300)

        vad.process(make_frame(-60.0, 0.0), config)
        vad.process(make_frame(-60.0, 0.1), config)
        assert vad.process(make_frame(-30.0, 0.2), config) is False
        assert vad.silence_ms == 0
        assert vad.process(make_frame(-60.0, 0.3), config) is False
        assert vad.process(make_frame(-60.0, 0.4), config) is False
        assert vad.process(make_frame(-60.0, 0.5), config) is True

    def test_level_equal_to_threshold_counts_as_speech(self, make_frame):
        """Test level equal to threshold counts as speech."""
        vad = VadEngine()
        config = VadConfig(silence_threshold_db=-45, silence_duration_ms=100)

        assert vad.process(make_frame(-45.0, 0.0), config) is False
        assert vad.silence_ms == 0

    def test_reset(self, make_frame):
        """Test reset."""
        vad = VadEngine()
        config = VadConfig(silence_threshold_db=-45, silence_duration_ms=300)
        vad.process(make_frame(-60.0, 0.0), config)

        vad.reset()

        assert vad.silence_ms == 0
