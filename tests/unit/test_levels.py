"""Unit tests for signal level helpers and audio models."""

import io
import wave

import numpy as np
import pytest

from talk2ai.audio.levels import rms_dbfs, SILENCE_FLOOR_DB
from talk2ai.models.audio import AudioFrame, AudioSegment, EndedReason


@pytest.mark.unit
class TestRmsDbfs:
    """Test cases for rms_dbfs."""

    def test_empty_and_silent_input_hit_floor(self, audio_test_data):
        """Test empty and silent input hit floor."""
        assert rms_dbfs(b'') == SILENCE_FLOOR_DB
        assert rms_dbfs(audio_test_data("silence", 0.1)) == SILENCE_FLOOR_DB

    def test_full_scale_square_wave_is_zero_db(self):
        """Test full scale square wave is zero dB."""
        samples = np.array([32767, -32767] * 800, dtype=np.int16)
        assert rms_dbfs(samples.tobytes()) == pytest.approx(0.0, abs=0.01)

    def test_half_amplitude_sine(self, audio_test_data):
        """Test half amplitude sine."""
        # Sine RMS is peak / sqrt(2): 20*log10(0.5 / sqrt(2)) is about -9 dB
        level = rms_dbfs(audio_test_data("sine", 1.0, amplitude=0.5))
        assert level == pytest.approx(-9.03, abs=0.1)

    def test_quiet_signal_below_default_threshold(self, audio_test_data):
        """Test quiet signal below default threshold."""
        assert rms_dbfs(audio_test_data("sine", 0.1, amplitude=0.001)) < -45


@pytest.mark.unit
class TestAudioModels:
    """Test cases for audio frames and segments."""

    def test_frame_from_pcm_derives_duration_and_level(self, audio_test_data):
        """Test frame from PCM derives duration and level."""
        data = audio_test_data("sine", 0.1)
        frame = AudioFrame.from_pcm(data, timestamp=5.0)

        assert frame.duration_ms == pytest.approx(100.0)
        assert frame.end_time == pytest.approx(5.1)
        assert frame.level_db > -45

    def test_segment_wav_bytes(self, audio_test_data):
        """Test segment WAV bytes."""
        data = audio_test_data("sine", 0.5)
        segment = AudioSegment(session_id="s1", audio_data=data, duration_secs=0.5,
                               ended_reason=EndedReason.SILENCE)

        with wave.open(io.BytesIO(segment.to_wav_bytes()), 'rb') as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 16000
            assert wf.readframes(wf.getnframes()) == data

    def test_ended_reason_values(self):
        """Test ended reason values."""
        assert EndedReason.SILENCE.value == "silence"
        assert EndedReason.MAX_DURATION.value == "maxDuration"
        assert EndedReason.MANUAL_STOP.value == "manualStop"
