"""Integration tests for the capture-to-conversation pipeline."""

import time
from pathlib import Path

import pytest
from rich.console import Console

from talk2ai.audio.file_source import WavFileSource
from talk2ai.config import Talk2AIConfig
from talk2ai.models.audio import EndedReason
from talk2ai.models.session import CaptureState
from talk2ai.models.vad import CaptureMode
from talk2ai.services.assistant_service import AssistantService
from talk2ai.ui.commands import CommandHandler
from talk2ai.ui.console import ConversationConsole


@pytest.fixture
def service_factory(config_file, fake_stt, fake_ai):
    services = []

    def factory(stt_backend=None, ai_backend=None):
        config = Talk2AIConfig(config_file())
        service = AssistantService(config,
                                   stt_backend=stt_backend or fake_stt,
                                   ai_backend=ai_backend or fake_ai,
                                   tick_interval_seconds=0.05)
        services.append(service)
        service.start()
        return service

    yield factory
    for service in services:
        service.shutdown()


def wait_for(predicate, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


@pytest.mark.integration
class TestPipelineIntegration:
    """End-to-end tests for capture, transcription and response."""

    def test_speech_then_silence_produces_turn(self, service_factory, wav_file_factory, fake_stt, fake_ai):
        """Test speech then silence produces turn."""
        service = service_factory()
        wav_path = wav_file_factory([("sine", 2.0), ("silence", 1.5)])

        session = service.start_capture()
        source = WavFileSource(wav_path, service.publisher.publish_audio_frame)
        source.play(start_time=session.started_at)

        assert service.wait_idle(10.0)
        assert wait_for(lambda: service.controller.state is CaptureState.IDLE)

        segment = fake_stt.segments[0]
        assert segment.ended_reason is EndedReason.SILENCE
        assert segment.duration_secs == pytest.approx(2.8, abs=0.05)

        conversation = service.store.active_conversation
        assert [t.transcript for t in conversation.turns] == ["hello world"]
        assert conversation.turns[0].ai_response == "reply to: hello world"
        assert fake_ai.calls[0]["system_text"] == "Be brief."

        stored = Path(service.file_manager.conversations_dir) / f"{conversation.id}.json"
        assert stored.exists()

    def test_continuous_mode_manual_stop(self, service_factory, wav_file_factory, fake_stt):
        """Test continuous mode manual stop."""
        service = service_factory()
        controller = service.controller
        controller.update_vad_configuration(controller.vad_config.replace(mode=CaptureMode.CONTINUOUS))
        wav_path = wav_file_factory([("sine", 1.0), ("silence", 2.0)])

        session = service.start_capture()
        WavFileSource(wav_path, service.publisher.publish_audio_frame).play(start_time=session.started_at)
        assert controller.capturing

        segment = service.stop_capture()

        assert segment.ended_reason is EndedReason.MANUAL_STOP
        assert segment.duration_secs == pytest.approx(3.0, abs=0.05)
        assert service.wait_idle(10.0)
        assert len(service.store.active_conversation) == 1
        assert service.file_manager.load_vad_config().mode is CaptureMode.CONTINUOUS

    def test_transcription_failure_surfaces_error(self, service_factory, wav_file_factory, make_stt):
        """Test transcription failure surfaces error."""
        service = service_factory(stt_backend=make_stt(error=RuntimeError("HTTP 401 - bad key")))
        wav_path = wav_file_factory([("sine", 0.5)])

        service.start_capture()
        WavFileSource(wav_path, service.publisher.publish_audio_frame).play()
        service.stop_capture()
        assert service.wait_idle(10.0)

        assert wait_for(lambda: service.controller.state is CaptureState.ERROR)
        assert "bad key" in service.controller.error
        assert service.store.active_conversation is None

        service.controller.acknowledge_error()
        assert service.controller.state is CaptureState.IDLE

    def test_quick_action_runs_on_worker(self, service_factory, fake_ai):
        """Test quick action runs on worker."""
        service = service_factory()
        action = service.quick_actions.list()[0]

        service.run_quick_action(action.id)

        assert service.wait_idle(10.0)
        turn = service.store.active_conversation.turns[0]
        assert turn.transcript == action.prompt_template
        assert turn.ai_response.startswith("reply to:")

    def test_device_error_published_by_audio_source(self, service_factory):
        """Test device error published by audio source."""
        service = service_factory()
        service.start_capture()

        service.publisher.publish_device_error("Audio device error: unplugged")

        assert service.controller.state is CaptureState.ERROR
        assert service.controller.session is None

    def test_command_loop_drives_service(self, service_factory, fake_ai):
        """Test typed commands run a quick action, record a turn and recover from an error."""
        service = service_factory()
        console = ConversationConsole(Console(record=True, width=120))
        service.start_capture()
        service.publisher.publish_device_error("Audio device error: unplugged")
        lines = iter(["a", "q 1", "x", "never read"])

        CommandHandler(service, console, settle_seconds=10.0).run(input_func=lambda prompt: next(lines))

        assert service.controller.state is CaptureState.IDLE
        assert service.controller.error is None
        assert len(service.store.active_conversation) == 1
        assert len(fake_ai.calls) == 1
        assert "reply to:" in console.console.export_text()

    def test_timer_ceiling_without_audio_source(self, service_factory, make_frame):
        """Test timer ceiling without audio source."""
        service = service_factory()
        controller = service.controller
        controller.update_vad_configuration(controller.vad_config.replace(max_recording_duration_secs=0.3))

        session = service.start_capture()
        service.publisher.publish_audio_frame(make_frame(-20.0, session.started_at))

        assert wait_for(lambda: service.store.active_conversation is not None, timeout=5.0)
        assert service.wait_idle(10.0)
        assert len(service.store.active_conversation) == 1
        assert service.controller.state is CaptureState.IDLE
