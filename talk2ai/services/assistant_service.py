"""Wires configuration, providers, storage and the capture pipeline together."""

import logging
from typing import Any, Callable, Optional

from pubsub import pub

from ..ai.base import AbstractAIBackend
from ..ai.http_backend import HttpAIBackend
from ..ai.responder import AIResponder
from ..audio.audio_pub import AudioPublisher, TOPIC_AUDIO_FRAME, TOPIC_AUDIO_ERROR
from ..capture.controller import CaptureController
from ..capture.timer import TimerTicker
from ..config import Talk2AIConfig
from ..conversation.store import ConversationStore
from ..errors import ValidationError
from ..models.audio import AudioFrame
from ..models.events import (
    AudioFrameReceived,
    DeviceError,
    ErrorAcknowledged,
    ManualStopAndSendRequested,
    StartCaptureRequested,
    StopCaptureRequested,
    TimerTick,
)
from ..providers.descriptor import ProviderKind
from ..providers.registry import ProviderRegistry
from ..quick_actions.manager import QuickActionManager
from ..storage.file_manager import FileManager
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.dispatcher import TranscriptionDispatcher
from ..transcription.http_backend import HttpTranscriptionBackend
from .segment_processor import SegmentProcessor

logger = logging.getLogger(__name__)


class AssistantService:
    """Builds the capture-and-converse pipeline from configuration.

    Audio sources publish frames on the `audio.frame` topic (see
    AudioPublisher); the service forwards them, together with timer ticks,
    to the controller's event entry point.
    """

    def __init__(self, config: Talk2AIConfig,
                 stt_backend: Optional[AbstractTranscriptionBackend] = None,
                 ai_backend: Optional[AbstractAIBackend] = None,
                 permission_granted: bool = True,
                 tick_interval_seconds: float = 1.0):
        """Initialize assistant service.

        Args:
            config: Application configuration
            stt_backend: Transcription backend; built from the configured provider when None
            ai_backend: AI backend; built from the configured provider when None
            permission_granted: Platform capture permission at startup
            tick_interval_seconds: Recording timer cadence
        """
        self.config = config
        self.file_manager = FileManager(config.get_data_directory())
        self.registry = ProviderRegistry()
        self._configure_providers()

        stt_backend = stt_backend or self._create_stt_backend()
        ai_backend = ai_backend or self._create_ai_backend()

        self.dispatcher = TranscriptionDispatcher(stt_backend)
        self.responder = AIResponder(ai_backend)

        self.store = ConversationStore(self.file_manager)
        self.store.load()

        self.quick_actions = QuickActionManager(self.responder, self.file_manager)
        self.quick_actions.load()

        vad_config = self.file_manager.load_vad_config() or config.get_vad_config()
        self.controller = CaptureController(
            vad_config=vad_config,
            dispatcher=self.dispatcher,
            responder=self.responder,
            store=self.store,
            quick_actions=self.quick_actions,
            permission_granted=permission_granted,
            system_prompt=config.get_system_prompt(),
            use_system_prompt=config.get('prompts.use_system_prompt', True),
            context_content=config.get('prompts.context', '') or '',
            sample_rate=config.get('audio.sample_rate', 16000),
            channels=config.get('audio.channels', 1),
            on_config_updated=self.file_manager.save_vad_config,
        )

        self.processor = SegmentProcessor(self.controller.process_segment)
        self.controller.segment_handler = self.processor.submit
        self.ticker = TimerTicker(self._on_tick, interval_seconds=tick_interval_seconds)
        self.publisher = AudioPublisher(TOPIC_AUDIO_FRAME, TOPIC_AUDIO_ERROR)
        self.audio_source: Optional[Any] = None
        self.is_running = False

        logger.info("AssistantService ready")

    def _configure_providers(self) -> None:
        for kind in ProviderKind:
            custom = self.config.get(f'providers.{kind.value}.custom', []) or []
            if custom:
                self.registry.load_entries(custom, kind)

    def _select(self, kind: ProviderKind):
        provider_id = self.config.get(f'providers.{kind.value}.provider')
        if not provider_id:
            return None
        variables = self.config.get(f'providers.{kind.value}.variables', {}) or {}
        return self.registry.select(kind, provider_id, variables)

    def _create_stt_backend(self) -> AbstractTranscriptionBackend:
        selection = self._select(ProviderKind.STT)
        if selection is None:
            raise ValidationError("No speech-to-text provider configured (providers.stt.provider)")
        return HttpTranscriptionBackend(
            selection,
            timeout_seconds=self.config.get('providers.stt.timeout_seconds', 60),
        )

    def _create_ai_backend(self) -> Optional[AbstractAIBackend]:
        selection = self._select(ProviderKind.AI)
        if selection is None:
            logger.warning("No AI provider configured, turns will be recorded without responses")
            return None
        return HttpAIBackend(
            selection,
            timeout_seconds=self.config.get('providers.ai.timeout_seconds', 60),
        )

    # ------------------------------------------------------------------

    def start(self, audio_source_factory: Optional[Callable[[AudioPublisher], Any]] = None) -> None:
        """Start the worker, the ticker and subscribe to audio topics.

        Args:
            audio_source_factory: Builds an object with start_recording() /
                stop_recording() that feeds the publisher
        """
        if self.is_running:
            return
        pub.subscribe(self._on_audio_frame, TOPIC_AUDIO_FRAME)
        pub.subscribe(self._on_device_error, TOPIC_AUDIO_ERROR)
        self.processor.start()
        self.ticker.start()
        if audio_source_factory:
            self.audio_source = audio_source_factory(self.publisher)
        self.is_running = True

    def start_capture(self):
        session = self.controller.handle_event(StartCaptureRequested())
        if session is not None and self.audio_source is not None and not getattr(self.audio_source, 'is_recording', False):
            self.audio_source.start_recording()
        return session

    def stop_capture(self):
        return self.controller.handle_event(StopCaptureRequested())

    def manual_stop_and_send(self):
        return self.controller.handle_event(ManualStopAndSendRequested())

    def acknowledge_error(self) -> None:
        self.controller.handle_event(ErrorAcknowledged())

    def start_new_conversation(self):
        return self.controller.start_new_conversation()

    def run_quick_action(self, action_id: str) -> bool:
        return self.processor.submit_task(f"quick_action:{action_id}", self.controller.run_quick_action, action_id)

    def wait_idle(self, timeout: float = 60.0) -> bool:
        return self.processor.wait_idle(timeout)

    def _on_audio_frame(self, frame: AudioFrame) -> None:
        self.controller.handle_event(AudioFrameReceived(frame=frame))

    def _on_device_error(self, message: str) -> None:
        self.controller.handle_event(DeviceError(message=message))

    def _on_tick(self, now: float) -> None:
        self.controller.handle_event(TimerTick(timestamp=now))

    def shutdown(self) -> None:
        """Stop audio, the ticker and drain pending processing."""
        logger.info("Shutting down AssistantService...")
        if self.audio_source is not None and getattr(self.audio_source, 'is_recording', True):
            self.audio_source.stop_recording()
        self.ticker.stop()
        self.processor.shutdown(timeout=30.0)
        if self.is_running:
            try:
                pub.unsubscribe(self._on_audio_frame, TOPIC_AUDIO_FRAME)
                pub.unsubscribe(self._on_device_error, TOPIC_AUDIO_ERROR)
            except Exception as e:
                logger.warning(f"Error during unsubscribe: {e}")
        self.is_running = False
        logger.info("AssistantService shut down")
