"""Capture orchestration state machine.

The controller decides when capture starts and stops, how a segment is
finalized (silence, hard timer or manual stop) and hands each finalized
segment to transcription and then to the AI step. Inbound platform signals
arrive as typed events through `handle_event`, which is serialized by a
lock so that audio frames, timer ticks and user requests are processed in
order.

State flow::

    IDLE -> SETUP_REQUIRED -> IDLE            (permission flow)
    IDLE -> CAPTURING -> PROCESSING -> [AI_PROCESSING] -> IDLE
    any  -> ERROR -> IDLE                     (on acknowledgment)
    ERROR -> SETUP_REQUIRED                   (acknowledged without permission)
"""

import time
import logging
import threading
from typing import Callable, List, Optional

from pubsub import pub

from ..ai.responder import AIResponder
from ..conversation.store import ConversationStore
from ..errors import BusyError, CaptureDeviceError, ProviderError, SetupRequiredError, Talk2AIError
from ..models.audio import AudioFrame, AudioSegment, EndedReason
from ..models.conversation import Conversation, ConversationTurn
from ..models.events import (
    ControllerEvent,
    StartCaptureRequested,
    StopCaptureRequested,
    ManualStopAndSendRequested,
    AudioFrameReceived,
    TimerTick,
    PermissionChanged,
    DeviceError,
    VisibilityToggled,
    ErrorAcknowledged,
    VadConfigUpdated,
)
from ..models.session import CaptureSession, CaptureState
from ..models.vad import CaptureMode, VadConfig
from ..quick_actions.manager import QuickActionManager
from ..transcription.dispatcher import TranscriptionDispatcher
from .timer import RecordingTimer
from .vad import VadEngine

logger = logging.getLogger(__name__)

TOPIC_STATE = "capture.state"
TOPIC_PROGRESS = "capture.progress"

SETUP_REQUIRED_MESSAGE = "Audio capture permission is required"


class CaptureController:
    """Owns the active capture session and drives it through its states."""

    def __init__(self,
                 vad_config: VadConfig,
                 dispatcher: TranscriptionDispatcher,
                 responder: AIResponder,
                 store: ConversationStore,
                 quick_actions: Optional[QuickActionManager] = None,
                 segment_handler: Optional[Callable[[AudioSegment], Optional[bool]]] = None,
                 permission_granted: bool = True,
                 system_prompt: Optional[str] = None,
                 use_system_prompt: bool = True,
                 context_content: str = "",
                 sample_rate: int = 16000,
                 channels: int = 1,
                 clock: Callable[[], float] = time.time,
                 on_config_updated: Optional[Callable[[VadConfig], None]] = None):
        """Initialize capture controller.

        Args:
            vad_config: Initial capture policy
            dispatcher: Single-flight transcription dispatcher
            responder: AI response step
            store: Conversation store receiving finished turns
            quick_actions: Quick action registry, if quick actions are used
            segment_handler: Receives finalized segments for asynchronous
                processing (normally SegmentProcessor.submit); returning
                False means the segment was rejected
            permission_granted: Platform capture permission at startup
            system_prompt: System prompt used when use_system_prompt is set
            use_system_prompt: Whether the system prompt accompanies transcripts
            context_content: Free-text context sent with transcripts
            sample_rate: Sample rate of incoming frames
            channels: Channel count of incoming frames
            clock: Time source for session start timestamps
            on_config_updated: Called with each accepted VAD config update
        """
        self.vad_config = vad_config
        self.dispatcher = dispatcher
        self.responder = responder
        self.store = store
        self.quick_actions = quick_actions
        self.segment_handler = segment_handler
        self.permission_granted = permission_granted
        self.system_prompt = system_prompt
        self.use_system_prompt = use_system_prompt
        self.context_content = context_content
        self.sample_rate = sample_rate
        self.channels = channels
        self.clock = clock
        self.on_config_updated = on_config_updated

        self.state = CaptureState.IDLE
        self.error: Optional[str] = None
        self.setup_required = False
        self.session: Optional[CaptureSession] = None
        self.last_transcription: Optional[str] = None
        self.last_ai_response: Optional[str] = None

        self.vad = VadEngine()
        self.timer: Optional[RecordingTimer] = None
        self._quick_action_in_flight = False
        self._lock = threading.RLock()

        self._handlers = {
            StartCaptureRequested: lambda e: self.start_capture(e.timestamp),
            StopCaptureRequested: lambda e: self.stop_capture(),
            ManualStopAndSendRequested: lambda e: self.manual_stop_and_send(),
            AudioFrameReceived: lambda e: self.on_audio_frame(e.frame),
            TimerTick: lambda e: self.on_timer_tick(e.timestamp),
            PermissionChanged: lambda e: self.on_permission_changed(e.granted),
            DeviceError: lambda e: self.on_device_error(e.message),
            VisibilityToggled: lambda e: self.on_visibility_toggled(e.visible),
            ErrorAcknowledged: lambda e: self.acknowledge_error(),
            VadConfigUpdated: lambda e: self.update_vad_configuration(e.config),
        }

    # ------------------------------------------------------------------
    # Observable state

    @property
    def capturing(self) -> bool:
        return self.state is CaptureState.CAPTURING

    @property
    def is_processing(self) -> bool:
        return self.state is CaptureState.PROCESSING

    @property
    def is_ai_processing(self) -> bool:
        return self.state is CaptureState.AI_PROCESSING

    @property
    def is_continuous_mode(self) -> bool:
        with self._lock:
            if self.session is not None:
                return self.session.mode is CaptureMode.CONTINUOUS
            return self.vad_config.is_continuous

    @property
    def recording_progress(self) -> int:
        """Whole seconds recorded in the current session."""
        with self._lock:
            return self.timer.progress if (self.timer and self.session) else 0

    # ------------------------------------------------------------------
    # Event entry point

    def handle_event(self, event: ControllerEvent):
        """Process one inbound event.

        Raises:
            TypeError: Unknown event type
            SetupRequiredError: A start request arrived without capture permission
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported controller event: {type(event).__name__}")
        return handler(event)

    # ------------------------------------------------------------------
    # Capture lifecycle

    def start_capture(self, timestamp: Optional[float] = None) -> Optional[CaptureSession]:
        """Start a capture session.

        A call while already capturing is a no-op that returns the active
        session. Calls while a segment is being processed are refused.

        Raises:
            SetupRequiredError: Capture permission is missing
        """
        with self._lock:
            if self.state is CaptureState.CAPTURING:
                logger.debug("Capture already in progress, ignoring start request")
                return self.session

            if self.state in (CaptureState.PROCESSING, CaptureState.AI_PROCESSING):
                logger.warning(f"Cannot start capture while {self.state.value}")
                return None

            if not self.permission_granted:
                self.state = CaptureState.SETUP_REQUIRED
                self.setup_required = True
                self.error = SETUP_REQUIRED_MESSAGE
                logger.warning("Capture permission missing, setup required")
                setup_error = SetupRequiredError(SETUP_REQUIRED_MESSAGE)
            else:
                setup_error = None
                if self.state is CaptureState.ERROR:
                    logger.info(f"Clearing previous error on new capture: {self.error}")
                self.error = None
                self.setup_required = False

                snapshot = self.vad_config
                started_at = timestamp if timestamp is not None else self.clock()
                self.session = CaptureSession(vad_config=snapshot, started_at=started_at)
                self.vad.reset()
                self.timer = RecordingTimer(snapshot.max_recording_duration_secs)
                self.timer.start(started_at)
                self.state = CaptureState.CAPTURING
                session = self.session
                logger.info(f"Capture session {session.id} started (mode={snapshot.mode.value}, "
                            f"max={snapshot.max_recording_duration_secs}s)")

        self._publish_state()
        if setup_error is not None:
            raise setup_error
        return session

    def stop_capture(self) -> Optional[AudioSegment]:
        """Finalize the current buffer as a manually stopped segment.

        Returns:
            The finalized segment, or None when not capturing or nothing was buffered
        """
        with self._lock:
            if self.state is not CaptureState.CAPTURING:
                logger.warning(f"Stop requested while {self.state.value}, ignoring")
                return None
            segment = self._finalize(EndedReason.MANUAL_STOP)

        self._after_finalize(segment)
        return segment

    def manual_stop_and_send(self) -> Optional[AudioSegment]:
        """Flush a continuous recording before the hard cap."""
        if not self.is_continuous_mode:
            logger.debug("Manual stop-and-send outside continuous mode, treating as stop")
        return self.stop_capture()

    def on_audio_frame(self, frame: AudioFrame) -> Optional[AudioSegment]:
        """Buffer one audio frame and apply the timer and VAD policies."""
        segment = None
        progress_changed = False
        with self._lock:
            session = self.session
            if self.state is not CaptureState.CAPTURING or session is None:
                return None

            session.frames.append(frame)
            previous_progress = self.timer.progress
            max_reached = self.timer.advance(frame.end_time)
            session.elapsed_secs = self.timer.elapsed_secs
            progress_changed = self.timer.progress != previous_progress

            # The timer is the hard ceiling and wins over VAD
            if max_reached:
                segment = self._finalize(EndedReason.MAX_DURATION)
            elif session.mode is CaptureMode.VAD and self.vad.process(frame, session.vad_config):
                segment = self._finalize(EndedReason.SILENCE)
            else:
                if progress_changed:
                    self._publish_progress()
                return None

        self._after_finalize(segment)
        return segment

    def on_timer_tick(self, now: float) -> Optional[AudioSegment]:
        """Advance the recording timer without audio."""
        with self._lock:
            if self.state is not CaptureState.CAPTURING or self.session is None:
                return None
            previous_progress = self.timer.progress
            max_reached = self.timer.advance(now)
            self.session.elapsed_secs = self.timer.elapsed_secs
            if not max_reached:
                if self.timer.progress != previous_progress:
                    self._publish_progress()
                return None
            segment = self._finalize(EndedReason.MAX_DURATION)

        self._after_finalize(segment)
        return segment

    def _finalize(self, reason: EndedReason) -> Optional[AudioSegment]:
        """Close the active session. Must be called with the lock held."""
        session = self.session
        self.session = None
        self.vad.reset()

        if session.buffered_bytes == 0:
            logger.info(f"Capture session {session.id} ended ({reason.value}) with no audio, discarded")
            self.state = CaptureState.IDLE
            return None

        segment = AudioSegment(
            session_id=session.id,
            audio_data=session.audio_bytes(),
            duration_secs=self.timer.elapsed_secs,
            ended_reason=reason,
            sample_rate=self.sample_rate,
            channels=self.channels,
        )
        self.state = CaptureState.PROCESSING
        logger.info(f"Capture session {session.id} finalized: {reason.value}, "
                    f"{segment.duration_secs:.2f}s, {len(segment.audio_data)} bytes")
        return segment

    def _after_finalize(self, segment: Optional[AudioSegment]) -> None:
        self._publish_state()
        if segment is None:
            return
        if self.segment_handler is None:
            logger.warning(f"No segment handler configured, segment {segment.session_id} "
                           f"awaits process_segment")
            return
        if self.segment_handler(segment) is False:
            logger.error(f"Segment {segment.session_id} was not accepted for processing, discarded")
            self._enter_error("Recording was discarded because processing is shutting down")

    # ------------------------------------------------------------------
    # Host signals

    def on_permission_changed(self, granted: bool) -> None:
        """Apply a platform permission grant or deny.

        A deny while idle routes straight to SETUP_REQUIRED. A deny while
        capturing discards the session; the error stays flagged as
        setup-required until permission returns.
        """
        with self._lock:
            self.permission_granted = granted
            if granted:
                if self.state is CaptureState.SETUP_REQUIRED:
                    self.state = CaptureState.IDLE
                    self.error = None
                    logger.info("Capture permission granted, setup complete")
                elif not self.setup_required:
                    logger.info("Capture permission granted")
                    return
                self.setup_required = False
            elif self.state is CaptureState.CAPTURING:
                self._fail_capture(SetupRequiredError("Audio capture permission was revoked"))
                self.setup_required = True
            elif self.state is CaptureState.IDLE:
                self.state = CaptureState.SETUP_REQUIRED
                self.setup_required = True
                self.error = SETUP_REQUIRED_MESSAGE
                logger.warning("Capture permission denied, setup required")
            elif self.state is CaptureState.ERROR:
                self.setup_required = True
                logger.warning("Capture permission denied while an error is pending")
            else:
                logger.info(f"Capture permission denied while {self.state.value}")
                return
        self._publish_state()

    def on_device_error(self, message: str) -> None:
        """Abort the active session after an audio device failure. No retry is attempted."""
        error = CaptureDeviceError(message)
        with self._lock:
            if self.state in (CaptureState.PROCESSING, CaptureState.AI_PROCESSING,
                              CaptureState.SETUP_REQUIRED):
                logger.warning(f"Audio device error while {self.state.value}: {message}")
                return
            if self.state is CaptureState.CAPTURING:
                self._fail_capture(error)
            else:
                self.state = CaptureState.ERROR
                self.error = str(error)
                logger.error(f"Audio device error: {message}")
        self._publish_state()

    def _fail_capture(self, error: Talk2AIError) -> None:
        """Discard the active session and enter ERROR. Lock must be held."""
        session = self.session
        self.session = None
        self.vad.reset()
        self.state = CaptureState.ERROR
        self.error = str(error)
        logger.error(f"Capture session {session.id if session else '-'} aborted: {error} "
                     f"({session.buffered_bytes if session else 0} bytes discarded)")

    def on_visibility_toggled(self, visible: bool) -> None:
        """Window visibility never affects capture."""
        logger.debug(f"Window visibility toggled (visible={visible}), capture state {self.state.value} unchanged")

    def acknowledge_error(self) -> None:
        """Clear the error; without permission the controller returns to SETUP_REQUIRED."""
        with self._lock:
            if self.state is CaptureState.SETUP_REQUIRED:
                return
            if self.state is CaptureState.ERROR:
                logger.info(f"Error acknowledged: {self.error}")
                self.state = CaptureState.IDLE
            if self.permission_granted:
                self.setup_required = False
                self.error = None
            elif self.state is CaptureState.IDLE:
                self.state = CaptureState.SETUP_REQUIRED
                self.setup_required = True
                self.error = SETUP_REQUIRED_MESSAGE
                logger.warning("Capture permission still missing, setup required")
            else:
                self.error = None
        self._publish_state()

    def update_vad_configuration(self, config: VadConfig) -> VadConfig:
        """Replace the capture policy; an active session keeps its snapshot."""
        config.validate()
        with self._lock:
            self.vad_config = config
            if self.session is not None:
                logger.info("VAD configuration updated, applies from the next session")
            else:
                logger.info(f"VAD configuration updated: {config.to_dict()}")
        if self.on_config_updated:
            self.on_config_updated(config)
        return config

    # ------------------------------------------------------------------
    # Segment processing

    async def process_segment(self, segment: AudioSegment) -> Optional[ConversationTurn]:
        """Transcribe a finalized segment, get an AI response and record the turn.

        A failed transcription records no turn and leaves the controller in
        ERROR. A failed AI response still records the transcript; the
        error is surfaced without failing the turn.

        Returns:
            The appended turn, or None when nothing was recorded
        """
        try:
            try:
                transcript = await self.dispatcher.dispatch(segment)
            except (ProviderError, BusyError) as e:
                logger.error(f"Transcription of segment {segment.session_id} failed: {e}")
                self._enter_error(str(e))
                return None

            with self._lock:
                self.last_transcription = transcript
                self.last_ai_response = None
                if not transcript:
                    logger.info(f"Segment {segment.session_id}: nothing understood")
                    self.state = CaptureState.IDLE
                    idle = True
                else:
                    self.state = CaptureState.AI_PROCESSING
                    idle = False
            self._publish_state()
            if idle:
                return None

            turn = await self._respond_and_record(transcript)
            with self._lock:
                self.state = CaptureState.IDLE
            self._publish_state()
            return turn
        except Talk2AIError:
            raise
        except Exception as e:
            logger.error(f"Unexpected failure processing segment {segment.session_id}: {e}", exc_info=True)
            self._enter_error(str(e))
            raise

    async def _respond_and_record(self, transcript: str) -> ConversationTurn:
        system_prompt = self.system_prompt if (self.use_system_prompt and self.system_prompt) else None
        context = self.context_content.strip() if self.context_content and self.context_content.strip() else None

        ai_response = None
        try:
            ai_response = await self.responder.respond(
                transcript,
                system_prompt=system_prompt,
                context=context,
                history=self._history(),
            )
        except ProviderError as e:
            logger.warning(f"AI response failed, keeping transcript: {e}")
            with self._lock:
                self.error = str(e)

        turn = ConversationTurn(
            transcript=transcript,
            ai_response=ai_response,
            context_used=context,
            system_prompt_used=system_prompt,
        )
        self.store.append_turn(turn)
        with self._lock:
            self.last_ai_response = ai_response
        return turn

    async def run_quick_action(self, action_id: str) -> Optional[ConversationTurn]:
        """Send a quick action to the AI step without capturing audio.

        Allowed while idle or capturing; a capture in progress is not
        disturbed. A prompt that renders blank is refused: no AI call is
        made, no turn is recorded and `error` is set.

        Returns:
            The appended turn, or None when the prompt was blank

        Raises:
            BusyError: A segment or another quick action is being processed
            KeyError: Unknown quick action
        """
        if self.quick_actions is None:
            raise KeyError(f"Unknown quick action: {action_id}")

        action = self.quick_actions.get(action_id)
        if action is None:
            raise KeyError(f"Unknown quick action: {action_id}")

        with self._lock:
            if self._quick_action_in_flight or self.state in (CaptureState.PROCESSING, CaptureState.AI_PROCESSING):
                raise BusyError("Another request is being processed")
            current_text = self.last_transcription or self.context_content
            prompt = QuickActionManager.render(action, current_text)
            blank = not prompt.strip()
            if blank:
                self.error = f"Quick action {action.label!r} has no text to send"
                logger.warning(f"{self.error}, nothing dispatched")
            else:
                self._quick_action_in_flight = True
                was_idle = self.state in (CaptureState.IDLE, CaptureState.ERROR)
                if was_idle:
                    self.state = CaptureState.AI_PROCESSING
                    self.error = None
        self._publish_state()
        if blank:
            return None

        system_prompt = self.system_prompt if (self.use_system_prompt and self.system_prompt) else None
        context = self.context_content.strip() if self.context_content and self.context_content.strip() else None
        ai_response = None
        try:
            ai_response = await self.quick_actions.dispatch(
                action_id, current_text,
                system_prompt=system_prompt, context=context, history=self._history(),
            )
        except ProviderError as e:
            logger.warning(f"Quick action {action.label!r} failed: {e}")
            with self._lock:
                self.error = str(e)
        finally:
            with self._lock:
                self._quick_action_in_flight = False
                if was_idle:
                    self.state = CaptureState.IDLE

        turn = ConversationTurn(
            transcript=prompt,
            ai_response=ai_response,
            context_used=context,
            system_prompt_used=system_prompt,
        )
        self.store.append_turn(turn)
        with self._lock:
            self.last_ai_response = ai_response
        self._publish_state()
        return turn

    def start_new_conversation(self) -> Conversation:
        with self._lock:
            self.last_transcription = None
            self.last_ai_response = None
        return self.store.start_new_conversation()

    def _history(self) -> List[ConversationTurn]:
        conversation = self.store.active_conversation
        return list(conversation.turns) if conversation else []

    def _enter_error(self, message: str) -> None:
        with self._lock:
            self.state = CaptureState.ERROR
            self.error = message
        self._publish_state()

    # ------------------------------------------------------------------
    # Notifications

    def _publish_state(self) -> None:
        with self._lock:
            state, error, setup_required = self.state.value, self.error, self.setup_required
        pub.sendMessage(TOPIC_STATE, state=state, error=error, setup_required=setup_required)

    def _publish_progress(self) -> None:
        pub.sendMessage(TOPIC_PROGRESS, elapsed_secs=self.timer.progress)
