"""Silence-based end-of-segment detection."""

import logging

from ..models.audio import AudioFrame
from ..models.vad import VadConfig

logger = logging.getLogger(__name__)


class VadEngine:
    """Reports the end of a spoken segment after sustained silence.

    The only state kept between calls is the accumulated duration of
    consecutive sub-threshold frames. Capture mode is not consulted here;
    callers decide whether frames are routed to the engine at all.
    """

    def __init__(self):
        self.silence_ms = 0.0

    def process(self, frame: AudioFrame, config: VadConfig) -> bool:
        """Feed one frame and report whether the segment has ended.

        Args:
            frame: Audio frame with its signal level
            config: Active VAD configuration (session snapshot)

        Returns:
            True exactly once when accumulated silence first reaches
            config.silence_duration_ms; the accumulator is reset afterwards.
        """
        if frame.level_db >= config.silence_threshold_db:
            if self.silence_ms:
                logger.debug(f"Speech at {frame.timestamp:.3f}s ({frame.level_db:.1f} dB), "
                             f"silence accumulator reset from {self.silence_ms:.0f}ms")
            self.silence_ms = 0.0
            return False

        self.silence_ms += frame.duration_ms
        if self.silence_ms >= config.silence_duration_ms:
            logger.info(f"Silence of {self.silence_ms:.0f}ms reached "
                        f"(threshold {config.silence_duration_ms:.0f}ms)")
            self.silence_ms = 0.0
            return True
        return False

    def reset(self) -> None:
        self.silence_ms = 0.0
