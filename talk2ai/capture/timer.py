"""Recording duration tracking and the periodic tick source."""

import time
import logging
from threading import Thread, Event
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RecordingTimer:
    """Tracks elapsed capture time and enforces the hard duration ceiling."""

    def __init__(self, max_recording_duration_secs: float):
        self.max_recording_duration_secs = max_recording_duration_secs
        self.started_at: Optional[float] = None
        self.elapsed_secs = 0.0
        self.fired = False

    def start(self, started_at: float) -> None:
        self.started_at = started_at
        self.elapsed_secs = 0.0
        self.fired = False

    def advance(self, now: float) -> bool:
        """Advance the clock to `now`.

        Elapsed time never decreases, so late or out-of-order ticks are
        harmless.

        Returns:
            True exactly once, when elapsed time first reaches the maximum.
        """
        if self.started_at is None:
            return False

        elapsed = now - self.started_at
        if elapsed > self.elapsed_secs:
            self.elapsed_secs = elapsed

        if not self.fired and self.elapsed_secs >= self.max_recording_duration_secs:
            self.fired = True
            logger.info(f"Max recording duration reached: {self.elapsed_secs:.2f}s "
                        f"(limit {self.max_recording_duration_secs}s)")
            return True
        return False

    @property
    def progress(self) -> int:
        """Whole seconds elapsed, for progress display."""
        return int(self.elapsed_secs)

    def reset(self) -> None:
        self.started_at = None
        self.elapsed_secs = 0.0
        self.fired = False


class TimerTicker:
    """Calls `callback(now)` at a fixed cadence on a background thread."""

    def __init__(self, callback: Callable[[float], None], interval_seconds: float = 1.0,
                 clock: Callable[[], float] = time.time):
        """Initialize ticker.

        Args:
            callback: Receives the current clock reading on every tick
            interval_seconds: Tick cadence
            clock: Time source, shared with the audio source timestamps
        """
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.stop_event = Event()
        self.thread: Optional[Thread] = None

    def start(self) -> None:
        if self.thread and self.thread.is_alive():
            logger.warning("Ticker already running")
            return

        self.stop_event.clear()
        self.thread = Thread(target=self._run, daemon=True)
        self.thread.name = "RecordingTimerTicker"
        self.thread.start()
        logger.debug(f"Ticker started ({self.interval_seconds}s interval)")

    def stop(self) -> None:
        self.stop_event.set()
        if self.thread and self.thread.is_alive():
            self.thread.join(timeout=2.0)
            if self.thread.is_alive():
                logger.warning("Ticker thread did not stop cleanly")
        self.thread = None

    def _run(self) -> None:
        while not self.stop_event.wait(self.interval_seconds):
            try:
                self.callback(self.clock())
            except Exception as e:
                logger.error(f"Error in timer tick callback: {e}", exc_info=True)
