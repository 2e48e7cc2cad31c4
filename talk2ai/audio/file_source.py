"""Replays a WAV file as a stream of timestamped audio frames."""

import time
import wave
import logging
from threading import Thread, Event
from typing import Callable, Iterator, Optional

from ..models.audio import AudioFrame

logger = logging.getLogger(__name__)


class WavFileSource:
    """Audio source that reads 16-bit PCM frames from a WAV file.

    Frame timestamps are derived from the audio position, starting at
    `start_time`, so replay speed does not affect VAD or timer arithmetic.
    """

    def __init__(self, file_path: str, callback: Callable[[AudioFrame], None],
                 chunk_size: int = 1600, realtime: bool = False,
                 clock: Callable[[], float] = time.time):
        """Initialize WAV source.

        Args:
            file_path: Path to a 16-bit PCM WAV file
            callback: Receives each frame
            chunk_size: Samples per frame
            realtime: Sleep between frames to match the audio duration
            clock: Time source for the first frame's timestamp
        """
        self.file_path = file_path
        self.callback = callback
        self.chunk_size = chunk_size
        self.realtime = realtime
        self.clock = clock
        self.stop_event = Event()
        self.thread: Optional[Thread] = None

        with wave.open(file_path, 'rb') as wf:
            if wf.getsampwidth() != 2:
                raise ValueError(f"Only 16-bit WAV files are supported: {file_path}")
            self.sample_rate = wf.getframerate()
            self.channels = wf.getnchannels()

    @property
    def is_recording(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def frames(self, start_time: Optional[float] = None) -> Iterator[AudioFrame]:
        """Yield the file's frames with timestamps relative to `start_time`."""
        timestamp = self.clock() if start_time is None else start_time
        sequence = 0
        with wave.open(self.file_path, 'rb') as wf:
            while not self.stop_event.is_set():
                data = wf.readframes(self.chunk_size)
                if not data:
                    break
                sequence += 1
                frame = AudioFrame.from_pcm(data, timestamp=timestamp, sample_rate=self.sample_rate,
                                            channels=self.channels, sequence_number=sequence)
                timestamp = frame.end_time
                yield frame

    def play(self, start_time: Optional[float] = None) -> int:
        """Deliver all frames on the calling thread. Returns the frame count."""
        count = 0
        for frame in self.frames(start_time):
            self.callback(frame)
            count += 1
            if self.realtime:
                time.sleep(frame.duration_ms / 1000.0)
        logger.info(f"Replayed {count} frames from {self.file_path}")
        return count

    def start_recording(self) -> None:
        """Replay on a background thread, mirroring AudioCapture."""
        self.stop_event.clear()
        self.thread = Thread(target=self.play, daemon=True)
        self.thread.name = "WavFileSourceThread"
        self.thread.start()

    def stop_recording(self) -> None:
        self.stop_event.set()
        if self.thread and self.thread.is_alive():
            self.thread.join(timeout=2.0)
