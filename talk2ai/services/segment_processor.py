"""Worker that runs segment processing and quick actions off the audio thread."""

import time
import asyncio
import logging
import threading
import queue
from typing import Any, Awaitable, Callable, NamedTuple, Optional, Tuple

from ..models.audio import AudioSegment

logger = logging.getLogger(__name__)


class ProcessingTask(NamedTuple):
    """A coroutine function and its arguments, run on the worker loop."""
    name: str
    func: Callable[..., Awaitable[Any]]
    args: Tuple[Any, ...]


class SegmentProcessor:
    """Runs provider calls on a single worker thread with its own asyncio loop.

    One worker keeps transcription and AI calls single-flight. Work already
    started is never cancelled; shutdown waits for the queue to drain.
    """

    def __init__(self, segment_func: Callable[[AudioSegment], Awaitable[Any]],
                 result_callback: Optional[Callable[[str, Any], None]] = None):
        """Initialize processor.

        Args:
            segment_func: Coroutine function processing one segment
                (normally CaptureController.process_segment)
            result_callback: Receives (task name, result) after each task
        """
        self.segment_func = segment_func
        self.result_callback = result_callback
        self.task_queue: "queue.Queue[Optional[ProcessingTask]]" = queue.Queue()
        self.shutdown_event = threading.Event()
        self.worker_thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.worker_thread and self.worker_thread.is_alive():
            logger.warning("Segment processor already running")
            return
        self.shutdown_event.clear()
        self.worker_thread = threading.Thread(target=self._worker_loop, daemon=True)
        self.worker_thread.name = "SegmentProcessorWorker"
        self.worker_thread.start()
        logger.info("Segment processor started")

    def submit(self, segment: AudioSegment) -> bool:
        """Queue a finalized segment; called from the audio thread.

        Returns:
            False when the processor is shutting down and the segment was not queued
        """
        return self.submit_task(f"segment:{segment.session_id}", self.segment_func, segment)

    def submit_task(self, name: str, func: Callable[..., Awaitable[Any]], *args: Any) -> bool:
        if self.shutdown_event.is_set():
            logger.warning(f"Processor shutting down, rejecting task {name}")
            return False
        logger.debug(f"Queueing task {name}")
        self.task_queue.put(ProcessingTask(name=name, func=func, args=args))
        return True

    def _worker_loop(self) -> None:
        """Main loop of the worker thread. Owns an asyncio loop."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        try:
            while True:
                task = self.task_queue.get()

                if task is None:
                    logger.debug("Segment processor received sentinel, exiting.")
                    self.task_queue.task_done()
                    break

                logger.debug(f"Running task {task.name}")
                try:
                    result = loop.run_until_complete(task.func(*task.args))
                    if self.result_callback:
                        self.result_callback(task.name, result)
                except Exception as e:
                    logger.error(f"Unhandled exception in task {task.name}: {e}", exc_info=True)
                finally:
                    self.task_queue.task_done()
        finally:
            loop.close()
            logger.debug("Segment processor worker exiting and closing its event loop.")

    def wait_idle(self, timeout: float = 30.0) -> bool:
        """Block until all queued tasks have finished."""
        start_time = time.time()
        while time.time() - start_time < timeout:
            if self.task_queue.unfinished_tasks == 0:
                return True
            time.sleep(0.05)
        return False

    def shutdown(self, timeout: float = 30.0) -> bool:
        """Drain the queue and stop the worker."""
        logger.info("Shutting down segment processor...")
        self.shutdown_event.set()

        drained = self.wait_idle(timeout)
        if not drained:
            logger.warning(f"Timeout reached while waiting for queue. "
                           f"{self.task_queue.unfinished_tasks} tasks remain.")

        if self.worker_thread:
            self.task_queue.put(None)
            self.worker_thread.join(2.0)
            if self.worker_thread.is_alive():
                logger.warning("Segment processor worker did not terminate cleanly.")
            self.worker_thread = None

        logger.info("Segment processor shutdown complete.")
        return drained
