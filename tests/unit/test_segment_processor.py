"""Unit tests for the SegmentProcessor worker."""

import pytest

from talk2ai.models.audio import AudioSegment, EndedReason
from talk2ai.services.segment_processor import SegmentProcessor


def make_segment(session_id="s1"):
    return AudioSegment(session_id=session_id, audio_data=b'\x00\x00' * 160,
                        duration_secs=0.01, ended_reason=EndedReason.MANUAL_STOP)


@pytest.fixture
def processor():
    """A started processor that echoes segment ids and records results."""
    results = []

    async def handle(segment):
        return segment.session_id

    worker = SegmentProcessor(handle, result_callback=lambda name, result: results.append((name, result)))
    worker.results = results
    worker.start()
    yield worker
    worker.shutdown(timeout=5.0)


@pytest.mark.unit
class TestSegmentProcessor:
    """Test cases for SegmentProcessor."""

    def test_segments_run_in_order(self, processor):
        """Test queued segments are processed in submission order."""
        assert processor.submit(make_segment("a")) is True
        assert processor.submit(make_segment("b")) is True

        assert processor.wait_idle(5.0)
        assert processor.results == [("segment:a", "a"), ("segment:b", "b")]

    def test_extra_tasks_share_the_worker(self, processor):
        """Test arbitrary coroutine tasks run on the same worker loop."""
        async def add(x, y):
            return x + y

        processor.submit_task("add", add, 2, 3)

        assert processor.wait_idle(5.0)
        assert processor.results == [("add", 5)]

    def test_failing_task_does_not_stop_worker(self, processor):
        """Test an exception in one task leaves the worker running."""
        async def boom():
            raise RuntimeError("boom")

        processor.submit_task("boom", boom)
        processor.submit(make_segment("after"))

        assert processor.wait_idle(5.0)
        assert processor.results == [("segment:after", "after")]

    def test_submit_after_shutdown_is_rejected(self, processor):
        """Test work submitted after shutdown is rejected."""
        assert processor.shutdown(timeout=5.0) is True

        assert processor.submit(make_segment("late")) is False
        assert processor.task_queue.unfinished_tasks == 0
        assert processor.results == []
