"""Single-flight handoff of finalized segments to a transcription backend."""

import time
import logging
import threading

from ..errors import BusyError, ProviderError
from ..models.audio import AudioSegment
from .base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)


class TranscriptionDispatcher:
    """Forwards one audio segment at a time to the transcription backend."""

    def __init__(self, backend: AbstractTranscriptionBackend):
        self.backend = backend
        self._lock = threading.Lock()
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    async def dispatch(self, segment: AudioSegment) -> str:
        """Transcribe a segment.

        Raises:
            BusyError: A transcription is already in flight
            ProviderError: The backend failed
        """
        with self._lock:
            if self._in_flight:
                raise BusyError("A transcription is already in flight")
            self._in_flight = True

        provider_id = getattr(self.backend, 'provider_id', None)
        start_time = time.time()
        logger.info(f"Dispatching segment {segment.session_id} ({segment.duration_secs:.2f}s, "
                    f"{segment.ended_reason.value}) to {provider_id}")
        try:
            transcript = await self.backend.transcribe(segment)
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"Transcription failed via {provider_id}: {e}")
            raise ProviderError(provider_id, str(e)) from e
        finally:
            with self._lock:
                self._in_flight = False

        transcript = (transcript or "").strip()
        logger.info(f"Transcription finished in {time.time() - start_time:.2f}s: "
                    f"{len(transcript)} chars")
        return transcript
