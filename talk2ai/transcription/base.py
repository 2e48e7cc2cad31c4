"""Abstract base class for transcription backends."""

from abc import ABC, abstractmethod
import logging

from ..models.audio import AudioSegment

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Speech-to-text provider boundary."""

    def __init__(self, provider_id: str, language: str = "en-US"):
        """Initialize backend.

        Args:
            provider_id: Identifier reported in ProviderError messages
            language: Language preference passed to providers that accept one
        """
        self.provider_id = provider_id
        self.language = language

    @abstractmethod
    async def transcribe(self, segment: AudioSegment) -> str:
        """Transcribe a finalized audio segment.

        Args:
            segment: Audio segment to transcribe

        Returns:
            Transcript text; an empty string means nothing was understood
        """
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass
