"""Transcription backend driven by a provider descriptor."""

import base64
import logging

from ..models.audio import AudioSegment
from ..providers.http_client import ProviderHttpClient
from ..providers.registry import ProviderSelection
from .base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)


class HttpTranscriptionBackend(AbstractTranscriptionBackend):
    """Sends segments to an HTTP speech-to-text provider.

    Multipart templates receive the WAV file in their ``@`` field; JSON
    templates receive it base64-encoded through ``{{AUDIO}}``.
    """

    def __init__(self, selection: ProviderSelection, language: str = "en-US",
                 timeout_seconds: float = 60.0):
        super().__init__(selection.descriptor.id, language)
        self.client = ProviderHttpClient(selection, timeout_seconds=timeout_seconds)

    async def transcribe(self, segment: AudioSegment) -> str:
        wav_bytes = segment.to_wav_bytes()
        logger.debug(f"Uploading {len(wav_bytes)} bytes of WAV audio to {self.provider_id}")

        if self.client.selection.descriptor.uses_multipart:
            return await self.client.send(runtime={}, file_bytes=wav_bytes)

        audio_b64 = base64.b64encode(wav_bytes).decode("ascii")
        return await self.client.send(runtime={"AUDIO": audio_b64})
