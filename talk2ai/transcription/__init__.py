"""Transcription module for talk2ai."""

from .base import AbstractTranscriptionBackend
from .dispatcher import TranscriptionDispatcher

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionDispatcher",
]
