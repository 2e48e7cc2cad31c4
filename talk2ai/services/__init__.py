"""Services layer for talk2ai application logic."""

from .segment_processor import SegmentProcessor
from .assistant_service import AssistantService

__all__ = [
    "SegmentProcessor",
    "AssistantService"
]
