"""Persistence for settings, quick actions and conversations."""

from .file_manager import FileManager

__all__ = ["FileManager"]
