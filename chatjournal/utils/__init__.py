"""Utility helpers."""

from chatjournal.utils.helpers import conversation_filename, ensure_dir
from chatjournal.utils.stopwatch import Stopwatch

__all__ = ["Stopwatch", "conversation_filename", "ensure_dir"]
