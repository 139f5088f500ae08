"""Filesystem helpers."""

from pathlib import Path
from urllib.parse import quote


def ensure_dir(path: Path) -> Path:
    """Create a directory (and parents) if missing and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def conversation_filename(conversation_id: str) -> str:
    """Turn a conversation id into a reversible, filesystem-safe file stem."""
    return quote(conversation_id, safe="-_.")
