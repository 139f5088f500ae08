"""File-backed stores: one JSONL journal and one checkpoint file per conversation."""

import json
import os
import tempfile
from dataclasses import asdict, replace
from datetime import datetime
from pathlib import Path

from loguru import logger

from chatjournal.errors import validate_conversation_id
from chatjournal.store.base import (
    VISIBLE_ROLES,
    Checkpoint,
    CheckpointStore,
    Entry,
    EntryStore,
    validate_page,
)
from chatjournal.utils.helpers import conversation_filename, ensure_dir


class JsonlEntryStore(EntryStore):
    """
    Append-only entry journal stored as JSONL.

    Directory layout:
        {root}/
        └── {conversation_id}.jsonl   # metadata line, then one entry per line

    Indices are never reused: ``delete_all`` truncates the journal to a
    metadata line recording ``last_index`` instead of removing the file.
    """

    def __init__(self, root: Path):
        self.root = ensure_dir(Path(root))
        self._cache: dict[str, list[Entry]] = {}
        self._last_index: dict[str, int] = {}

    # ── public API ──────────────────────────────────────────────

    async def save(self, conversation_id: str, entries: list[Entry]) -> None:
        validate_conversation_id(conversation_id)
        if entries is None:
            raise ValueError("entries must not be None")
        if not entries:
            return

        log = self._entries(conversation_id)
        next_index = self._last_index[conversation_id] + 1
        path = self._get_path(conversation_id)
        is_new = not path.exists()

        stored = [replace(entry, index=next_index + i) for i, entry in enumerate(entries)]
        with open(path, "a", encoding="utf-8") as f:
            if is_new:
                f.write(self._metadata_line(conversation_id))
            for entry in stored:
                f.write(json.dumps(asdict(entry), ensure_ascii=False) + "\n")

        log.extend(stored)
        self._last_index[conversation_id] = stored[-1].index

    async def find_all(self, conversation_id: str) -> list[Entry]:
        validate_conversation_id(conversation_id)
        return list(self._entries(conversation_id))

    async def find_entries_after_index(self, conversation_id: str, index: int) -> list[Entry]:
        validate_conversation_id(conversation_id)
        return [e for e in self._entries(conversation_id) if e.index > index]

    async def find_visible_entries(
        self, conversation_id: str, offset: int, limit: int
    ) -> list[Entry]:
        validate_conversation_id(conversation_id)
        validate_page(offset, limit)
        visible = [e for e in reversed(self._entries(conversation_id)) if e.role in VISIBLE_ROLES]
        return visible[offset:offset + limit]

    async def count_visible_entries(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return sum(1 for e in self._entries(conversation_id) if e.role in VISIBLE_ROLES)

    async def count_entries(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return len(self._entries(conversation_id))

    async def sum_tokens(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return sum(e.tokens for e in self._entries(conversation_id))

    async def sum_tokens_after_index(self, conversation_id: str, index: int) -> int:
        validate_conversation_id(conversation_id)
        return sum(e.tokens for e in self._entries(conversation_id) if e.index > index)

    async def delete_all(self, conversation_id: str) -> None:
        validate_conversation_id(conversation_id)
        path = self._get_path(conversation_id)
        if not path.exists():
            self._cache.pop(conversation_id, None)
            self._last_index.pop(conversation_id, None)
            return

        self._entries(conversation_id)
        last_index = self._last_index[conversation_id]
        fd, tmp_path = tempfile.mkstemp(dir=str(self.root), prefix=".journal_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self._metadata_line(conversation_id, last_index))
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        self._cache[conversation_id] = []

    # ── internal helpers ────────────────────────────────────────

    def _get_path(self, conversation_id: str) -> Path:
        return self.root / f"{conversation_filename(conversation_id)}.jsonl"

    @staticmethod
    def _metadata_line(conversation_id: str, last_index: int = 0) -> str:
        metadata = {
            "_type": "metadata",
            "conversation_id": conversation_id,
            "created_at": datetime.now().isoformat(),
            "last_index": last_index,
        }
        return json.dumps(metadata, ensure_ascii=False) + "\n"

    def _entries(self, conversation_id: str) -> list[Entry]:
        """Cached entry list for a conversation, loading it from disk on first use."""
        if conversation_id not in self._cache:
            self._cache[conversation_id] = self._load(conversation_id)
        return self._cache[conversation_id]

    def _load(self, conversation_id: str) -> list[Entry]:
        """Read the journal and record its index high-water mark."""
        path = self._get_path(conversation_id)
        last_index = 0
        entries = []
        if path.exists():
            with open(path, encoding="utf-8") as f:
                for line_no, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError as e:
                        logger.warning(f"Skipping malformed line {line_no} in {path.name}: {e}")
                        continue
                    if data.get("_type") == "metadata":
                        last_index = max(last_index, data.get("last_index", 0))
                        continue
                    entries.append(Entry(
                        index=data["index"],
                        role=data["role"],
                        content=data["content"],
                        tokens=data["tokens"],
                    ))

        if entries:
            last_index = max(last_index, entries[-1].index)
        self._last_index[conversation_id] = last_index
        return entries


class JsonlCheckpointStore(CheckpointStore):
    """
    Checkpoint slot stored as one JSON file per conversation.

    Writes are atomic: content goes to a temp file in the same directory and
    is moved into place with ``os.replace``.
    """

    def __init__(self, root: Path):
        self.root = ensure_dir(Path(root))

    async def find_checkpoint(self, conversation_id: str) -> Checkpoint | None:
        validate_conversation_id(conversation_id)
        path = self._get_path(conversation_id)
        if not path.exists():
            return None
        data = json.loads(path.read_text(encoding="utf-8"))
        return Checkpoint(
            checkpoint_index=data["checkpoint_index"],
            summary=data["summary"],
            tokens=data["tokens"],
        )

    async def save_checkpoint(self, conversation_id: str, checkpoint: Checkpoint) -> None:
        validate_conversation_id(conversation_id)
        if checkpoint is None:
            raise ValueError("checkpoint must not be None")

        path = self._get_path(conversation_id)
        payload = {
            **asdict(checkpoint),
            "conversation_id": conversation_id,
            "created_at": datetime.now().isoformat(),
        }
        fd, tmp_path = tempfile.mkstemp(dir=str(self.root), prefix=".checkpoint_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def delete_checkpoint(self, conversation_id: str) -> None:
        validate_conversation_id(conversation_id)
        path = self._get_path(conversation_id)
        if path.exists():
            path.unlink()

    def _get_path(self, conversation_id: str) -> Path:
        return self.root / f"{conversation_filename(conversation_id)}.json"
