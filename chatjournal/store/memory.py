"""Process-local stores backed by plain dicts."""

from dataclasses import replace

from chatjournal.errors import validate_conversation_id
from chatjournal.store.base import (
    VISIBLE_ROLES,
    Checkpoint,
    CheckpointStore,
    Entry,
    EntryStore,
    validate_page,
)


class InMemoryEntryStore(EntryStore):
    """Entry log kept in memory; indices are global and strictly increasing."""

    def __init__(self):
        self._entries: dict[str, list[Entry]] = {}
        self._next_index = 1

    async def save(self, conversation_id: str, entries: list[Entry]) -> None:
        validate_conversation_id(conversation_id)
        if entries is None:
            raise ValueError("entries must not be None")
        log = self._entries.setdefault(conversation_id, [])
        for entry in entries:
            log.append(replace(entry, index=self._next_index))
            self._next_index += 1

    async def find_all(self, conversation_id: str) -> list[Entry]:
        validate_conversation_id(conversation_id)
        return list(self._entries.get(conversation_id, []))

    async def find_entries_after_index(self, conversation_id: str, index: int) -> list[Entry]:
        validate_conversation_id(conversation_id)
        return [e for e in self._entries.get(conversation_id, []) if e.index > index]

    async def find_visible_entries(
        self, conversation_id: str, offset: int, limit: int
    ) -> list[Entry]:
        validate_conversation_id(conversation_id)
        validate_page(offset, limit)
        visible = [e for e in self._entries.get(conversation_id, []) if e.role in VISIBLE_ROLES]
        visible.reverse()
        return visible[offset:offset + limit]

    async def count_visible_entries(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return sum(1 for e in self._entries.get(conversation_id, []) if e.role in VISIBLE_ROLES)

    async def count_entries(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return len(self._entries.get(conversation_id, []))

    async def sum_tokens(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return sum(e.tokens for e in self._entries.get(conversation_id, []))

    async def sum_tokens_after_index(self, conversation_id: str, index: int) -> int:
        validate_conversation_id(conversation_id)
        return sum(e.tokens for e in self._entries.get(conversation_id, []) if e.index > index)

    async def delete_all(self, conversation_id: str) -> None:
        validate_conversation_id(conversation_id)
        self._entries.pop(conversation_id, None)


class InMemoryCheckpointStore(CheckpointStore):
    """Checkpoint slot per conversation kept in memory."""

    def __init__(self):
        self._checkpoints: dict[str, Checkpoint] = {}

    async def find_checkpoint(self, conversation_id: str) -> Checkpoint | None:
        validate_conversation_id(conversation_id)
        return self._checkpoints.get(conversation_id)

    async def save_checkpoint(self, conversation_id: str, checkpoint: Checkpoint) -> None:
        validate_conversation_id(conversation_id)
        if checkpoint is None:
            raise ValueError("checkpoint must not be None")
        self._checkpoints[conversation_id] = checkpoint

    async def delete_checkpoint(self, conversation_id: str) -> None:
        validate_conversation_id(conversation_id)
        self._checkpoints.pop(conversation_id, None)
