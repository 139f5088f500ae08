"""Storage contracts for journal entries and checkpoints."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

# Roles shown in a chat UI; SYSTEM and TOOL entries are implementation details.
VISIBLE_ROLES = ("USER", "ASSISTANT")


@dataclass(frozen=True)
class Entry:
    """One persisted conversational turn.

    ``index`` is assigned by the store on insert; ``0`` marks an entry that
    has not been persisted yet.
    """
    index: int
    role: str
    content: str
    tokens: int


@dataclass(frozen=True)
class Checkpoint:
    """Running summary covering every entry with ``index <= checkpoint_index``."""
    checkpoint_index: int
    summary: str
    tokens: int


def validate_page(offset: int, limit: int) -> None:
    """Reject an invalid pagination window."""
    if offset < 0:
        raise ValueError("offset must not be negative")
    if limit <= 0:
        raise ValueError("limit must be positive")


class EntryStore(ABC):
    """
    Ordered, append-only per-conversation log of entries.

    Read operations on an unknown conversation return empty results (or zero),
    never an error.
    """

    @abstractmethod
    async def save(self, conversation_id: str, entries: list[Entry]) -> None:
        """Append entries in the given order, assigning increasing indices."""

    @abstractmethod
    async def find_all(self, conversation_id: str) -> list[Entry]:
        """All entries for the conversation in ascending index order."""

    @abstractmethod
    async def find_entries_after_index(self, conversation_id: str, index: int) -> list[Entry]:
        """Entries with ``index`` greater than the given one, ascending."""

    @abstractmethod
    async def find_visible_entries(
        self, conversation_id: str, offset: int, limit: int
    ) -> list[Entry]:
        """USER/ASSISTANT entries, most recent first, for paginated display."""

    @abstractmethod
    async def count_visible_entries(self, conversation_id: str) -> int:
        """Number of USER/ASSISTANT entries in the conversation."""

    @abstractmethod
    async def count_entries(self, conversation_id: str) -> int:
        """Total number of stored entries in the conversation."""

    @abstractmethod
    async def sum_tokens(self, conversation_id: str) -> int:
        """Sum of token counts of all entries."""

    @abstractmethod
    async def sum_tokens_after_index(self, conversation_id: str, index: int) -> int:
        """Sum of token counts of entries after the given index."""

    @abstractmethod
    async def delete_all(self, conversation_id: str) -> None:
        """Remove every entry of the conversation."""


class CheckpointStore(ABC):
    """Single-slot per-conversation checkpoint storage."""

    @abstractmethod
    async def find_checkpoint(self, conversation_id: str) -> Checkpoint | None:
        """The conversation's checkpoint, or None if none exists."""

    @abstractmethod
    async def save_checkpoint(self, conversation_id: str, checkpoint: Checkpoint) -> None:
        """Replace any existing checkpoint with the given one."""

    @abstractmethod
    async def delete_checkpoint(self, conversation_id: str) -> None:
        """Remove the conversation's checkpoint if present."""
