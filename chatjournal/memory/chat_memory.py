"""Chat memory facade over the entry journal and its checkpoint."""

from dataclasses import dataclass
from typing import Any

from loguru import logger

from chatjournal.errors import ConversationLimitExceededError, validate_conversation_id
from chatjournal.memory.checkpointer import Checkpointer
from chatjournal.memory.factory import summary_message
from chatjournal.memory.mapper import EntryMapper
from chatjournal.memory.scheduler import CompactionScheduler
from chatjournal.store.base import CheckpointStore, EntryStore

DEFAULT_MAX_ENTRIES = 10000
MIN_RECOMMENDED_TOKENS = 500


@dataclass(frozen=True)
class ChatMemoryUsage:
    """Token usage of a conversation against the checkpoint threshold."""
    current_tokens: int
    max_tokens: int

    def percentage_used(self) -> float:
        if self.max_tokens == 0:
            return 0.0
        return 100.0 * self.current_tokens / self.max_tokens

    def tokens_remaining(self) -> int:
        return max(0, self.max_tokens - self.current_tokens)


class ChatJournalMemory:
    """
    Append-only chat memory with background checkpointing.

    ``add`` journals messages and, once the conversation grows past the
    checkpointer's token threshold, hands a checkpoint run to the scheduler
    without waiting for it. ``get`` returns the latest summary (as a system
    message) followed by every message after it.
    """

    def __init__(
        self,
        entry_store: EntryStore,
        checkpoint_store: CheckpointStore,
        entry_mapper: EntryMapper,
        checkpointer: Checkpointer,
        scheduler: CompactionScheduler,
        max_entries: int | None = DEFAULT_MAX_ENTRIES,
    ):
        if entry_store is None:
            raise ValueError("entry_store must not be None")
        if checkpoint_store is None:
            raise ValueError("checkpoint_store must not be None")
        if entry_mapper is None:
            raise ValueError("entry_mapper must not be None")
        if checkpointer is None:
            raise ValueError("checkpointer must not be None")
        if scheduler is None:
            raise ValueError("scheduler must not be None")
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.entry_store = entry_store
        self.checkpoint_store = checkpoint_store
        self.entry_mapper = entry_mapper
        self.checkpointer = checkpointer
        self.scheduler = scheduler
        self.max_entries = max_entries

        if checkpointer.max_tokens < MIN_RECOMMENDED_TOKENS:
            logger.warning(
                f"max_tokens={checkpointer.max_tokens} is below the recommended minimum of "
                f"{MIN_RECOMMENDED_TOKENS}; conversations will be checkpointed very often"
            )

    async def add(self, conversation_id: str, messages: list[dict[str, Any]]) -> None:
        """Journal messages in order, scheduling a checkpoint when over budget."""
        validate_conversation_id(conversation_id)
        if messages is None:
            raise ValueError("messages must not be None")
        if not messages:
            return

        if self.max_entries is not None:
            current = await self.entry_store.count_entries(conversation_id)
            if current + len(messages) > self.max_entries:
                raise ConversationLimitExceededError(
                    conversation_id, current, self.max_entries, len(messages)
                )

        entries = self.entry_mapper.to_entries(messages)
        await self.entry_store.save(conversation_id, entries)
        logger.debug(f"Added {len(entries)} entries to conversation {conversation_id}")

        if await self.checkpointer.requires_checkpoint(conversation_id):
            logger.info(f"Conversation {conversation_id} is over budget, scheduling checkpoint")
            self.scheduler.submit(
                conversation_id, lambda: self.checkpointer.checkpoint(conversation_id)
            )

    async def get(self, conversation_id: str) -> list[dict[str, Any]]:
        validate_conversation_id(conversation_id)
        checkpoint = await self.checkpoint_store.find_checkpoint(conversation_id)
        if checkpoint is None:
            entries = await self.entry_store.find_all(conversation_id)
            return self.entry_mapper.to_messages(entries)

        entries = await self.entry_store.find_entries_after_index(
            conversation_id, checkpoint.checkpoint_index
        )
        return [summary_message(checkpoint.summary)] + self.entry_mapper.to_messages(entries)

    async def clear(self, conversation_id: str) -> None:
        """Remove the checkpoint, then the entries. Safe to call repeatedly."""
        validate_conversation_id(conversation_id)
        await self.checkpoint_store.delete_checkpoint(conversation_id)
        await self.entry_store.delete_all(conversation_id)
        logger.info(f"Cleared conversation {conversation_id}")

    async def get_memory_usage(self, conversation_id: str) -> ChatMemoryUsage:
        validate_conversation_id(conversation_id)
        current = await self.checkpointer.get_total_tokens(conversation_id)
        return ChatMemoryUsage(current_tokens=current, max_tokens=self.checkpointer.max_tokens)
