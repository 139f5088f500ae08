"""Checkpoint policy engine: decides when and what to fold into a summary."""

from loguru import logger

from chatjournal.errors import validate_conversation_id
from chatjournal.memory.factory import CheckpointFactory, summary_message
from chatjournal.memory.mapper import EntryMapper
from chatjournal.store.base import CheckpointStore, EntryStore
from chatjournal.utils.stopwatch import Stopwatch


class Checkpointer:
    """
    Folds older journal entries into a running checkpoint summary.

    A conversation needs a checkpoint once its effective token count (the
    checkpoint's tokens plus the tokens of every entry after it) exceeds
    ``max_tokens``. Checkpointing never touches the most recent
    ``min_retained_entries`` entries.

    Holds no per-call state. Concurrent ``checkpoint`` calls for the same
    conversation are not serialized here; the last saved checkpoint wins.
    """

    def __init__(
        self,
        entry_store: EntryStore,
        checkpoint_store: CheckpointStore,
        checkpoint_factory: CheckpointFactory,
        entry_mapper: EntryMapper,
        max_tokens: int,
        min_retained_entries: int,
    ):
        if entry_store is None:
            raise ValueError("entry_store must not be None")
        if checkpoint_store is None:
            raise ValueError("checkpoint_store must not be None")
        if checkpoint_factory is None:
            raise ValueError("checkpoint_factory must not be None")
        if entry_mapper is None:
            raise ValueError("entry_mapper must not be None")
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        if min_retained_entries <= 0:
            raise ValueError("min_retained_entries must be positive")

        self.entry_store = entry_store
        self.checkpoint_store = checkpoint_store
        self.checkpoint_factory = checkpoint_factory
        self.entry_mapper = entry_mapper
        self._max_tokens = max_tokens
        self._min_retained_entries = min_retained_entries

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    @property
    def min_retained_entries(self) -> int:
        return self._min_retained_entries

    async def requires_checkpoint(self, conversation_id: str) -> bool:
        """True when the effective token count is strictly above ``max_tokens``."""
        validate_conversation_id(conversation_id)
        return await self.get_total_tokens(conversation_id) > self._max_tokens

    async def get_total_tokens(self, conversation_id: str) -> int:
        """Effective token count: checkpoint tokens plus tokens of later entries."""
        validate_conversation_id(conversation_id)
        checkpoint = await self.checkpoint_store.find_checkpoint(conversation_id)
        if checkpoint is None:
            return await self.entry_store.sum_tokens(conversation_id)
        after = await self.entry_store.sum_tokens_after_index(
            conversation_id, checkpoint.checkpoint_index
        )
        return checkpoint.tokens + after

    async def checkpoint(self, conversation_id: str) -> None:
        """
        Summarize everything but the retained tail into a new checkpoint.

        1. Load entries after the current checkpoint (all entries if none).
        2. Return without changes if there are no more than
           ``min_retained_entries`` of them.
        3. Summarize the previous summary (if any) followed by the oldest
           entries, keeping the newest ``min_retained_entries`` out.
        4. Save the result, replacing the previous checkpoint.
        """
        validate_conversation_id(conversation_id)

        existing = await self.checkpoint_store.find_checkpoint(conversation_id)
        if existing is None:
            entries = await self.entry_store.find_all(conversation_id)
        else:
            entries = await self.entry_store.find_entries_after_index(
                conversation_id, existing.checkpoint_index
            )

        if len(entries) <= self._min_retained_entries:
            logger.info(
                f"Not enough messages to compact for conversation {conversation_id}: "
                f"{len(entries)} entries, need more than {self._min_retained_entries}"
            )
            return

        to_compact = entries[:len(entries) - self._min_retained_entries]

        messages = []
        if existing is not None:
            messages.append(summary_message(existing.summary))
        messages.extend(self.entry_mapper.to_messages(to_compact))
        if not messages:
            logger.info(
                f"Nothing to summarize for conversation {conversation_id}: "
                f"none of {len(to_compact)} entries map to a message"
            )
            return

        checkpoint_index = to_compact[-1].index

        sw = Stopwatch.start()
        new_checkpoint = await self.checkpoint_factory.create_checkpoint(messages, checkpoint_index)
        sw.info(
            f"Created checkpoint for conversation {conversation_id} "
            f"covering {len(to_compact)} entries up to index {checkpoint_index}"
        )

        sw.mark()
        await self.checkpoint_store.save_checkpoint(conversation_id, new_checkpoint)
        sw.info(f"Saved checkpoint for conversation {conversation_id}")
