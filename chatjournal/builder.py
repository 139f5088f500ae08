"""Assemble a ChatJournalMemory from configuration."""

from loguru import logger

from chatjournal.config.schema import Config
from chatjournal.memory.chat_memory import ChatJournalMemory
from chatjournal.memory.checkpointer import Checkpointer
from chatjournal.memory.factory import CheckpointFactory
from chatjournal.memory.mapper import EntryMapper
from chatjournal.memory.scheduler import CompactionScheduler
from chatjournal.providers.base import LLMProvider
from chatjournal.providers.litellm_provider import LiteLLMProvider
from chatjournal.store.base import CheckpointStore, EntryStore
from chatjournal.store.jsonl import JsonlCheckpointStore, JsonlEntryStore
from chatjournal.store.memory import InMemoryCheckpointStore, InMemoryEntryStore
from chatjournal.store.sqlite import SqliteCheckpointStore, SqliteDatabase, SqliteEntryStore
from chatjournal.summary.base import Summarizer
from chatjournal.summary.llm import LLMSummarizer
from chatjournal.tokens import create_token_counter


def build_stores(config: Config) -> tuple[EntryStore, CheckpointStore]:
    """Create the entry and checkpoint stores for the configured backend."""
    backend = config.storage.backend
    if backend == "memory":
        return InMemoryEntryStore(), InMemoryCheckpointStore()
    if backend == "jsonl":
        root = config.storage_path
        return JsonlEntryStore(root), JsonlCheckpointStore(root)
    if backend == "sqlite":
        database = SqliteDatabase(config.storage_path)
        return SqliteEntryStore(database), SqliteCheckpointStore(database)
    raise ValueError(f"Unknown storage backend: {backend}")


def build_provider(config: Config) -> LLMProvider:
    return LiteLLMProvider(
        api_key=config.summarizer.api_key or None,
        default_model=config.summarizer.model,
        api_base=config.summarizer.api_base,
    )


def build_memory(
    config: Config,
    provider: LLMProvider | None = None,
    summarizer: Summarizer | None = None,
) -> ChatJournalMemory:
    """
    Wire every component of the chat memory.

    Args:
        config: Loaded configuration.
        provider: LLM provider for summaries. Built from ``config.summarizer``
            if not given.
        summarizer: Overrides the LLM summarizer entirely (``provider`` is
            then unused).
    """
    token_counter = create_token_counter(
        config.tokenizer.strategy,
        characters_per_token=config.tokenizer.characters_per_token,
        encoding=config.tokenizer.encoding,
    )
    entry_store, checkpoint_store = build_stores(config)

    if summarizer is None:
        summarizer = LLMSummarizer(
            provider or build_provider(config),
            model=config.summarizer.model,
            temperature=config.summarizer.temperature,
            max_tokens=config.summarizer.max_tokens,
        )

    mapper = EntryMapper(token_counter, config.journal.unknown_role_policy)
    checkpointer = Checkpointer(
        entry_store=entry_store,
        checkpoint_store=checkpoint_store,
        checkpoint_factory=CheckpointFactory(summarizer, token_counter),
        entry_mapper=mapper,
        max_tokens=config.journal.max_tokens,
        min_retained_entries=config.journal.min_retained_entries,
    )
    scheduler = CompactionScheduler(
        max_concurrent=config.compaction.max_concurrent,
        single_flight=config.compaction.single_flight,
    )

    logger.debug(
        f"Chat memory: backend={config.storage.backend}, tokenizer={config.tokenizer.strategy}, "
        f"max_tokens={config.journal.max_tokens}"
    )
    return ChatJournalMemory(
        entry_store=entry_store,
        checkpoint_store=checkpoint_store,
        entry_mapper=mapper,
        checkpointer=checkpointer,
        scheduler=scheduler,
        max_entries=config.journal.max_entries,
    )
