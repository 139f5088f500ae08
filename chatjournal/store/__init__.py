"""Entry and checkpoint storage backends."""

from chatjournal.store.base import Checkpoint, CheckpointStore, Entry, EntryStore
from chatjournal.store.jsonl import JsonlCheckpointStore, JsonlEntryStore
from chatjournal.store.memory import InMemoryCheckpointStore, InMemoryEntryStore
from chatjournal.store.sqlite import SqliteCheckpointStore, SqliteDatabase, SqliteEntryStore

__all__ = [
    "Checkpoint",
    "CheckpointStore",
    "Entry",
    "EntryStore",
    "InMemoryCheckpointStore",
    "InMemoryEntryStore",
    "JsonlCheckpointStore",
    "JsonlEntryStore",
    "SqliteCheckpointStore",
    "SqliteDatabase",
    "SqliteEntryStore",
]
