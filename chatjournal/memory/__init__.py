"""Chat memory: entry mapping, checkpointing and the memory facade."""

from chatjournal.memory.chat_memory import ChatJournalMemory, ChatMemoryUsage
from chatjournal.memory.checkpointer import Checkpointer
from chatjournal.memory.factory import SUMMARY_PREFIX, CheckpointFactory, summary_message
from chatjournal.memory.mapper import EntryMapper, MessageType, UnknownRolePolicy
from chatjournal.memory.scheduler import CompactionScheduler

__all__ = [
    "ChatJournalMemory",
    "ChatMemoryUsage",
    "Checkpointer",
    "CheckpointFactory",
    "CompactionScheduler",
    "EntryMapper",
    "MessageType",
    "SUMMARY_PREFIX",
    "UnknownRolePolicy",
    "summary_message",
]
