"""Configuration schema using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class JournalConfig(BaseModel):
    """Checkpointing thresholds."""
    max_tokens: int = Field(default=8192, gt=0)  # Effective tokens before a checkpoint runs
    min_retained_entries: int = Field(default=6, gt=0)  # Newest entries never summarized
    max_entries: int | None = Field(default=10000, gt=0)  # Per conversation; None disables
    unknown_role_policy: Literal["drop", "reject"] = "drop"


class TokenizerConfig(BaseModel):
    """Token counting strategy."""
    strategy: Literal["simple", "tiktoken"] = "simple"
    characters_per_token: int = Field(default=4, gt=0)  # Only for "simple"
    encoding: str = "o200k_base"  # Only for "tiktoken"


class SummarizerConfig(BaseModel):
    """LLM used to write checkpoint summaries."""
    model: str = "openai/gpt-4o-mini"
    api_key: str = ""
    api_base: str | None = None
    temperature: float = 0.3
    max_tokens: int = Field(default=4096, gt=0)


class StorageConfig(BaseModel):
    """Where entries and checkpoints live."""
    backend: Literal["memory", "jsonl", "sqlite"] = "sqlite"
    path: str = "~/.chatjournal/journal.db"  # Database file for sqlite, directory for jsonl


class CompactionConfig(BaseModel):
    """Background checkpoint scheduling."""
    max_concurrent: int = Field(default=4, gt=0)
    single_flight: bool = False  # Skip scheduling while a conversation is already compacting


class Config(BaseSettings):
    """Root configuration for chatjournal."""
    model_config = SettingsConfigDict(env_prefix="CHATJOURNAL_", env_nested_delimiter="__")

    journal: JournalConfig = Field(default_factory=JournalConfig)
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    compaction: CompactionConfig = Field(default_factory=CompactionConfig)

    @property
    def storage_path(self) -> Path:
        """Get expanded storage path."""
        return Path(self.storage.path).expanduser()
