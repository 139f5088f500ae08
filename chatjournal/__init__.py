"""chatjournal - long-running conversation memory with checkpoint compaction."""

__version__ = "0.1.0"
__logo__ = "📓"
