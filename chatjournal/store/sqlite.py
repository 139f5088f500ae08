"""SQLite-backed stores using aiosqlite."""

from pathlib import Path

import aiosqlite

from chatjournal.errors import validate_conversation_id
from chatjournal.store.base import (
    Checkpoint,
    CheckpointStore,
    Entry,
    EntryStore,
    validate_page,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS chat_journal (
    message_index   INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id TEXT NOT NULL,
    message_type    TEXT NOT NULL,
    content         TEXT NOT NULL,
    tokens          INTEGER NOT NULL,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_chat_journal_conversation_id
    ON chat_journal (conversation_id, message_index);

CREATE TABLE IF NOT EXISTS chat_journal_checkpoint (
    conversation_id  TEXT PRIMARY KEY,
    checkpoint_index INTEGER NOT NULL,
    summary          TEXT NOT NULL,
    tokens           INTEGER NOT NULL,
    created_at       TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_ENTRY_COLUMNS = "message_index, message_type, content, tokens"


class SqliteDatabase:
    """Opens connections to a journal database, creating the schema on first use.

    Every store operation uses its own short-lived connection, so the database
    must live in a file.
    """

    def __init__(self, path: Path | str, timeout: float = 30.0):
        if str(path) == ":memory:":
            raise ValueError("SqliteDatabase needs a file path; use the in-memory stores instead")
        resolved = Path(path).expanduser()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        self.path = str(resolved)
        self.timeout = timeout
        self._initialized = False

    async def connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.path, timeout=self.timeout)
        if not self._initialized:
            try:
                await conn.executescript(SCHEMA)
                await conn.commit()
            except BaseException:
                await conn.close()
                raise
            self._initialized = True
        return conn


def _to_entry(row) -> Entry:
    return Entry(index=row[0], role=row[1], content=row[2], tokens=row[3])


class SqliteEntryStore(EntryStore):
    """Entry journal in the ``chat_journal`` table."""

    def __init__(self, database: SqliteDatabase):
        if database is None:
            raise ValueError("database must not be None")
        self.database = database

    async def save(self, conversation_id: str, entries: list[Entry]) -> None:
        validate_conversation_id(conversation_id)
        if entries is None:
            raise ValueError("entries must not be None")
        if not entries:
            return
        conn = await self.database.connect()
        try:
            await conn.executemany(
                "INSERT INTO chat_journal (conversation_id, message_type, content, tokens) "
                "VALUES (?, ?, ?, ?)",
                [(conversation_id, e.role, e.content, e.tokens) for e in entries],
            )
            await conn.commit()
        finally:
            await conn.close()

    async def find_all(self, conversation_id: str) -> list[Entry]:
        validate_conversation_id(conversation_id)
        return await self._query_entries(
            f"SELECT {_ENTRY_COLUMNS} FROM chat_journal "
            "WHERE conversation_id = ? ORDER BY message_index",
            (conversation_id,),
        )

    async def find_entries_after_index(self, conversation_id: str, index: int) -> list[Entry]:
        validate_conversation_id(conversation_id)
        return await self._query_entries(
            f"SELECT {_ENTRY_COLUMNS} FROM chat_journal "
            "WHERE conversation_id = ? AND message_index > ? ORDER BY message_index",
            (conversation_id, index),
        )

    async def find_visible_entries(
        self, conversation_id: str, offset: int, limit: int
    ) -> list[Entry]:
        validate_conversation_id(conversation_id)
        validate_page(offset, limit)
        return await self._query_entries(
            f"SELECT {_ENTRY_COLUMNS} FROM chat_journal "
            "WHERE conversation_id = ? AND message_type IN ('USER', 'ASSISTANT') "
            "ORDER BY message_index DESC LIMIT ? OFFSET ?",
            (conversation_id, limit, offset),
        )

    async def count_visible_entries(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return await self._query_int(
            "SELECT COUNT(*) FROM chat_journal "
            "WHERE conversation_id = ? AND message_type IN ('USER', 'ASSISTANT')",
            (conversation_id,),
        )

    async def count_entries(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return await self._query_int(
            "SELECT COUNT(*) FROM chat_journal WHERE conversation_id = ?",
            (conversation_id,),
        )

    async def sum_tokens(self, conversation_id: str) -> int:
        validate_conversation_id(conversation_id)
        return await self._query_int(
            "SELECT COALESCE(SUM(tokens), 0) FROM chat_journal WHERE conversation_id = ?",
            (conversation_id,),
        )

    async def sum_tokens_after_index(self, conversation_id: str, index: int) -> int:
        validate_conversation_id(conversation_id)
        return await self._query_int(
            "SELECT COALESCE(SUM(tokens), 0) FROM chat_journal "
            "WHERE conversation_id = ? AND message_index > ?",
            (conversation_id, index),
        )

    async def delete_all(self, conversation_id: str) -> None:
        validate_conversation_id(conversation_id)
        conn = await self.database.connect()
        try:
            await conn.execute("DELETE FROM chat_journal WHERE conversation_id = ?", (conversation_id,))
            await conn.commit()
        finally:
            await conn.close()

    async def _query_entries(self, sql: str, params: tuple) -> list[Entry]:
        conn = await self.database.connect()
        try:
            async with conn.execute(sql, params) as cursor:
                rows = await cursor.fetchall()
        finally:
            await conn.close()
        return [_to_entry(row) for row in rows]

    async def _query_int(self, sql: str, params: tuple) -> int:
        conn = await self.database.connect()
        try:
            async with conn.execute(sql, params) as cursor:
                row = await cursor.fetchone()
        finally:
            await conn.close()
        return int(row[0]) if row else 0


class SqliteCheckpointStore(CheckpointStore):
    """Checkpoint slot in the ``chat_journal_checkpoint`` table."""

    def __init__(self, database: SqliteDatabase):
        if database is None:
            raise ValueError("database must not be None")
        self.database = database

    async def find_checkpoint(self, conversation_id: str) -> Checkpoint | None:
        validate_conversation_id(conversation_id)
        conn = await self.database.connect()
        try:
            async with conn.execute(
                "SELECT checkpoint_index, summary, tokens FROM chat_journal_checkpoint "
                "WHERE conversation_id = ?",
                (conversation_id,),
            ) as cursor:
                row = await cursor.fetchone()
        finally:
            await conn.close()
        if row is None:
            return None
        return Checkpoint(checkpoint_index=row[0], summary=row[1], tokens=row[2])

    async def save_checkpoint(self, conversation_id: str, checkpoint: Checkpoint) -> None:
        validate_conversation_id(conversation_id)
        if checkpoint is None:
            raise ValueError("checkpoint must not be None")
        conn = await self.database.connect()
        try:
            # Delete + insert share one transaction; commit makes both visible.
            await conn.execute(
                "DELETE FROM chat_journal_checkpoint WHERE conversation_id = ?",
                (conversation_id,),
            )
            await conn.execute(
                "INSERT INTO chat_journal_checkpoint "
                "(conversation_id, checkpoint_index, summary, tokens) VALUES (?, ?, ?, ?)",
                (conversation_id, checkpoint.checkpoint_index, checkpoint.summary, checkpoint.tokens),
            )
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise
        finally:
            await conn.close()

    async def delete_checkpoint(self, conversation_id: str) -> None:
        validate_conversation_id(conversation_id)
        conn = await self.database.connect()
        try:
            await conn.execute(
                "DELETE FROM chat_journal_checkpoint WHERE conversation_id = ?",
                (conversation_id,),
            )
            await conn.commit()
        finally:
            await conn.close()
