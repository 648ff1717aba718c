"""
Conversation state store backed by SQLite.

Provides:
- Message records (one per completed turn) and per-conversation meta
- Newest-first history reads returned in chronological order
- Atomic write of a completed turn together with its meta record
- Cleanup of expired conversations
"""

from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import aiosqlite
from loguru import logger

from portfolio_agent.config.settings import settings, resolve_path
from portfolio_agent.models.domain import ConversationMessage, ConversationMeta, MessageStatus
from portfolio_agent.utils.errors import StoreError


SCHEMA = """
CREATE TABLE IF NOT EXISTS messages (
    conversation_id TEXT NOT NULL,
    sort_key TEXT NOT NULL,
    text TEXT NOT NULL,
    answer TEXT NOT NULL DEFAULT '',
    tokens INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL,
    expires_at INTEGER NOT NULL,
    PRIMARY KEY (conversation_id, sort_key)
);
CREATE TABLE IF NOT EXISTS conversation_meta (
    conversation_id TEXT PRIMARY KEY,
    turns INTEGER NOT NULL,
    last_activity TEXT NOT NULL,
    expires_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_messages_expires_at ON messages (expires_at);
CREATE INDEX IF NOT EXISTS idx_meta_expires_at ON conversation_meta (expires_at);
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def message_sort_key(ts: datetime) -> str:
    """Sort key for a message; lexical order matches chronological order."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class ConversationStore:
    """SQLite implementation of the conversation state store"""

    def __init__(self, db_path: Optional[str] = None, ttl_days: Optional[int] = None):
        """
        Initialize conversation store

        Args:
            db_path: Path to SQLite database (defaults to settings.state_db_path)
            ttl_days: Days a conversation is kept after its last write
        """
        self.db_path = Path(db_path) if db_path else resolve_path(settings.state_db_path)
        self.ttl = timedelta(days=ttl_days if ttl_days is not None else settings.conversation_ttl_days)
        self._initialized = False

        # Ensure directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def _connect(self):
        # Autocommit mode: transactions are opened explicitly with BEGIN
        conn = await aiosqlite.connect(str(self.db_path), timeout=10.0, isolation_level=None)
        try:
            await conn.execute("PRAGMA busy_timeout=5000")
            conn.row_factory = aiosqlite.Row
            yield conn
        finally:
            await conn.close()

    async def async_init(self):
        """Create tables and enable WAL mode - call this from lifespan startup"""
        if self._initialized:
            return
        try:
            async with self._connect() as conn:
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.executescript(SCHEMA)
        except aiosqlite.Error as e:
            raise StoreError(f"initialize conversation store: {e}") from e
        self._initialized = True
        logger.info(f"Initialized conversation store at {self.db_path}")

    def _expires_at(self, now: datetime) -> int:
        return int((now + self.ttl).timestamp())

    def new_message(self, conversation_id: str, text: str, status: str, tokens: int = 0) -> ConversationMessage:
        """Message record stamped with the current time and expiry."""
        now = _utcnow()
        return ConversationMessage(
            conversation_id=conversation_id,
            text=text,
            status=status,
            created_at=message_sort_key(now),
            tokens=tokens,
        )

    def new_meta(self, conversation_id: str, turns: int) -> ConversationMeta:
        now = _utcnow()
        return ConversationMeta(
            conversation_id=conversation_id,
            turns=turns,
            last_activity=now.strftime("%Y-%m-%dT%H:%M:%SZ"),
            expires_at=self._expires_at(now),
        )

    async def get_turn_count(self, conversation_id: str) -> int:
        """Persisted successful turn count; 0 when the conversation is unknown."""
        try:
            async with self._connect() as conn:
                cursor = await conn.execute(
                    "SELECT turns FROM conversation_meta WHERE conversation_id = ?",
                    (conversation_id,),
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"get turn count: {e}") from e

        if row is None:
            return 0
        turns = row["turns"]
        if not isinstance(turns, int):
            raise StoreError(f"get turn count: turns is not an integer ({type(turns).__name__})")
        return turns

    async def get_history(self, conversation_id: str, limit: int) -> List[ConversationMessage]:
        """
        Load up to `limit` most recent messages for a conversation.

        Rows are read newest first so the limit keeps the most recent context,
        then reversed to chronological order.
        """
        try:
            async with self._connect() as conn:
                cursor = await conn.execute(
                    "SELECT conversation_id, sort_key, text, answer, tokens, status "
                    "FROM messages WHERE conversation_id = ? "
                    "ORDER BY sort_key DESC LIMIT ?",
                    (conversation_id, max(int(limit), 0)),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"get history: {e}") from e

        messages = [
            ConversationMessage(
                conversation_id=row["conversation_id"],
                text=row["text"],
                answer=row["answer"] or "",
                status=row["status"] or "",
                created_at=row["sort_key"],
                tokens=row["tokens"] or 0,
            )
            for row in rows
        ]
        messages.reverse()
        return messages

    async def save_turn(self, message: ConversationMessage, meta: ConversationMeta) -> None:
        """
        Write a message and the conversation meta in one transaction.

        The message insert fails if a record with the same key already
        exists; in that case nothing is written.
        """
        if not message.conversation_id or not message.created_at:
            raise StoreError("save turn: message conversation id and timestamp are required")
        if not meta.conversation_id:
            raise StoreError("save turn: meta conversation id is required")

        now = _utcnow()
        try:
            async with self._connect() as conn:
                await conn.execute("BEGIN IMMEDIATE")
                try:
                    await conn.execute(
                        "INSERT INTO messages "
                        "(conversation_id, sort_key, text, answer, tokens, status, expires_at) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?)",
                        (
                            message.conversation_id,
                            message.created_at,
                            message.text,
                            message.answer,
                            message.tokens,
                            message.status,
                            self._expires_at(now),
                        ),
                    )
                    await conn.execute(
                        "INSERT INTO conversation_meta (conversation_id, turns, last_activity, expires_at) "
                        "VALUES (?, ?, ?, ?) "
                        "ON CONFLICT(conversation_id) DO UPDATE SET "
                        "turns = excluded.turns, "
                        "last_activity = excluded.last_activity, "
                        "expires_at = excluded.expires_at",
                        (meta.conversation_id, meta.turns, meta.last_activity, meta.expires_at),
                    )
                except BaseException:
                    await conn.execute("ROLLBACK")
                    raise
                await conn.execute("COMMIT")
        except aiosqlite.Error as e:
            raise StoreError(f"save turn: {e}") from e

    async def save_completed_turn(
        self, conversation_id: str, question: str, answer: str, turns: int
    ) -> None:
        """Persist a successful turn as a complete message and update the turn count."""
        message = replace(
            self.new_message(conversation_id, question, MessageStatus.COMPLETE.value),
            answer=answer,
        )
        await self.save_turn(message, self.new_meta(conversation_id, turns))

    async def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete messages and meta records whose expiry has passed

        Returns:
            Number of conversations whose meta record was deleted
        """
        cutoff = int((now or _utcnow()).timestamp())
        try:
            async with self._connect() as conn:
                await conn.execute("BEGIN IMMEDIATE")
                try:
                    await conn.execute("DELETE FROM messages WHERE expires_at <= ?", (cutoff,))
                    cursor = await conn.execute(
                        "DELETE FROM conversation_meta WHERE expires_at <= ?", (cutoff,)
                    )
                    deleted = cursor.rowcount
                except BaseException:
                    await conn.execute("ROLLBACK")
                    raise
                await conn.execute("COMMIT")
        except aiosqlite.Error as e:
            raise StoreError(f"cleanup expired conversations: {e}") from e

        if deleted > 0:
            logger.info(f"Cleaned up {deleted} expired conversations")
        return deleted
