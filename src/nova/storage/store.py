"""ChatStore: aiosqlite persistence for users, messages, knowledge and strategies."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import aiosqlite

from nova.config import settings
from nova.errors import DatabaseError
from nova.storage.models import ChatMessage, KnowledgeEntry, StrategyRecord, User

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        wallet_address TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id),
        role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
        content TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS knowledge (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id),
        source_id TEXT NOT NULL,
        content TEXT NOT NULL,
        tags TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (user_id, source_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS strategies (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id),
        strategy_id TEXT NOT NULL,
        name TEXT NOT NULL,
        category TEXT NOT NULL,
        description TEXT NOT NULL,
        risk_level TEXT NOT NULL,
        tags TEXT NOT NULL DEFAULT '[]',
        steps TEXT NOT NULL DEFAULT '[]',
        requirements TEXT NOT NULL DEFAULT '[]',
        expected_returns TEXT NOT NULL DEFAULT '{}',
        author TEXT NOT NULL,
        version TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (user_id, strategy_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_messages_user ON messages (user_id, id)",
)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _clean_tags(tags: list[str]) -> list[str]:
    """Lowercase, strip, drop empties and duplicates (order kept)."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def _like(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ChatStore:
    """Persists the chat state in SQLite.

    Singleton accessed via ``ChatStore.get()``.  Pass an explicit *db_path*
    for test isolation (e.g. ``tmp_path / "test.db"``).  Every query is
    scoped to a ``user_id``; SQLite failures surface as ``DatabaseError``.
    """

    _instance: ChatStore | None = None

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    @classmethod
    def get(cls) -> ChatStore:
        """Return the shared ChatStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        db.row_factory = aiosqlite.Row
        if not self._initialised:
            for statement in _SCHEMA:
                await db.execute(statement)
            await db.commit()
            self._initialised = True
        return db

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            db = await self._connect()
        except (aiosqlite.Error, OSError) as exc:
            msg = f"Could not open database {self._db_path}: {exc}"
            raise DatabaseError(msg) from exc
        try:
            yield db
        except aiosqlite.Error as exc:
            msg = f"Database operation failed: {exc}"
            raise DatabaseError(msg) from exc
        finally:
            await db.close()

    # -- Users -----------------------------------------------------------------

    async def get_user_by_name(self, username: str) -> User | None:
        async with self._session() as db:
            cursor = await db.execute(
                "SELECT * FROM users WHERE username = ?", (username,)
            )
            row = await cursor.fetchone()
            return User.model_validate(dict(row)) if row else None

    async def create_user(self, username: str, wallet_address: str | None = None) -> User:
        """Insert a new user. Raises DatabaseError if the name is taken."""
        ts = _now()
        async with self._session() as db:
            cursor = await db.execute(
                """
                INSERT INTO users (username, wallet_address, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (username, wallet_address, ts, ts),
            )
            await db.commit()
            logger.info("Created user %s (id=%s)", username, cursor.lastrowid)
            return User(
                id=cursor.lastrowid,
                username=username,
                wallet_address=wallet_address,
                created_at=ts,
                updated_at=ts,
            )

    async def get_or_create_user(self, username: str) -> User:
        user = await self.get_user_by_name(username)
        if user is not None:
            return user
        return await self.create_user(username)

    # -- Messages --------------------------------------------------------------

    async def save_message(self, user_id: int, role: str, content: str) -> ChatMessage:
        """Append one conversation turn."""
        message = ChatMessage(user_id=user_id, role=role, content=content, created_at=_now())
        async with self._session() as db:
            cursor = await db.execute(
                "INSERT INTO messages (user_id, role, content, created_at) VALUES (?, ?, ?, ?)",
                (message.user_id, message.role, message.content, message.created_at),
            )
            await db.commit()
            message.id = cursor.lastrowid
            return message

    async def get_recent_messages(self, user_id: int, limit: int = 10) -> list[ChatMessage]:
        """The last *limit* turns for *user_id*, oldest first."""
        async with self._session() as db:
            cursor = await db.execute(
                "SELECT * FROM messages WHERE user_id = ? ORDER BY id DESC LIMIT ?",
                (user_id, limit),
            )
            rows = await cursor.fetchall()
            return [ChatMessage.model_validate(dict(row)) for row in reversed(rows)]

    # -- Knowledge -------------------------------------------------------------

    async def create_knowledge(
        self, user_id: int, source_id: str, content: str, tags: list[str]
    ) -> KnowledgeEntry:
        """Insert a knowledge entry. Raises DatabaseError on a duplicate source_id."""
        ts = _now()
        entry = KnowledgeEntry(
            user_id=user_id,
            source_id=source_id,
            content=content,
            tags=_clean_tags(tags),
            created_at=ts,
            updated_at=ts,
        )
        async with self._session() as db:
            cursor = await db.execute(
                """
                INSERT INTO knowledge (user_id, source_id, content, tags, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, source_id, content, json.dumps(entry.tags), ts, ts),
            )
            await db.commit()
            entry.id = cursor.lastrowid
            logger.info("Stored knowledge %s (tags=%s)", source_id, entry.tags)
            return entry

    async def get_knowledge_by_tags(self, user_id: int, tags: list[str]) -> list[KnowledgeEntry]:
        """Entries sharing at least one tag with *tags*, newest first, no duplicates."""
        wanted = _clean_tags(tags)
        if not wanted:
            return []
        placeholders = ", ".join("?" for _ in wanted)
        async with self._session() as db:
            cursor = await db.execute(
                f"""
                SELECT DISTINCT k.* FROM knowledge AS k, json_each(k.tags) AS t
                WHERE k.user_id = ? AND t.value IN ({placeholders})
                ORDER BY k.updated_at DESC, k.id DESC
                """,  # noqa: S608
                (user_id, *wanted),
            )
            rows = await cursor.fetchall()
            return [KnowledgeEntry.model_validate(dict(row)) for row in rows]

    async def get_knowledge_by_tag(self, user_id: int, tag: str) -> list[KnowledgeEntry]:
        return await self.get_knowledge_by_tags(user_id, [tag])

    async def search_knowledge(self, user_id: int, text: str) -> list[KnowledgeEntry]:
        """Case-insensitive substring search over knowledge content."""
        async with self._session() as db:
            cursor = await db.execute(
                """
                SELECT * FROM knowledge
                WHERE user_id = ? AND content LIKE ? ESCAPE '\\'
                ORDER BY updated_at DESC, id DESC
                """,
                (user_id, _like(text)),
            )
            rows = await cursor.fetchall()
            return [KnowledgeEntry.model_validate(dict(row)) for row in rows]

    # -- Strategies ------------------------------------------------------------

    async def strategy_exists(self, user_id: int, strategy_id: str) -> bool:
        async with self._session() as db:
            cursor = await db.execute(
                "SELECT 1 FROM strategies WHERE user_id = ? AND strategy_id = ?",
                (user_id, strategy_id),
            )
            return await cursor.fetchone() is not None

    async def create_strategy(self, record: StrategyRecord) -> StrategyRecord:
        """Insert *record*. Raises DatabaseError on a duplicate strategy_id."""
        ts = _now()
        saved = record.model_copy(
            update={
                "tags": _clean_tags(record.tags) or ["investment"],
                "created_at": record.created_at or ts,
                "updated_at": ts,
            }
        )
        async with self._session() as db:
            cursor = await db.execute(
                """
                INSERT INTO strategies
                    (user_id, strategy_id, name, category, description, risk_level,
                     tags, steps, requirements, expected_returns, author, version,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    saved.user_id,
                    saved.strategy_id,
                    saved.name,
                    saved.category,
                    saved.description,
                    saved.risk_level,
                    json.dumps(saved.tags),
                    json.dumps(saved.steps),
                    json.dumps(saved.requirements),
                    json.dumps(saved.expected_returns),
                    saved.author,
                    saved.version,
                    saved.created_at,
                    saved.updated_at,
                ),
            )
            await db.commit()
            saved.id = cursor.lastrowid
            logger.info("Saved strategy %s for user %s", saved.strategy_id, saved.user_id)
            return saved

    async def get_strategies(self, user_id: int) -> list[StrategyRecord]:
        async with self._session() as db:
            cursor = await db.execute(
                "SELECT * FROM strategies WHERE user_id = ? ORDER BY id", (user_id,)
            )
            rows = await cursor.fetchall()
            return [StrategyRecord.model_validate(dict(row)) for row in rows]

    async def search_strategies(self, user_id: int, text: str) -> list[StrategyRecord]:
        """Substring search over strategy name, description and category."""
        pattern = _like(text)
        async with self._session() as db:
            cursor = await db.execute(
                """
                SELECT * FROM strategies
                WHERE user_id = ?
                  AND (name LIKE ? ESCAPE '\\'
                       OR description LIKE ? ESCAPE '\\'
                       OR category LIKE ? ESCAPE '\\')
                ORDER BY id
                """,
                (user_id, pattern, pattern, pattern),
            )
            rows = await cursor.fetchall()
            return [StrategyRecord.model_validate(dict(row)) for row in rows]
