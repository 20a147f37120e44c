"""Persistence for memory items and profiles: narrow save/load façade."""

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections import Counter
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from db import wal_session

from .errors import MalformedStoredRecord, StoreUnavailable
from .models import MemoryItem, MemoryKind, Profile, Sentiment, parse_timestamp

logger = structlog.get_logger()


class MemoryStore(ABC):
    """Durable store contract. Holds no scoring or business logic.

    ``save_items`` must be atomic with respect to concurrent ``load_items``:
    a reader sees either none or all of a saved batch.
    """

    @abstractmethod
    def save_items(self, user_id: str, items: list[MemoryItem]) -> int:
        """Append items to the user's collection. Returns count saved."""

    @abstractmethod
    def load_items(self, user_id: str) -> list[MemoryItem]:
        """All items for the user in insertion order; [] when none exist."""

    @abstractmethod
    def save_profile(self, profile: Profile) -> None:
        """Overwrite the stored profile for ``profile.user_id``."""

    @abstractmethod
    def load_profile(self, user_id: str) -> Optional[Profile]:
        """Stored profile, or None if never consolidated."""

    def get_stats(self, user_id: str) -> dict:
        """Item counts by kind and total."""
        items = self.load_items(user_id)
        by_kind = Counter(item.kind.value for item in items)
        return {
            "total": len(items),
            "by_kind": dict(by_kind),
            "conversations": len({item.conversation_id for item in items}),
        }


class InMemoryStore(MemoryStore):
    """Process-local store. Used for tests and embedded use without a database."""

    def __init__(self):
        self._items: dict[str, list[MemoryItem]] = {}
        self._profiles: dict[str, str] = {}
        self._lock = threading.Lock()

    def save_items(self, user_id: str, items: list[MemoryItem]) -> int:
        with self._lock:
            self._items.setdefault(user_id, []).extend(items)
        return len(items)

    def load_items(self, user_id: str) -> list[MemoryItem]:
        with self._lock:
            return list(self._items.get(user_id, []))

    def save_profile(self, profile: Profile) -> None:
        with self._lock:
            self._profiles[profile.user_id] = profile.model_dump_json()

    def load_profile(self, user_id: str) -> Optional[Profile]:
        with self._lock:
            raw = self._profiles.get(user_id)
        if raw is None:
            return None
        return Profile.model_validate_json(raw)


class SQLiteMemoryStore(MemoryStore):
    """SQLite persistence: append-only item table plus one profile row per user."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self._write_lock = threading.Lock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailable(f"Cannot open memory store at {self.db_path}: {e}") from e

    def _init_db(self):
        with wal_session(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS memory_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    conversation_id TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    content TEXT NOT NULL,
                    topics TEXT NOT NULL DEFAULT '[]',
                    entities TEXT NOT NULL DEFAULT '[]',
                    sentiment TEXT NOT NULL DEFAULT 'neutral',
                    importance REAL NOT NULL DEFAULT 0.5
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_memory_items_user
                ON memory_items(user_id)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    user_id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    def save_items(self, user_id: str, items: list[MemoryItem]) -> int:
        if not items:
            return 0
        rows = [
            (
                user_id,
                item.conversation_id,
                item.timestamp.isoformat(),
                item.kind.value,
                item.content,
                json.dumps(list(item.topics)),
                json.dumps(list(item.entities)),
                item.sentiment.value,
                item.importance,
            )
            for item in items
        ]
        try:
            # Single transaction: readers never see a partial batch
            with self._write_lock, wal_session(self.db_path) as conn:
                conn.executemany(
                    """INSERT INTO memory_items
                       (user_id, conversation_id, timestamp, kind, content,
                        topics, entities, sentiment, importance)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    rows,
                )
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Failed to save memory items: {e}") from e

        logger.debug("memory.store.items_saved", user_id=user_id, count=len(rows))
        return len(rows)

    def load_items(self, user_id: str) -> list[MemoryItem]:
        try:
            with wal_session(self.db_path, row_factory=True) as conn:
                rows = conn.execute(
                    "SELECT * FROM memory_items WHERE user_id = ? ORDER BY id", (user_id,)
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Failed to load memory items: {e}") from e

        items = []
        for row in rows:
            try:
                items.append(self._row_to_item(row))
            except MalformedStoredRecord as e:
                logger.warning("memory.store.malformed_item", row_id=row["id"], error=str(e))
        return items

    def save_profile(self, profile: Profile) -> None:
        try:
            with self._write_lock, wal_session(self.db_path) as conn:
                conn.execute(
                    """INSERT OR REPLACE INTO profiles (user_id, data, updated_at)
                       VALUES (?, ?, ?)""",
                    (
                        profile.user_id,
                        profile.model_dump_json(),
                        profile.last_updated.isoformat(),
                    ),
                )
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Failed to save profile: {e}") from e

    def load_profile(self, user_id: str) -> Optional[Profile]:
        try:
            with wal_session(self.db_path) as conn:
                row = conn.execute(
                    "SELECT data FROM profiles WHERE user_id = ?", (user_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Failed to load profile: {e}") from e

        if not row:
            return None
        try:
            return Profile.model_validate_json(row[0])
        except ValidationError as e:
            logger.warning("memory.store.malformed_profile", user_id=user_id, error=str(e))
            return None

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> MemoryItem:
        try:
            return MemoryItem(
                conversation_id=row["conversation_id"],
                timestamp=parse_timestamp(row["timestamp"]),
                kind=MemoryKind(row["kind"]),
                content=row["content"],
                topics=tuple(json.loads(row["topics"] or "[]")),
                entities=tuple(json.loads(row["entities"] or "[]")),
                sentiment=Sentiment(row["sentiment"]),
                importance=float(row["importance"]),
            )
        except (ValueError, TypeError) as e:
            raise MalformedStoredRecord(str(e)) from e
