"""
SQLite state store for the persisted snapshot.

The store holds exactly one snapshot: the current state. ``write_snapshot``
replaces every table inside a single transaction, so a reader sees either the
previous snapshot or the new one, never a mix.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, List, Optional, Tuple

import aiosqlite

from chatwarden.database.db_schema import SNAPSHOT_TABLES, SchemaManager
from chatwarden.datatypes.state_datatypes import PersistedSnapshot, SnapshotFormatError
from chatwarden.util.logger import get_logger

logger = get_logger("database")

DB_PATH = Path("./data/chatwarden.db").resolve()

_PRAGMAS = [
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA temp_store = MEMORY",
]


class SnapshotStore:
    """
    Reads and writes the persisted snapshot.

    Lifecycle:
        1. ``initialize()`` at startup creates the directory and schema
        2. ``read_snapshot()`` restores state
        3. ``write_snapshot()`` after every state change

    Both data methods raise on I/O or format errors; the state manager
    decides what a failure means.
    """

    def __init__(self, db_path: Path = DB_PATH):
        self.db_path = db_path
        self._initialized = False

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(self.db_path) as db:
            for pragma in _PRAGMAS:
                await db.execute(pragma)
            yield db

    async def initialize(self) -> bool:
        """Create the database file and schema. Returns False on failure."""
        if self._initialized:
            return True

        try:
            await self._ensure_schema()
        except Exception as exc:
            logger.error("[DATABASE] Database initialization failed for %s: %s", self.db_path, exc)
            return False

        logger.info("[DATABASE] Database initialized at %s", self.db_path)
        return True

    async def _ensure_schema(self) -> None:
        if self._initialized:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self.get_connection() as db:
            await SchemaManager.initialize_schema(db)
        self._initialized = True

    async def write_snapshot(self, snapshot: PersistedSnapshot) -> None:
        """Replace the stored snapshot with ``snapshot`` atomically."""
        await self._ensure_schema()

        async with self.get_connection() as db:
            try:
                for table in SNAPSHOT_TABLES:
                    await db.execute(f"DELETE FROM {table}")

                await db.executemany(
                    "INSERT INTO active_groups (group_id, position) VALUES (?, ?)",
                    [(group_id, pos) for pos, group_id in enumerate(snapshot.active_groups)],
                )
                await db.executemany(
                    "INSERT INTO user_interactions (user_id, count, position) VALUES (?, ?, ?)",
                    [(user_id, count, pos) for pos, (user_id, count) in enumerate(snapshot.user_interactions)],
                )
                await db.executemany(
                    "INSERT INTO user_warnings (user_id, count, position) VALUES (?, ?, ?)",
                    [(user_id, count, pos) for pos, (user_id, count) in enumerate(snapshot.user_warnings)],
                )
                await db.executemany(
                    "INSERT INTO offensive_words (position, word) VALUES (?, ?)",
                    list(enumerate(snapshot.offensive_words)),
                )
                await db.execute(
                    "INSERT OR REPLACE INTO snapshot_meta (id, saved_at) VALUES (1, ?)",
                    (datetime.now(timezone.utc).isoformat(),),
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    async def read_snapshot(self) -> Optional[PersistedSnapshot]:
        """Return the stored snapshot, or None if none was ever written."""
        if not self.db_path.exists():
            return None

        await self._ensure_schema()

        async with self.get_connection() as db:
            async with db.execute("SELECT saved_at FROM snapshot_meta WHERE id = 1") as cursor:
                if await cursor.fetchone() is None:
                    return None

            async with db.execute("SELECT group_id FROM active_groups ORDER BY position") as cursor:
                active_groups = [row[0] for row in await cursor.fetchall()]

            user_interactions = await self._read_counts(db, "user_interactions")
            user_warnings = await self._read_counts(db, "user_warnings")

            async with db.execute("SELECT word FROM offensive_words ORDER BY position") as cursor:
                offensive_words = [row[0] for row in await cursor.fetchall()]

        return PersistedSnapshot(
            active_groups=active_groups,
            user_interactions=user_interactions,
            user_warnings=user_warnings,
            offensive_words=offensive_words,
        )

    @staticmethod
    async def _read_counts(db: aiosqlite.Connection, table: str) -> List[Tuple[str, int]]:
        async with db.execute(f"SELECT user_id, count FROM {table} ORDER BY position") as cursor:
            rows = await cursor.fetchall()

        pairs: List[Tuple[str, int]] = []
        for user_id, count in rows:
            if not isinstance(count, int) or count < 0:
                raise SnapshotFormatError(f"{table} holds an invalid count {count!r} for {user_id!r}")
            pairs.append((str(user_id), count))
        return pairs
