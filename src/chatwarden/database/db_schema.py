"""
Database schema initialization.

One table per state container, each with a ``position`` column so the
in-memory insertion order is restored on load, plus ``snapshot_meta`` whose
single row marks that a snapshot has been written.
"""

import aiosqlite
from chatwarden.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1

SNAPSHOT_TABLES = ("active_groups", "user_interactions", "user_warnings", "offensive_words")


class SchemaManager:
    """Creates the snapshot tables and records the schema version."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        await SchemaManager._create_tables(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.debug("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS active_groups (
                group_id TEXT PRIMARY KEY,
                position INTEGER NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS user_interactions (
                user_id TEXT PRIMARY KEY,
                count INTEGER NOT NULL,
                position INTEGER NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS user_warnings (
                user_id TEXT PRIMARY KEY,
                count INTEGER NOT NULL,
                position INTEGER NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS offensive_words (
                position INTEGER PRIMARY KEY,
                word TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS snapshot_meta (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                saved_at TIMESTAMP NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute(
            "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
