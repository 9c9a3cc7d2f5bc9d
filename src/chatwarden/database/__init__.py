"""
SQLite-backed state store.

- **db_schema.py**: table creation and schema version tracking
- **database.py**: atomic snapshot writes and reads through aiosqlite
"""
