"""
SQLite persistence.

- **db_connection.py**: the shared aiosqlite connection (``db_connection``),
  serialised write transactions and ``database_url`` parsing.
- **db_schema.py**: table creation and schema version tracking.
"""
