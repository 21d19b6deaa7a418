"""SQLite schema for the session cache.

One table: sessions, the last known app state per account, written after
each successful login.
"""

SESSIONS_DDL = """
CREATE TABLE IF NOT EXISTS sessions (
    user_id TEXT PRIMARY KEY,
    app_state TEXT NOT NULL,
    region TEXT,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

SCHEMA = SESSIONS_DDL
