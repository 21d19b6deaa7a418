"""SQLite client backing the session cache.

Connected and synced in the background after login, then used to record
the session's app state.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from fchat.config import DEFAULT_DB_PATH
from fchat.database.schema import SCHEMA


class SQLiteClient:
    def __init__(self, database_path: Optional[str] = None):
        self.database_path = database_path or os.getenv(
            "FCHAT_SQLITE_PATH", DEFAULT_DB_PATH
        )
        self._db: Optional[aiosqlite.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    async def connect(self) -> None:
        if self._db is not None:
            return  # idempotent
        if self.database_path != ":memory:":
            Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self.database_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA journal_mode = WAL")

    async def disconnect(self) -> None:
        db, self._db = self._db, None
        if db is not None:
            await db.close()

    async def sync_all(self, schema: str = SCHEMA) -> None:
        """Create any missing tables."""
        await self._db.executescript(schema)
        await self._db.commit()

    async def fetch_one(self, query: str, params=None) -> Optional[Dict[str, Any]]:
        cursor = await self._db.execute(query, self._convert_params(params))
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def upsert(self, table: str, data: Dict[str, Any], key_columns: List[str]) -> None:
        cols = ", ".join(data.keys())
        placeholders = ", ".join(f":{k}" for k in data.keys())
        update_cols = [k for k in data.keys() if k not in key_columns]
        set_clause = ", ".join(f"{k} = excluded.{k}" for k in update_cols)
        query = f"INSERT INTO {table} ({cols}) VALUES ({placeholders})"
        if set_clause:
            query += f" ON CONFLICT ({', '.join(key_columns)}) DO UPDATE SET {set_clause}"
        await self._db.execute(query, data)
        await self._db.commit()

    async def save_session(
        self, user_id: str, app_state: List[Dict[str, Any]], region: Optional[str] = None
    ) -> None:
        await self.upsert(
            "sessions",
            {
                "user_id": user_id,
                "app_state": json.dumps(app_state),
                "region": region,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            ["user_id"],
        )

    async def load_session(self, user_id: str) -> Optional[List[Dict[str, Any]]]:
        """Last saved app state for an account, or None."""
        row = await self.fetch_one("SELECT app_state FROM sessions WHERE user_id = ?", [user_id])
        return json.loads(row["app_state"]) if row else None

    # -- internals --

    def _convert_params(self, params):
        if params is None:
            return []
        if isinstance(params, dict):
            return params
        return list(params)
