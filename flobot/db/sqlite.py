"""SQLite trigger store."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import aiosqlite

from flobot.db.base import DatabaseError, TriggerStore
from flobot.models import Trigger
from flobot.utils.logging import get_logger

log = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS triggers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    team_id TEXT NOT NULL,
    triggered_by TEXT NOT NULL,
    text_ TEXT,
    emoji TEXT,
    UNIQUE (team_id, triggered_by)
);
"""

_UPSERT = (
    "INSERT INTO triggers (team_id, triggered_by, text_, emoji) VALUES (?, ?, ?, ?) "
    "ON CONFLICT(team_id, triggered_by) DO UPDATE SET "
    "text_ = excluded.text_, emoji = excluded.emoji"
)


class SqliteTriggerStore(TriggerStore):
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def start(self) -> None:
        if str(self._db_path) != ":memory:":
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._db_path))
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        log.info("trigger_store_started", path=str(self._db_path))

    async def stop(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def list(self, team_id: str) -> list[Trigger]:
        return await self._select(
            "SELECT triggered_by, text_, emoji FROM triggers "
            "WHERE team_id = ? ORDER BY triggered_by",
            team_id,
        )

    async def search(self, team_id: str) -> list[Trigger]:
        return await self._select(
            "SELECT triggered_by, text_, emoji FROM triggers "
            "WHERE team_id = ? ORDER BY text_ IS NULL, triggered_by",
            team_id,
        )

    async def add_text(self, team_id: str, trigger: str, text: str) -> None:
        await self._write(_UPSERT, (team_id, trigger, text, None))

    async def add_emoji(self, team_id: str, trigger: str, emoji: str) -> None:
        await self._write(_UPSERT, (team_id, trigger, None, emoji))

    async def delete(self, team_id: str, trigger: str) -> None:
        await self._write(
            "DELETE FROM triggers WHERE team_id = ? AND triggered_by = ?",
            (team_id, trigger),
        )

    async def _select(self, query: str, team_id: str) -> list[Trigger]:
        assert self._db is not None
        try:
            cursor = await self._db.execute(query, (team_id,))
            rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(str(e)) from e
        return [Trigger(triggered_by=row[0], text=row[1], emoji=row[2]) for row in rows]

    async def _write(self, query: str, params: tuple[str | None, ...]) -> None:
        assert self._db is not None
        try:
            await self._db.execute(query, params)
            await self._db.commit()
        except sqlite3.Error as e:
            raise DatabaseError(str(e)) from e
