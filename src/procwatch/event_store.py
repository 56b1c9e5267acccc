"""SQLite-backed append-only store for tagged log events."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

import aiosqlite

from procwatch.extraction import TaggedEvent
from procwatch.utils import DB_PATH

MAX_EVENTS_PER_GROUP = 5000


class EventStore:
    """Asynchronous SQLite store using aiosqlite."""

    def __init__(self, db_path: Path = DB_PATH) -> None:
        self._db_path = Path(db_path)
        self._schema_ensured = False
        self._conn: aiosqlite.Connection | None = None

    async def _get_conn(self) -> aiosqlite.Connection:
        """Return persistent connection, creating it lazily on first use."""
        if self._conn is not None:
            return self._conn
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(str(self._db_path))
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        if not self._schema_ensured:
            self._schema_ensured = True
            await self._ensure_schema(conn)
        self._conn = conn
        return conn

    async def close(self) -> None:
        """Close the persistent connection. Call on shutdown."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def _ensure_schema(self, conn: aiosqlite.Connection) -> None:
        await conn.executescript("""
            CREATE TABLE IF NOT EXISTS log_events (
                id           INTEGER PRIMARY KEY AUTOINCREMENT,
                source_group TEXT NOT NULL,
                source_file  TEXT NOT NULL,
                line_number  INTEGER NOT NULL,
                tag          TEXT NOT NULL,
                text         TEXT NOT NULL,
                created_at   TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_log_events_group
                ON log_events(source_group, id DESC);

            CREATE INDEX IF NOT EXISTS idx_log_events_tag
                ON log_events(tag);
        """)
        await conn.commit()

    # ── Sink ──────────────────────────────────────────────────────────────

    async def append(self, events: Sequence[TaggedEvent]) -> None:
        """Insert *events* in order. An empty sequence is a no-op."""
        if not events:
            return
        now = datetime.now(timezone.utc).isoformat()
        conn = await self._get_conn()
        await conn.executemany(
            "INSERT INTO log_events (source_group, source_file, line_number, tag, text, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            [(e.source_group, e.source_file, e.line_number, e.tag, e.text, now) for e in events],
        )
        # Auto-prune to the newest MAX_EVENTS_PER_GROUP per group
        for group in {e.source_group for e in events}:
            await conn.execute(
                "DELETE FROM log_events WHERE source_group = ? AND id NOT IN "
                "(SELECT id FROM log_events WHERE source_group = ? ORDER BY id DESC LIMIT ?)",
                (group, group, MAX_EVENTS_PER_GROUP),
            )
        await conn.commit()

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_events(
        self, group: str | None = None, tag: str | None = None, limit: int = 50,
    ) -> list[dict[str, Any]]:
        clauses, params = [], []
        if group is not None:
            clauses.append("source_group = ?")
            params.append(group)
        if tag is not None:
            clauses.append("tag = ?")
            params.append(tag)
        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
        conn = await self._get_conn()
        rows = await (await conn.execute(
            "SELECT id, source_group, source_file, line_number, tag, text, created_at "
            f"FROM log_events {where}ORDER BY id DESC LIMIT ?",
            (*params, limit),
        )).fetchall()
        return [dict(r) for r in rows]

    async def get_tag_counts(self, group: str | None = None) -> list[dict[str, Any]]:
        conn = await self._get_conn()
        if group is not None:
            rows = await (await conn.execute(
                "SELECT tag, COUNT(*) as count FROM log_events "
                "WHERE source_group = ? GROUP BY tag ORDER BY count DESC",
                (group,),
            )).fetchall()
        else:
            rows = await (await conn.execute(
                "SELECT tag, COUNT(*) as count FROM log_events GROUP BY tag ORDER BY count DESC",
            )).fetchall()
        return [{"tag": r["tag"], "count": r["count"]} for r in rows]

    async def clear_events(self, group: str | None = None) -> None:
        conn = await self._get_conn()
        if group is not None:
            await conn.execute("DELETE FROM log_events WHERE source_group = ?", (group,))
        else:
            await conn.execute("DELETE FROM log_events")
        await conn.commit()
