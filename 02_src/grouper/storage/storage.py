"""SQLite storage implementation."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import HandleMapping, MessageRecord, TraceEvent


def _to_db(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat()


def _from_db(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class IStorage(Protocol):
    """Persistent storage for handle mappings, the message log and audit events."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Handle mappings
    async def save_handle_mapping(self, mapping: HandleMapping) -> None:
        """Insert or refresh a handle -> recipient mapping."""
        ...

    async def get_recipient_by_handle(self, username: str) -> str | None:
        """Look up the recipient id cached for a handle."""
        ...

    async def get_handle_by_recipient(self, recipient_id: str) -> str | None:
        """Reverse lookup of the most recently seen handle."""
        ...

    async def list_handle_mappings(self) -> list[HandleMapping]:
        """All cached mappings, most recently seen first."""
        ...

    # Messages
    async def save_message(self, message: MessageRecord) -> None:
        """Append an inbound message to the log."""
        ...

    async def get_messages(
        self, conversation_id: str, after: datetime | None = None
    ) -> list[MessageRecord]:
        """Get logged messages of a conversation, optionally after a timestamp."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Handle mappings
    async def save_handle_mapping(self, mapping: HandleMapping) -> None:
        """Insert or refresh a handle -> recipient mapping.

        first_seen_at survives refreshes, last_seen_at is bumped.
        """
        conn = self._require_conn()
        now = _to_db(mapping.last_seen_at or datetime.now(timezone.utc))
        username = mapping.username.lstrip("@").lower()

        await conn.execute(
            """
            INSERT INTO handle_mappings
            (username, recipient_id, address, source, first_seen_at, last_seen_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(username) DO UPDATE SET
                recipient_id = excluded.recipient_id,
                address = COALESCE(excluded.address, handle_mappings.address),
                source = excluded.source,
                last_seen_at = excluded.last_seen_at
            """,
            (
                username,
                mapping.recipient_id,
                mapping.address,
                mapping.source,
                _to_db(mapping.first_seen_at) if mapping.first_seen_at else now,
                now,
            ),
        )
        await conn.commit()

    async def get_recipient_by_handle(self, username: str) -> str | None:
        """Look up the recipient id cached for a handle."""
        conn = self._require_conn()
        cursor = await conn.execute(
            "SELECT recipient_id FROM handle_mappings WHERE username = ?",
            (username.lstrip("@").lower(),),
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def get_handle_by_recipient(self, recipient_id: str) -> str | None:
        """Reverse lookup of the most recently seen handle."""
        conn = self._require_conn()
        cursor = await conn.execute(
            """
            SELECT username FROM handle_mappings
            WHERE recipient_id = ?
            ORDER BY last_seen_at DESC
            LIMIT 1
            """,
            (recipient_id,),
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def list_handle_mappings(self) -> list[HandleMapping]:
        """All cached mappings, most recently seen first."""
        conn = self._require_conn()
        cursor = await conn.execute(
            """
            SELECT username, recipient_id, address, source, first_seen_at, last_seen_at
            FROM handle_mappings
            ORDER BY last_seen_at DESC
            """
        )
        rows = await cursor.fetchall()

        return [
            HandleMapping(
                username=row[0],
                recipient_id=row[1],
                address=row[2],
                source=row[3],
                first_seen_at=_from_db(row[4]),
                last_seen_at=_from_db(row[5]),
            )
            for row in rows
        ]

    # Messages
    async def save_message(self, message: MessageRecord) -> None:
        """Append an inbound message to the log."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR IGNORE INTO messages
            (id, sender_id, conversation_id, content, is_group, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                message.id or str(uuid.uuid4()),
                message.sender_id,
                message.conversation_id,
                message.content,
                int(message.is_group),
                _to_db(message.timestamp),
            ),
        )
        await conn.commit()

    async def get_messages(
        self, conversation_id: str, after: datetime | None = None
    ) -> list[MessageRecord]:
        """Get logged messages of a conversation, optionally after a timestamp."""
        conn = self._require_conn()

        if after:
            cursor = await conn.execute(
                """
                SELECT id, sender_id, conversation_id, content, is_group, timestamp
                FROM messages
                WHERE conversation_id = ? AND timestamp > ?
                ORDER BY timestamp ASC
                """,
                (conversation_id, _to_db(after)),
            )
        else:
            cursor = await conn.execute(
                """
                SELECT id, sender_id, conversation_id, content, is_group, timestamp
                FROM messages
                WHERE conversation_id = ?
                ORDER BY timestamp ASC
                """,
                (conversation_id,),
            )

        rows = await cursor.fetchall()

        return [
            MessageRecord(
                id=row[0],
                sender_id=row[1],
                conversation_id=row[2],
                content=row[3],
                is_group=bool(row[4]),
                timestamp=_from_db(row[5]),
            )
            for row in rows
        ]

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data),
                _to_db(event.timestamp),
            ),
        )
        await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        conn = self._require_conn()

        conditions = []
        params = []

        if after:
            conditions.append("timestamp > ?")
            params.append(_to_db(after))
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=_from_db(row[4]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        for table in ["handle_mappings", "messages", "trace_events"]:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
