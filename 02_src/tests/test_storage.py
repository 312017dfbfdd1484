"""Tests for Storage."""

from datetime import datetime, timedelta, timezone

import pytest

from grouper.models import HandleMapping, MessageRecord, TraceEvent
from grouper.storage import Storage


class TestStorageInit:
    """Tests for Storage initialization."""

    async def test_init_creates_tables(self, storage):
        """Test that init creates all tables."""
        async with storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            assert "handle_mappings" in tables
            assert "messages" in tables
            assert "trace_events" in tables

    async def test_use_before_init_raises(self):
        """Test that calls before init() fail clearly."""
        st = Storage(":memory:")
        with pytest.raises(RuntimeError, match="not initialized"):
            await st.get_recipient_by_handle("alice")


class TestStorageHandleMappings:
    """Tests for the handle cache."""

    async def test_save_and_lookup(self, storage):
        """Test handle -> recipient lookup."""
        await storage.save_handle_mapping(
            HandleMapping(username="alice.eth", recipient_id="alice-inbox", address="0xa")
        )
        assert await storage.get_recipient_by_handle("alice.eth") == "alice-inbox"

    async def test_lookup_is_case_and_at_insensitive(self, storage):
        """Test usernames are normalized."""
        await storage.save_handle_mapping(
            HandleMapping(username="@Alice.ETH", recipient_id="alice-inbox")
        )
        assert await storage.get_recipient_by_handle("alice.eth") == "alice-inbox"
        assert await storage.get_recipient_by_handle("@ALICE.eth") == "alice-inbox"

    async def test_unknown_handle(self, storage):
        assert await storage.get_recipient_by_handle("nobody") is None

    async def test_refresh_keeps_first_seen(self, storage):
        """Test upsert bumps last_seen_at but keeps first_seen_at and address."""
        first = datetime(2024, 1, 1, tzinfo=timezone.utc)
        later = first + timedelta(days=2)
        await storage.save_handle_mapping(
            HandleMapping(
                username="bob",
                recipient_id="bob-inbox",
                address="0xb0b",
                first_seen_at=first,
                last_seen_at=first,
            )
        )
        await storage.save_handle_mapping(
            HandleMapping(
                username="bob",
                recipient_id="bob-inbox-2",
                source="neynar",
                last_seen_at=later,
            )
        )

        mappings = await storage.list_handle_mappings()
        assert len(mappings) == 1
        mapping = mappings[0]
        assert mapping.recipient_id == "bob-inbox-2"
        assert mapping.address == "0xb0b"
        assert mapping.source == "neynar"
        assert mapping.first_seen_at == first
        assert mapping.last_seen_at == later

    async def test_reverse_lookup_latest(self, storage):
        """Test reverse lookup returns the most recently seen handle."""
        now = datetime.now(timezone.utc)
        await storage.save_handle_mapping(
            HandleMapping(
                username="old_name", recipient_id="r1", last_seen_at=now - timedelta(hours=1)
            )
        )
        await storage.save_handle_mapping(
            HandleMapping(username="new_name", recipient_id="r1", last_seen_at=now)
        )
        assert await storage.get_handle_by_recipient("r1") == "new_name"
        assert await storage.get_handle_by_recipient("r2") is None


class TestStorageMessages:
    """Tests for the message log."""

    async def test_save_and_get_messages(self, storage):
        """Test messages are returned oldest first per conversation."""
        base = datetime.now(timezone.utc)
        for i in range(3):
            await storage.save_message(
                MessageRecord(
                    id=f"m{i}",
                    sender_id="u1",
                    conversation_id="c1",
                    content=f"hello {i}",
                    is_group=True,
                    timestamp=base + timedelta(seconds=i),
                )
            )
        await storage.save_message(
            MessageRecord(
                id="other",
                sender_id="u1",
                conversation_id="c2",
                content="elsewhere",
                is_group=False,
                timestamp=base,
            )
        )

        messages = await storage.get_messages("c1")
        assert [m.content for m in messages] == ["hello 0", "hello 1", "hello 2"]
        assert all(m.is_group for m in messages)

        after = await storage.get_messages("c1", after=base)
        assert [m.id for m in after] == ["m1", "m2"]

    async def test_duplicate_message_ignored(self, storage):
        """Test redelivered events do not duplicate log rows."""
        record = MessageRecord(
            id="m1",
            sender_id="u1",
            conversation_id="c1",
            content="hi",
            is_group=False,
            timestamp=datetime.now(timezone.utc),
        )
        await storage.save_message(record)
        await storage.save_message(record)
        assert len(await storage.get_messages("c1")) == 1


class TestStorageTraceEvents:
    """Tests for TraceEvent storage."""

    async def test_filters(self, storage):
        """Test filtering by type, actor and time."""
        base = datetime.now(timezone.utc)
        events = [
            TraceEvent("t1", "group_created", "group_orchestrator", {}, base),
            TraceEvent("t2", "member_joined", "group_orchestrator", {}, base + timedelta(seconds=1)),
            TraceEvent("t3", "event_received", "message_router", {}, base + timedelta(seconds=2)),
        ]
        for event in events:
            await storage.save_trace_event(event)

        by_type = await storage.get_trace_events(event_types=["member_joined"])
        assert [e.id for e in by_type] == ["t2"]

        by_actor = await storage.get_trace_events(actor="message_router")
        assert [e.id for e in by_actor] == ["t3"]

        recent = await storage.get_trace_events(after=base)
        assert [e.id for e in recent] == ["t3", "t2"]

        limited = await storage.get_trace_events(limit=1)
        assert [e.id for e in limited] == ["t3"]


class TestStorageClear:
    """Tests for Storage.clear()."""

    async def test_clear_removes_everything(self, storage):
        await storage.save_handle_mapping(HandleMapping(username="a", recipient_id="r"))
        await storage.save_trace_event(
            TraceEvent("t1", "x", "y", {}, datetime.now(timezone.utc))
        )
        await storage.clear()

        assert await storage.list_handle_mappings() == []
        assert await storage.get_trace_events() == []
