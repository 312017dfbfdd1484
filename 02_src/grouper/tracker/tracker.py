"""Tracker implementation for the audit trail."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..logging_config import get_logger
from ..models import TraceEvent
from ..storage import IStorage

logger = get_logger(__name__)


class ITracker(Protocol):
    """Creating TraceEvents for group lifecycle actions."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...


class Tracker:
    """Records TraceEvents via direct track() calls."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage.

        A storage failure is logged and dropped, never raised to the
        audited operation.
        """
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        try:
            await self._storage.save_trace_event(trace_event)
        except Exception as e:
            logger.warning("Could not record %s trace event: %s", event_type, e)
