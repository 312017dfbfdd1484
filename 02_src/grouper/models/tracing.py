"""Audit trail data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single audit event (group created, member joined, ...)."""

    id: str
    event_type: str  # e.g. "group_created", "invitation_declined"
    actor: str  # component that recorded it
    data: dict  # self-contained payload
    timestamp: datetime
