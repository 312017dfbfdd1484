"""Identity and message-log models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class HandleMapping:
    """A cached handle -> recipient association."""

    username: str
    recipient_id: str
    address: str | None = None
    source: str = "group_message"
    first_seen_at: datetime | None = None
    last_seen_at: datetime | None = None


@dataclass
class MessageRecord:
    """An inbound message as written to the message log."""

    id: str
    sender_id: str
    conversation_id: str
    content: str
    is_group: bool
    timestamp: datetime
