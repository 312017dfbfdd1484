"""Inbound event and structured-content models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal


class EventKind(str, Enum):
    """Kinds of inbound platform events."""

    TEXT = "text"
    ACTION = "action"
    OTHER = "other"


@dataclass
class InboundEvent:
    """A single event pulled from the platform message stream."""

    id: str
    kind: EventKind
    sender_id: str
    conversation_id: str
    content: str = ""
    action_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Action:
    """One button of a structured invitation."""

    id: str
    label: str
    style: Literal["primary", "secondary"] = "primary"


@dataclass
class ActionsContent:
    """Structured payload rendered by the platform as buttons."""

    id: str
    description: str
    actions: list[Action] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "actions": [
                {"id": a.id, "label": a.label, "style": a.style}
                for a in self.actions
            ],
        }


@dataclass
class IntentContent:
    """Payload of a button click."""

    action_id: str
