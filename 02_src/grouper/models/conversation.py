"""Conversation state models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ConversationStep(str, Enum):
    """Steps of the guided group-creation flow."""

    IDLE = "idle"
    ASKED_CREATE_GROUP = "asked_create_group"
    WAITING_FOR_GROUP_NAME = "waiting_for_group_name"
    ASKED_ADD_USERS = "asked_add_users"
    WAITING_FOR_USERNAMES = "waiting_for_usernames"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConversationState:
    """Ephemeral per-sender position in the guided flow."""

    step: ConversationStep = ConversationStep.IDLE
    pending_group_name: str | None = None
    pending_group_id: str | None = None
    last_updated: datetime = field(default_factory=_now)


@dataclass
class ConversationHistoryEntry:
    """One user message and the reply it got."""

    user_message: str
    bot_response: str
    timestamp: datetime = field(default_factory=_now)
