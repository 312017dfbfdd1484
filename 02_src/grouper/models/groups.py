"""Sidebar group models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

# original_group_id of groups spawned from a direct message
DM_ORIGIN = "dm"

# Set once in __init__; members only grow through add_member()
IMMUTABLE_GROUP_FIELDS = ("id", "created_by")


class GroupOrigin(str, Enum):
    """Where a sidebar group was requested from."""

    DM = "dm"
    GROUP = "group"
    PRIVATE_GROUP = "private_group"


@dataclass
class SidebarGroup:
    """A sidebar group created by the agent."""

    id: str
    name: str
    original_group_id: str
    created_by: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    members: list[str] = field(default_factory=list)

    def __setattr__(self, name: str, value) -> None:
        if name in IMMUTABLE_GROUP_FIELDS and name in self.__dict__:
            raise AttributeError(f"SidebarGroup.{name} cannot be changed")
        super().__setattr__(name, value)

    def add_member(self, recipient_id: str) -> bool:
        """Append a member once. Returns False if already present."""
        if recipient_id in self.members:
            return False
        self.members.append(recipient_id)
        return True


@dataclass
class PendingInvitation:
    """Invitation posted into the originating group."""

    group_id: str
    original_group_id: str
