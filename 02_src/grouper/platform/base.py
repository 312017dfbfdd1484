"""Capability interfaces for the group-messaging platform."""

from typing import Protocol, Union

from ..models import ActionsContent

OutboundContent = Union[str, ActionsContent]


class PlatformError(Exception):
    """A failed platform call, carrying the platform's message and code."""

    def __init__(self, message: str, code: str | None = None, status: int | None = None):
        self.message = message
        self.code = code
        self.status = status
        super().__init__(message)


class IConversation(Protocol):
    """A conversation (DM or group) the agent can post into."""

    @property
    def id(self) -> str: ...

    @property
    def is_group(self) -> bool: ...

    async def send(self, content: OutboundContent) -> None:
        """Send text or a structured actions payload."""
        ...


class IGroupHandle(IConversation, Protocol):
    """Group operations the orchestrator relies on."""

    @property
    def name(self) -> str | None: ...

    async def rename(self, name: str) -> None:
        """Set the group's display name."""
        ...

    async def add_super_admin(self, recipient_id: str) -> None:
        """Promote a member to super admin."""
        ...

    async def add_members(self, recipient_ids: list[str]) -> None:
        """Add members by recipient id."""
        ...


class IPlatformClient(Protocol):
    """Messaging platform client."""

    @property
    def inbox_id(self) -> str:
        """Recipient id of the agent itself."""
        ...

    async def create_group(self, members: list[str]) -> IGroupHandle:
        """Create a group with the given initial members (agent included)."""
        ...

    async def sync(self) -> None:
        """Pull the latest conversation list from the network."""
        ...

    async def list_groups(self) -> list[IGroupHandle]:
        """Groups the agent is currently a member of."""
        ...

    async def get_group_by_id(self, group_id: str) -> IGroupHandle | None:
        """A single group from the local view, if known."""
        ...

    async def get_conversation_by_id(self, conversation_id: str) -> IConversation | None:
        """Conversation an event belongs to, if known."""
        ...

    async def find_recipient_by_address(self, address: str) -> str | None:
        """Recipient id registered for a wallet address."""
        ...

    async def get_sender_address(self, recipient_id: str) -> str | None:
        """Primary wallet address behind a recipient id."""
        ...
