"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

AGENT_INBOX = "agent-inbox-0001"
CREATOR = "creator-inbox-0001"


class FakeConversation:
    """In-memory conversation recording everything sent to it."""

    def __init__(self, conversation_id: str, is_group: bool = False):
        self.id = conversation_id
        self.is_group = is_group
        self.sent: list = []
        self.send_error: Exception | None = None

    async def send(self, content) -> None:
        if self.send_error:
            raise self.send_error
        self.sent.append(content)

    @property
    def texts(self) -> list[str]:
        return [c for c in self.sent if isinstance(c, str)]


class FakeGroup(FakeConversation):
    """Group handle with configurable per-member failures."""

    def __init__(self, group_id: str, members: list[str]):
        super().__init__(group_id, is_group=True)
        self.name: str | None = None
        self.members = list(members)
        self.super_admins: list[str] = []
        self.add_calls: list[list[str]] = []
        self.rename_error: Exception | None = None
        self.admin_error: Exception | None = None
        # recipient id -> exception raised when adding it
        self.add_errors: dict[str, Exception] = {}

    async def rename(self, name: str) -> None:
        if self.rename_error:
            raise self.rename_error
        self.name = name

    async def add_super_admin(self, recipient_id: str) -> None:
        if self.admin_error:
            raise self.admin_error
        self.super_admins.append(recipient_id)

    async def add_members(self, recipient_ids: list[str]) -> None:
        self.add_calls.append(list(recipient_ids))
        for recipient_id in recipient_ids:
            if recipient_id in self.add_errors:
                raise self.add_errors[recipient_id]
        for recipient_id in recipient_ids:
            if recipient_id not in self.members:
                self.members.append(recipient_id)


class FakePlatform:
    """In-memory IPlatformClient that counts remote calls."""

    def __init__(self, inbox_id: str = AGENT_INBOX):
        self.inbox_id = inbox_id
        self.groups: dict[str, FakeGroup] = {}
        self.conversations: dict[str, FakeConversation] = {}
        self.addresses: dict[str, str] = {}  # address -> recipient
        self.sender_addresses: dict[str, str] = {}  # recipient -> address
        self.create_error: Exception | None = None
        self.sync_error: Exception | None = None
        self.calls: list[str] = []
        self._counter = 0

    def add_conversation(self, conversation_id: str, is_group: bool = False) -> FakeConversation:
        conversation = FakeConversation(conversation_id, is_group=is_group)
        self.conversations[conversation_id] = conversation
        return conversation

    async def create_group(self, members: list[str]) -> FakeGroup:
        self.calls.append("create_group")
        if self.create_error:
            raise self.create_error
        self._counter += 1
        group = FakeGroup(f"group-{self._counter}", [self.inbox_id, *members])
        self.groups[group.id] = group
        self.conversations[group.id] = group
        return group

    async def sync(self) -> None:
        self.calls.append("sync")
        if self.sync_error:
            raise self.sync_error

    async def list_groups(self) -> list[FakeGroup]:
        self.calls.append("list_groups")
        return list(self.groups.values())

    async def get_group_by_id(self, group_id: str) -> FakeGroup | None:
        self.calls.append("get_group_by_id")
        return self.groups.get(group_id)

    async def get_conversation_by_id(self, conversation_id: str) -> FakeConversation | None:
        return self.conversations.get(conversation_id)

    async def find_recipient_by_address(self, address: str) -> str | None:
        self.calls.append("find_recipient_by_address")
        return self.addresses.get(address.lower())

    async def get_sender_address(self, recipient_id: str) -> str | None:
        return self.sender_addresses.get(recipient_id)


class FakeDirectory:
    """IDirectoryService backed by a dict."""

    name = "fake_directory"

    def __init__(self, handles: dict[str, str] | None = None):
        self.handles = handles or {}
        self.lookups: list[str] = []

    async def resolve_handle_to_address(self, handle: str) -> str | None:
        self.lookups.append(handle)
        return self.handles.get(handle.lower())

    async def lookup_username(self, address: str) -> str | None:
        for handle, known in self.handles.items():
            if known == address:
                return handle
        return None


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from grouper.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from grouper.tracker import Tracker

    return Tracker(storage=storage)


@pytest.fixture
def platform():
    """Create fake messaging platform."""
    return FakePlatform()


@pytest.fixture
def directory():
    """Directory knowing alice.eth and bob."""
    return FakeDirectory(
        {
            "alice.eth": "0xa11ce00000000000000000000000000000000001",
            "bob": "0xb0b0000000000000000000000000000000000002",
        }
    )


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="Test response")
    return llm


@pytest.fixture
def generator(mock_llm):
    """Text generator over the mock LLM."""
    from grouper.llm import TextGenerator

    return TextGenerator(mock_llm)


@pytest.fixture
def resolver(storage, platform, directory):
    """Create HandleResolver over the fakes."""
    from grouper.resolver import HandleResolver

    platform.addresses["0xa11ce00000000000000000000000000000000001"] = "alice-inbox"
    platform.addresses["0xb0b0000000000000000000000000000000000002"] = "bob-inbox"
    return HandleResolver(
        storage=storage, platform=platform, directories=[directory], call_timeout=1.0
    )


@pytest.fixture
def state_store():
    """Create conversation state store (sweeper not started)."""
    from grouper.conversation import ConversationStateStore

    return ConversationStateStore()


@pytest.fixture
def orchestrator(platform, resolver, tracker):
    """Create GroupOrchestrator without the settle delay."""
    from grouper.orchestrator import GroupOrchestrator

    return GroupOrchestrator(
        platform=platform,
        resolver=resolver,
        tracker=tracker,
        call_timeout=1.0,
        settle_delay=0,
    )


@pytest.fixture
def dispatcher(orchestrator):
    """Create QuickActionDispatcher."""
    from grouper.actions import QuickActionDispatcher

    return QuickActionDispatcher(orchestrator)


@pytest.fixture
def router(platform, state_store, orchestrator, dispatcher, generator, storage, tracker, directory):
    """Create MessageRouter (worker not started)."""
    from grouper.grammar import CommandGrammar, MentionDetector
    from grouper.router import MessageRouter

    handles = ["grouper", "grouper.base.eth"]
    return MessageRouter(
        platform=platform,
        grammar=CommandGrammar(handles),
        mentions=MentionDetector(handles),
        state_store=state_store,
        orchestrator=orchestrator,
        dispatcher=dispatcher,
        generator=generator,
        storage=storage,
        tracker=tracker,
        directories=[directory],
    )
