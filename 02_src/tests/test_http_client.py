"""Tests for the HTTP platform bridge client."""

import json

import httpx
import pytest

from grouper.models import Action, ActionsContent
from grouper.platform import HttpGroup, HttpPlatformClient, PlatformError


class Bridge:
    """Records requests and answers from a route table."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "not found"})
        status, body = self.routes[key]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def make_client(routes: dict) -> tuple[HttpPlatformClient, Bridge]:
    bridge = Bridge({("GET", "/me"): (200, {"inbox_id": "agent-inbox"}), **routes})
    http = httpx.AsyncClient(transport=httpx.MockTransport(bridge), base_url="http://bridge")
    return HttpPlatformClient("http://bridge", http_client=http), bridge


class TestLifecycle:
    """Tests for start() and inbox id discovery."""

    async def test_start_fetches_inbox_id(self):
        client, _ = make_client({})
        await client.start()
        assert client.inbox_id == "agent-inbox"

    def test_inbox_id_before_start(self):
        client = HttpPlatformClient("http://bridge")
        with pytest.raises(RuntimeError):
            client.inbox_id

    async def test_request_before_start(self):
        client = HttpPlatformClient("http://bridge")
        with pytest.raises(RuntimeError, match="not started"):
            await client.sync()


class TestGroups:
    """Tests for group endpoints."""

    async def test_create_group(self):
        client, bridge = make_client(
            {("POST", "/groups"): (201, {"id": "g1", "name": None})}
        )
        await client.start()

        group = await client.create_group(["creator"])

        assert isinstance(group, HttpGroup)
        assert group.id == "g1"
        assert group.is_group
        assert bridge.body() == {"members": ["creator"]}

    async def test_group_operations(self):
        client, bridge = make_client(
            {
                ("PATCH", "/groups/g1"): (204, None),
                ("POST", "/groups/g1/super-admins"): (204, None),
                ("POST", "/groups/g1/members"): (204, None),
                ("POST", "/conversations/g1/messages"): (204, None),
            }
        )
        await client.start()
        group = HttpGroup(client, {"id": "g1"})

        await group.rename("Project X")
        assert group.name == "Project X"
        assert bridge.body() == {"name": "Project X"}

        await group.add_super_admin("creator")
        assert bridge.body() == {"inbox_id": "creator"}

        await group.add_members(["a", "b"])
        assert bridge.body() == {"inbox_ids": ["a", "b"]}

        await group.send("hello")
        assert bridge.body() == {"content_type": "text", "content": "hello"}

    async def test_send_actions(self):
        client, bridge = make_client({("POST", "/conversations/c1/messages"): (204, None)})
        await client.start()
        conversation = HttpGroup(client, {"id": "c1"})

        await conversation.send(
            ActionsContent(id="inv", description="Join?", actions=[Action(id="a", label="Yes")])
        )

        body = bridge.body()
        assert body["content_type"] == "actions"
        assert body["content"]["actions"][0]["id"] == "a"

    async def test_list_groups(self):
        client, _ = make_client(
            {
                ("POST", "/conversations/sync"): (204, None),
                ("GET", "/groups"): (200, [{"id": "g1"}, {"id": "g2", "name": "X"}]),
            }
        )
        await client.start()
        await client.sync()

        groups = await client.list_groups()
        assert [g.id for g in groups] == ["g1", "g2"]
        assert groups[1].name == "X"

    async def test_missing_group_is_none(self):
        client, _ = make_client({})
        await client.start()
        assert await client.get_group_by_id("nope") is None

    async def test_conversation_kind(self):
        client, _ = make_client(
            {
                ("GET", "/conversations/dm1"): (200, {"id": "dm1", "is_group": False}),
                ("GET", "/conversations/g1"): (200, {"id": "g1", "is_group": True}),
            }
        )
        await client.start()

        dm = await client.get_conversation_by_id("dm1")
        group = await client.get_conversation_by_id("g1")

        assert not dm.is_group
        assert isinstance(group, HttpGroup)
        assert await client.get_conversation_by_id("unknown") is None


class TestIdentities:
    """Tests for identity endpoints."""

    async def test_find_recipient_by_address(self):
        client, _ = make_client(
            {("GET", "/identities/0xabc"): (200, {"inbox_id": "alice-inbox"})}
        )
        await client.start()

        assert await client.find_recipient_by_address("0xabc") == "alice-inbox"
        assert await client.find_recipient_by_address("0xdef") is None

    async def test_get_sender_address(self):
        client, _ = make_client(
            {
                ("GET", "/inboxes/alice-inbox"): (
                    200,
                    {"identifiers": [{"identifier": "0xabc", "kind": "ethereum"}]},
                ),
                ("GET", "/inboxes/empty"): (200, {"identifiers": []}),
            }
        )
        await client.start()

        assert await client.get_sender_address("alice-inbox") == "0xabc"
        assert await client.get_sender_address("empty") is None


class TestErrors:
    """Tests for error mapping."""

    async def test_error_body_becomes_platform_error(self):
        client, _ = make_client(
            {
                ("POST", "/groups/g1/members"): (
                    409,
                    {"message": "inbox already a member", "code": "AlreadyMember"},
                )
            }
        )
        await client.start()

        with pytest.raises(PlatformError) as exc_info:
            await HttpGroup(client, {"id": "g1"}).add_members(["a"])

        assert exc_info.value.message == "inbox already a member"
        assert exc_info.value.code == "AlreadyMember"
        assert exc_info.value.status == 409

    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://bridge")
        client = HttpPlatformClient("http://bridge", inbox_id="agent", http_client=http)
        await client.start()

        with pytest.raises(PlatformError) as exc_info:
            await client.sync()
        assert exc_info.value.code == "NetworkError"

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://bridge")
        client = HttpPlatformClient("http://bridge", inbox_id="agent", http_client=http)
        await client.start()

        with pytest.raises(PlatformError) as exc_info:
            await client.list_groups()
        assert exc_info.value.code == "Timeout"


class TestOrchestratorOverBridge:
    """Tests for transport failures seen through GroupOrchestrator."""

    async def test_join_timeout_is_transient(self, tracker):
        """Test a read timeout on the bridge asks the user to retry."""
        from grouper.errors import TransientPlatformError
        from grouper.models import GroupOrigin
        from grouper.orchestrator import GroupOrchestrator

        from conftest import FakeConversation

        bridge = Bridge(
            {
                ("GET", "/me"): (200, {"inbox_id": "agent-inbox"}),
                ("POST", "/groups"): (201, {"id": "g1", "name": None}),
                ("PATCH", "/groups/g1"): (204, None),
                ("POST", "/groups/g1/super-admins"): (204, None),
                ("POST", "/conversations/g1/messages"): (204, None),
                ("POST", "/conversations/sync"): (204, None),
                ("GET", "/groups"): (200, [{"id": "g1", "name": "X"}]),
            }
        )

        def handler(request):
            if request.url.path == "/groups/g1/members":
                raise httpx.ReadTimeout("read timed out", request=request)
            return bridge(request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://bridge")
        client = HttpPlatformClient("http://bridge", http_client=http)
        await client.start()
        orchestrator = GroupOrchestrator(
            platform=client, resolver=None, tracker=tracker, settle_delay=0
        )
        created = await orchestrator.create(
            "X", "creator", GroupOrigin.DM, FakeConversation("dm-1")
        )
        assert created.ok

        result = await orchestrator.join("g1", "user-2")

        assert not result.ok
        assert isinstance(result.error, TransientPlatformError)
        assert "again in a few minutes" in result.message
