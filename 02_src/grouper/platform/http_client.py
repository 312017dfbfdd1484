"""Platform client backed by the messaging bridge REST API."""

from typing import Any

import httpx

from ..logging_config import get_logger
from ..models import ActionsContent
from .base import OutboundContent, PlatformError

logger = get_logger(__name__)


def _encode_content(content: OutboundContent) -> dict:
    if isinstance(content, ActionsContent):
        return {"content_type": "actions", "content": content.to_dict()}
    return {"content_type": "text", "content": content}


class HttpConversation:
    """A conversation addressed through the bridge."""

    def __init__(self, client: "HttpPlatformClient", data: dict):
        self._client = client
        self._id = data["id"]
        self._is_group = bool(data.get("is_group", False))
        self._name = data.get("name")

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_group(self) -> bool:
        return self._is_group

    @property
    def name(self) -> str | None:
        return self._name

    async def send(self, content: OutboundContent) -> None:
        await self._client.request(
            "POST", f"/conversations/{self._id}/messages", json=_encode_content(content)
        )


class HttpGroup(HttpConversation):
    """Group handle exposing the membership operations."""

    def __init__(self, client: "HttpPlatformClient", data: dict):
        super().__init__(client, {**data, "is_group": True})

    async def rename(self, name: str) -> None:
        await self._client.request("PATCH", f"/groups/{self.id}", json={"name": name})
        self._name = name

    async def add_super_admin(self, recipient_id: str) -> None:
        await self._client.request(
            "POST", f"/groups/{self.id}/super-admins", json={"inbox_id": recipient_id}
        )

    async def add_members(self, recipient_ids: list[str]) -> None:
        await self._client.request(
            "POST", f"/groups/{self.id}/members", json={"inbox_ids": recipient_ids}
        )


class HttpPlatformClient:
    """IPlatformClient over HTTP.

    Every non-2xx response is raised as PlatformError using the bridge's
    `{"message": ..., "code": ...}` error body when present.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 15.0,
        inbox_id: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._inbox_id = inbox_id
        self._client = http_client
        self._owns_client = http_client is None

    async def start(self) -> None:
        """Open the HTTP session and learn the agent's own inbox id."""
        if self._client is None:
            headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
            self._client = httpx.AsyncClient(
                base_url=self._base_url, headers=headers, timeout=self._timeout
            )
        if not self._inbox_id:
            data = await self.request("GET", "/me")
            self._inbox_id = data["inbox_id"]
        logger.info("Platform client ready, agent inbox %s", self._inbox_id)

    async def stop(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def inbox_id(self) -> str:
        if not self._inbox_id:
            raise RuntimeError("Platform client not started")
        return self._inbox_id

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Perform a bridge call and return the decoded JSON body (or None)."""
        if self._client is None:
            raise RuntimeError("Platform client not started")

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise PlatformError(f"Platform request timed out: {e}", code="Timeout") from e
        except httpx.HTTPError as e:
            raise PlatformError(f"Platform request failed: {e}", code="NetworkError") from e

        if response.status_code >= 400:
            message = response.text or response.reason_phrase
            code = None
            try:
                body = response.json()
                message = body.get("message", message)
                code = body.get("code")
            except ValueError:
                pass
            raise PlatformError(message, code=code, status=response.status_code)

        if not response.content:
            return None
        return response.json()

    async def create_group(self, members: list[str]) -> HttpGroup:
        data = await self.request("POST", "/groups", json={"members": members})
        return HttpGroup(self, data)

    async def sync(self) -> None:
        await self.request("POST", "/conversations/sync")

    async def list_groups(self) -> list[HttpGroup]:
        data = await self.request("GET", "/groups") or []
        return [HttpGroup(self, item) for item in data]

    async def get_group_by_id(self, group_id: str) -> HttpGroup | None:
        try:
            data = await self.request("GET", f"/groups/{group_id}")
        except PlatformError as e:
            if e.status == 404:
                return None
            raise
        return HttpGroup(self, data)

    async def get_conversation_by_id(self, conversation_id: str) -> HttpConversation | None:
        try:
            data = await self.request("GET", f"/conversations/{conversation_id}")
        except PlatformError as e:
            if e.status == 404:
                return None
            raise
        if data.get("is_group"):
            return HttpGroup(self, data)
        return HttpConversation(self, data)

    async def find_recipient_by_address(self, address: str) -> str | None:
        try:
            data = await self.request("GET", f"/identities/{address}")
        except PlatformError as e:
            if e.status == 404:
                return None
            raise
        return (data or {}).get("inbox_id")

    async def get_sender_address(self, recipient_id: str) -> str | None:
        data = await self.request("GET", f"/inboxes/{recipient_id}")
        identifiers = (data or {}).get("identifiers") or []
        if not identifiers:
            return None
        return identifiers[0].get("identifier")
