"""External directory services mapping handles to wallet addresses."""

from typing import Protocol

import httpx

from ..logging_config import get_logger

logger = get_logger(__name__)

NEYNAR_API_BASE = "https://api.neynar.com/v2/farcaster"


class IDirectoryService(Protocol):
    """A name service able to turn a handle into a wallet address."""

    name: str

    async def resolve_handle_to_address(self, handle: str) -> str | None:
        """Wallet address for a handle, or None."""
        ...

    async def lookup_username(self, address: str) -> str | None:
        """Reverse lookup of a handle for an address, or None."""
        ...


class NeynarDirectory:
    """Farcaster usernames via the Neynar API."""

    name = "neynar"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = NEYNAR_API_BASE,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def _get(self, path: str, params: dict) -> dict | None:
        if not self._api_key:
            logger.debug("NEYNAR_API_KEY not configured, skipping lookup")
            return None

        headers = {"x-api-key": self._api_key}
        url = f"{self._base_url}{path}"
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        response = await self._client.get(url, params=params, headers=headers)

        if response.status_code != 200:
            logger.info("Neynar API error: %s %s", response.status_code, response.reason_phrase)
            return None
        return response.json()

    async def resolve_handle_to_address(self, handle: str) -> str | None:
        """Custody address of a Farcaster user, falling back to the first verified one."""
        username = handle.lstrip("@")
        data = await self._get("/user/by_username", {"username": username})
        user = (data or {}).get("user")
        if not user:
            return None

        if user.get("custody_address"):
            logger.info("Resolved %s -> %s (custody)", username, user["custody_address"])
            return user["custody_address"]

        verified = (user.get("verified_addresses") or {}).get("eth_addresses") or []
        if verified:
            logger.info("Resolved %s -> %s (verified)", username, verified[0])
            return verified[0]

        logger.info("No wallet address found for %s", username)
        return None

    async def lookup_username(self, address: str) -> str | None:
        data = await self._get("/user/bulk-by-address", {"addresses": address})
        if not data:
            return None
        for key, users in data.items():
            if key.lower() == address.lower() and isinstance(users, list) and users:
                return users[0].get("username")
        return None
