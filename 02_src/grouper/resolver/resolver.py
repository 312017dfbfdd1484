"""Mention token -> recipient id resolution."""

import asyncio
import re
from typing import Protocol

from ..logging_config import get_logger
from ..models import HandleMapping
from ..platform import IPlatformClient
from ..storage import IStorage
from .directory import IDirectoryService

logger = get_logger(__name__)

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
INBOX_ID_RE = re.compile(r"^[0-9a-fA-F]{32,}$")


def is_recipient_identifier(token: str) -> bool:
    """Whether `token` is already a wallet address or an inbox id."""
    return bool(ADDRESS_RE.match(token) or INBOX_ID_RE.match(token))


class IHandleResolver(Protocol):
    """Resolution of human-entered mentions."""

    async def resolve(self, token: str) -> str | None:
        """Recipient id for a single token, or None."""
        ...

    async def resolve_batch(self, tokens: list[str]) -> dict[str, str | None]:
        """One entry per distinct token, resolved concurrently."""
        ...


class HandleResolver:
    """Staged resolution: identifier as-is, handle cache, then directories.

    Each stage failure is logged and treated as a miss; the first stage to
    produce a recipient wins.
    """

    def __init__(
        self,
        storage: IStorage,
        platform: IPlatformClient,
        directories: list[IDirectoryService] | None = None,
        call_timeout: float = 15.0,
    ):
        self._storage = storage
        self._platform = platform
        self._directories = directories or []
        self._call_timeout = call_timeout

    async def resolve(self, token: str) -> str | None:
        handle = token.strip().lstrip("@")
        if not handle:
            return None

        if is_recipient_identifier(handle):
            logger.debug("Token %s is already a recipient identifier", handle)
            return handle

        cached = await self._from_cache(handle)
        if cached:
            return cached

        for directory in self._directories:
            recipient = await self._from_directory(directory, handle)
            if recipient:
                return recipient

        logger.info("Could not resolve %s", handle)
        return None

    async def resolve_batch(self, tokens: list[str]) -> dict[str, str | None]:
        unique = list(dict.fromkeys(tokens))
        results = await asyncio.gather(
            *[self.resolve(token) for token in unique],
            return_exceptions=True,
        )

        resolved: dict[str, str | None] = {}
        for token, result in zip(unique, results):
            if isinstance(result, BaseException):
                logger.error("Error resolving %s: %s", token, result)
                resolved[token] = None
            else:
                resolved[token] = result
        return resolved

    async def _from_cache(self, handle: str) -> str | None:
        try:
            cached = await self._storage.get_recipient_by_handle(handle)
        except Exception as e:
            logger.warning("Handle cache lookup failed for %s: %s", handle, e)
            return None
        if cached:
            logger.debug("Handle cache hit: %s -> %s", handle, cached)
        return cached

    async def _from_directory(
        self, directory: IDirectoryService, handle: str
    ) -> str | None:
        source = getattr(directory, "name", type(directory).__name__)
        try:
            address = await asyncio.wait_for(
                directory.resolve_handle_to_address(handle), self._call_timeout
            )
            if not address:
                return None
            recipient = await asyncio.wait_for(
                self._platform.find_recipient_by_address(address), self._call_timeout
            )
        except Exception as e:
            logger.warning("Directory %s failed for %s: %s", source, handle, e)
            return None

        if not recipient:
            logger.info("No inbox registered for %s (%s)", handle, address)
            return None

        logger.info("Resolved %s -> %s -> %s via %s", handle, address, recipient, source)
        try:
            await self._storage.save_handle_mapping(
                HandleMapping(
                    username=handle,
                    recipient_id=recipient,
                    address=address,
                    source=source,
                )
            )
        except Exception as e:
            logger.warning("Could not cache mapping for %s: %s", handle, e)
        return recipient
