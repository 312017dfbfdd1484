"""Handle resolution module."""

from .directory import IDirectoryService, NeynarDirectory
from .resolver import HandleResolver, IHandleResolver, is_recipient_identifier

__all__ = [
    "IDirectoryService",
    "NeynarDirectory",
    "HandleResolver",
    "IHandleResolver",
    "is_recipient_identifier",
]
