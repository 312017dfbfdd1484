"""Messaging platform module."""

from .base import (
    IConversation,
    IGroupHandle,
    IPlatformClient,
    OutboundContent,
    PlatformError,
)
from .http_client import HttpConversation, HttpGroup, HttpPlatformClient

__all__ = [
    "IConversation",
    "IGroupHandle",
    "IPlatformClient",
    "OutboundContent",
    "PlatformError",
    "HttpConversation",
    "HttpGroup",
    "HttpPlatformClient",
]
