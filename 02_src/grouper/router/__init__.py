"""Message routing module."""

from .router import IMessageRouter, MessageRouter, Reply

__all__ = ["IMessageRouter", "MessageRouter", "Reply"]
