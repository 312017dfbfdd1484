"""Conversation state module."""

from .state_store import TRANSITIONS, ConversationStateStore, IConversationStateStore

__all__ = ["ConversationStateStore", "IConversationStateStore", "TRANSITIONS"]
