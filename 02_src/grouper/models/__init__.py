"""Core data models for Grouper."""

from .conversation import ConversationHistoryEntry, ConversationState, ConversationStep
from .events import Action, ActionsContent, EventKind, InboundEvent, IntentContent
from .groups import DM_ORIGIN, GroupOrigin, PendingInvitation, SidebarGroup
from .identity import HandleMapping, MessageRecord
from .tracing import TraceEvent

__all__ = [
    # Conversation
    "ConversationStep",
    "ConversationState",
    "ConversationHistoryEntry",
    # Events
    "EventKind",
    "InboundEvent",
    "Action",
    "ActionsContent",
    "IntentContent",
    # Groups
    "DM_ORIGIN",
    "GroupOrigin",
    "SidebarGroup",
    "PendingInvitation",
    # Identity
    "HandleMapping",
    "MessageRecord",
    # Tracing
    "TraceEvent",
]
