"""Grouper: sidebar group orchestration for chat platforms."""

from .actions import QuickActionDispatcher
from .app import Application, IApplication
from .conversation import ConversationStateStore, IConversationStateStore
from .errors import (
    AlreadySatisfiedError,
    AuthorizationError,
    GrouperError,
    InvalidTransitionError,
    NotFoundError,
    TransientPlatformError,
    UnknownError,
    ValidationError,
)
from .grammar import CommandGrammar, MentionDetector, ParsedCommand
from .llm import ILLMProvider, ITextGenerator, LLMProvider, TextGenerator
from .models import (
    ActionsContent,
    ConversationState,
    ConversationStep,
    EventKind,
    GroupOrigin,
    InboundEvent,
    IntentContent,
    SidebarGroup,
    TraceEvent,
)
from .orchestrator import GroupOrchestrator, IGroupOrchestrator, OperationResult
from .platform import HttpPlatformClient, IPlatformClient, PlatformError
from .resolver import HandleResolver, IHandleResolver, NeynarDirectory
from .router import MessageRouter
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "ActionsContent",
    "ConversationState",
    "ConversationStep",
    "EventKind",
    "GroupOrigin",
    "InboundEvent",
    "IntentContent",
    "SidebarGroup",
    "TraceEvent",
    # Errors
    "GrouperError",
    "ValidationError",
    "NotFoundError",
    "TransientPlatformError",
    "AlreadySatisfiedError",
    "AuthorizationError",
    "UnknownError",
    "InvalidTransitionError",
    # Components
    "IStorage",
    "Storage",
    "ITracker",
    "Tracker",
    "ILLMProvider",
    "LLMProvider",
    "ITextGenerator",
    "TextGenerator",
    "IPlatformClient",
    "HttpPlatformClient",
    "PlatformError",
    "IHandleResolver",
    "HandleResolver",
    "NeynarDirectory",
    "CommandGrammar",
    "MentionDetector",
    "ParsedCommand",
    "IConversationStateStore",
    "ConversationStateStore",
    "IGroupOrchestrator",
    "GroupOrchestrator",
    "OperationResult",
    "QuickActionDispatcher",
    "MessageRouter",
]
