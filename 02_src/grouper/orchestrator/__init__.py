"""Group orchestration module."""

from .orchestrator import (
    DECLINE_PREFIX,
    INVITE_PREFIX,
    JOIN_PREFIX,
    GroupOrchestrator,
    IGroupOrchestrator,
    OperationResult,
)

__all__ = [
    "GroupOrchestrator",
    "IGroupOrchestrator",
    "OperationResult",
    "JOIN_PREFIX",
    "DECLINE_PREFIX",
    "INVITE_PREFIX",
]
