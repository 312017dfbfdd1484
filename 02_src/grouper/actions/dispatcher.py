"""Routing of button clicks (structured intents) to orchestrator operations."""

from typing import Awaitable, Callable

from ..logging_config import get_logger
from ..models import IntentContent
from ..orchestrator import DECLINE_PREFIX, JOIN_PREFIX, IGroupOrchestrator, OperationResult

logger = get_logger(__name__)

GENERIC_ACKNOWLEDGEMENT = "Thanks for your selection!"

ActionHandler = Callable[[str, str], Awaitable[OperationResult]]


class QuickActionDispatcher:
    """Dispatches `<verb>_<entityType>_<entityId>` action ids by prefix."""

    def __init__(self, orchestrator: IGroupOrchestrator):
        self._orchestrator = orchestrator
        self._handlers: list[tuple[str, ActionHandler]] = [
            (JOIN_PREFIX, orchestrator.join),
            (DECLINE_PREFIX, orchestrator.decline),
        ]

    async def dispatch(self, intent: IntentContent, sender_id: str) -> str:
        """Run the action and return the reply text.

        Unknown or malformed ids get a generic acknowledgement.
        """
        action_id = (intent.action_id or "").strip()
        logger.info(
            "Quick action %r from %s", action_id, sender_id, extra={"action_id": action_id}
        )

        for prefix, handler in self._handlers:
            if action_id.startswith(prefix):
                entity_id = action_id[len(prefix):]
                if not entity_id:
                    break
                result = await handler(entity_id, sender_id)
                return result.message

        logger.info("Unrecognized quick action %r", action_id)
        return GENERIC_ACKNOWLEDGEMENT
