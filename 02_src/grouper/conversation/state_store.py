"""Per-sender conversation state and recent-exchange history."""

import asyncio
from collections import deque
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Protocol, Union

from ..config import HISTORY_LIMIT, STATE_TTL_SECONDS, SWEEP_INTERVAL_SECONDS
from ..errors import InvalidTransitionError
from ..logging_config import get_logger
from ..models import ConversationHistoryEntry, ConversationState, ConversationStep

logger = get_logger(__name__)

SweepHook = Callable[[], Union[None, Awaitable[None]]]

Step = ConversationStep

# Edges of the guided flow. Any step may also return to IDLE.
TRANSITIONS: dict[ConversationStep, set[ConversationStep]] = {
    Step.IDLE: {Step.ASKED_CREATE_GROUP},
    Step.ASKED_CREATE_GROUP: {Step.WAITING_FOR_GROUP_NAME},
    Step.WAITING_FOR_GROUP_NAME: {Step.ASKED_ADD_USERS},
    Step.ASKED_ADD_USERS: {Step.WAITING_FOR_USERNAMES},
    Step.WAITING_FOR_USERNAMES: set(),
}


class IConversationStateStore(Protocol):
    """Ephemeral per-sender conversation state."""

    def get(self, sender_id: str) -> ConversationState:
        """Current state, IDLE when unknown or expired."""
        ...

    def transition(
        self,
        sender_id: str,
        step: ConversationStep,
        pending_group_name: str | None = None,
        pending_group_id: str | None = None,
    ) -> ConversationState:
        """Move a sender along an allowed edge."""
        ...

    def reset(self, sender_id: str) -> None:
        """Return a sender to IDLE."""
        ...

    def add_history(self, sender_id: str, user_message: str, bot_response: str) -> None:
        """Record an exchange."""
        ...

    def get_history(self, sender_id: str) -> list[ConversationHistoryEntry]:
        """Recent exchanges, oldest first."""
        ...

    def history_context(self, sender_id: str) -> str:
        """Recent exchanges rendered as a prompt prefix."""
        ...


class ConversationStateStore:
    """Owns the per-sender state and history maps.

    Both maps are touched only from the event loop running the router and
    the sweeper, so no locking is needed.
    """

    def __init__(
        self,
        ttl_seconds: int = STATE_TTL_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        history_limit: int = HISTORY_LIMIT,
        sweep_hooks: list[SweepHook] | None = None,
    ):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._sweep_interval = sweep_interval
        self._history_limit = history_limit
        self._sweep_hooks = list(sweep_hooks or [])

        self._states: dict[str, ConversationState] = {}
        self._history: dict[str, deque[ConversationHistoryEntry]] = {}
        self._sweep_task: asyncio.Task | None = None
        self._running = False

    # State machine
    def get(self, sender_id: str) -> ConversationState:
        state = self._states.get(sender_id)
        if state is None or self._expired(state.last_updated):
            return ConversationState()
        return replace(state)

    def transition(
        self,
        sender_id: str,
        step: ConversationStep,
        pending_group_name: str | None = None,
        pending_group_id: str | None = None,
    ) -> ConversationState:
        current = self.get(sender_id)
        if step != Step.IDLE and step not in TRANSITIONS[current.step]:
            raise InvalidTransitionError(current.step.value, step.value)

        if step == Step.IDLE:
            new_state = ConversationState()
        else:
            new_state = ConversationState(
                step=step,
                pending_group_name=pending_group_name or current.pending_group_name,
                pending_group_id=pending_group_id or current.pending_group_id,
            )

        self._states[sender_id] = new_state
        logger.debug("Conversation %s: %s -> %s", sender_id, current.step.value, step.value)
        return replace(new_state)

    def reset(self, sender_id: str) -> None:
        self._states[sender_id] = ConversationState()

    def clear(self) -> None:
        """Drop every state and history entry."""
        self._states.clear()
        self._history.clear()

    # History
    def add_history(self, sender_id: str, user_message: str, bot_response: str) -> None:
        history = self._history.setdefault(sender_id, deque(maxlen=self._history_limit))
        history.append(
            ConversationHistoryEntry(user_message=user_message, bot_response=bot_response)
        )

    def get_history(self, sender_id: str) -> list[ConversationHistoryEntry]:
        return [
            entry
            for entry in self._history.get(sender_id, ())
            if not self._expired(entry.timestamp)
        ]

    def history_context(self, sender_id: str) -> str:
        history = self.get_history(sender_id)
        if not history:
            return ""

        lines = ["Recent conversation context:"]
        for entry in history:
            lines.append(f"User: {entry.user_message}")
            lines.append(f"Bot: {entry.bot_response}")
        lines.append("Current message:")
        return "\n".join(lines) + "\n"

    # Eviction
    def _expired(self, timestamp: datetime, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return timestamp < now - self._ttl

    def sweep(self, now: datetime | None = None) -> int:
        """Evict states and history entries idle for longer than the TTL.

        Returns the number of senders whose state was removed.
        """
        now = now or datetime.now(timezone.utc)

        stale = [
            sender_id
            for sender_id, state in self._states.items()
            if self._expired(state.last_updated, now)
        ]
        for sender_id in stale:
            del self._states[sender_id]

        for sender_id in list(self._history):
            recent = [
                entry
                for entry in self._history[sender_id]
                if not self._expired(entry.timestamp, now)
            ]
            if recent:
                self._history[sender_id] = deque(recent, maxlen=self._history_limit)
            else:
                del self._history[sender_id]

        if stale:
            logger.info("Swept %s idle conversation states", len(stale))
        return len(stale)

    def add_sweep_hook(self, hook: SweepHook) -> None:
        """Run `hook` after every periodic sweep."""
        self._sweep_hooks.append(hook)

    async def start(self) -> None:
        """Start the periodic sweeper."""
        if self._running:
            return
        self._running = True
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Stop the periodic sweeper."""
        self._running = False
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._sweep_interval)
                self.sweep()
                for hook in self._sweep_hooks:
                    result = hook()
                    if asyncio.iscoroutine(result):
                        await result
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Sweep error: {e}", exc_info=True)
