"""MessageRouter: turns the inbound event stream into replies."""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from ..actions import QuickActionDispatcher
from ..conversation import IConversationStateStore
from ..grammar import (
    CommandGrammar,
    MentionDetector,
    is_affirmative,
    is_decline,
    is_greeting,
    parse_mentions,
)
from ..llm import ITextGenerator
from ..logging_config import get_logger
from ..models import (
    ConversationStep,
    EventKind,
    GroupOrigin,
    HandleMapping,
    InboundEvent,
    IntentContent,
    MessageRecord,
    SidebarGroup,
)
from ..orchestrator import IGroupOrchestrator
from ..platform import IConversation, IPlatformClient
from ..resolver import IDirectoryService
from ..storage import IStorage
from ..tracker import ITracker
from . import replies

logger = get_logger(__name__)

ACTOR = "message_router"

Step = ConversationStep


@dataclass
class Reply:
    """Text produced for a message. `sent` is set when it was already delivered."""

    text: str
    sent: bool = False


class IMessageRouter(Protocol):
    """Consumes inbound events one at a time."""

    async def enqueue(self, event: InboundEvent) -> None:
        """Queue an event for the worker."""
        ...

    async def handle_event(self, event: InboundEvent) -> None:
        """Process one event to completion."""
        ...


class MessageRouter:
    """Single-worker router over an asyncio.Queue of inbound events.

    Events are handled strictly in arrival order. Text in direct messages
    always proceeds; text in groups proceeds only when the agent is
    mentioned.
    """

    def __init__(
        self,
        platform: IPlatformClient,
        grammar: CommandGrammar,
        mentions: MentionDetector,
        state_store: IConversationStateStore,
        orchestrator: IGroupOrchestrator,
        dispatcher: QuickActionDispatcher,
        generator: ITextGenerator,
        storage: IStorage,
        tracker: ITracker | None = None,
        directories: list[IDirectoryService] | None = None,
    ):
        self._platform = platform
        self._grammar = grammar
        self._mentions = mentions
        self._state = state_store
        self._orchestrator = orchestrator
        self._dispatcher = dispatcher
        self._generator = generator
        self._storage = storage
        self._tracker = tracker
        self._directories = list(directories or [])
        self._agent_handles = {h.lower() for h in grammar.agent_handles}

        self._queue: asyncio.Queue[InboundEvent] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._running = False
        self._known_senders: set[str] = set()

    # Worker
    async def start(self) -> None:
        """Start the worker task."""
        if self._running:
            return
        self._running = True
        self._worker = asyncio.create_task(self._run())
        logger.info("Message router started")

    async def stop(self) -> None:
        """Stop pulling events and cancel the worker."""
        self._running = False
        if self._worker:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        logger.info("Message router stopped")

    async def enqueue(self, event: InboundEvent) -> None:
        await self._queue.put(event)

    async def join(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def _run(self) -> None:
        while self._running:
            try:
                event = await self._queue.get()
            except asyncio.CancelledError:
                break
            try:
                await self.handle_event(event)
            except asyncio.CancelledError:
                self._queue.task_done()
                break
            except Exception as e:
                logger.error(f"Error handling event {event.id}: {e}", exc_info=True)
            self._queue.task_done()

    # Event handling
    async def handle_event(self, event: InboundEvent) -> None:
        if event.sender_id.lower() == self._platform.inbox_id.lower():
            return

        if self._tracker:
            await self._tracker.track(
                "event_received",
                ACTOR,
                {
                    "event_id": event.id,
                    "kind": event.kind.value,
                    "sender_id": event.sender_id,
                    "conversation_id": event.conversation_id,
                },
            )

        if event.kind == EventKind.OTHER:
            logger.debug("Ignoring non-text event %s", event.id)
            return

        try:
            conversation = await self._platform.get_conversation_by_id(
                event.conversation_id
            )
        except Exception as e:
            logger.error(
                f"Error loading conversation {event.conversation_id}: {e}", exc_info=True
            )
            return
        if conversation is None:
            logger.warning("Could not find conversation %s", event.conversation_id)
            return

        if event.kind == EventKind.ACTION:
            await self._handle_action(event, conversation)
        else:
            await self._handle_text(event, conversation)

    async def _handle_action(self, event: InboundEvent, conversation: IConversation) -> None:
        try:
            reply = await self._dispatcher.dispatch(
                IntentContent(action_id=event.action_id or ""), event.sender_id
            )
        except Exception as e:
            logger.error(f"Error processing quick action: {e}", exc_info=True)
            reply = replies.APOLOGY
        await self._send(conversation, reply)

    async def _handle_text(self, event: InboundEvent, conversation: IConversation) -> None:
        text = event.content or ""
        is_group = conversation.is_group

        await self._capture_identity(event, is_group)

        if is_group:
            if not self._mentions.is_mentioned(text):
                return
            text = self._mentions.remove_mention(text)

        logger.info(
            "Message from %s in %s: %s",
            event.sender_id,
            "group" if is_group else "dm",
            text[:100],
            extra={"event_id": event.id, "conversation_id": event.conversation_id},
        )

        try:
            reply = await self._respond(event.sender_id, text, conversation)
        except Exception as e:
            logger.error(f"Error processing message: {e}", exc_info=True)
            await self._send(conversation, replies.APOLOGY)
            return

        if not reply.sent:
            await self._send(conversation, reply.text)
        self._state.add_history(event.sender_id, text, reply.text)

    async def _respond(
        self, sender_id: str, text: str, conversation: IConversation
    ) -> Reply:
        if not conversation.is_group:
            reply = await self._advance_flow(sender_id, text, conversation)
            if reply is not None:
                return reply

        command = self._grammar.parse_command(text)
        if command is not None:
            if not conversation.is_group:
                origin = GroupOrigin.DM
            elif command.private:
                origin = GroupOrigin.PRIVATE_GROUP
            else:
                origin = GroupOrigin.GROUP
            result = await self._orchestrator.create(
                command.name, sender_id, origin, conversation
            )
            return Reply(result.message, sent=result.ok)

        tokens = self._member_tokens(text)
        if tokens:
            reply = await self._add_from_mentions(sender_id, text, tokens)
            if reply is not None:
                return reply

        context = self._state.history_context(sender_id)
        return Reply(await self._generator.generate(text, context))

    async def _advance_flow(
        self, sender_id: str, text: str, conversation: IConversation
    ) -> Reply | None:
        """One step of the guided DM flow, or None to fall through."""
        state = self._state.get(sender_id)

        if state.step == Step.IDLE:
            if is_greeting(text) and self._grammar.parse_command(text) is None:
                self._state.transition(sender_id, Step.ASKED_CREATE_GROUP)
                return Reply(replies.ASK_CREATE_GROUP)
            return None

        if state.step == Step.ASKED_CREATE_GROUP:
            if is_affirmative(text):
                self._state.transition(sender_id, Step.WAITING_FOR_GROUP_NAME)
                return Reply(replies.ASK_GROUP_NAME)
            if is_decline(text):
                self._state.reset(sender_id)
                return Reply(replies.CREATE_DECLINED)

        elif state.step == Step.WAITING_FOR_GROUP_NAME:
            command = self._grammar.parse_command(text)
            name = command.name if command else text.strip()
            if not name:
                return Reply(replies.ASK_GROUP_NAME)
            result = await self._orchestrator.create(
                name, sender_id, GroupOrigin.DM, conversation
            )
            if result.ok and result.group is not None:
                self._state.transition(
                    sender_id,
                    Step.ASKED_ADD_USERS,
                    pending_group_name=result.group.name,
                    pending_group_id=result.group.id,
                )
            else:
                self._state.reset(sender_id)
            return Reply(result.message, sent=result.ok)

        elif state.step in (Step.ASKED_ADD_USERS, Step.WAITING_FOR_USERNAMES):
            tokens = self._member_tokens(text)
            if tokens and state.pending_group_id:
                result = await self._orchestrator.add_members(
                    state.pending_group_id, tokens, sender_id
                )
                self._state.reset(sender_id)
                return Reply(result.message)
            if state.step == Step.ASKED_ADD_USERS and is_affirmative(text):
                self._state.transition(sender_id, Step.WAITING_FOR_USERNAMES)
                return Reply(replies.ASK_MENTIONS)
            if is_decline(text):
                self._state.reset(sender_id)
                return Reply(
                    replies.ADD_DECLINED.format(name=state.pending_group_name or "Your group")
                )

        # Unexpected input: drop the flow and handle the message from IDLE
        logger.debug("Leaving %s for %s on unexpected input", state.step.value, sender_id)
        self._state.reset(sender_id)
        return await self._advance_flow(sender_id, text, conversation)

    async def _add_from_mentions(
        self, sender_id: str, text: str, tokens: list[str]
    ) -> Reply | None:
        if not await self._generator.is_add_members_intent(text):
            return None

        group = self._recent_group(sender_id)
        if group is None:
            return Reply(replies.NO_RECENT_GROUP)

        result = await self._orchestrator.add_members(group.id, tokens, sender_id)
        return Reply(result.message)

    def _recent_group(self, sender_id: str) -> SidebarGroup | None:
        """Newest group of the sender, if a recent reply announced a creation."""
        for entry in reversed(self._state.get_history(sender_id)):
            if any(marker in entry.bot_response for marker in replies.CREATION_MARKERS):
                return self._orchestrator.most_recent_group_for(sender_id)
        return None

    def _member_tokens(self, text: str) -> list[str]:
        return [t for t in parse_mentions(text) if t.lower() not in self._agent_handles]

    # Identity capture
    async def _capture_identity(self, event: InboundEvent, is_group: bool) -> None:
        try:
            if event.sender_id not in self._known_senders:
                await self._save_handle(event.sender_id, is_group)
                self._known_senders.add(event.sender_id)

            await self._storage.save_message(
                MessageRecord(
                    id=event.id,
                    sender_id=event.sender_id,
                    conversation_id=event.conversation_id,
                    content=event.content or "",
                    is_group=is_group,
                    timestamp=event.timestamp,
                )
            )
        except Exception as e:
            logger.warning("Could not record identity of %s: %s", event.sender_id, e)

    async def _save_handle(self, sender_id: str, is_group: bool) -> None:
        address = await self._platform.get_sender_address(sender_id)

        username = None
        if address:
            for directory in self._directories:
                try:
                    username = await directory.lookup_username(address)
                except Exception as e:
                    logger.debug("%s lookup failed for %s: %s", directory.name, address, e)
                    continue
                if username:
                    break

        await self._storage.save_handle_mapping(
            HandleMapping(
                username=username or f"user_{sender_id[:8]}",
                recipient_id=sender_id,
                address=address,
                source="group_message" if is_group else "dm",
            )
        )

    def reset(self) -> None:
        self._known_senders.clear()

    async def _send(self, conversation: IConversation, text: str) -> None:
        try:
            await conversation.send(text)
        except Exception as e:
            logger.error(f"Error sending reply to {conversation.id}: {e}", exc_info=True)
