"""GroupOrchestrator: sidebar group lifecycle against the messaging platform."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Protocol

from ..config import INVITATION_MAX_AGE_HOURS
from ..errors import (
    RESOLUTION_HINT,
    AlreadySatisfiedError,
    AuthorizationError,
    GrouperError,
    NotFoundError,
    TransientPlatformError,
    ValidationError,
    classify_platform_error,
)
from ..logging_config import get_logger
from ..models import (
    DM_ORIGIN,
    Action,
    ActionsContent,
    GroupOrigin,
    PendingInvitation,
    SidebarGroup,
)
from ..platform import IConversation, IGroupHandle, IPlatformClient
from ..resolver import IHandleResolver
from ..tracker import ITracker
from . import messages

logger = get_logger(__name__)

ACTOR = "group_orchestrator"
JOIN_PREFIX = "join_sidebar_"
DECLINE_PREFIX = "decline_sidebar_"
INVITE_PREFIX = "sidebar_invite_"


@dataclass
class OperationResult:
    """Outcome of an orchestrator operation plus the text to show the user."""

    ok: bool
    message: str
    group: SidebarGroup | None = None
    error: GrouperError | None = None
    added: list[str] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class IGroupOrchestrator(Protocol):
    """Sidebar group lifecycle."""

    async def create(
        self,
        group_name: str,
        creator_id: str,
        origin: GroupOrigin,
        origin_conversation: IConversation,
    ) -> OperationResult: ...

    async def join(self, group_id: str, user_id: str) -> OperationResult: ...

    async def decline(self, group_id: str, user_id: str) -> OperationResult: ...

    async def add_members(
        self, group_id: str, mention_tokens: list[str], requester_id: str
    ) -> OperationResult: ...

    def most_recent_group_for(self, creator_id: str) -> SidebarGroup | None: ...


class GroupOrchestrator:
    """Runs group creation and membership changes.

    Only the create-group call itself can fail a creation; rename, admin
    promotion, welcome and follow-up messages are best-effort. Every remote
    call is bounded by `call_timeout`.
    """

    def __init__(
        self,
        platform: IPlatformClient,
        resolver: IHandleResolver,
        tracker: ITracker,
        agent_handle: str = "grouper",
        call_timeout: float = 15.0,
        settle_delay: float = 1.0,
    ):
        self._platform = platform
        self._resolver = resolver
        self._tracker = tracker
        self._agent_handle = agent_handle
        self._call_timeout = call_timeout
        self._settle_delay = settle_delay

        self._groups: dict[str, SidebarGroup] = {}
        self._invitations: dict[str, PendingInvitation] = {}

    # Lookups
    def get_group(self, group_id: str) -> SidebarGroup | None:
        return self._groups.get(group_id)

    def list_groups(self) -> list[SidebarGroup]:
        return list(self._groups.values())

    def get_invitation(self, invitation_id: str) -> PendingInvitation | None:
        return self._invitations.get(invitation_id)

    def most_recent_group_for(self, creator_id: str) -> SidebarGroup | None:
        """The newest group created by `creator_id`, if any."""
        owned = [g for g in self._groups.values() if g.created_by == creator_id]
        if not owned:
            return None
        return max(owned, key=lambda g: g.created_at)

    def reset(self) -> None:
        self._groups.clear()
        self._invitations.clear()

    # Create
    async def create(
        self,
        group_name: str,
        creator_id: str,
        origin: GroupOrigin,
        origin_conversation: IConversation,
    ) -> OperationResult:
        name = (group_name or "").strip()
        if not name:
            error = ValidationError(messages.EMPTY_NAME)
            return OperationResult(ok=False, message=error.user_message, error=error)

        logger.info(
            "Creating sidebar group %r for %s (origin=%s, conversation=%s)",
            name,
            creator_id,
            origin.value,
            origin_conversation.id,
        )

        try:
            group = await self._call(self._platform.create_group([creator_id]))
        except Exception as e:
            error = classify_platform_error(e)
            logger.error(f"Error creating sidebar group {name!r}: {e}", exc_info=True)
            return OperationResult(
                ok=False,
                message=messages.CREATE_FAILED.format(name=name, error=error.message),
                error=error,
            )

        logger.info("Created sidebar group %s", group.id, extra={"group_id": group.id})

        if group.name != name:
            await self._best_effort("rename", group.id, lambda: group.rename(name))

        record = SidebarGroup(
            id=group.id,
            name=name,
            original_group_id=(
                DM_ORIGIN if origin == GroupOrigin.DM else origin_conversation.id
            ),
            created_by=creator_id,
            members=[creator_id],
        )
        self._groups[record.id] = record

        await self._best_effort(
            "promote creator", group.id, lambda: group.add_super_admin(creator_id)
        )
        await self._best_effort(
            "welcome message",
            group.id,
            lambda: group.send(messages.WELCOME.format(name=name)),
        )

        if self._settle_delay:
            await asyncio.sleep(self._settle_delay)

        reply = await self._announce_creation(record, origin, origin_conversation)

        await self._tracker.track(
            "group_created",
            ACTOR,
            {
                "group_id": record.id,
                "name": name,
                "created_by": creator_id,
                "origin": origin.value,
                "original_group_id": record.original_group_id,
            },
        )

        return OperationResult(ok=True, message=reply, group=record)

    async def _announce_creation(
        self,
        record: SidebarGroup,
        origin: GroupOrigin,
        origin_conversation: IConversation,
    ) -> str:
        if origin == GroupOrigin.DM:
            content = messages.CREATED_IN_DM.format(name=record.name)
        elif origin == GroupOrigin.PRIVATE_GROUP:
            content = messages.CREATED_PRIVATE.format(
                name=record.name, agent=self._agent_handle
            )
        else:
            content = self.build_invitation(record)
            self._invitations[content.id] = PendingInvitation(
                group_id=record.id, original_group_id=origin_conversation.id
            )

        await self._best_effort(
            "announce creation",
            record.id,
            lambda: origin_conversation.send(content),
        )
        if isinstance(content, ActionsContent):
            return content.description
        return content

    @staticmethod
    def build_invitation(record: SidebarGroup) -> ActionsContent:
        """Join/decline buttons for a freshly created group."""
        return ActionsContent(
            id=f"{INVITE_PREFIX}{record.id}",
            description=messages.INVITATION.format(name=record.name),
            actions=[
                Action(
                    id=f"{JOIN_PREFIX}{record.id}",
                    label=messages.JOIN_LABEL,
                    style="primary",
                ),
                Action(
                    id=f"{DECLINE_PREFIX}{record.id}",
                    label=messages.DECLINE_LABEL,
                    style="secondary",
                ),
            ],
        )

    # Join / decline
    async def join(self, group_id: str, user_id: str) -> OperationResult:
        record = self._groups.get(group_id)
        if record is None:
            logger.info(
                "Sidebar group %s not in memory. Known: %s",
                group_id,
                list(self._groups),
            )
            return self._failure(NotFoundError("Sidebar group", group_id))

        logger.info(
            "Adding %s to sidebar group %r", user_id, record.name, extra={"group_id": group_id}
        )

        try:
            group = await self._find_live_group(group_id)
        except GrouperError as error:
            return self._failure(error)

        try:
            await self._call(group.add_members([user_id]))
        except Exception as e:
            error = classify_platform_error(e)
            if isinstance(error, AlreadySatisfiedError):
                logger.info("%s was already in sidebar group %s", user_id, group_id)
                record.add_member(user_id)
                return OperationResult(
                    ok=True,
                    message=messages.ALREADY_MEMBER.format(name=record.name),
                    group=record,
                    added=[user_id],
                )
            if isinstance(error, TransientPlatformError):
                logger.warning("Transient failure adding %s to %s: %s", user_id, group_id, e)
                message = messages.JOIN_TRANSIENT.format(name=record.name)
            else:
                logger.error(
                    f"Unknown error adding {user_id} to {group_id}: {e}", exc_info=True
                )
                message = messages.JOIN_FAILED.format(name=record.name, error=error.message)
            return OperationResult(
                ok=False, message=message, group=record, error=error, failed=[user_id]
            )

        record.add_member(user_id)
        await self._best_effort(
            "join announcement",
            group_id,
            lambda: group.send(
                messages.JOIN_ANNOUNCEMENT.format(member=user_id, name=record.name)
            ),
        )
        await self._tracker.track(
            "member_joined",
            ACTOR,
            {"group_id": group_id, "user_id": user_id},
        )

        return OperationResult(
            ok=True,
            message=messages.JOINED.format(name=record.name),
            group=record,
            added=[user_id],
        )

    async def decline(self, group_id: str, user_id: str) -> OperationResult:
        record = self._groups.get(group_id)
        name = record.name if record else "sidebar group"
        logger.info("%s declined to join sidebar group %r", user_id, name)

        await self._tracker.track(
            "invitation_declined",
            ACTOR,
            {"group_id": group_id, "user_id": user_id},
        )
        return OperationResult(ok=True, message=messages.DECLINED.format(name=name), group=record)

    # Add members
    async def add_members(
        self, group_id: str, mention_tokens: list[str], requester_id: str
    ) -> OperationResult:
        record = self._groups.get(group_id)
        if record is None:
            return self._failure(NotFoundError("Sidebar group", group_id))

        if record.created_by != requester_id:
            logger.info(
                "%s tried to add members to %s owned by %s",
                requester_id,
                group_id,
                record.created_by,
            )
            return self._failure(AuthorizationError(), group=record)

        if not mention_tokens:
            return self._failure(ValidationError(messages.NO_MENTIONS), group=record)

        logger.info("Adding %s to sidebar group %r", ", ".join(mention_tokens), record.name)

        resolved = await self._resolver.resolve_batch(mention_tokens)
        unresolved = [token for token, recipient in resolved.items() if not recipient]

        # recipient -> first token that resolved to it
        tokens_by_recipient: dict[str, str] = {}
        for token, recipient in resolved.items():
            if recipient and recipient not in tokens_by_recipient:
                tokens_by_recipient[recipient] = token

        if not tokens_by_recipient:
            error = ValidationError("No mentions could be resolved", {"tokens": unresolved})
            return OperationResult(
                ok=False,
                message=messages.NONE_RESOLVED.format(tokens=", ".join(unresolved)),
                group=record,
                error=error,
                unresolved=unresolved,
            )

        try:
            group = await self._find_live_group(group_id)
        except GrouperError as error:
            return self._failure(error, group=record)

        added: list[str] = []
        already: list[str] = []
        failed: list[str] = []

        for recipient, token in tokens_by_recipient.items():
            try:
                await self._call(group.add_members([recipient]))
            except Exception as e:
                error = classify_platform_error(e)
                if isinstance(error, AlreadySatisfiedError):
                    logger.info("%s was already in sidebar group %s", recipient, group_id)
                    record.add_member(recipient)
                    already.append(token)
                elif isinstance(error, TransientPlatformError):
                    logger.warning("Transient failure adding %s: %s", recipient, e)
                    failed.append(token)
                else:
                    logger.error(f"Unknown error adding {recipient}: {e}", exc_info=True)
                    failed.append(token)
                continue

            record.add_member(recipient)
            added.append(token)

        if added:
            added_recipients = [r for r, t in tokens_by_recipient.items() if t in added]
            await self._best_effort(
                "members announcement",
                group_id,
                lambda: group.send(
                    messages.MEMBERS_ANNOUNCEMENT.format(
                        count=len(added),
                        name=record.name,
                        members=", ".join(added_recipients),
                    )
                ),
            )

        await self._tracker.track(
            "members_added",
            ACTOR,
            {
                "group_id": group_id,
                "requester_id": requester_id,
                "added": added,
                "already_members": already,
                "unresolved": unresolved,
                "failed": failed,
            },
        )

        return OperationResult(
            ok=bool(added or already),
            message=self._summarize(record, added, already, unresolved, failed),
            group=record,
            added=added + already,
            unresolved=unresolved,
            failed=failed,
        )

    @staticmethod
    def _summarize(
        record: SidebarGroup,
        added: list[str],
        already: list[str],
        unresolved: list[str],
        failed: list[str],
    ) -> str:
        parts = [messages.MEMBERS_ADDED.format(count=len(added), name=record.name)]
        if added:
            parts.append(f"Added: {', '.join(added)}")
        if already:
            parts.append(f"Already members: {', '.join(already)}")
        if unresolved:
            parts.append(f"Failed to resolve: {', '.join(unresolved)}")
        if failed:
            parts.append(f"Could not add: {', '.join(failed)}")
        if unresolved or failed:
            parts.append(RESOLUTION_HINT)
        return "\n\n".join(parts)

    # Maintenance
    def cleanup_expired_invitations(
        self, max_age_hours: int = INVITATION_MAX_AGE_HOURS
    ) -> int:
        """Drop invitations whose group is older than `max_age_hours`."""
        cutoff = datetime.now(timezone.utc) - timedelta(hours=max_age_hours)
        expired = []
        for key, invitation in self._invitations.items():
            group = self._groups.get(invitation.group_id)
            if group is None or group.created_at < cutoff:
                expired.append(key)

        for key in expired:
            del self._invitations[key]

        if expired:
            logger.info("Cleaned up %s expired sidebar invitations", len(expired))
        return len(expired)

    # Helpers
    async def _call(self, awaitable: Awaitable):
        return await asyncio.wait_for(awaitable, self._call_timeout)

    async def _best_effort(
        self, step: str, group_id: str, action: Callable[[], Awaitable]
    ) -> bool:
        try:
            await self._call(action())
            return True
        except Exception as e:
            logger.warning(
                "Could not complete %s for group %s: %s (code=%s)",
                step,
                group_id,
                e,
                getattr(e, "code", None),
            )
            return False

    async def _find_live_group(self, group_id: str) -> IGroupHandle:
        """Locate a group in the agent's current conversation list."""
        try:
            await self._call(self._platform.sync())
            groups = await self._call(self._platform.list_groups())
        except Exception as e:
            raise classify_platform_error(e) from e

        for group in groups:
            if group.id == group_id:
                return group

        logger.info("Sidebar group %s not found in agent's conversations", group_id)
        raise NotFoundError("Sidebar group", group_id)

    @staticmethod
    def _failure(error: GrouperError, group: SidebarGroup | None = None) -> OperationResult:
        return OperationResult(ok=False, message=error.user_message, group=group, error=error)
