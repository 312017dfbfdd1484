"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .actions import QuickActionDispatcher
from .config import (
    DEFAULT_PLATFORM_TIMEOUT,
    DEFAULT_PLATFORM_URL,
    parse_mention_handles,
    resolve_db_path,
)
from .conversation import ConversationStateStore
from .grammar import CommandGrammar, MentionDetector
from .llm import ILLMProvider, ITextGenerator, LLMProvider, TextGenerator
from .logging_config import get_logger
from .models import InboundEvent
from .orchestrator import GroupOrchestrator
from .platform import HttpPlatformClient, IPlatformClient
from .resolver import HandleResolver, IDirectoryService, NeynarDirectory
from .router import MessageRouter
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Clear conversational state, groups and stored data."""
        ...

    async def submit(self, event: InboundEvent) -> None:
        """Queue an inbound platform event."""
        ...


class Application:
    """Main application bootstrap.

    Collaborators not passed in are built from the environment: the HTTP
    platform bridge, the Anthropic LLM and the Neynar directory.
    """

    def __init__(
        self,
        db_path: str | None = None,
        platform: IPlatformClient | None = None,
        llm_provider: ILLMProvider | None = None,
        directories: list[IDirectoryService] | None = None,
        settle_delay: float = 1.0,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._mention_handles = parse_mention_handles(os.getenv("MENTION_HANDLES"))
        self._call_timeout = float(
            os.getenv("PLATFORM_TIMEOUT", str(DEFAULT_PLATFORM_TIMEOUT))
        )
        self._settle_delay = settle_delay

        self._platform = platform
        self._owns_platform = platform is None
        self._llm = llm_provider
        self._directories = directories
        self._neynar: NeynarDirectory | None = None

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: ITracker | None = None
        self._generator: ITextGenerator | None = None
        self._resolver: HandleResolver | None = None
        self._state_store: ConversationStateStore | None = None
        self._orchestrator: GroupOrchestrator | None = None
        self._dispatcher: QuickActionDispatcher | None = None
        self._router: MessageRouter | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Tracker (depends on Storage)
        self._tracker = Tracker(self._storage)

        # 3. LLM + text generator
        if self._llm is None:
            self._llm = LLMProvider()
        self._generator = TextGenerator(self._llm)
        logger.info("LLM provider initialized")

        # 4. Platform bridge
        if self._platform is None:
            self._platform = HttpPlatformClient(
                base_url=os.getenv("PLATFORM_URL", DEFAULT_PLATFORM_URL),
                token=os.getenv("PLATFORM_TOKEN"),
                timeout=self._call_timeout,
            )
        if self._owns_platform:
            await self._platform.start()
        logger.info("Platform client initialized")

        # 5. Resolver (depends on Storage, platform, directories)
        if self._directories is None:
            self._neynar = NeynarDirectory(api_key=os.getenv("NEYNAR_API_KEY"))
            self._directories = [self._neynar]
        self._resolver = HandleResolver(
            storage=self._storage,
            platform=self._platform,
            directories=self._directories,
            call_timeout=self._call_timeout,
        )

        # 6. Conversation state with its sweeper
        self._state_store = ConversationStateStore()

        # 7. Orchestrator (depends on platform, resolver, tracker)
        self._orchestrator = GroupOrchestrator(
            platform=self._platform,
            resolver=self._resolver,
            tracker=self._tracker,
            agent_handle=self._mention_handles[0],
            call_timeout=self._call_timeout,
            settle_delay=self._settle_delay,
        )
        self._state_store.add_sweep_hook(self._orchestrator.cleanup_expired_invitations)
        await self._state_store.start()

        # 8. Quick actions
        self._dispatcher = QuickActionDispatcher(self._orchestrator)

        # 9. Router worker
        self._router = MessageRouter(
            platform=self._platform,
            grammar=CommandGrammar(self._mention_handles),
            mentions=MentionDetector(self._mention_handles),
            state_store=self._state_store,
            orchestrator=self._orchestrator,
            dispatcher=self._dispatcher,
            generator=self._generator,
            storage=self._storage,
            tracker=self._tracker,
            directories=self._directories,
        )
        await self._router.start()
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._router:
            await self._router.stop()
        if self._state_store:
            await self._state_store.stop()
        if self._platform and self._owns_platform:
            await self._platform.stop()
            logger.info("Platform client closed")
        if self._neynar:
            await self._neynar.close()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Clear conversational state, groups and stored data."""
        if self._router:
            await self._router.stop()

        if self._state_store:
            self._state_store.clear()
        if self._orchestrator:
            self._orchestrator.reset()
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

        if self._router:
            self._router.reset()
            await self._router.start()
            logger.info("Reset complete")

    async def submit(self, event: InboundEvent) -> None:
        await self.router.enqueue(event)

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def router(self) -> MessageRouter:
        """Get message router instance."""
        if not self._router:
            raise RuntimeError("Application not started")
        return self._router

    @property
    def orchestrator(self) -> GroupOrchestrator:
        """Get group orchestrator instance."""
        if not self._orchestrator:
            raise RuntimeError("Application not started")
        return self._orchestrator

    @property
    def state_store(self) -> ConversationStateStore:
        """Get conversation state store."""
        if not self._state_store:
            raise RuntimeError("Application not started")
        return self._state_store
