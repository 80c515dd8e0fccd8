"""
Storage session.

Wires the four record collections to one identity source, one local
snapshot store and (optionally) one Cosmos DB client. Every collection
is built per session and reacts to identity transitions:
- a new identity re-initializes every collection for that user
- sign-out detaches every collection and clears its snapshot
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .config import StorageConfig
from .identity.source import IdentitySource
from .identity.types import UserIdentity
from .local.blob_store import FileBlobStore
from .local.snapshot import LocalSnapshotStore
from .remote.base import RemoteCollectionFactory
from .remote.cosmos import CosmosClientWrapper, cosmos_collection_factory
from .stores import (
    ExpensesCollection,
    JobsCollection,
    PersonalExpensesCollection,
    WeeklyGoalsCollection,
)
from .sync.collection import SyncedCollection

logger = logging.getLogger(__name__)


class StorageSession:
    """The collections of one signed-in app session.

    Usage:
        source = IdentitySource()
        async with await StorageSession.create(config, source) as session:
            await source.set_identity(UserIdentity("user-123"))
            job_id = session.jobs.create({"address": "1 Main St", "amount": 300})
    """

    def __init__(
        self,
        snapshots: LocalSnapshotStore,
        identity_source: IdentitySource,
        remote_factory: RemoteCollectionFactory | None = None,
        cosmos_client: CosmosClientWrapper | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            snapshots: Local snapshot store shared by all collections
            identity_source: Source of identity transitions
            remote_factory: Builds remote collections; None keeps everything local
            cosmos_client: Client owned by this session, closed on ``close()``
        """
        self.snapshots = snapshots
        self.identity_source = identity_source
        self.cosmos_client = cosmos_client

        self.jobs = JobsCollection(snapshots, remote_factory)
        self.expenses = ExpensesCollection(snapshots, remote_factory)
        self.personal_expenses = PersonalExpensesCollection(snapshots, remote_factory)
        self.weekly_goals = WeeklyGoalsCollection(snapshots, remote_factory)

        self._remove_listener: Callable[[], None] | None = None

    @classmethod
    async def create(
        cls,
        config: StorageConfig | None = None,
        identity_source: IdentitySource | None = None,
    ) -> StorageSession:
        """Build a session from configuration and start following identity.

        A Cosmos client is only created when ``config.enable_sync`` is set;
        it connects lazily on the first remote call.
        """
        config = config or StorageConfig()
        identity_source = identity_source or IdentitySource()
        snapshots = LocalSnapshotStore(FileBlobStore(config.local_path))

        cosmos_client = None
        remote_factory = None
        if config.enable_sync and config.cosmos is not None:
            cosmos_client = CosmosClientWrapper(config.cosmos)
            remote_factory = cosmos_collection_factory(cosmos_client)
            logger.info(f"Remote sync enabled: {config.cosmos.endpoint}")
        else:
            logger.info("Remote sync disabled, using local storage only")

        session = cls(snapshots, identity_source, remote_factory, cosmos_client)
        await session.start()
        return session

    @property
    def collections(self) -> tuple[SyncedCollection[Any], ...]:
        return (self.jobs, self.expenses, self.personal_expenses, self.weekly_goals)

    @property
    def identity(self) -> UserIdentity | None:
        return self.identity_source.identity

    async def start(self) -> None:
        """Follow the identity source, loading the current identity if any."""
        if self._remove_listener is None:
            self._remove_listener = self.identity_source.add_listener(self._on_identity_changed)
        if self.identity_source.identity is not None:
            await self._on_identity_changed(self.identity_source.identity)

    async def flush(self) -> None:
        """Wait for background persistence of every collection."""
        await asyncio.gather(*(collection.flush() for collection in self.collections))

    async def close(self) -> None:
        """Stop following identity, settle pending writes and disconnect."""
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        await asyncio.gather(*(collection.close() for collection in self.collections))
        if self.cosmos_client is not None:
            await self.cosmos_client.close()

    async def __aenter__(self) -> StorageSession:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _on_identity_changed(self, identity: UserIdentity | None) -> None:
        if identity is None:
            logger.info("Signed out, clearing collections")
            await asyncio.gather(*(collection.reset() for collection in self.collections))
            return

        logger.info(
            f"Loading collections for {identity.user_id} "
            f"(sync {'on' if identity.is_sync_eligible else 'off'})"
        )
        await asyncio.gather(
            *(collection.initialize(identity) for collection in self.collections)
        )
