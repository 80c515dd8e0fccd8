"""
Synchronized collection store.

Owns the in-memory snapshot of one record collection and keeps the
local snapshot cache and the remote mirror eventually consistent
with it:
- Mutations apply to the snapshot synchronously, then persist in
  background tasks (local first, remote if the identity may sync)
- A live remote subscription replaces the snapshot wholesale on every
  push and writes it through to the local cache
- Local and remote failures are logged and reflected in the sync
  status; they never reach the caller
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Coroutine, Mapping
from typing import Any, Generic

from ..exceptions import IdentityNotSetError, JobTrackerStorageError, SnapshotDecodeError
from ..identity.types import UserIdentity
from ..local.snapshot import LocalSnapshotStore
from ..logging_utils import StorageLoggerAdapter, get_storage_logger
from ..records import R, utc_now_iso
from ..remote.base import RemoteCollection, RemoteCollectionFactory, SortOrder, Subscription
from .status import SyncStatus, SyncStatusTracker


def _new_id() -> str:
    return uuid.uuid4().hex


class SyncedCollection(Generic[R]):
    """Local-first collection of records of one type.

    Args:
        name: Collection name, used for the remote sub-collection and local key
        record_type: Record subclass stored in this collection
        snapshots: Local snapshot store
        remote_factory: Builds the user's RemoteCollection; None disables sync
        order: Ordering of remote list and subscription results
        id_factory: Generates record ids
        clock: Returns the current time as an ISO string
    """

    def __init__(
        self,
        name: str,
        record_type: type[R],
        snapshots: LocalSnapshotStore,
        remote_factory: RemoteCollectionFactory | None = None,
        order: SortOrder | None = None,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.name = name
        self.record_type = record_type
        self.snapshots = snapshots
        self.remote_factory = remote_factory
        self.order = order or SortOrder("updatedAt")
        self._id_factory = id_factory
        self._clock = clock

        self._records: list[R] = []
        self._identity: UserIdentity | None = None
        self._remote: RemoteCollection | None = None
        self._subscription: Subscription | None = None
        self._subscription_lock = asyncio.Lock()
        self._local_lock = asyncio.Lock()
        self._generation = 0
        self._save_seq = 0
        self._saved_seq: dict[str, int] = {}
        self._pending: set[asyncio.Task[Any]] = set()
        self._loading = False
        # Mutations made while a load is in flight, replayed onto the loaded snapshot
        self._load_upserts: dict[str, R] = {}
        self._load_deletes: set[str] = set()

        self.sync_status = SyncStatusTracker()
        self._base_log = StorageLoggerAdapter(get_storage_logger("sync"), {"collection": name})
        self._log = self._base_log

    # =========================================================================
    # Read API
    # =========================================================================

    @property
    def records(self) -> tuple[R, ...]:
        """The current snapshot. Never blocks on I/O."""
        return tuple(self._records)

    @property
    def identity(self) -> UserIdentity | None:
        return self._identity

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def status(self) -> SyncStatus:
        return self.sync_status.status

    @property
    def subscription_active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> R | None:
        """Exact id lookup in the snapshot."""
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def local_key(self, identity: UserIdentity | None = None) -> str:
        """Blob key of this collection's local snapshot for ``identity``."""
        identity = identity or self._require_identity()
        return f"{identity.user_id}.{self.name}"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self, identity: UserIdentity) -> None:
        """Load the collection for ``identity`` and start live sync.

        Ineligible identities load from the local cache only and never
        touch the remote. Eligible identities take the remote snapshot
        when reachable (falling back to the local cache otherwise) and
        subscribe to remote changes.

        Raises:
            TypeError: If ``identity`` is not a UserIdentity
        """
        if not isinstance(identity, UserIdentity):
            raise TypeError(
                f"initialize() requires a UserIdentity, got {type(identity).__name__}"
            )

        self._generation += 1
        generation = self._generation
        await self._release_subscription()

        self._identity = identity
        self._records = []
        self._loading = True
        self._load_upserts.clear()
        self._load_deletes.clear()
        self.sync_status.reset()
        key = self.local_key(identity)

        remote: RemoteCollection | None = None
        if identity.is_sync_eligible and self.remote_factory is not None:
            remote = self.remote_factory(identity.user_id, self.name)
        self._remote = remote
        self._log = self._base_log.bind(user_id=identity.user_id)

        try:
            if remote is None:
                records = await self._load_local(key)
                if generation != self._generation:
                    return
                replayed = self._install(records)
                self._log.info(f"Loaded {len(records)} records from local cache")
                if replayed:
                    await self._write_through(key)
                return

            self.sync_status.begin()
            try:
                documents = await remote.list_all(self.order)
            except Exception as e:
                self.sync_status.fail(e)
                self._log.warning(f"Remote load failed, serving local cache: {e}")
                records = await self._load_local(key)
                if generation != self._generation:
                    return
                if self._install(records):
                    await self._write_through(key)
            else:
                self.sync_status.succeed()
                if generation != self._generation:
                    return
                self._install(self._decode(documents))
                self._log.info(f"Loaded {len(self._records)} records from remote")
                await self._write_through(key)

            await self._subscribe(remote, generation)
        finally:
            if generation == self._generation:
                self._loading = False

    async def reset(self) -> None:
        """Detach from the current identity and clear the snapshot."""
        self._generation += 1
        await self._release_subscription()
        self._identity = None
        self._remote = None
        self._log = self._base_log
        self._records = []
        self._loading = False
        self._load_upserts.clear()
        self._load_deletes.clear()
        self.sync_status.reset()

    async def flush(self) -> None:
        """Wait for all background persistence to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Release the subscription and wait for pending writes."""
        self._generation += 1
        await self._release_subscription()
        await self.flush()

    # =========================================================================
    # Mutations - snapshot first, then background persistence
    # =========================================================================

    def create(self, fields: R | Mapping[str, Any]) -> str:
        """Add a record and return its new id.

        ``fields`` is a record instance or a mapping of attribute names;
        any id or timestamps on it are replaced.
        """
        self._require_identity()
        base = fields if isinstance(fields, self.record_type) else self.record_type(**fields)
        now = self._clock()
        record = base.copy(id=self._id_factory(), created_at=now, updated_at=now)
        self._records.append(record)
        self._log.debug(f"Created record {record.id}")
        self._persist(upsert=record)
        return record.id

    def update(self, record: R) -> bool:
        """Replace the record with the same id.

        Returns:
            True if the record existed, False if no record has that id
            (nothing is changed or persisted in that case)
        """
        self._require_identity()
        index = self._index_of(record.id)
        if index is None:
            self._log.debug(f"Update ignored, no record {record.id}")
            return False
        existing = self._records[index]
        updated = record.copy(created_at=existing.created_at, updated_at=self._clock())
        self._records[index] = updated
        self._persist(upsert=updated)
        return True

    def delete(self, record_id: str) -> bool:
        """Remove a record.

        Returns:
            True if the record existed
        """
        self._require_identity()
        index = self._index_of(record_id)
        if index is None:
            return False
        del self._records[index]
        self._log.debug(f"Deleted record {record_id}")
        self._persist(delete_id=record_id)
        return True

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_identity(self) -> UserIdentity:
        if self._identity is None:
            raise IdentityNotSetError(self.name)
        return self._identity

    def _index_of(self, record_id: str) -> int | None:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        return None

    def _decode(self, documents: list[dict[str, Any]]) -> list[R]:
        records: list[R] = []
        for document in documents:
            try:
                records.append(self.record_type.from_dict(document))
            except (TypeError, ValueError, KeyError) as e:
                self._log.warning(f"Skipping undecodable document {document.get('id')}: {e}")
        return records

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _persist(self, upsert: R | None = None, delete_id: str | None = None) -> None:
        if self._loading:
            # Saved once by _install after the load completes
            if upsert is not None:
                self._load_upserts[upsert.id] = upsert
                self._load_deletes.discard(upsert.id)
            if delete_id is not None:
                self._load_upserts.pop(delete_id, None)
                self._load_deletes.add(delete_id)
        else:
            key = self.local_key()
            self._schedule(self._save_local(key, self._documents(), self._next_save_seq()))

        remote = self._remote
        if remote is None:
            return
        if upsert is not None:
            self._schedule(self._remote_upsert(remote, upsert.to_dict()))
        if delete_id is not None:
            self._schedule(self._remote_delete(remote, delete_id))

    async def _load_local(self, key: str) -> list[R]:
        try:
            documents = await self.snapshots.load_snapshot(key)
        except SnapshotDecodeError as e:
            self._log.warning(f"Local cache corrupt, starting empty: {e}")
            return []
        except JobTrackerStorageError as e:
            self._log.error(f"Local cache unreadable, starting empty: {e}")
            return []
        return self._decode(documents)

    def _install(self, records: list[R]) -> bool:
        """Make ``records`` the snapshot, replaying mutations made while loading.

        Returns:
            True if any mutation was replayed, in which case the local
            cache needs a save
        """
        upserts = dict(self._load_upserts)
        deletes = set(self._load_deletes)
        self._load_upserts.clear()
        self._load_deletes.clear()
        self._loading = False

        replayed = len(upserts) + len(deletes)
        merged = [upserts.pop(r.id, r) for r in records if r.id not in deletes]
        merged.extend(upserts.values())
        self._records = merged
        if replayed:
            self._log.debug(f"Replayed {replayed} mutations made during load")
        return replayed > 0

    def _documents(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self._records]

    def _next_save_seq(self) -> int:
        self._save_seq += 1
        return self._save_seq

    async def _write_through(self, key: str) -> None:
        await self._save_local(key, self._documents(), self._next_save_seq())

    async def _save_local(self, key: str, documents: list[dict[str, Any]], seq: int) -> None:
        # Older snapshots never overwrite newer ones for the same key
        async with self._local_lock:
            if seq <= self._saved_seq.get(key, 0):
                return
            self._saved_seq[key] = seq
            await self.snapshots.save_snapshot(key, documents)

    async def _remote_upsert(self, remote: RemoteCollection, document: dict[str, Any]) -> None:
        self.sync_status.begin()
        try:
            await remote.upsert_one(document)
        except Exception as e:
            self.sync_status.fail(e)
            self._log.error(
                f"Remote upsert failed: {e}",
                extra={"record_id": document.get("id"), "operation": "upsert"},
            )
        else:
            self.sync_status.succeed()

    async def _remote_delete(self, remote: RemoteCollection, record_id: str) -> None:
        self.sync_status.begin()
        try:
            await remote.delete_one(record_id)
        except Exception as e:
            self.sync_status.fail(e)
            self._log.error(
                f"Remote delete failed, kept local removal: {e}",
                extra={"record_id": record_id, "operation": "delete"},
            )
        else:
            self.sync_status.succeed()

    async def _subscribe(self, remote: RemoteCollection, generation: int) -> None:
        async with self._subscription_lock:
            if generation != self._generation:
                return
            if self._subscription is not None:
                await self._subscription.unsubscribe()
                self._subscription = None

            async def on_change(documents: list[dict[str, Any]]) -> None:
                await self._on_remote_snapshot(generation, documents)

            async def on_error(error: Exception) -> None:
                if generation == self._generation:
                    self.sync_status.report_error(error)
                    self._log.warning(f"Remote subscription error: {error}")

            try:
                self._subscription = await remote.subscribe(self.order, on_change, on_error)
            except Exception as e:
                self.sync_status.report_error(e)
                self._log.warning(f"Remote subscribe failed: {e}")

    async def _release_subscription(self) -> None:
        async with self._subscription_lock:
            subscription, self._subscription = self._subscription, None
            if subscription is not None:
                try:
                    await subscription.unsubscribe()
                except Exception as e:
                    self._log.warning(f"Unsubscribe failed: {e}")

    async def _on_remote_snapshot(self, generation: int, documents: list[dict[str, Any]]) -> None:
        # Pushes from a superseded identity's feed are dropped
        if generation != self._generation or self._identity is None:
            return
        self._records = self._decode(documents)
        self.sync_status.mark_synced()
        self._log.debug(f"Remote push replaced snapshot ({len(self._records)} records)")
        await self._write_through(self.local_key())
