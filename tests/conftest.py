"""
Shared test configuration and fixtures.

Provides an in-memory blob store and a fake remote document store that
behaves like a live-subscription backend: every write pushes the full
collection snapshot to active subscribers. The fake counts calls and
can be told to fail or to hang, so sync behaviour is observable
without a real Cosmos DB account.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from collections.abc import Callable
from typing import Any

import pytest

from job_tracker_storage.exceptions import (
    RemoteUnavailableError,
    RemoteWriteError,
    StorageIOError,
)
from job_tracker_storage.identity import UserIdentity
from job_tracker_storage.local import BlobStore, LocalSnapshotStore
from job_tracker_storage.remote.base import (
    OnChange,
    OnError,
    RemoteCollection,
    SortOrder,
    Subscription,
    invoke_callback,
    strip_server_fields,
)

FAKE_ENDPOINT = "fake://remote"


class MemoryBlobStore(BlobStore):
    """Blob store kept in a dict, with optional write failures."""

    def __init__(self) -> None:
        self.blobs: dict[str, str] = {}
        self.fail_writes = False
        self.writes = 0

    async def get(self, key: str) -> str | None:
        return self.blobs.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageIOError("write_blob", key, OSError("disk full"))
        self.writes += 1
        self.blobs[key] = value

    async def remove(self, key: str) -> bool:
        return self.blobs.pop(key, None) is not None


class FakeSubscription(Subscription):
    def __init__(self, server: FakeRemoteServer, key: tuple[str, str], on_change: OnChange,
                 on_error: OnError, order: SortOrder) -> None:
        self.server = server
        self.key = key
        self.on_change = on_change
        self.on_error = on_error
        self.order = order
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    async def unsubscribe(self) -> None:
        self._active = False


class FakeRemoteServer:
    """In-memory remote document store shared by all fake collections.

    Attributes:
        documents: (user_id, collection) -> record id -> stored document
        calls: (operation, user_id, collection) for every remote call
        fail_list / fail_writes / fail_subscribe: failure injection switches
        write_gate: when set, writes wait on this event before applying
        list_gate: when set, list_all waits on this event before reading
    """

    def __init__(self) -> None:
        self.documents: dict[tuple[str, str], dict[str, dict[str, Any]]] = defaultdict(dict)
        self.calls: list[tuple[str, str, str]] = []
        self.subscriptions: list[FakeSubscription] = []
        self.collections: list[FakeRemoteCollection] = []
        self.fail_list = False
        self.fail_writes = False
        self.fail_subscribe = False
        self.write_gate: asyncio.Event | None = None
        self.list_gate: asyncio.Event | None = None
        self._ts = itertools.count(1_700_000_000)

    def factory(self, user_id: str, name: str) -> FakeRemoteCollection:
        collection = FakeRemoteCollection(self, user_id, name)
        self.collections.append(collection)
        return collection

    def count(self, operation: str | None = None, user_id: str | None = None) -> int:
        return sum(
            1
            for op, user, _ in self.calls
            if (operation is None or op == operation) and (user_id is None or user == user_id)
        )

    def active_subscriptions(
        self, user_id: str | None = None, name: str | None = None
    ) -> list[FakeSubscription]:
        return [
            sub
            for sub in self.subscriptions
            if sub.active
            and (user_id is None or sub.key[0] == user_id)
            and (name is None or sub.key[1] == name)
        ]

    def seed(self, user_id: str, name: str, documents: list[dict[str, Any]]) -> None:
        for document in documents:
            self.store(user_id, name, document)

    def store(self, user_id: str, name: str, document: dict[str, Any]) -> None:
        self.documents[(user_id, name)][document["id"]] = {
            **strip_server_fields(document),
            "partitionKey": f"{user_id}_{name}",
            "_ts": next(self._ts),
        }

    def snapshot(self, user_id: str, name: str, order: SortOrder) -> list[dict[str, Any]]:
        return order.sort(
            [strip_server_fields(d) for d in self.documents[(user_id, name)].values()]
        )

    async def push(self, user_id: str, name: str) -> None:
        """Deliver the current snapshot to every active subscriber."""
        for sub in self.active_subscriptions(user_id, name):
            await invoke_callback(sub.on_change, self.snapshot(user_id, name, sub.order))

    async def push_error(self, user_id: str, name: str, error: Exception) -> None:
        for sub in self.active_subscriptions(user_id, name):
            await invoke_callback(sub.on_error, error)


class FakeRemoteCollection(RemoteCollection):
    def __init__(self, server: FakeRemoteServer, user_id: str, name: str) -> None:
        self.server = server
        self.user_id = user_id
        self.name = name

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.name)

    def _record(self, operation: str) -> None:
        self.server.calls.append((operation, self.user_id, self.name))

    async def list_all(self, order: SortOrder) -> list[dict[str, Any]]:
        self._record("list")
        if self.server.list_gate is not None:
            await self.server.list_gate.wait()
        if self.server.fail_list:
            raise RemoteUnavailableError(FAKE_ENDPOINT, ConnectionError("offline"))
        return self.server.snapshot(self.user_id, self.name, order)

    async def upsert_one(self, record: dict[str, Any]) -> None:
        self._record("upsert")
        if self.server.write_gate is not None:
            await self.server.write_gate.wait()
        if self.server.fail_writes:
            raise RemoteWriteError("upsert", record.get("id", ""), ConnectionError("offline"))
        self.server.store(self.user_id, self.name, record)
        await self.server.push(self.user_id, self.name)

    async def delete_one(self, record_id: str) -> None:
        self._record("delete")
        if self.server.write_gate is not None:
            await self.server.write_gate.wait()
        if self.server.fail_writes:
            raise RemoteWriteError("delete", record_id, ConnectionError("offline"))
        self.server.documents[self.key].pop(record_id, None)
        await self.server.push(self.user_id, self.name)

    async def subscribe(self, order: SortOrder, on_change: OnChange, on_error: OnError) -> Subscription:
        self._record("subscribe")
        if self.server.fail_subscribe:
            raise RemoteUnavailableError(FAKE_ENDPOINT, ConnectionError("offline"))
        subscription = FakeSubscription(self.server, self.key, on_change, on_error, order)
        self.server.subscriptions.append(subscription)
        await invoke_callback(on_change, self.server.snapshot(self.user_id, self.name, order))
        return subscription


def ticking_clock(start: int = 0) -> Callable[[], str]:
    """Clock returning strictly increasing ISO timestamps."""
    counter = itertools.count(start)

    def clock() -> str:
        seconds = next(counter)
        return f"2024-01-01T00:{seconds // 60 % 60:02d}:{seconds % 60:02d}.000Z"

    return clock


def sequential_ids(prefix: str = "rec") -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def alice() -> UserIdentity:
    return UserIdentity("alice-uid", display_name="Alice", email="alice@example.com")


@pytest.fixture
def bob() -> UserIdentity:
    return UserIdentity("bob-uid", display_name="Bob")


@pytest.fixture
def offline() -> UserIdentity:
    return UserIdentity.offline()


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def snapshots(blobs: MemoryBlobStore) -> LocalSnapshotStore:
    return LocalSnapshotStore(blobs)


@pytest.fixture
def server() -> FakeRemoteServer:
    return FakeRemoteServer()
