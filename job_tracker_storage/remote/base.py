"""
Abstract remote mirror interface.

A RemoteCollection is one user's sub-collection in a remote document
store. Implementations never expose another user's documents.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

# Server-assigned modification time (epoch seconds), stripped before records surface
SERVER_UPDATED_AT_FIELD = "_ts"

# Routing fields added by document stores
STORE_FIELDS = frozenset({"partitionKey", "ownerId", "collection"})

OnChange = Callable[[list[dict[str, Any]]], Awaitable[None] | None]
OnError = Callable[[Exception], Awaitable[None] | None]


@dataclass(frozen=True)
class SortOrder:
    """Ordering applied to list and subscription results."""

    field: str
    descending: bool = True

    def sort(self, documents: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Return documents sorted by the field; documents missing it go last."""
        present = [d for d in documents if d.get(self.field) is not None]
        missing = [d for d in documents if d.get(self.field) is None]
        present.sort(key=lambda d: d[self.field], reverse=self.descending)
        return present + missing


class Subscription(ABC):
    """Handle for a live remote subscription."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True until unsubscribe() has been called."""
        ...

    @abstractmethod
    async def unsubscribe(self) -> None:
        """Stop delivering changes. Safe to call more than once."""
        ...


class RemoteCollection(ABC):
    """One user's collection in the remote document store.

    Document id is the record id. Documents returned by this interface
    carry only record fields; server metadata is stripped.
    """

    user_id: str
    name: str

    @abstractmethod
    async def list_all(self, order: SortOrder) -> list[dict[str, Any]]:
        """List every document in the collection.

        Raises:
            RemoteUnavailableError: If the remote cannot be reached
        """
        ...

    @abstractmethod
    async def upsert_one(self, record: dict[str, Any]) -> None:
        """Write the full document, stamped with the server modification time.

        Raises:
            RemoteWriteError: If the write fails
        """
        ...

    @abstractmethod
    async def delete_one(self, record_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error.

        Raises:
            RemoteWriteError: If the delete fails
        """
        ...

    @abstractmethod
    async def subscribe(
        self,
        order: SortOrder,
        on_change: OnChange,
        on_error: OnError,
    ) -> Subscription:
        """Start a live subscription.

        ``on_change`` is invoked once with the current full snapshot and
        again with the full snapshot after every remote change.
        """
        ...

    async def close(self) -> None:
        """Release connections held by this collection."""
        return None


RemoteCollectionFactory = Callable[[str, str], RemoteCollection]
"""Builds the RemoteCollection for ``(user_id, collection_name)``."""


def strip_server_fields(document: dict[str, Any]) -> dict[str, Any]:
    """Drop server-assigned and store metadata keys from a document."""
    return {
        key: value
        for key, value in document.items()
        if not key.startswith("_") and key not in STORE_FIELDS
    }


async def invoke_callback(callback: Callable[..., Any], *args: Any) -> None:
    """Call a sync or async callback."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
