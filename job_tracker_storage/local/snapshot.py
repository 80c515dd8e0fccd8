"""
Snapshot persistence on top of a blob store.

A snapshot is the full collection serialized as one JSON array under
the collection's key. Reads never raise for a missing key; corrupt
content raises SnapshotDecodeError so the caller can decide to treat
it as empty.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any

from ..exceptions import JobTrackerStorageError, SnapshotDecodeError
from .blob_store import BlobStore

logger = logging.getLogger(__name__)


class LocalSnapshotStore:
    """Load and save whole-collection snapshots."""

    def __init__(self, blob_store: BlobStore) -> None:
        self.blob_store = blob_store

    async def load_snapshot(self, key: str) -> list[dict[str, Any]]:
        """Load the snapshot stored under ``key``.

        Returns:
            List of record documents, empty if the key is missing

        Raises:
            SnapshotDecodeError: If the stored value is not a JSON array of objects
            StorageIOError: If the blob store cannot be read
        """
        raw = await self.blob_store.get(key)
        if raw is None or not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SnapshotDecodeError(key, e) from e

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise SnapshotDecodeError(key, TypeError("snapshot is not a list of objects"))
        return data

    async def save_snapshot(self, key: str, records: list[dict[str, Any]]) -> bool:
        """Replace the snapshot under ``key``.

        Returns:
            True on success, False if the write failed (logged)
        """
        try:
            payload = json.dumps(records, default=_json_serializer)
            await self.blob_store.set(key, payload)
        except (JobTrackerStorageError, TypeError, ValueError) as e:
            logger.error(f"Failed to save snapshot '{key}': {e}")
            return False
        logger.debug(f"Saved {len(records)} records to '{key}'")
        return True

    async def remove_snapshot(self, key: str) -> bool:
        """Remove the snapshot under ``key``. Returns False on failure or if absent."""
        try:
            return await self.blob_store.remove(key)
        except JobTrackerStorageError as e:
            logger.error(f"Failed to remove snapshot '{key}': {e}")
            return False


def _json_serializer(obj: Any) -> Any:
    """Serialize types the json module does not handle."""
    if isinstance(obj, datetime | date):
        return obj.isoformat()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
