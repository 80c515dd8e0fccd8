"""
Synchronization.

Local-first collections that mirror to the remote store and
the observable sync status they report.
"""

from .collection import SyncedCollection
from .status import SyncState, SyncStatus, SyncStatusTracker

__all__ = [
    "SyncedCollection",
    "SyncState",
    "SyncStatus",
    "SyncStatusTracker",
]
