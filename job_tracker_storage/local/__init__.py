"""
Local durable storage.

Blob store adapters and whole-collection snapshot persistence.
"""

from .blob_store import BlobStore, FileBlobStore
from .snapshot import LocalSnapshotStore

__all__ = [
    "BlobStore",
    "FileBlobStore",
    "LocalSnapshotStore",
]
