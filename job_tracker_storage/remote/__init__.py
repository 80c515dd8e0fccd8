"""
Remote mirror.

The abstract per-user RemoteCollection contract and its
Cosmos DB implementation.
"""

from .base import (
    SERVER_UPDATED_AT_FIELD,
    RemoteCollection,
    RemoteCollectionFactory,
    SortOrder,
    Subscription,
    strip_server_fields,
)
from .cosmos import CosmosClientWrapper, CosmosRemoteCollection, cosmos_collection_factory
from .polling import PollingSubscription

__all__ = [
    "SERVER_UPDATED_AT_FIELD",
    "RemoteCollection",
    "RemoteCollectionFactory",
    "SortOrder",
    "Subscription",
    "strip_server_fields",
    "PollingSubscription",
    "CosmosClientWrapper",
    "CosmosRemoteCollection",
    "cosmos_collection_factory",
]
