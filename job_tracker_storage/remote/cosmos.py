"""
Cosmos DB remote mirror.

Stores every user's records in one container with a composite
partition key so each (user, collection) pair lives in a single
partition:

    Partition key path: /partitionKey
    Partition key value: {user_id}_{collection}

Document schema:
{
    "id": "{record_id}",
    "partitionKey": "{user_id}_{collection}",
    "ownerId": "{user_id}",
    "collection": "{collection}",
    ...record fields (camelCase)...,
    "_ts": {server modification time}
}

Supports key and Azure AD (DefaultAzureCredential) authentication.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential

from ..config import CosmosAuthMethod, CosmosConfig
from ..exceptions import AuthenticationError, RemoteUnavailableError, RemoteWriteError
from .base import (
    OnChange,
    OnError,
    RemoteCollection,
    SortOrder,
    Subscription,
    strip_server_fields,
)
from .polling import PollingSubscription

logger = logging.getLogger(__name__)

PARTITION_KEY_PATH = "/partitionKey"


def make_partition_key(user_id: str, collection: str) -> str:
    """Create the partition key value for a user's collection."""
    return f"{user_id}_{collection}"


def _get_credential(config: CosmosConfig) -> Any:
    """Get the credential for the configured auth method.

    Raises:
        AuthenticationError: If the credential cannot be created
    """
    if config.auth_method == CosmosAuthMethod.KEY:
        if not config.key:
            raise AuthenticationError(config.endpoint, "key required for KEY authentication")
        return config.key
    return DefaultAzureCredential()


class CosmosClientWrapper:
    """Wrapper for the Azure Cosmos DB async client.

    Manages connection lifecycle, provides container access,
    and retries transient failures. One wrapper is shared by all
    collections of a storage session.
    """

    def __init__(self, config: CosmosConfig):
        self.config = config
        self._credential: Any = None
        self._client: CosmosClient | None = None
        self._container: ContainerProxy | None = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Connect and ensure the database and container exist."""
        async with self._lock:
            if self._container is not None:
                return

            self._credential = _get_credential(self.config)
            try:
                client = CosmosClient(self.config.endpoint, credential=self._credential)
                self._client = client
                database = await client.create_database_if_not_exists(
                    id=self.config.database_name
                )
                self._container = await database.create_container_if_not_exists(
                    id=self.config.container_name,
                    partition_key=PartitionKey(path=PARTITION_KEY_PATH),
                )
            except CosmosHttpResponseError as e:
                await self._reset()
                if e.status_code in (401, 403):
                    raise AuthenticationError(self.config.endpoint, str(e)) from e
                raise RemoteUnavailableError(self.config.endpoint, e) from e
            except Exception as e:
                await self._reset()
                raise RemoteUnavailableError(self.config.endpoint, e) from e

            logger.info(
                f"Connected to Cosmos DB: {self.config.endpoint} "
                f"(database={self.config.database_name}, "
                f"container={self.config.container_name}, "
                f"auth={self.config.auth_method.value})"
            )

    async def close(self) -> None:
        """Close the Cosmos DB connection."""
        async with self._lock:
            await self._reset()

    async def _reset(self) -> None:
        if self._client is not None:
            await self._client.close()
        if self._credential is not None and hasattr(self._credential, "close"):
            await self._credential.close()
        self._client = None
        self._credential = None
        self._container = None

    async def __aenter__(self) -> CosmosClientWrapper:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def container(self) -> ContainerProxy:
        """Get the records container, connecting on first use."""
        if self._container is None:
            await self.initialize()
        if self._container is None:
            raise RemoteUnavailableError(self.config.endpoint)
        return self._container

    async def with_retry(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        """Execute an operation, retrying server errors and throttling.

        Client errors (4xx other than 429) are raised immediately. The
        operation always runs at least once.
        """
        attempts = max(1, self.config.max_retries)
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                return await operation()
            except CosmosHttpResponseError as e:
                if 400 <= e.status_code < 500 and e.status_code != 429:
                    raise
                last_error = e
                if attempt < attempts - 1:
                    delay = self.config.retry_delay * (2**attempt)
                    await asyncio.sleep(delay)

        if last_error is None:
            raise RemoteUnavailableError(self.config.endpoint)
        raise last_error


class CosmosRemoteCollection(RemoteCollection):
    """One user's collection stored in the shared Cosmos container."""

    def __init__(self, client: CosmosClientWrapper, user_id: str, name: str) -> None:
        if not user_id:
            raise ValueError("user_id is required")
        self.client = client
        self.user_id = user_id
        self.name = name
        self.partition_key = make_partition_key(user_id, name)

    async def list_all(self, order: SortOrder) -> list[dict[str, Any]]:
        try:
            container = await self.client.container()
            items = await self.client.with_retry(
                lambda: self._query(
                    container,
                    "SELECT * FROM c WHERE c.partitionKey = @pk",
                )
            )
        except (AuthenticationError, RemoteUnavailableError):
            raise
        except Exception as e:
            raise RemoteUnavailableError(self.client.config.endpoint, e) from e
        return order.sort([strip_server_fields(item) for item in items])

    async def upsert_one(self, record: dict[str, Any]) -> None:
        record_id = record.get("id")
        if not record_id:
            raise RemoteWriteError("upsert", "<missing id>")

        body = {
            **strip_server_fields(record),
            "partitionKey": self.partition_key,
            "ownerId": self.user_id,
            "collection": self.name,
        }
        try:
            container = await self.client.container()
            await self.client.with_retry(lambda: container.upsert_item(body=body))
        except Exception as e:
            raise RemoteWriteError("upsert", record_id, e) from e

    async def delete_one(self, record_id: str) -> None:
        try:
            container = await self.client.container()
            await self.client.with_retry(
                lambda: container.delete_item(item=record_id, partition_key=self.partition_key)
            )
        except CosmosResourceNotFoundError:
            return
        except Exception as e:
            raise RemoteWriteError("delete", record_id, e) from e

    async def subscribe(
        self,
        order: SortOrder,
        on_change: OnChange,
        on_error: OnError,
    ) -> Subscription:
        subscription = PollingSubscription(
            fetch_snapshot=lambda: self.list_all(order),
            fetch_fingerprint=self._fingerprint,
            on_change=on_change,
            on_error=on_error,
            interval=self.client.config.poll_interval,
            name=self.partition_key,
        )
        subscription.start()
        return subscription

    async def _fingerprint(self) -> frozenset[tuple[str, str]]:
        container = await self.client.container()
        rows = await self.client.with_retry(
            lambda: self._query(
                container,
                "SELECT c.id, c._etag FROM c WHERE c.partitionKey = @pk",
            )
        )
        return frozenset((row["id"], row.get("_etag", "")) for row in rows)

    async def _query(self, container: ContainerProxy, query: str) -> list[dict[str, Any]]:
        results: list[dict[str, Any]] = []
        async for item in container.query_items(
            query=query,
            parameters=[{"name": "@pk", "value": self.partition_key}],
            partition_key=self.partition_key,
        ):
            results.append(item)
        return results


def cosmos_collection_factory(
    client: CosmosClientWrapper,
) -> Callable[[str, str], CosmosRemoteCollection]:
    """Build a RemoteCollectionFactory sharing one Cosmos client."""

    def factory(user_id: str, name: str) -> CosmosRemoteCollection:
        return CosmosRemoteCollection(client, user_id, name)

    return factory
