"""
Integration tests for the Cosmos DB remote mirror.

These tests require a real Cosmos DB connection and are marked as integration tests.
Run with: pytest -m integration tests/test_cosmos_integration.py

Environment variables required:
- JOB_TRACKER_COSMOS_ENDPOINT: Cosmos DB endpoint URL

Authentication (one of):
- JOB_TRACKER_COSMOS_KEY: Cosmos DB account key (for key-based auth)
- Azure identity: DefaultAzureCredential (for identity-based auth)

Optional:
- JOB_TRACKER_COSMOS_DATABASE: Database name (default: job-tracker)
- JOB_TRACKER_COSMOS_CONTAINER: Container name (default: records)
"""

from __future__ import annotations

import asyncio
import os
import uuid
from typing import Any

import pytest

from job_tracker_storage.config import CosmosAuthMethod, CosmosConfig
from job_tracker_storage.remote import CosmosClientWrapper, CosmosRemoteCollection, SortOrder

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.environ.get("JOB_TRACKER_COSMOS_ENDPOINT"),
        reason="JOB_TRACKER_COSMOS_ENDPOINT not set",
    ),
]


@pytest.fixture
def cosmos_config() -> CosmosConfig:
    key = os.environ.get("JOB_TRACKER_COSMOS_KEY")
    return CosmosConfig(
        endpoint=os.environ["JOB_TRACKER_COSMOS_ENDPOINT"],
        database_name=os.environ.get("JOB_TRACKER_COSMOS_DATABASE", "job-tracker"),
        container_name=os.environ.get("JOB_TRACKER_COSMOS_CONTAINER", "records"),
        auth_method=CosmosAuthMethod.KEY if key else CosmosAuthMethod.DEFAULT_CREDENTIAL,
        key=key,
        poll_interval=0.5,
    )


@pytest.fixture
def test_user_id() -> str:
    """Generate unique user ID for test isolation."""
    return f"test-user-{uuid.uuid4().hex[:8]}"


class TestCosmosRemoteCollection:
    @pytest.mark.asyncio
    async def test_upsert_list_delete(self, cosmos_config: CosmosConfig, test_user_id: str) -> None:
        async with CosmosClientWrapper(cosmos_config) as client:
            jobs = CosmosRemoteCollection(client, test_user_id, "jobs")
            order = SortOrder("date")

            await jobs.upsert_one({"id": "j1", "address": "1 Main St", "date": "2024-01-01"})
            await jobs.upsert_one({"id": "j2", "address": "2 Elm St", "date": "2024-02-01"})

            listed = await jobs.list_all(order)
            assert [d["id"] for d in listed] == ["j2", "j1"]
            assert all("partitionKey" not in d and "_ts" not in d for d in listed)

            await jobs.delete_one("j1")
            await jobs.delete_one("j1")
            assert [d["id"] for d in await jobs.list_all(order)] == ["j2"]

            await jobs.delete_one("j2")

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, cosmos_config: CosmosConfig, test_user_id: str) -> None:
        async with CosmosClientWrapper(cosmos_config) as client:
            mine = CosmosRemoteCollection(client, test_user_id, "jobs")
            theirs = CosmosRemoteCollection(client, f"{test_user_id}-other", "jobs")

            await mine.upsert_one({"id": "j1", "address": "private"})
            try:
                assert await theirs.list_all(SortOrder("date")) == []
            finally:
                await mine.delete_one("j1")

    @pytest.mark.asyncio
    async def test_subscription_sees_deletes(
        self, cosmos_config: CosmosConfig, test_user_id: str
    ) -> None:
        async with CosmosClientWrapper(cosmos_config) as client:
            jobs = CosmosRemoteCollection(client, test_user_id, "jobs")
            await jobs.upsert_one({"id": "j1", "address": "1 Main St"})

            snapshots: list[list[dict[str, Any]]] = []
            changed = asyncio.Event()

            def on_change(documents: list[dict[str, Any]]) -> None:
                snapshots.append(documents)
                changed.set()

            subscription = await jobs.subscribe(SortOrder("date"), on_change, lambda e: None)
            try:
                await asyncio.wait_for(changed.wait(), timeout=10)
                changed.clear()
                await jobs.delete_one("j1")
                await asyncio.wait_for(changed.wait(), timeout=10)
            finally:
                await subscription.unsubscribe()

            assert [d["id"] for d in snapshots[0]] == ["j1"]
            assert snapshots[-1] == []
