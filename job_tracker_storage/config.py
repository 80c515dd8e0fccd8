"""
Storage configuration.

Configuration can be provided directly, from environment variables,
or from a YAML settings file.

Environment Variables:
    JOB_TRACKER_LOCAL_PATH: Directory for the on-device snapshot cache
    JOB_TRACKER_ENABLE_SYNC: "true" to mirror eligible users to Cosmos DB
    JOB_TRACKER_COSMOS_ENDPOINT: Cosmos DB endpoint URL
    JOB_TRACKER_COSMOS_KEY: Cosmos DB key (if using key auth)
    JOB_TRACKER_COSMOS_DATABASE: Database name (default: job-tracker)
    JOB_TRACKER_COSMOS_CONTAINER: Container name (default: records)
    JOB_TRACKER_COSMOS_AUTH_METHOD: key | default_credential (default: default_credential)
    JOB_TRACKER_POLL_INTERVAL: Subscription poll interval in seconds (default: 2.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ValidationError

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds
DEFAULT_POLL_INTERVAL = 2.0  # seconds


class CosmosAuthMethod(Enum):
    """Authentication method for Cosmos DB.

    KEY: Use account key (development)
    DEFAULT_CREDENTIAL: Use Azure DefaultAzureCredential (recommended)
    """

    KEY = "key"
    DEFAULT_CREDENTIAL = "default_credential"


@dataclass
class CosmosConfig:
    """Cosmos DB connection settings.

    Attributes:
        endpoint: Cosmos DB account endpoint URL
        database_name: Name of the database to use
        container_name: Container holding all record documents
        auth_method: Authentication method
        key: Account key (only for KEY auth)
        max_retries: Maximum retry attempts for transient failures
        retry_delay: Base delay between retries (seconds)
        poll_interval: Poll interval for live subscriptions (seconds)
    """

    endpoint: str
    database_name: str = "job-tracker"
    container_name: str = "records"
    auth_method: CosmosAuthMethod = CosmosAuthMethod.DEFAULT_CREDENTIAL
    key: str | None = None
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    poll_interval: float = DEFAULT_POLL_INTERVAL


@dataclass
class StorageConfig:
    """Top-level storage configuration.

    Attributes:
        local_path: Directory for on-device snapshots
        enable_sync: Whether eligible identities mirror to the remote store
        cosmos: Cosmos DB settings, required when enable_sync is True
        options: Additional options
    """

    local_path: Path = field(default_factory=lambda: Path.home() / ".job_tracker" / "data")
    enable_sync: bool = False
    cosmos: CosmosConfig | None = None
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.local_path = Path(self.local_path)
        if self.enable_sync and self.cosmos is None:
            raise ValidationError("cosmos", "required when enable_sync is true")

    @classmethod
    def from_environment(cls) -> StorageConfig:
        """Create configuration from environment variables."""
        enable_sync = os.environ.get("JOB_TRACKER_ENABLE_SYNC", "").lower() == "true"
        endpoint = os.environ.get("JOB_TRACKER_COSMOS_ENDPOINT")

        cosmos = None
        if endpoint:
            cosmos = CosmosConfig(
                endpoint=endpoint,
                database_name=os.environ.get("JOB_TRACKER_COSMOS_DATABASE", "job-tracker"),
                container_name=os.environ.get("JOB_TRACKER_COSMOS_CONTAINER", "records"),
                auth_method=_parse_auth_method(
                    os.environ.get("JOB_TRACKER_COSMOS_AUTH_METHOD", "default_credential")
                ),
                key=os.environ.get("JOB_TRACKER_COSMOS_KEY"),
                poll_interval=float(
                    os.environ.get("JOB_TRACKER_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)
                ),
            )

        local_path = os.environ.get("JOB_TRACKER_LOCAL_PATH")
        kwargs: dict[str, Any] = {
            "enable_sync": enable_sync and cosmos is not None,
            "cosmos": cosmos,
        }
        if local_path:
            kwargs["local_path"] = Path(local_path)
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> StorageConfig:
        """Create configuration from the ``storage`` section of a YAML file.

        ```yaml
        storage:
          local_path: ~/.job_tracker/data
          enable_sync: true
          cosmos:
            endpoint: https://example.documents.azure.com:443/
            database: job-tracker
            container: records
            auth_method: default_credential
        ```
        """
        content = yaml.safe_load(Path(path).read_text()) or {}
        section = content.get("storage", {}) or {}

        cosmos = None
        cosmos_section = section.get("cosmos")
        if cosmos_section:
            if not cosmos_section.get("endpoint"):
                raise ValidationError("storage.cosmos.endpoint", "missing")
            cosmos = CosmosConfig(
                endpoint=cosmos_section["endpoint"],
                database_name=cosmos_section.get("database", "job-tracker"),
                container_name=cosmos_section.get("container", "records"),
                auth_method=_parse_auth_method(
                    cosmos_section.get("auth_method", "default_credential")
                ),
                key=cosmos_section.get("key"),
                max_retries=int(cosmos_section.get("max_retries", DEFAULT_MAX_RETRIES)),
                retry_delay=float(cosmos_section.get("retry_delay", DEFAULT_RETRY_DELAY)),
                poll_interval=float(cosmos_section.get("poll_interval", DEFAULT_POLL_INTERVAL)),
            )

        kwargs: dict[str, Any] = {
            "enable_sync": bool(section.get("enable_sync", False)),
            "cosmos": cosmos,
            "options": section.get("options", {}) or {},
        }
        if section.get("local_path"):
            kwargs["local_path"] = Path(section["local_path"]).expanduser()
        return cls(**kwargs)


def _parse_auth_method(value: str) -> CosmosAuthMethod:
    try:
        return CosmosAuthMethod(value.lower())
    except ValueError:
        return CosmosAuthMethod.DEFAULT_CREDENTIAL
