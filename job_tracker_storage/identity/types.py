"""
Identity types.

Defines the user identity the collections are scoped to and the
offline placeholder identity that never syncs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Placeholder identity used for offline/anonymous use and test logins.
# Its data must never reach the shared remote store.
OFFLINE_USER_ID = "test-user-id"


@dataclass(frozen=True)
class UserIdentity:
    """Identity of the current user.

    ``is_sync_eligible`` is derived: every identity except the offline
    placeholder may mirror to the remote store.
    """

    user_id: str
    display_name: str | None = None
    email: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.user_id, str) or not self.user_id.strip():
            raise ValueError(f"Malformed identity: user_id={self.user_id!r}")

    @property
    def is_sync_eligible(self) -> bool:
        return self.user_id != OFFLINE_USER_ID

    @classmethod
    def offline(cls) -> UserIdentity:
        """The anonymous/offline placeholder identity."""
        return cls(user_id=OFFLINE_USER_ID, display_name="Test User", email="test@example.com")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserIdentity:
        """Deserialize from dictionary."""
        return cls(
            user_id=data["user_id"],
            display_name=data.get("display_name"),
            email=data.get("email"),
        )
