"""
Identity source.

Holds the current identity for one storage session and notifies
listeners on every transition (login, logout, switch). Instances are
created per session and passed explicitly to whatever needs them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .types import UserIdentity

logger = logging.getLogger(__name__)

IdentityListener = Callable[[UserIdentity | None], Awaitable[None]]


class IdentitySource:
    """Current identity plus change notifications.

    Usage:
        source = IdentitySource()
        remove = source.add_listener(on_identity_changed)
        await source.set_identity(UserIdentity("user-123"))
        await source.sign_out()
    """

    def __init__(self, identity: UserIdentity | None = None) -> None:
        self._identity = identity
        self._listeners: list[IdentityListener] = []
        self._lock = asyncio.Lock()

    @property
    def identity(self) -> UserIdentity | None:
        return self._identity

    def add_listener(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def set_identity(self, identity: UserIdentity | None) -> None:
        """Switch identity and await every listener, in registration order.

        Transitions are serialized so listeners never see two
        switches interleaved.
        """
        async with self._lock:
            if identity == self._identity:
                return
            previous = self._identity
            self._identity = identity
            logger.info(
                f"Identity changed: {previous.user_id if previous else None} -> "
                f"{identity.user_id if identity else None}"
            )
            for listener in list(self._listeners):
                await listener(identity)

    async def sign_out(self) -> None:
        """Clear the current identity."""
        await self.set_identity(None)
