"""
Polling-based live subscription.

Document stores without a push channel emulate one by polling a cheap
fingerprint (ids and etags) and re-listing the collection only when it
changes. Deletes change the fingerprint too, which a plain change feed
would miss.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any

from .base import OnChange, OnError, Subscription, invoke_callback

logger = logging.getLogger(__name__)


class PollingSubscription(Subscription):
    """Subscription driven by a background polling task.

    The first poll runs immediately and always delivers the current
    snapshot. Later polls deliver only when the fingerprint differs.
    """

    def __init__(
        self,
        fetch_snapshot: Callable[[], Awaitable[list[dict[str, Any]]]],
        fetch_fingerprint: Callable[[], Awaitable[Hashable]],
        on_change: OnChange,
        on_error: OnError,
        interval: float,
        name: str = "subscription",
    ) -> None:
        self._fetch_snapshot = fetch_snapshot
        self._fetch_fingerprint = fetch_fingerprint
        self._on_change = on_change
        self._on_error = on_error
        self._interval = interval
        self._name = name
        self._fingerprint: Hashable | None = None
        self._delivered = False
        self._task: asyncio.Task[None] | None = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self._task is not None:
            return
        self._active = True
        self._task = asyncio.create_task(self._run(), name=f"poll:{self._name}")

    async def unsubscribe(self) -> None:
        self._active = False
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while self._active:
            try:
                await self._poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Polling {self._name} failed: {e}")
                if self._active:
                    await invoke_callback(self._on_error, e)
            await asyncio.sleep(self._interval)

    async def _poll_once(self) -> None:
        fingerprint = await self._fetch_fingerprint()
        if self._delivered and fingerprint == self._fingerprint:
            return
        documents = await self._fetch_snapshot()
        if not self._active:
            return
        self._fingerprint = fingerprint
        self._delivered = True
        await invoke_callback(self._on_change, documents)
