"""
Observable sync status.

Purely informational: nothing in the collections branches on it.
Transitions:
    idle -> syncing         remote operation starts
    syncing -> synced       all in-flight remote operations succeeded
    syncing -> error        a remote operation failed
    synced/error -> syncing next remote operation starts
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """Current sync state of a collection."""

    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


@dataclass(frozen=True)
class SyncStatus:
    """Point-in-time sync status."""

    state: SyncState = SyncState.IDLE
    last_synced_at: datetime | None = None
    last_error: str | None = None
    in_flight: int = 0


StatusListener = Callable[[SyncStatus], None]


class SyncStatusTracker:
    """Tracks remote operation outcomes for one collection."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))
        self._status = SyncStatus()
        self._failed_in_batch = False
        self._listeners: list[StatusListener] = []

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def state(self) -> SyncState:
        return self._status.state

    def add_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener called on every status change."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def begin(self) -> None:
        """A remote operation started."""
        if self._status.in_flight == 0:
            self._failed_in_batch = False
        self._set(
            SyncStatus(
                state=SyncState.SYNCING,
                last_synced_at=self._status.last_synced_at,
                last_error=self._status.last_error,
                in_flight=self._status.in_flight + 1,
            )
        )

    def succeed(self) -> None:
        """A remote operation finished successfully."""
        in_flight = max(self._status.in_flight - 1, 0)
        if self._failed_in_batch:
            # Error stays visible until a fresh batch starts
            self._set(
                SyncStatus(
                    SyncState.ERROR,
                    self._status.last_synced_at,
                    self._status.last_error,
                    in_flight,
                )
            )
            return
        state = SyncState.SYNCED if in_flight == 0 else SyncState.SYNCING
        self._set(SyncStatus(state, self._clock(), None, in_flight))

    def fail(self, error: BaseException | str) -> None:
        """A remote operation failed."""
        self._failed_in_batch = True
        in_flight = max(self._status.in_flight - 1, 0)
        self._set(SyncStatus(SyncState.ERROR, self._status.last_synced_at, str(error), in_flight))

    def report_error(self, error: BaseException | str) -> None:
        """A failure outside a counted operation, e.g. a subscription error."""
        self._failed_in_batch = True
        self._set(
            SyncStatus(
                SyncState.ERROR,
                self._status.last_synced_at,
                str(error),
                self._status.in_flight,
            )
        )

    def mark_synced(self) -> None:
        """A remote push was applied."""
        if self._status.in_flight == 0:
            self._failed_in_batch = False
            self._set(SyncStatus(SyncState.SYNCED, self._clock(), None, 0))
            return
        self._set(
            SyncStatus(
                self._status.state,
                self._clock(),
                self._status.last_error,
                self._status.in_flight,
            )
        )

    def reset(self) -> None:
        """Back to idle, e.g. after sign-out."""
        self._failed_in_batch = False
        self._set(SyncStatus())

    def _set(self, status: SyncStatus) -> None:
        if status == self._status:
            return
        self._status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("Sync status listener failed")
