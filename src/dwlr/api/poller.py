"""
Periodic polling of a telemetry source.

Each tick starts a new fetch without waiting for the previous one, so slow
responses can overlap. Every fetch is tagged with an increasing sequence
number and a result is only applied if it is newer than the last applied
one; a slow response that completes after a newer one is discarded.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Generic, Optional, Set, TypeVar

from ..policies import DashboardHealthPolicy, HealthPolicy
from .client import TelemetryClient
from .convenience import Snapshot, build_snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotPoller(Generic[T]):
    """
    Poll an async source at a fixed interval, keeping the latest result.

    Args:
        fetch: Zero-argument coroutine function producing one result
        interval: Seconds between the start of consecutive polls
        on_update: Optional callback invoked with each applied result
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        interval: float = 30.0,
        on_update: Optional[Callable[[T], Any]] = None,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._fetch = fetch
        self.interval = interval
        self._on_update = on_update
        self._issued = 0
        self._applied = 0
        self._latest: Optional[T] = None
        self._runner: Optional["asyncio.Task[None]"] = None
        self._in_flight: Set["asyncio.Task[bool]"] = set()

    @property
    def latest(self) -> Optional[T]:
        """Most recent applied result, None before the first success."""
        return self._latest

    @property
    def last_sequence(self) -> int:
        """Sequence number of the applied result, 0 if none."""
        return self._applied

    @property
    def is_running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    async def poll_once(self) -> bool:
        """
        Run one fetch and apply its result if nothing newer was applied.

        Returns:
            True if the result was applied, False if it failed or was stale
        """
        self._issued += 1
        sequence = self._issued
        try:
            result = await self._fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Poll {sequence} failed: {e}")
            return False
        return self._apply(sequence, result)

    def _apply(self, sequence: int, result: T) -> bool:
        if sequence <= self._applied:
            logger.debug(
                f"Discarding stale poll {sequence} (already applied {self._applied})"
            )
            return False

        self._applied = sequence
        self._latest = result
        if self._on_update is not None:
            try:
                self._on_update(result)
            except Exception as e:
                logger.error(f"Update callback failed for poll {sequence}: {e}", exc_info=True)
        return True

    async def _run(self) -> None:
        while True:
            task = asyncio.ensure_future(self.poll_once())
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """
        Start polling in the background. Must be called from a running loop.

        Raises:
            RuntimeError: If the poller is already running
        """
        if self.is_running:
            raise RuntimeError("Poller is already running")
        self._runner = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        """Stop polling and cancel fetches still in flight."""
        tasks = list(self._in_flight)
        if self._runner is not None:
            tasks.append(self._runner)
            self._runner = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()


def snapshot_source(
    client: TelemetryClient,
    policy: HealthPolicy = DashboardHealthPolicy,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> Callable[[], Awaitable[Snapshot]]:
    """
    Build a fetch function for SnapshotPoller over the DWLR feed.

    The evaluation time of each snapshot is taken from ``clock`` when its
    response arrives.
    """

    async def fetch() -> Snapshot:
        records = await client.fetch_dwlr_records()
        return build_snapshot(records, clock(), policy)

    return fetch
