"""Fixed-interval polling loop shared by the telemetry monitors."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Optional

LOGGER = logging.getLogger(__name__)


class IntervalPoller:
    """Runs :meth:`poll_once` every ``interval_seconds`` until stopped.

    The first poll happens one interval after :meth:`start`. Failures inside a
    single poll are logged and the loop carries on with the next tick.
    """

    name = "poller"

    def __init__(
        self,
        *,
        interval_seconds: float,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        self._interval = max(interval_seconds, 0.0)
        self._stop_event = stop_event or asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name=self.name)

    async def stop(self) -> None:
        self._stop_event.set()
        if self._task is None:
            return

        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run(self) -> None:
        await self.prepare()

        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                break  # Stop event was set
            except asyncio.TimeoutError:
                pass

            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("%s poll failed; retrying next tick", self.name)

    async def prepare(self) -> None:
        """Hook executed once before the first interval elapses."""

    async def poll_once(self) -> Any:
        raise NotImplementedError
