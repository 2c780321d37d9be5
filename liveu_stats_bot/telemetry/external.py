"""External (SRT relay) bitrate monitor."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..adapters.srt import BitrateSourceError
from ..core import BitrateSource
from .polling import IntervalPoller
from .store import TelemetryStore

LOGGER = logging.getLogger(__name__)


class ExternalBitrateMonitor(IntervalPoller):
    """Copies the external bitrate into the store; zero when unavailable."""

    name = "srt-monitor"

    def __init__(
        self,
        *,
        source: BitrateSource,
        store: TelemetryStore,
        interval_seconds: float = 1.0,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        super().__init__(interval_seconds=interval_seconds, stop_event=stop_event)
        self._source = source
        self._store = store

    async def poll_once(self) -> int:
        try:
            bitrate = await self._source.fetch()
        except BitrateSourceError as exc:
            LOGGER.debug("External bitrate unavailable: %s", exc)
            bitrate = None

        value = bitrate or 0
        await self._store.replace_external_bitrate(value)
        return value
