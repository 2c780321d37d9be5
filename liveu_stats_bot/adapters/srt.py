"""SRT relay stats scraper."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional

import aiohttp

from ..config import SrtConfig

LOGGER = logging.getLogger(__name__)


class BitrateSourceError(RuntimeError):
    """Raised when a bitrate scraper cannot produce a reading."""


class SrtStatsClient:
    """Reads a publisher's bitrate from an SRT relay stats endpoint.

    The endpoint returns ``{"publishers": {"<name>": {"bitrate": <kbps>, ...}}}``.
    """

    def __init__(
        self,
        config: SrtConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 5.0,
    ) -> None:
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    async def fetch(self) -> int:
        session = await self._ensure_session()
        try:
            async with asyncio.timeout(self._timeout):
                async with session.get(self.config.url) as response:
                    if response.status != 200:
                        raise BitrateSourceError("Can't connect to SRT stats")
                    payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise BitrateSourceError(f"SRT stats request failed: {exc}") from exc

        return parse_publisher_bitrate(payload, self.config.publisher)

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session


def parse_publisher_bitrate(payload: Any, publisher: str) -> int:
    publishers = payload.get("publishers") if isinstance(payload, Mapping) else None
    stream = publishers.get(publisher) if isinstance(publishers, Mapping) else None
    if not isinstance(stream, Mapping) or "bitrate" not in stream:
        raise BitrateSourceError(f"SRT publisher {publisher!r} not found")
    try:
        return int(stream["bitrate"])
    except (TypeError, ValueError) as exc:
        raise BitrateSourceError(f"Invalid SRT bitrate for {publisher!r}") from exc
