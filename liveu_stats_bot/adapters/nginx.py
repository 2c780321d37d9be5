"""nginx-rtmp ``stat`` page scraper."""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ElementTree
from typing import Optional

import aiohttp

from ..config import RtmpConfig
from .srt import BitrateSourceError

LOGGER = logging.getLogger(__name__)


class RtmpStatsClient:
    """Reads the incoming video bitrate of one stream from nginx-rtmp."""

    def __init__(
        self,
        config: RtmpConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 5.0,
    ) -> None:
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    async def fetch(self) -> Optional[int]:
        session = await self._ensure_session()
        try:
            async with asyncio.timeout(self._timeout):
                async with session.get(self.config.url) as response:
                    if response.status != 200:
                        raise BitrateSourceError("Can't connect to nginx-rtmp stats")
                    text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise BitrateSourceError(f"RTMP stats request failed: {exc}") from exc

        return parse_stream_bitrate(text, self.config.application, self.config.key)

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session


def parse_stream_bitrate(document: str, application: str, key: str) -> Optional[int]:
    """Return ``bw_video`` in Kbps for ``application/key``, or None when absent."""

    try:
        root = ElementTree.fromstring(document)
    except ElementTree.ParseError as exc:
        raise BitrateSourceError("Invalid nginx-rtmp stats document") from exc

    for app in root.iter("application"):
        if (app.findtext("name") or "").strip() != application:
            continue
        for stream in app.iter("stream"):
            if (stream.findtext("name") or "").strip() != key:
                continue
            bw_video = (stream.findtext("bw_video") or "").strip()
            if not bw_video:
                return None
            try:
                return int(bw_video) // 1024
            except ValueError as exc:
                raise BitrateSourceError("Invalid bw_video value") from exc
    return None
