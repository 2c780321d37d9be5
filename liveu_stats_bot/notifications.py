"""Chat notification sink shared by the monitors and confirmation pollers."""

from __future__ import annotations

import asyncio
import logging

from .core import ChatClient

LOGGER = logging.getLogger(__name__)


class ChatNotifier:
    """Best-effort delivery of text to a single chat channel."""

    def __init__(self, chat: ChatClient, channel: str) -> None:
        self._chat = chat
        self._channel = channel

    @property
    def channel(self) -> str:
        return self._channel

    async def notify(self, text: str) -> None:
        if not text:
            return

        try:
            await self._chat.send(self._channel, text)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.debug("Dropping chat notification for #%s: %s", self._channel, exc)
