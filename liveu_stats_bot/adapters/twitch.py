"""Twitch chat adapter speaking IRC over a websocket."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Union

import aiohttp

from ..config import TwitchConfig
from ..core import ChatMessage

LOGGER = logging.getLogger(__name__)

_AUTH_FAILURE_NOTICES = (
    "Login authentication failed",
    "Improperly formatted auth",
)


class ChatError(RuntimeError):
    """Raised when the chat transport cannot continue."""


class ChatAuthenticationError(ChatError):
    """Raised when Twitch rejects the bot's login."""


class _Closed:
    """Marker queued when the inbound stream ends."""


_CLOSED = _Closed()


@dataclass(slots=True)
class IrcMessage:
    command: str
    params: List[str] = field(default_factory=list)
    prefix: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> str:
        if not self.prefix:
            return ""
        return self.prefix.split("!", 1)[0].lower()


def parse_irc_line(line: str) -> IrcMessage:
    """Parse a single IRC line, including IRCv3 message tags."""

    rest = line.rstrip("\r\n")
    tags: Dict[str, str] = {}
    prefix: Optional[str] = None

    if rest.startswith("@"):
        raw_tags, _, rest = rest[1:].partition(" ")
        for item in raw_tags.split(";"):
            key, _, value = item.partition("=")
            if key:
                tags[key] = value

    rest = rest.lstrip(" ")
    if rest.startswith(":"):
        prefix, _, rest = rest[1:].partition(" ")

    trailing: Optional[str] = None
    if " :" in rest:
        rest, trailing = rest.split(" :", 1)
    elif rest.startswith(":"):
        rest, trailing = "", rest[1:]

    parts = rest.split()
    command = parts[0].upper() if parts else ""
    params = parts[1:]
    if trailing is not None:
        params.append(trailing)

    return IrcMessage(command=command, params=params, prefix=prefix, tags=tags)


def parse_badges(value: str) -> Dict[str, str]:
    """Turn ``broadcaster/1,subscriber/12`` into a name -> version mapping."""

    badges: Dict[str, str] = {}
    for item in value.split(","):
        name, _, version = item.partition("/")
        if name:
            badges[name] = version
    return badges


class TwitchChatClient:
    """Joins one channel, yields its chat messages and sends replies."""

    def __init__(
        self,
        config: TwitchConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        reconnect_initial: float = 1.0,
        reconnect_max: float = 30.0,
    ) -> None:
        self.config = config
        self.reconnect_initial = reconnect_initial
        self.reconnect_max = reconnect_max

        self._session = session
        self._owns_session = session is None
        self._queue: asyncio.Queue[Union[ChatMessage, _Closed]] = asyncio.Queue()
        self._listener_task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()
        self._active_ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._fatal: Optional[ChatError] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Connect to Twitch chat in the background."""

        if self._listener_task is not None:
            return

        await self._ensure_session()
        self._stop_event.clear()
        self._listener_task = asyncio.create_task(self._listen_loop())
        await asyncio.sleep(0)

    async def stop(self) -> None:
        self._stop_event.set()

        if self._listener_task is not None:
            self._listener_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener_task
            self._listener_task = None

        self._queue.put_nowait(_CLOSED)

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def send(self, channel: str, text: str) -> None:
        ws = self._active_ws
        if ws is None or ws.closed:
            LOGGER.debug("Chat not connected; dropping message for #%s", channel)
            return

        line = " ".join(text.splitlines()).strip()
        if not line:
            return

        try:
            await ws.send_str(f"PRIVMSG #{channel.lstrip('#')} :{line}")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.debug("Failed to send chat message to #%s: %s", channel, exc)

    async def messages(self) -> AsyncIterator[ChatMessage]:
        """Yield inbound chat messages.

        Raises:
            ChatAuthenticationError: When Twitch rejects the login.
        """
        while True:
            item = await self._queue.get()
            if isinstance(item, _Closed):
                if self._fatal is not None:
                    raise self._fatal
                return
            yield item

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _listen_loop(self) -> None:
        backoff = self.reconnect_initial

        while not self._stop_event.is_set():
            try:
                session = await self._ensure_session()
                async with session.ws_connect(self.config.url, heartbeat=60.0) as ws:
                    LOGGER.info("Connected to Twitch chat at %s", self.config.url)
                    backoff = self.reconnect_initial

                    self._active_ws = ws
                    try:
                        await self._login(ws)
                        async for message in ws:
                            if self._stop_event.is_set():
                                break
                            if message.type == aiohttp.WSMsgType.TEXT:
                                for line in message.data.split("\r\n"):
                                    if line:
                                        await self._handle_line(ws, line)
                            elif message.type == aiohttp.WSMsgType.ERROR:
                                raise ws.exception() or RuntimeError("Websocket error")
                    finally:
                        self._active_ws = None
            except asyncio.CancelledError:
                raise
            except ChatAuthenticationError as exc:
                LOGGER.error("Twitch chat login rejected: %s", exc)
                self._fatal = exc
                self._queue.put_nowait(_CLOSED)
                return
            except Exception as exc:  # pragma: no cover - defensive net handling
                if self._stop_event.is_set():
                    break
                LOGGER.warning("Twitch chat connection error: %s", exc)

            if self._stop_event.is_set():
                break
            jittered = random.uniform(0, backoff)
            await asyncio.sleep(jittered)
            backoff = min(max(backoff, 0.1) * 2, self.reconnect_max)

    async def _login(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        await ws.send_str("CAP REQ :twitch.tv/tags twitch.tv/commands")
        await ws.send_str(f"PASS oauth:{self.config.bot_oauth}")
        await ws.send_str(f"NICK {self.config.bot_username}")
        await ws.send_str(f"JOIN #{self.config.channel}")

    async def _handle_line(self, ws: aiohttp.ClientWebSocketResponse, line: str) -> None:
        message = parse_irc_line(line)

        if message.command == "PING":
            payload = message.params[-1] if message.params else "tmi.twitch.tv"
            await ws.send_str(f"PONG :{payload}")
            return

        if message.command == "NOTICE":
            text = message.params[-1] if message.params else ""
            if any(notice in text for notice in _AUTH_FAILURE_NOTICES):
                raise ChatAuthenticationError(text)
            LOGGER.info("Twitch notice: %s", text)
            return

        if message.command == "RECONNECT":
            raise ConnectionResetError("Twitch requested a reconnect")

        if message.command == "JOIN" and message.nick == self.config.bot_username:
            LOGGER.info("Joined #%s", self.config.channel)
            return

        if message.command != "PRIVMSG" or len(message.params) < 2:
            return

        self._queue.put_nowait(
            ChatMessage(
                sender_login=message.nick,
                channel_login=message.params[0].lstrip("#").lower(),
                text=message.params[1],
                badges=parse_badges(message.tags.get("badges", "")),
            )
        )
