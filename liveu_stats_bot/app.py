"""Main application entry-point for liveu-stats-bot."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .adapters import (
    ChatAuthenticationError,
    LiveuAuthenticationError,
    LiveuClient,
    LiveuError,
    RtmpStatsClient,
    SrtStatsClient,
    TwitchChatClient,
)
from .commands import ActionTimings, CommandDispatcher
from .config import BotConfig, load_config
from .logging import configure_logging
from .notifications import ChatNotifier
from .server import StatsServer
from .telemetry import (
    BatteryMonitor,
    ExternalBitrateMonitor,
    IntervalPoller,
    ModemMonitor,
    TelemetryStore,
)

LOGGER = logging.getLogger(__name__)


class StatsBotApp:
    """Coordinates application startup and shutdown.

    Wires the LiveU client, the Twitch chat connection, the telemetry
    monitors, the command dispatcher and the optional `/stats` endpoint.
    Collaborators can be injected for testing.
    """

    def __init__(
        self,
        config: Optional[BotConfig] = None,
        *,
        liveu: Optional[LiveuClient] = None,
        chat: Optional[TwitchChatClient] = None,
        srt: Optional[SrtStatsClient] = None,
        rtmp: Optional[RtmpStatsClient] = None,
        timings: Optional[ActionTimings] = None,
    ) -> None:
        self._config = config or load_config()
        self._liveu = liveu
        self._chat = chat
        self._srt = srt
        self._rtmp = rtmp
        self._timings = timings
        self._store = TelemetryStore()
        self._stop_event = asyncio.Event()
        self._monitors: List[IntervalPoller] = []
        self._server: Optional[StatsServer] = None
        self._dispatcher: Optional[CommandDispatcher] = None
        self._unit_id: Optional[str] = None
        self._chat_started = False

    @property
    def store(self) -> TelemetryStore:
        return self._store

    @property
    def unit_id(self) -> Optional[str]:
        return self._unit_id

    async def run(self) -> int:
        """Run until the chat stream ends; return the process exit code."""

        LOGGER.info("liveu-stats-bot starting with config: %s", self._config.path)

        try:
            dispatcher = await self._start_services()
        except LiveuError as exc:
            LOGGER.error("Unable to start: %s", exc)
            await self._stop_services()
            return 1

        try:
            await dispatcher.run()
        except ChatAuthenticationError as exc:
            LOGGER.error("Twitch rejected the bot login: %s", exc)
            return 1
        except asyncio.CancelledError:
            LOGGER.info("liveu-stats-bot received shutdown signal")
            raise
        finally:
            await self._stop_services()

        return 0

    @classmethod
    def start(cls, config: Optional[BotConfig] = None) -> int:
        instance = cls(config=config)
        configure_logging(
            instance._config.logging.level,
            log_path=instance._config.logging.path,
            log_network=instance._config.logging.log_network,
        )
        try:
            return asyncio.run(instance.run())
        except KeyboardInterrupt:
            LOGGER.info("liveu-stats-bot received shutdown signal")
            return 0

    async def _start_services(self) -> CommandDispatcher:
        config = self._config

        if self._liveu is None:
            self._liveu = LiveuClient(
                config.liveu, custom_port_names=config.custom_port_names
            )

        try:
            await self._liveu.authenticate()
        except LiveuAuthenticationError:
            LOGGER.error("LiveU login rejected; check [liveu] email and password")
            raise
        LOGGER.info("Authenticated with LiveU Central")

        self._unit_id = config.liveu.id or await self._liveu.resolve_unit_id()
        LOGGER.info("Using LiveU unit %s", self._unit_id)

        if self._chat is None:
            self._chat = TwitchChatClient(config.twitch)
        await self._chat.start()
        self._chat_started = True

        if self._srt is None and config.srt is not None:
            self._srt = SrtStatsClient(config.srt)
        if self._rtmp is None and config.rtmp is not None:
            self._rtmp = RtmpStatsClient(config.rtmp)

        notifier = ChatNotifier(self._chat, config.twitch.channel)

        if config.monitor.modems:
            self._monitors.append(
                ModemMonitor(
                    device=self._liveu,
                    unit_id=self._unit_id,
                    store=self._store,
                    notifier=notifier,
                    lang=config.lang,
                    interval_seconds=config.monitor.modem_interval_seconds,
                    stop_event=self._stop_event,
                )
            )

        if config.monitor.battery:
            self._monitors.append(
                BatteryMonitor(
                    device=self._liveu,
                    unit_id=self._unit_id,
                    store=self._store,
                    notifier=notifier,
                    thresholds=config.monitor.battery_notification,
                    lang=config.lang,
                    interval_seconds=config.monitor.battery_interval_seconds,
                    stop_event=self._stop_event,
                )
            )

        if self._srt is not None:
            self._monitors.append(
                ExternalBitrateMonitor(
                    source=self._srt,
                    store=self._store,
                    interval_seconds=config.monitor.srt_interval_seconds,
                    stop_event=self._stop_event,
                )
            )

        for monitor in self._monitors:
            monitor.start()
            LOGGER.debug("Started %s", monitor.name)

        await self._start_server()

        self._dispatcher = CommandDispatcher(
            config,
            self._liveu,
            self._chat,
            self._unit_id,
            store=self._store,
            srt=self._srt,
            rtmp=self._rtmp,
            timings=self._timings,
        )
        return self._dispatcher

    async def _start_server(self) -> None:
        settings = self._config.server
        if not settings.enabled or settings.port <= 0:
            return

        server = StatsServer(self._store, settings.host, settings.port)
        try:
            await server.start()
        except OSError as exc:
            LOGGER.error("Failed to start stats endpoint: %s", exc)
        else:
            self._server = server

    async def _stop_services(self) -> None:
        self._stop_event.set()

        if self._dispatcher is not None:
            await self._dispatcher.stop()
            self._dispatcher = None

        if self._server is not None:
            await self._server.stop()
            self._server = None

        for monitor in reversed(self._monitors):
            await monitor.stop()
        self._monitors.clear()

        if self._chat is not None and self._chat_started:
            await self._chat.stop()
            self._chat_started = False

        for client in (self._rtmp, self._srt, self._liveu):
            if client is not None:
                await client.aclose()
