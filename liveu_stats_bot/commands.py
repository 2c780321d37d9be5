"""Chat command handling for liveu-stats-bot."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Coroutine, Optional, Sequence, Set

from . import constants
from .adapters.liveu import LiveuError
from .adapters.srt import BitrateSourceError
from .config import BotConfig
from .confirmation import ConfirmationPoller, ConfirmationTask
from .core import BitrateSource, ChatClient, ChatMessage, DeviceClient, ModemInterface
from .locales import translate
from .notifications import ChatNotifier
from .telemetry import TelemetryStore

LOGGER = logging.getLogger(__name__)


class Command(str, Enum):
    STATS = "stats"
    BATTERY = "battery"
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    REBOOT = "reboot"
    DELAY = "delay"
    UNKNOWN = "unknown"


READ_ONLY_COMMANDS = frozenset({Command.STATS, Command.BATTERY})


@dataclass(frozen=True, slots=True)
class ActionTimings:
    """Attempts and settle delays used by the action commands."""

    start_confirm_attempts: int = 15
    stop_confirm_attempts: int = 10
    confirm_interval_seconds: float = 1.0
    stop_settle_seconds: float = 4.0
    reboot_settle_seconds: float = 30.0
    idle_poll_attempts: int = 20
    idle_poll_interval_seconds: float = 10.0
    post_reboot_settle_seconds: float = 5.0
    delay_settle_seconds: float = 2.0


@dataclass(slots=True)
class CommandContext:
    sender: str
    channel: str
    command: Command
    is_owner: bool
    is_moderator: bool
    is_admin: bool

    @property
    def may_query(self) -> bool:
        return self.is_owner or self.is_moderator or self.is_admin

    @property
    def may_act(self) -> bool:
        return self.is_owner or self.is_admin


class CooldownGate:
    """Single shared cooldown: while active every command is dropped.

    Stored as a not-before deadline, so expiry does not depend on how long the
    command that armed it takes to finish.
    """

    def __init__(
        self, duration_seconds: float, *, clock: Optional[Callable[[], float]] = None
    ) -> None:
        self._duration = max(duration_seconds, 0.0)
        self._clock = clock or time.monotonic
        self._not_before = 0.0

    @property
    def active(self) -> bool:
        return self._clock() < self._not_before

    def arm(self) -> None:
        self._not_before = self._clock() + self._duration


class CommandDispatcher:
    """Consumes chat messages, applies permission and cooldown gates and replies."""

    def __init__(
        self,
        config: BotConfig,
        device: DeviceClient,
        chat: ChatClient,
        unit_id: str,
        *,
        store: Optional[TelemetryStore] = None,
        srt: Optional[BitrateSource] = None,
        rtmp: Optional[BitrateSource] = None,
        timings: Optional[ActionTimings] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._config = config
        self._device = device
        self._chat = chat
        self._unit_id = unit_id
        self._store = store
        self._srt = srt
        self._rtmp = rtmp
        self._timings = timings or ActionTimings()
        self._lang = config.lang
        self._admins = {user.lower() for user in config.twitch.admin_users}
        self._modems_from_store = store is not None and config.monitor.modems
        self._battery_from_store = store is not None and config.monitor.battery
        self._cooldown = CooldownGate(config.commands.cooldown, clock=clock)
        self._background: Set[asyncio.Task[Any]] = set()

    @property
    def cooldown(self) -> CooldownGate:
        return self._cooldown

    @property
    def pending_count(self) -> int:
        return len(self._background)

    async def run(self) -> None:
        """Handle messages until the chat stream ends."""
        async for message in self._chat.messages():
            await self.handle_message(message)

    async def stop(self) -> None:
        """Cancel confirmation pollers that are still running."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()

    def parse_command(self, text: str) -> Command:
        parts = text.split()
        token = parts[0] if parts else ""
        if not token:
            return Command.UNKNOWN

        commands = self._config.commands
        if token in commands.stats:
            return Command.STATS
        if token in commands.battery:
            return Command.BATTERY

        for command, keyword in (
            (Command.START, commands.start),
            (Command.STOP, commands.stop),
            (Command.RESTART, commands.restart),
            (Command.REBOOT, commands.reboot),
            (Command.DELAY, commands.delay),
        ):
            if keyword and token == keyword:
                return command

        return Command.UNKNOWN

    def build_context(self, message: ChatMessage, command: Command) -> CommandContext:
        return CommandContext(
            sender=message.sender_login,
            channel=message.channel_login,
            command=command,
            is_owner=message.is_owner,
            is_moderator=message.is_moderator,
            is_admin=message.sender_login.lower() in self._admins,
        )

    async def handle_message(self, message: ChatMessage) -> Optional[str]:
        """Process one chat message and return the reply that was sent, if any."""

        if self._cooldown.active:
            return None

        command = self.parse_command(message.text)
        if command == Command.UNKNOWN:
            return None

        context = self.build_context(message, command)
        if self._config.twitch.mod_only and not context.may_query:
            return None

        self._cooldown.arm()

        if command not in READ_ONLY_COMMANDS and not context.may_act:
            LOGGER.info("Ignoring %s from %s: not permitted", command.value, context.sender)
            return None

        LOGGER.info("Handling %s from %s in #%s", command.value, context.sender, context.channel)

        try:
            if command in READ_ONLY_COMMANDS:
                response = await self._handle_read_only(command)
            else:
                response = await self._handle_action(command, context.channel)
        except LiveuError as exc:
            LOGGER.warning("Command %s failed: %s", command.value, exc)
            response = self._t("request.error")
        except asyncio.CancelledError:
            raise
        except Exception:
            LOGGER.exception("Command %s failed", command.value)
            return None

        if response:
            await self._say(context.channel, response)
        return response or None

    # ------------------------------------------------------------------
    # Read-only commands
    # ------------------------------------------------------------------
    async def _handle_read_only(self, command: Command) -> str:
        if command == Command.STATS:
            return await self.stats_message()
        return await self.battery_message()

    async def stats_message(self) -> str:
        interfaces: Sequence[ModemInterface]
        if self._modems_from_store and self._store is not None:
            interfaces, total = await self._store.modems()
        else:
            try:
                interfaces = await self._device.list_interfaces(self._unit_id)
            except LiveuError as exc:
                LOGGER.debug("Interfaces unavailable: %s", exc)
                return self._t("stats.offline")
            total = sum(interface.uplink_kbps for interface in interfaces)

        if not interfaces:
            return self._t("stats.offline")

        if total == 0:
            return self._t("stats.online_ready")

        message = "".join(
            self._t(
                "stats.modem",
                port=interface.port,
                bitrate=interface.uplink_kbps,
                technology=f" ({interface.technology})" if interface.technology else "",
                roaming=self._t("stats.roaming") if interface.is_roaming else "",
            )
            for interface in interfaces
        )
        message += self._t("stats.total", bitrate=total)

        srt_bitrate = await _fetch_bitrate(self._srt, "SRT")
        if srt_bitrate is not None:
            message += self._t("stats.srt", bitrate=srt_bitrate)

        rtmp_bitrate = await _fetch_bitrate(self._rtmp, "RTMP")
        if rtmp_bitrate is not None:
            message += self._t("stats.rtmp", bitrate=rtmp_bitrate)

        return message

    async def battery_message(self) -> str:
        if self._battery_from_store and self._store is not None:
            battery = await self._store.battery()
        else:
            try:
                battery = await self._device.get_battery(self._unit_id)
            except LiveuError as exc:
                LOGGER.debug("Battery unavailable: %s", exc)
                return self._t("stats.offline")

        if battery.is_unknown:
            return self._t("stats.offline")

        if battery.charging:
            state = self._t("battery.charging")
        elif battery.percentage == 100:
            state = self._t(
                "battery.fully_charged_connected"
                if battery.connected
                else "battery.fully_charged"
            )
        elif not battery.discharging:
            state = self._t("battery.too_hot")
        else:
            state = self._t("battery.not_charging")

        message = self._t("battery.message", percentage=battery.percentage, state=state)

        if battery.minutes_to_empty and battery.discharging:
            hours, minutes = divmod(battery.minutes_to_empty, 60)
            remaining = f"{hours}h {minutes}m" if hours else f"{minutes}m"
            message += " " + self._t("battery.estimate", time=remaining)

        return message

    # ------------------------------------------------------------------
    # Action commands
    # ------------------------------------------------------------------
    async def _handle_action(self, command: Command, channel: str) -> str:
        if command == Command.START:
            return await self.start_stream(channel)
        if command == Command.STOP:
            return await self.stop_stream(channel)
        if command == Command.RESTART:
            return await self.restart_stream(channel)
        if command == Command.REBOOT:
            return await self.reboot_unit(channel)
        if command == Command.DELAY:
            return await self.toggle_delay(channel)
        raise ValueError(f"Not an action command: {command}")

    async def start_stream(self, channel: str) -> str:
        try:
            video = await self._device.get_video(self._unit_id)
        except LiveuError as exc:
            LOGGER.debug("Video state unavailable: %s", exc)
            return self._t("stats.offline")

        if video.resolution is None:
            return self._t("start.no_camera")

        if video.has_bitrate:
            return self._t("start.already_streaming")

        try:
            await self._device.start_stream(self._unit_id)
        except LiveuError as exc:
            LOGGER.warning("Start stream request failed: %s", exc)
            return self._t("request.error")

        self._spawn_confirmation(
            channel,
            ConfirmationTask(
                max_attempts=self._timings.start_confirm_attempts,
                poll_interval_seconds=self._timings.confirm_interval_seconds,
                expect_bitrate=True,
                success_text="confirm.started",
                in_progress_text="confirm.starting",
            ),
        )
        return self._t("start.starting")

    async def stop_stream(self, channel: str) -> str:
        if not await self._device.is_streaming(self._unit_id):
            return self._t("stop.already_stopped")

        try:
            await self._device.stop_stream(self._unit_id)
        except LiveuError as exc:
            LOGGER.warning("Stop stream request failed: %s", exc)
            return self._t("request.error")

        self._spawn_confirmation(
            channel,
            ConfirmationTask(
                max_attempts=self._timings.stop_confirm_attempts,
                poll_interval_seconds=self._timings.confirm_interval_seconds,
                expect_bitrate=False,
                success_text="confirm.stopped",
                in_progress_text="confirm.stopping",
            ),
        )
        return self._t("stop.stopping")

    async def restart_stream(self, channel: str) -> str:
        if not await self._device.is_streaming(self._unit_id):
            return self._t("restart.not_streaming")

        await self._say(channel, self._t("restart.restarting"))

        # The stop confirmation is not awaited before starting again.
        await self.stop_stream(channel)
        await asyncio.sleep(self._timings.stop_settle_seconds)
        await self.start_stream(channel)
        return ""

    async def reboot_unit(self, channel: str) -> str:
        was_streaming = await self._device.is_streaming(self._unit_id)

        await self._say(channel, self._t("reboot.rebooting"))

        if was_streaming:
            await self.stop_stream(channel)
            await asyncio.sleep(self._timings.stop_settle_seconds)

        await self._device.reboot_unit(self._unit_id)
        await asyncio.sleep(self._timings.reboot_settle_seconds)

        attempts = 0
        while (
            attempts < self._timings.idle_poll_attempts
            and not await self._device.is_idle(self._unit_id)
        ):
            await asyncio.sleep(self._timings.idle_poll_interval_seconds)
            attempts += 1

        if attempts == self._timings.idle_poll_attempts:
            return self._t("reboot.too_long")

        await asyncio.sleep(self._timings.post_reboot_settle_seconds)

        if was_streaming:
            await self.start_stream(channel)
            return ""

        return self._t("reboot.success")

    async def toggle_delay(self, channel: str) -> str:
        was_streaming = await self._device.is_streaming(self._unit_id)

        if was_streaming:
            await self.stop_stream(channel)
            await asyncio.sleep(self._timings.stop_settle_seconds)

        current = await self._device.get_delay(self._unit_id)
        if current.delay == constants.LOW_DELAY_MS:
            target, mode = constants.HIGH_RESILIENCY_DELAY_MS, "delay.high_resiliency"
        else:
            target, mode = constants.LOW_DELAY_MS, "delay.low_delay"

        await self._device.set_delay(self._unit_id, target)
        LOGGER.info("Delay changed from %d ms to %d ms", current.delay, target)
        await asyncio.sleep(self._timings.delay_settle_seconds)

        if was_streaming:
            await self.start_stream(channel)

        return self._t(mode)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _spawn_confirmation(self, channel: str, task: ConfirmationTask) -> None:
        poller = ConfirmationPoller(
            device=self._device,
            unit_id=self._unit_id,
            notifier=ChatNotifier(self._chat, channel),
            lang=self._lang,
        )
        self._spawn(poller.confirm(task))

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Background command task failed", exc_info=exc)

    async def _say(self, channel: str, text: str) -> None:
        await ChatNotifier(self._chat, channel).notify(text)

    def _t(self, key: str, **params: object) -> str:
        return translate(key, self._lang, **params)


async def _fetch_bitrate(source: Optional[BitrateSource], label: str) -> Optional[int]:
    if source is None:
        return None
    try:
        return await source.fetch()
    except BitrateSourceError as exc:
        LOGGER.debug("%s bitrate unavailable: %s", label, exc)
        return None
