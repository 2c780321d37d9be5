from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from liveu_stats_bot.adapters.liveu import LiveuError
from liveu_stats_bot.config import BotConfig, load_config
from liveu_stats_bot.core import (
    BatterySnapshot,
    ChatMessage,
    Delay,
    ModemInterface,
    VideoState,
)


class FakeDevice:
    """In-memory LiveU unit recording every call made against it."""

    def __init__(self) -> None:
        self.streaming = True
        self.interfaces: List[ModemInterface] = []
        self.battery = BatterySnapshot.unknown()
        self.video = VideoState(resolution="1920x1080", bitrate=None)
        self.videos: List[VideoState] = []
        self.idle: List[bool] = []
        self.delay = 1000
        self.failures: Dict[str, Exception] = {}
        self.calls: List[str] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        failure = self.failures.get(name)
        if failure is not None:
            raise failure

    def count(self, name: str) -> int:
        return self.calls.count(name)

    async def list_interfaces(self, unit_id: str) -> Sequence[ModemInterface]:
        self._record("list_interfaces")
        return list(self.interfaces)

    async def get_battery(self, unit_id: str) -> BatterySnapshot:
        self._record("get_battery")
        return self.battery

    async def get_video(self, unit_id: str) -> VideoState:
        self._record("get_video")
        if self.videos:
            return self.videos.pop(0)
        return self.video

    async def is_streaming(self, unit_id: str) -> bool:
        self._record("is_streaming")
        return self.streaming

    async def is_idle(self, unit_id: str) -> bool:
        self._record("is_idle")
        if self.idle:
            return self.idle.pop(0)
        return False

    async def start_stream(self, unit_id: str) -> None:
        self._record("start_stream")

    async def stop_stream(self, unit_id: str) -> None:
        self._record("stop_stream")

    async def reboot_unit(self, unit_id: str) -> None:
        self._record("reboot_unit")

    async def get_delay(self, unit_id: str) -> Delay:
        self._record("get_delay")
        return Delay(delay=self.delay)

    async def set_delay(self, unit_id: str, delay_ms: int) -> Delay:
        self._record("set_delay")
        self.delay = delay_ms
        return Delay(delay=delay_ms)


class FakeChat:
    """Chat transport that replays queued messages and records replies."""

    def __init__(self, inbound: Optional[List[ChatMessage]] = None) -> None:
        self.inbound = list(inbound or [])
        self.sent: List[Tuple[str, str]] = []
        self.fail_sends = False

    async def send(self, channel: str, text: str) -> None:
        if self.fail_sends:
            raise ConnectionError("chat offline")
        self.sent.append((channel, text))

    async def messages(self):
        for message in self.inbound:
            yield message

    @property
    def texts(self) -> List[str]:
        return [text for _, text in self.sent]


class FakeBitrateSource:
    def __init__(self, values: Optional[List[Any]] = None) -> None:
        self.values = list(values or [])
        self.calls = 0

    async def fetch(self) -> Optional[int]:
        self.calls += 1
        value = self.values.pop(0) if self.values else None
        if isinstance(value, Exception):
            raise value
        return value


def modem(port: str, kbps: int = 0, **kwargs: Any) -> ModemInterface:
    return ModemInterface(port=port, uplink_kbps=kbps, connected=True, enabled=True, **kwargs)


def battery(
    percentage: int,
    *,
    charging: bool = False,
    discharging: bool = False,
    connected: bool = True,
    minutes: int = 0,
) -> BatterySnapshot:
    return BatterySnapshot(
        connected=connected,
        percentage=percentage,
        minutes_to_empty=minutes,
        charging=charging,
        discharging=discharging,
    )


def chat_message(
    text: str,
    sender: str = "viewer",
    *,
    owner: bool = False,
    moderator: bool = False,
    channel: str = "streamer",
) -> ChatMessage:
    badges: Dict[str, str] = {}
    if owner:
        badges["broadcaster"] = "1"
    if moderator:
        badges["moderator"] = "1"
    return ChatMessage(
        sender_login=sender, channel_login=channel, text=text, badges=badges
    )


def write_config(path: Path, extra: str = "") -> BotConfig:
    path.write_text(
        """
[liveu]
email = bot@example.com
password = hunter2

[twitch]
bot_username = StatsBot
bot_oauth = oauth:abc123
channel = #Streamer
admin_users = Trusted, Helper
""".strip()
        + "\n"
        + extra,
        encoding="utf-8",
    )
    return load_config(path)


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def bot_config(tmp_path: Path) -> BotConfig:
    return write_config(tmp_path / "liveu-stats-bot.cfg")


@pytest.fixture
def liveu_error() -> LiveuError:
    return LiveuError("boom", status=500)
