"""Protocol definitions for the collaborators the bot talks to."""

from __future__ import annotations

from typing import AsyncIterator, Optional, Protocol, Sequence

from .models import BatterySnapshot, ChatMessage, Delay, ModemInterface, VideoState


class DeviceClient(Protocol):
    """Minimal contract for the LiveU cloud API."""

    async def list_interfaces(self, unit_id: str) -> Sequence[ModemInterface]:
        """Return the unit's uplinks with custom port names applied."""
        ...

    async def get_battery(self, unit_id: str) -> BatterySnapshot: ...

    async def get_video(self, unit_id: str) -> VideoState: ...

    async def is_streaming(self, unit_id: str) -> bool:
        """Return True when the unit reports a video bitrate. Never raises."""
        ...

    async def is_idle(self, unit_id: str) -> bool:
        """Return True when the unit is idle and ready. Never raises."""
        ...

    async def start_stream(self, unit_id: str) -> None: ...

    async def stop_stream(self, unit_id: str) -> None: ...

    async def reboot_unit(self, unit_id: str) -> None: ...

    async def get_delay(self, unit_id: str) -> Delay: ...

    async def set_delay(self, unit_id: str, delay_ms: int) -> Delay: ...


class ChatClient(Protocol):
    """Chat transport used for replies and notifications."""

    async def send(self, channel: str, text: str) -> None:
        """Send a message. Failures are logged and ignored."""
        ...

    def messages(self) -> AsyncIterator[ChatMessage]:
        """Iterate inbound chat messages until the transport stops."""
        ...


class BitrateSource(Protocol):
    """Third-party bitrate scraper (SRT relay, nginx-rtmp)."""

    async def fetch(self) -> Optional[int]:
        """Return the current bitrate in Kbps, or None when not publishing."""
        ...
