"""Domain models for LiveU telemetry and chat commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from ..constants import BATTERY_SENTINEL


@dataclass(frozen=True, slots=True)
class ModemInterface:
    """One uplink of the bonding unit, keyed by its port label."""

    port: str
    uplink_kbps: int = 0
    connected: bool = False
    enabled: bool = False
    technology: str = ""
    is_roaming: bool = False

    def as_dict(self) -> Dict[str, object]:
        return {
            "port": self.port,
            "uplinkKbps": self.uplink_kbps,
            "connected": self.connected,
            "enabled": self.enabled,
            "technology": self.technology,
            "isRoaming": self.is_roaming,
        }


@dataclass(frozen=True, slots=True)
class BatterySnapshot:
    connected: bool = False
    percentage: int = BATTERY_SENTINEL
    minutes_to_empty: int = 0
    charging: bool = False
    discharging: bool = False

    @classmethod
    def unknown(cls) -> "BatterySnapshot":
        """Snapshot reported while the unit is offline or the fetch failed."""
        return cls()

    @property
    def is_unknown(self) -> bool:
        return self.percentage == BATTERY_SENTINEL

    def as_dict(self) -> Dict[str, object]:
        return {
            "connected": self.connected,
            "percentage": self.percentage,
            "minutesToEmpty": self.minutes_to_empty,
            "charging": self.charging,
            "discharging": self.discharging,
        }


@dataclass(frozen=True, slots=True)
class VideoState:
    resolution: Optional[str] = None
    bitrate: Optional[int] = None

    @property
    def has_bitrate(self) -> bool:
        return self.bitrate is not None


@dataclass(frozen=True, slots=True)
class Delay:
    delay: int


@dataclass(slots=True)
class ChatMessage:
    """Inbound chat message with the sender's badge metadata."""

    sender_login: str
    channel_login: str
    text: str
    badges: Dict[str, str] = field(default_factory=dict)

    @property
    def is_owner(self) -> bool:
        return self.badges.get("broadcaster") == "1"

    @property
    def is_moderator(self) -> bool:
        return self.badges.get("moderator") == "1"
