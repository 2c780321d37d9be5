"""Shared telemetry state written by the pollers and read by chat and HTTP."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple

from ..core import BatterySnapshot, ModemInterface


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Immutable view of the store used by the HTTP surface."""

    modems: Tuple[ModemInterface, ...] = ()
    total_uplink_kbps: int = 0
    battery: BatterySnapshot = field(default_factory=BatterySnapshot.unknown)
    external_bitrate_kbps: int = 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "modems": [modem.as_dict() for modem in self.modems],
            "totalBitrate": self.total_uplink_kbps,
            "battery": self.battery.as_dict(),
            "srtBitrate": self.external_bitrate_kbps,
        }


class TelemetryStore:
    """Latest modem list, battery and external bitrate for the unit.

    Each field group is owned by a single poller and always replaced
    wholesale, so readers never observe a partially applied update.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._modems: Tuple[ModemInterface, ...] = ()
        self._total_uplink_kbps = 0
        self._battery = BatterySnapshot.unknown()
        self._external_bitrate_kbps = 0

    async def replace_modems(self, modems: Iterable[ModemInterface]) -> int:
        """Store a new modem list and return the recomputed total uplink."""
        snapshot = tuple(modems)
        total = sum(modem.uplink_kbps for modem in snapshot)
        async with self._lock:
            self._modems = snapshot
            self._total_uplink_kbps = total
        return total

    async def clear_modems(self) -> None:
        await self.replace_modems(())

    async def modems(self) -> Tuple[Tuple[ModemInterface, ...], int]:
        async with self._lock:
            return self._modems, self._total_uplink_kbps

    async def replace_battery(self, battery: BatterySnapshot) -> None:
        async with self._lock:
            self._battery = battery

    async def battery(self) -> BatterySnapshot:
        async with self._lock:
            return self._battery

    async def replace_external_bitrate(self, bitrate_kbps: int) -> None:
        async with self._lock:
            self._external_bitrate_kbps = bitrate_kbps

    async def external_bitrate(self) -> int:
        async with self._lock:
            return self._external_bitrate_kbps

    async def snapshot(self) -> TelemetrySnapshot:
        async with self._lock:
            return TelemetrySnapshot(
                modems=self._modems,
                total_uplink_kbps=self._total_uplink_kbps,
                battery=self._battery,
                external_bitrate_kbps=self._external_bitrate_kbps,
            )
