"""Battery monitor and the transition detector behind its notifications."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from ..adapters.liveu import LiveuError
from ..core import BatterySnapshot, DeviceClient
from ..locales import translate
from ..notifications import ChatNotifier
from .polling import IntervalPoller
from .store import TelemetryStore

LOGGER = logging.getLogger(__name__)


class BatteryTransition(str, Enum):
    POWER_LOST = "power_lost"
    CHARGING_STARTED = "charging_started"
    TOO_HOT = "too_hot"
    FULLY_CHARGED = "fully_charged"


_TRANSITION_KEYS = {
    BatteryTransition.POWER_LOST: "monitor.power_lost",
    BatteryTransition.CHARGING_STARTED: "monitor.now_charging",
    BatteryTransition.TOO_HOT: "monitor.too_hot",
    BatteryTransition.FULLY_CHARGED: "monitor.fully_charged",
}


def detect_transitions(
    prev: BatterySnapshot, current: BatterySnapshot
) -> List[BatteryTransition]:
    """Compare two snapshots and list the charging-state changes.

    Every rule is evaluated against ``prev`` and ``current`` only, in a fixed
    order. An unknown ``current`` reading never produces a transition.
    """
    if current.is_unknown:
        return []

    transitions: List[BatteryTransition] = []

    if not current.charging and current.discharging and not prev.discharging:
        transitions.append(BatteryTransition.POWER_LOST)

    if current.charging and not current.discharging and not prev.charging:
        transitions.append(BatteryTransition.CHARGING_STARTED)

    if (
        current.percentage < 100
        and not current.charging
        and not current.discharging
        and (prev.charging or prev.discharging)
    ):
        transitions.append(BatteryTransition.TOO_HOT)

    if (
        current.percentage == 100
        and not current.charging
        and not current.discharging
        and prev.charging
        and not prev.discharging
    ):
        transitions.append(BatteryTransition.FULLY_CHARGED)

    return transitions


def crossed_thresholds(
    prev: BatterySnapshot, current: BatterySnapshot, thresholds: Iterable[int]
) -> List[int]:
    """Thresholds the percentage just dropped onto (equal now, above before)."""
    if current.is_unknown:
        return []
    return [
        threshold
        for threshold in thresholds
        if current.percentage == threshold and prev.percentage > threshold
    ]


class BatteryMonitor(IntervalPoller):
    """Polls battery status and announces power and charge changes."""

    name = "battery-monitor"

    def __init__(
        self,
        *,
        device: DeviceClient,
        unit_id: str,
        store: TelemetryStore,
        notifier: ChatNotifier,
        thresholds: Sequence[int] = (),
        lang: str = "en",
        interval_seconds: float = 10.0,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        super().__init__(interval_seconds=interval_seconds, stop_event=stop_event)
        self._device = device
        self._unit_id = unit_id
        self._store = store
        self._notifier = notifier
        self._thresholds = tuple(thresholds)
        self._lang = lang
        self._prev = BatterySnapshot.unknown()

    @property
    def previous(self) -> BatterySnapshot:
        return self._prev

    async def poll_once(self) -> List[str]:
        """Run one tick and return the notifications sent."""

        if not await self._device.is_streaming(self._unit_id):
            await self._store.replace_battery(BatterySnapshot.unknown())
            return []

        try:
            battery = await self._device.get_battery(self._unit_id)
        except LiveuError as exc:
            LOGGER.warning("Fetching battery status failed: %s", exc)
            await self._store.replace_battery(BatterySnapshot.unknown())
            return []

        await self._store.replace_battery(battery)
        if battery.is_unknown:
            return []

        # The first real reading only becomes the baseline.
        if self._prev.is_unknown:
            self._prev = battery

        messages = [
            translate(_TRANSITION_KEYS[transition], self._lang)
            for transition in detect_transitions(self._prev, battery)
        ]
        for threshold in crossed_thresholds(self._prev, battery, self._thresholds):
            state_key = "monitor.charging" if battery.charging else "monitor.not_charging"
            messages.append(
                translate(
                    "monitor.battery_percentage",
                    self._lang,
                    percent=threshold,
                    state=translate(state_key, self._lang),
                )
            )

        for message in messages:
            LOGGER.info("Battery notification: %s", message)
            await self._notifier.notify(message)

        self._prev = battery
        return messages
