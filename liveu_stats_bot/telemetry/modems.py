"""Modem monitor: keeps the modem list current and announces joins/leaves."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from ..adapters.liveu import LiveuError
from ..core import DeviceClient
from ..locales import translate
from ..notifications import ChatNotifier
from .polling import IntervalPoller
from .store import TelemetryStore

LOGGER = logging.getLogger(__name__)


def diff_ports(
    known: Sequence[str], current: Sequence[str]
) -> Tuple[List[str], List[str]]:
    """Return ``(added, removed)`` port labels between two observations.

    ``added`` keeps the order of ``current`` and ``removed`` the order of
    ``known``; duplicates are collapsed.
    """
    known_set = set(known)
    current_set = set(current)
    added = [port for port in dict.fromkeys(current) if port not in known_set]
    removed = [port for port in dict.fromkeys(known) if port not in current_set]
    return added, removed


def build_modems_message(
    added: Sequence[str], removed: Sequence[str], lang: str = "en"
) -> str:
    """Combine join and leave clauses into one notification body.

    Returns an empty string when nothing changed.
    """
    message = ""

    if added:
        key = "monitor.new_modem.other" if len(added) > 1 else "monitor.new_modem.one"
        message += translate(key, lang, ports=", ".join(added))

    if removed:
        key = (
            "monitor.removed_modem.other"
            if len(removed) > 1
            else "monitor.removed_modem.one"
        )
        message += translate(key, lang, ports=", ".join(removed))

    return message.strip()


class ModemMonitor(IntervalPoller):
    """Polls the unit's interfaces and reports modems joining or leaving."""

    name = "modem-monitor"

    def __init__(
        self,
        *,
        device: DeviceClient,
        unit_id: str,
        store: TelemetryStore,
        notifier: ChatNotifier,
        lang: str = "en",
        interval_seconds: float = 10.0,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        super().__init__(interval_seconds=interval_seconds, stop_event=stop_event)
        self._device = device
        self._unit_id = unit_id
        self._store = store
        self._notifier = notifier
        self._lang = lang
        self._known: List[str] = []
        self._ignore = False

    @property
    def known_ports(self) -> List[str]:
        return list(self._known)

    async def prepare(self) -> None:
        """Seed the known ports so modems already up are not announced."""
        try:
            interfaces = await self._device.list_interfaces(self._unit_id)
        except LiveuError as exc:
            LOGGER.warning("Could not seed modem list: %s", exc)
            self._ignore = True
            return
        self._known = list(dict.fromkeys(interface.port for interface in interfaces))

    async def poll_once(self) -> Optional[str]:
        """Run one tick and return the notification sent, if any."""

        if not await self._device.is_streaming(self._unit_id):
            await self._store.clear_modems()
            self._ignore = True
            return None

        try:
            interfaces = await self._device.list_interfaces(self._unit_id)
        except LiveuError as exc:
            LOGGER.warning("Fetching modems failed, retrying next tick: %s", exc)
            return None

        total = await self._store.replace_modems(interfaces)
        ports = [interface.port for interface in interfaces]
        added, removed = diff_ports(self._known, ports)
        self._known = list(dict.fromkeys(ports))

        LOGGER.debug(
            "Modems: %d up, total %d Kbps (added=%s removed=%s)",
            len(ports),
            total,
            added,
            removed,
        )

        message = build_modems_message(added, removed, self._lang)
        ignore = self._ignore
        self._ignore = False

        if ignore or not message:
            return None

        text = translate("monitor.prefix", self._lang) + message
        await self._notifier.notify(text)
        return text
