"""Bounded polling that confirms a start/stop request took effect."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .adapters.liveu import LiveuError
from .core import DeviceClient
from .locales import translate
from .notifications import ChatNotifier

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConfirmationTask:
    """What to wait for after an action was accepted by the unit.

    ``success_text`` and ``in_progress_text`` are locale keys for the action
    verb, e.g. ``confirm.started`` / ``confirm.starting``.
    """

    max_attempts: int
    poll_interval_seconds: float
    expect_bitrate: bool
    success_text: str
    in_progress_text: str


class ConfirmationPoller:
    """Polls the unit's video state until it matches the expected state."""

    def __init__(
        self,
        *,
        device: DeviceClient,
        unit_id: str,
        notifier: ChatNotifier,
        lang: str = "en",
    ) -> None:
        self._device = device
        self._unit_id = unit_id
        self._notifier = notifier
        self._lang = lang

    async def confirm(self, task: ConfirmationTask) -> bool:
        """Poll up to ``task.max_attempts`` times and announce the outcome."""

        attempts = 0
        while attempts < task.max_attempts:
            await asyncio.sleep(task.poll_interval_seconds)

            try:
                video = await self._device.get_video(self._unit_id)
            except LiveuError as exc:
                LOGGER.debug("Confirmation poll %d failed: %s", attempts + 1, exc)
            else:
                if video.has_bitrate == task.expect_bitrate:
                    LOGGER.info(
                        "Unit reached bitrate_present=%s after %d poll(s)",
                        task.expect_bitrate,
                        attempts + 1,
                    )
                    await self._notifier.notify(
                        translate(
                            "confirm.success",
                            self._lang,
                            action=translate(task.success_text, self._lang),
                        )
                    )
                    return True

            attempts += 1

        LOGGER.info(
            "Unit did not reach bitrate_present=%s after %d attempts",
            task.expect_bitrate,
            task.max_attempts,
        )
        await self._notifier.notify(
            translate(
                "confirm.timeout",
                self._lang,
                action=translate(task.in_progress_text, self._lang),
            )
        )
        return False
