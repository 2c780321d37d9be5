import pytest

from liveu_stats_bot.confirmation import ConfirmationPoller, ConfirmationTask
from liveu_stats_bot.core import VideoState
from liveu_stats_bot.notifications import ChatNotifier


def _task(max_attempts: int, expect_bitrate: bool = True) -> ConfirmationTask:
    if expect_bitrate:
        success, in_progress = "confirm.started", "confirm.starting"
    else:
        success, in_progress = "confirm.stopped", "confirm.stopping"
    return ConfirmationTask(
        max_attempts=max_attempts,
        poll_interval_seconds=0,
        expect_bitrate=expect_bitrate,
        success_text=success,
        in_progress_text=in_progress,
    )


def _poller(device, chat, lang: str = "en") -> ConfirmationPoller:
    return ConfirmationPoller(
        device=device,
        unit_id="unit-1",
        notifier=ChatNotifier(chat, "streamer"),
        lang=lang,
    )


@pytest.mark.asyncio
async def test_confirmation_succeeds_on_second_poll(device, chat):
    device.videos = [
        VideoState(resolution="1080p", bitrate=None),
        VideoState(resolution="1080p", bitrate=5000),
        VideoState(resolution="1080p", bitrate=5000),
    ]

    assert await _poller(device, chat).confirm(_task(3)) is True

    assert device.count("get_video") == 2
    assert chat.texts == ["LiveU streaming started successfully"]


@pytest.mark.asyncio
async def test_confirmation_times_out(device, chat):
    device.video = VideoState(resolution="1080p", bitrate=5000)

    assert await _poller(device, chat).confirm(_task(4, expect_bitrate=False)) is False

    assert device.count("get_video") == 4
    assert chat.texts == ["LiveU stopping stream took too long, might not have worked"]


@pytest.mark.asyncio
async def test_confirmation_counts_failed_polls_as_attempts(device, chat, liveu_error):
    device.failures["get_video"] = liveu_error

    assert await _poller(device, chat).confirm(_task(2)) is False

    assert device.count("get_video") == 2
    assert chat.texts == ["LiveU starting stream took too long, might not have worked"]


@pytest.mark.asyncio
async def test_confirmation_stop_success(device, chat):
    device.video = VideoState(resolution="1080p", bitrate=None)

    assert await _poller(device, chat).confirm(_task(10, expect_bitrate=False)) is True
    assert device.count("get_video") == 1
    assert chat.texts == ["LiveU streaming stopped successfully"]
