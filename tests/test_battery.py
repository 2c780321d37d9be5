import pytest

from conftest import FakeChat, FakeDevice, battery
from liveu_stats_bot.core import BatterySnapshot
from liveu_stats_bot.notifications import ChatNotifier
from liveu_stats_bot.telemetry import (
    BatteryMonitor,
    BatteryTransition,
    TelemetryStore,
    crossed_thresholds,
    detect_transitions,
)


def _monitor(device: FakeDevice, chat: FakeChat, store: TelemetryStore, thresholds=()):
    return BatteryMonitor(
        device=device,
        unit_id="unit-1",
        store=store,
        notifier=ChatNotifier(chat, "streamer"),
        thresholds=thresholds,
        interval_seconds=0.01,
    )


def test_power_lost_is_the_only_transition():
    prev = battery(80, charging=False, discharging=False)
    current = battery(80, charging=False, discharging=True)

    assert detect_transitions(prev, current) == [BatteryTransition.POWER_LOST]


def test_charging_started():
    prev = battery(40, discharging=True)
    current = battery(40, charging=True)

    assert detect_transitions(prev, current) == [BatteryTransition.CHARGING_STARTED]


def test_too_hot_to_charge():
    prev = battery(70, charging=True)
    current = battery(70)

    assert detect_transitions(prev, current) == [BatteryTransition.TOO_HOT]


def test_fully_charged():
    prev = battery(99, charging=True)
    current = battery(100)

    assert detect_transitions(prev, current) == [BatteryTransition.FULLY_CHARGED]


def test_steady_state_has_no_transitions():
    snapshot = battery(60, discharging=True)

    assert detect_transitions(snapshot, snapshot) == []


@pytest.mark.parametrize(
    "prev",
    [
        battery(50, charging=True),
        battery(50, discharging=True),
        battery(100),
        BatterySnapshot.unknown(),
    ],
)
def test_sentinel_reading_never_transitions(prev):
    current = BatterySnapshot(percentage=255, charging=False, discharging=True)

    assert detect_transitions(prev, current) == []


def test_threshold_crossing_fires_on_exact_match():
    prev = battery(60)

    assert crossed_thresholds(prev, battery(50), [50, 20]) == [50]
    assert crossed_thresholds(prev, battery(49), [50, 20]) == []


def test_threshold_does_not_repeat_once_reached():
    assert crossed_thresholds(battery(50), battery(50), [50]) == []


@pytest.mark.asyncio
async def test_not_streaming_writes_sentinel(device, chat):
    store = TelemetryStore()
    await store.replace_battery(battery(80))
    device.streaming = False
    monitor = _monitor(device, chat, store)

    for _ in range(3):
        assert await monitor.poll_once() == []

    assert (await store.battery()).is_unknown
    assert device.count("get_battery") == 0
    assert chat.sent == []


@pytest.mark.asyncio
async def test_fetch_failure_writes_sentinel(device, chat, liveu_error):
    store = TelemetryStore()
    await store.replace_battery(battery(80))
    device.failures["get_battery"] = liveu_error
    monitor = _monitor(device, chat, store)

    assert await monitor.poll_once() == []
    assert (await store.battery()).is_unknown


@pytest.mark.asyncio
async def test_first_reading_only_becomes_baseline(device, chat):
    store = TelemetryStore()
    device.battery = battery(99, discharging=True)
    monitor = _monitor(device, chat, store, thresholds=[99])

    assert await monitor.poll_once() == []
    assert monitor.previous == device.battery
    assert await store.battery() == device.battery


@pytest.mark.asyncio
async def test_power_loss_then_threshold_notifications(device, chat):
    store = TelemetryStore()
    monitor = _monitor(device, chat, store, thresholds=[66, 33])

    device.battery = battery(70, charging=True)
    await monitor.poll_once()

    device.battery = battery(70, discharging=True)
    assert await monitor.poll_once() == [
        "LiveU: external power lost, running on internal battery"
    ]

    device.battery = battery(66, discharging=True)
    assert await monitor.poll_once() == [
        "LiveU: internal battery at 66%, not charging"
    ]

    assert chat.texts == [
        "LiveU: external power lost, running on internal battery",
        "LiveU: internal battery at 66%, not charging",
    ]


@pytest.mark.asyncio
async def test_offline_gap_keeps_previous_reading(device, chat):
    store = TelemetryStore()
    monitor = _monitor(device, chat, store)

    device.battery = battery(80, charging=True)
    await monitor.poll_once()

    device.streaming = False
    await monitor.poll_once()
    assert monitor.previous == battery(80, charging=True)

    device.streaming = True
    device.battery = battery(80, discharging=True)
    assert await monitor.poll_once() == [
        "LiveU: external power lost, running on internal battery"
    ]


@pytest.mark.asyncio
async def test_notification_failure_does_not_break_poll(device, chat):
    store = TelemetryStore()
    chat.fail_sends = True
    monitor = _monitor(device, chat, store)

    device.battery = battery(90, discharging=False)
    await monitor.poll_once()
    device.battery = battery(90, discharging=True)

    assert len(await monitor.poll_once()) == 1
    assert monitor.previous == device.battery
