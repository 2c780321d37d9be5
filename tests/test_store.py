import asyncio

import pytest

from conftest import battery, modem
from liveu_stats_bot.core import BatterySnapshot
from liveu_stats_bot.telemetry import TelemetryStore


@pytest.mark.asyncio
async def test_store_starts_zeroed():
    store = TelemetryStore()

    snapshot = await store.snapshot()

    assert snapshot.modems == ()
    assert snapshot.total_uplink_kbps == 0
    assert snapshot.battery.is_unknown
    assert snapshot.external_bitrate_kbps == 0


@pytest.mark.asyncio
async def test_replace_modems_recomputes_total():
    store = TelemetryStore()

    total = await store.replace_modems([modem("usb1", 1200), modem("wifi", 800)])
    modems, stored_total = await store.modems()

    assert total == 2000
    assert stored_total == 2000
    assert [item.port for item in modems] == ["usb1", "wifi"]

    await store.clear_modems()
    assert await store.modems() == ((), 0)


@pytest.mark.asyncio
async def test_field_groups_are_independent():
    store = TelemetryStore()

    await store.replace_modems([modem("usb1", 500)])
    await store.replace_battery(battery(80, charging=True))
    await store.replace_external_bitrate(4200)
    await store.replace_battery(BatterySnapshot.unknown())

    snapshot = await store.snapshot()
    assert snapshot.total_uplink_kbps == 500
    assert snapshot.battery.is_unknown
    assert snapshot.external_bitrate_kbps == 4200
    assert await store.external_bitrate() == 4200


@pytest.mark.asyncio
async def test_concurrent_writers_never_expose_partial_modem_lists():
    store = TelemetryStore()
    lists = [
        [modem("usb1", 100), modem("usb2", 100)],
        [modem("wifi", 300)],
    ]
    seen = []

    async def writer(index: int) -> None:
        for _ in range(50):
            await store.replace_modems(lists[index % 2])
            await asyncio.sleep(0)

    async def reader() -> None:
        for _ in range(100):
            modems, total = await store.modems()
            seen.append((len(modems), total))
            await asyncio.sleep(0)

    await asyncio.gather(writer(0), writer(1), reader())

    assert set(seen) <= {(0, 0), (2, 200), (1, 300)}


@pytest.mark.asyncio
async def test_snapshot_as_dict_uses_camel_case():
    store = TelemetryStore()
    await store.replace_modems([modem("usb1", 1500, technology="LTE", is_roaming=True)])
    await store.replace_battery(battery(55, discharging=True, minutes=65))
    await store.replace_external_bitrate(3000)

    payload = (await store.snapshot()).as_dict()

    assert payload["totalBitrate"] == 1500
    assert payload["srtBitrate"] == 3000
    assert payload["modems"] == [
        {
            "port": "usb1",
            "uplinkKbps": 1500,
            "connected": True,
            "enabled": True,
            "technology": "LTE",
            "isRoaming": True,
        }
    ]
    assert payload["battery"] == {
        "connected": True,
        "percentage": 55,
        "minutesToEmpty": 65,
        "charging": False,
        "discharging": True,
    }
