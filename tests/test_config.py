from pathlib import Path

import pytest

from conftest import write_config
from liveu_stats_bot.config import (
    DEFAULT_BATTERY_COMMANDS,
    DEFAULT_STATS_COMMANDS,
    ConfigurationError,
    load_config,
    save_config,
)


def test_load_config_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.cfg")

    assert config.liveu.base_url.startswith("https://")
    assert config.liveu.id is None
    assert config.monitor.modems is True
    assert config.monitor.battery is True
    assert config.monitor.battery_notification == [99, 66, 33, 10, 5, 1]
    assert config.monitor.modem_interval_seconds == 10.0
    assert config.monitor.srt_interval_seconds == 1.0
    assert config.commands.cooldown == 5.0
    assert config.commands.stats == DEFAULT_STATS_COMMANDS
    assert config.commands.battery == DEFAULT_BATTERY_COMMANDS
    assert config.commands.start == "!lustart"
    assert config.twitch.mod_only is False
    assert config.server.enabled is False
    assert config.srt is None
    assert config.rtmp is None
    assert config.lang == "en"


def test_load_config_normalises_twitch_settings(tmp_path: Path) -> None:
    config = write_config(tmp_path / "bot.cfg")

    assert config.twitch.bot_username == "statsbot"
    assert config.twitch.bot_oauth == "abc123"
    assert config.twitch.channel == "streamer"
    assert config.twitch.admin_users == ["trusted", "helper"]


def test_load_config_optional_sections(tmp_path: Path) -> None:
    config = write_config(
        tmp_path / "bot.cfg",
        """
[general]
lang = de

[monitor]
battery_notification = 50, 20, abc, 150
modems = false

[commands]
cooldown = 10
stats = !s, !stats

[srt]
url = http://localhost:8181/stats
publisher = live/feed1

[rtmp]
url = http://localhost/stat

[custom_port_names]
ethernet = LAN
usb1 = Vodafone

[server]
enabled = true
port = 9000
""",
    )

    assert config.lang == "de"
    assert config.monitor.battery_notification == [50, 20]
    assert config.monitor.modems is False
    assert config.commands.cooldown == 10.0
    assert config.commands.stats == ["!s", "!stats"]
    assert config.srt is not None
    assert config.srt.publisher == "live/feed1"
    assert config.rtmp is not None
    assert config.rtmp.application == "publish"
    assert config.rtmp.key == "live"
    assert config.custom_port_names == {"ethernet": "LAN", "usb1": "Vodafone"}
    assert config.server.enabled is True
    assert config.server.port == 9000


def test_validate_reports_missing_settings(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.cfg")

    with pytest.raises(ConfigurationError) as excinfo:
        config.validate()

    assert "liveu.email" in str(excinfo.value)
    assert "twitch.channel" in str(excinfo.value)


def test_validate_accepts_complete_config(tmp_path: Path) -> None:
    write_config(tmp_path / "bot.cfg").validate()


def test_save_config_round_trips_raw_values(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "bot.cfg"
    config = load_config(path)
    config.raw.set("liveu", "email", "me@example.com")

    save_config(config)

    assert path.exists()
    assert load_config(path).liveu.email == "me@example.com"
