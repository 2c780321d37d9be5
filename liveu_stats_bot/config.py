"""Configuration loader for liveu-stats-bot."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from . import constants

DEFAULT_BATTERY_NOTIFICATIONS = [99, 66, 33, 10, 5, 1]

DEFAULT_STATS_COMMANDS = ["!lustats", "!liveustats", "!lus"]
DEFAULT_BATTERY_COMMANDS = ["!battery", "!liveubattery", "!lub"]


class ConfigurationError(RuntimeError):
    """Raised when required settings are missing."""


@dataclass(slots=True)
class LiveuConfig:
    email: str = ""
    password: str = ""
    id: Optional[str] = None
    base_url: str = constants.DEFAULT_LIVEU_API_URL
    auth_url: str = constants.DEFAULT_LIVEU_AUTH_URL
    application_id: str = constants.DEFAULT_LIVEU_APPLICATION_ID


@dataclass(slots=True)
class MonitorConfig:
    modems: bool = True
    battery: bool = True
    battery_notification: List[int] = field(
        default_factory=lambda: list(DEFAULT_BATTERY_NOTIFICATIONS)
    )
    modem_interval_seconds: float = 10.0
    battery_interval_seconds: float = 10.0
    srt_interval_seconds: float = 1.0


@dataclass(slots=True)
class TwitchConfig:
    bot_username: str = ""
    bot_oauth: str = ""
    channel: str = ""
    mod_only: bool = False
    admin_users: List[str] = field(default_factory=list)
    url: str = constants.DEFAULT_TWITCH_IRC_URL


@dataclass(slots=True)
class CommandsConfig:
    cooldown: float = 5.0
    stats: List[str] = field(default_factory=lambda: list(DEFAULT_STATS_COMMANDS))
    battery: List[str] = field(
        default_factory=lambda: list(DEFAULT_BATTERY_COMMANDS)
    )
    start: str = "!lustart"
    stop: str = "!lustop"
    restart: str = "!lurestart"
    reboot: str = "!lureboot"
    delay: str = "!ludelay"


@dataclass(slots=True)
class SrtConfig:
    url: str
    publisher: str


@dataclass(slots=True)
class RtmpConfig:
    url: str
    application: str
    key: str


@dataclass(slots=True)
class ServerConfig:
    enabled: bool = False
    host: str = constants.DEFAULT_SERVER_HOST
    port: int = constants.DEFAULT_SERVER_PORT


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(slots=True)
class BotConfig:
    liveu: LiveuConfig
    monitor: MonitorConfig
    twitch: TwitchConfig
    commands: CommandsConfig
    server: ServerConfig
    logging: LoggingConfig
    raw: ConfigParser
    path: Path
    srt: Optional[SrtConfig] = None
    rtmp: Optional[RtmpConfig] = None
    custom_port_names: Dict[str, str] = field(default_factory=dict)
    lang: str = "en"

    def validate(self) -> None:
        """Ensure the settings needed to run the bot are present."""

        missing = [
            name
            for name, value in (
                ("liveu.email", self.liveu.email),
                ("liveu.password", self.liveu.password),
                ("twitch.bot_username", self.twitch.bot_username),
                ("twitch.bot_oauth", self.twitch.bot_oauth),
                ("twitch.channel", self.twitch.channel),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required settings in {self.path}: {', '.join(missing)}"
            )


def _parse_list(value: str, *, default: Iterable[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_percentages(value: str) -> List[int]:
    percentages: List[int] = []
    for item in _parse_list(value, default=()):
        try:
            percentage = int(item)
        except ValueError:
            continue
        if 0 <= percentage <= 100:
            percentages.append(percentage)
    return percentages


def load_config(path: Optional[Path] = None) -> BotConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "general": {"lang": "en"},
            "liveu": {
                "email": "",
                "password": "",
                "base_url": constants.DEFAULT_LIVEU_API_URL,
                "auth_url": constants.DEFAULT_LIVEU_AUTH_URL,
                "application_id": constants.DEFAULT_LIVEU_APPLICATION_ID,
            },
            "monitor": {
                "modems": "true",
                "battery": "true",
                "battery_notification": ",".join(
                    str(item) for item in DEFAULT_BATTERY_NOTIFICATIONS
                ),
                "modem_interval_seconds": "10",
                "battery_interval_seconds": "10",
                "srt_interval_seconds": "1",
            },
            "twitch": {
                "bot_username": "",
                "bot_oauth": "",
                "channel": "",
                "mod_only": "false",
                "admin_users": "",
                "url": constants.DEFAULT_TWITCH_IRC_URL,
            },
            "commands": {
                "cooldown": "5",
                "stats": ",".join(DEFAULT_STATS_COMMANDS),
                "battery": ",".join(DEFAULT_BATTERY_COMMANDS),
                "start": "!lustart",
                "stop": "!lustop",
                "restart": "!lurestart",
                "reboot": "!lureboot",
                "delay": "!ludelay",
            },
            "server": {
                "enabled": "false",
                "host": constants.DEFAULT_SERVER_HOST,
                "port": str(constants.DEFAULT_SERVER_PORT),
            },
            "logging": {
                "level": "INFO",
                "path": "",
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    liveu = LiveuConfig(
        email=parser.get("liveu", "email"),
        password=parser.get("liveu", "password"),
        id=parser.get("liveu", "id", fallback=None) or None,
        base_url=parser.get("liveu", "base_url"),
        auth_url=parser.get("liveu", "auth_url"),
        application_id=parser.get("liveu", "application_id"),
    )

    monitor_defaults = MonitorConfig()
    monitor = MonitorConfig(
        modems=parser.getboolean("monitor", "modems", fallback=True),
        battery=parser.getboolean("monitor", "battery", fallback=True),
        battery_notification=_parse_percentages(
            parser.get("monitor", "battery_notification", fallback="")
        ),
        modem_interval_seconds=max(
            0.1,
            parser.getfloat(
                "monitor",
                "modem_interval_seconds",
                fallback=monitor_defaults.modem_interval_seconds,
            ),
        ),
        battery_interval_seconds=max(
            0.1,
            parser.getfloat(
                "monitor",
                "battery_interval_seconds",
                fallback=monitor_defaults.battery_interval_seconds,
            ),
        ),
        srt_interval_seconds=max(
            0.1,
            parser.getfloat(
                "monitor",
                "srt_interval_seconds",
                fallback=monitor_defaults.srt_interval_seconds,
            ),
        ),
    )

    oauth = parser.get("twitch", "bot_oauth")
    if oauth.startswith("oauth:"):
        oauth = oauth[len("oauth:"):]

    twitch = TwitchConfig(
        bot_username=parser.get("twitch", "bot_username").lower(),
        bot_oauth=oauth,
        channel=parser.get("twitch", "channel").lower().lstrip("#"),
        mod_only=parser.getboolean("twitch", "mod_only", fallback=False),
        admin_users=[
            user.lower()
            for user in _parse_list(
                parser.get("twitch", "admin_users", fallback=""), default=()
            )
        ],
        url=parser.get("twitch", "url"),
    )

    commands = CommandsConfig(
        cooldown=max(0.0, parser.getfloat("commands", "cooldown", fallback=5.0)),
        stats=_parse_list(
            parser.get("commands", "stats"), default=DEFAULT_STATS_COMMANDS
        ),
        battery=_parse_list(
            parser.get("commands", "battery"), default=DEFAULT_BATTERY_COMMANDS
        ),
        start=parser.get("commands", "start").strip(),
        stop=parser.get("commands", "stop").strip(),
        restart=parser.get("commands", "restart").strip(),
        reboot=parser.get("commands", "reboot").strip(),
        delay=parser.get("commands", "delay").strip(),
    )

    srt: Optional[SrtConfig] = None
    srt_url = parser.get("srt", "url", fallback="")
    if srt_url:
        srt = SrtConfig(
            url=srt_url,
            publisher=parser.get("srt", "publisher", fallback=""),
        )

    rtmp: Optional[RtmpConfig] = None
    rtmp_url = parser.get("rtmp", "url", fallback="")
    if rtmp_url:
        rtmp = RtmpConfig(
            url=rtmp_url,
            application=parser.get("rtmp", "application", fallback="publish"),
            key=parser.get("rtmp", "key", fallback="live"),
        )

    custom_port_names: Dict[str, str] = {}
    if parser.has_section("custom_port_names"):
        for port, name in parser.items("custom_port_names"):
            if name.strip():
                custom_port_names[port] = name.strip()

    server = ServerConfig(
        enabled=parser.getboolean("server", "enabled", fallback=False),
        host=parser.get("server", "host", fallback=constants.DEFAULT_SERVER_HOST),
        port=parser.getint("server", "port", fallback=constants.DEFAULT_SERVER_PORT),
    )

    log_path_value = parser.get("logging", "path", fallback="")
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return BotConfig(
        liveu=liveu,
        monitor=monitor,
        twitch=twitch,
        commands=commands,
        server=server,
        logging=logging_config,
        raw=parser,
        path=config_path,
        srt=srt,
        rtmp=rtmp,
        custom_port_names=custom_port_names,
        lang=parser.get("general", "lang", fallback="en").strip() or "en",
    )


def save_config(config: BotConfig) -> None:
    """Persist the current configuration to disk."""

    config_path = config.path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as stream:
        config.raw.write(stream)
