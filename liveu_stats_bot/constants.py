"""Constants used across the liveu-stats-bot package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "liveu-stats-bot"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_LIVEU_API_URL = "https://lu-central.liveu.tv/luc/luc-core-web/rest/v0"
DEFAULT_LIVEU_AUTH_URL = "https://solo-api.liveu.tv/v0_1/zendesk/userlogin"
DEFAULT_LIVEU_APPLICATION_ID = "SlY3H7y1KCp4F1Fa9Wkk"

DEFAULT_TWITCH_IRC_URL = "wss://irc-ws.chat.twitch.tv:443"

DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 8183

# Percentage reported when the battery is unknown or the unit is offline.
BATTERY_SENTINEL = 255

LOW_DELAY_MS = 1000
HIGH_RESILIENCY_DELAY_MS = 5000
