"""Core primitives for liveu-stats-bot."""

from .models import BatterySnapshot, ChatMessage, Delay, ModemInterface, VideoState
from .protocols import BitrateSource, ChatClient, DeviceClient

__all__ = [
    "BatterySnapshot",
    "BitrateSource",
    "ChatClient",
    "ChatMessage",
    "Delay",
    "DeviceClient",
    "ModemInterface",
    "VideoState",
]
