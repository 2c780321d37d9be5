"""Adapter modules for external integrations."""

from .liveu import LiveuAuthenticationError, LiveuClient, LiveuError, select_unit_id
from .nginx import RtmpStatsClient
from .srt import BitrateSourceError, SrtStatsClient
from .twitch import ChatAuthenticationError, ChatError, TwitchChatClient

__all__ = [
    "BitrateSourceError",
    "ChatAuthenticationError",
    "ChatError",
    "LiveuAuthenticationError",
    "LiveuClient",
    "LiveuError",
    "RtmpStatsClient",
    "SrtStatsClient",
    "TwitchChatClient",
    "select_unit_id",
]
