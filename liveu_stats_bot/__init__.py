"""Twitch chat bot and stats endpoint for LiveU bonding units."""

__version__ = "0.1.0"
