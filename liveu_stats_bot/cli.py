"""Command-line interface for liveu-stats-bot."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from . import constants
from .app import StatsBotApp
from .config import BotConfig, ConfigurationError, load_config, save_config

LOGGER = logging.getLogger(__name__)

_SECRET_KEYS = {("liveu", "password"), ("twitch", "bot_oauth")}

# (section, option, prompt)
_INIT_PROMPTS = (
    ("liveu", "email", "LiveU email"),
    ("liveu", "password", "LiveU password"),
    ("twitch", "bot_username", "Twitch bot username"),
    ("twitch", "bot_oauth", "Twitch bot oauth token (https://twitchapps.com/tmi/)"),
    ("twitch", "channel", "Twitch channel to join"),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="liveu-stats-bot", description="Twitch chat bot for LiveU units"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("start", help="Start the bot")
    subparsers.add_parser("init", help="Interactively create the configuration file")
    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def prompt_settings(
    config: BotConfig, ask: Optional[Callable[[str], str]] = None
) -> None:
    """Ask for the required settings, keeping current values on empty input."""

    ask = ask or input

    for section, option, label in _INIT_PROMPTS:
        current = config.raw.get(section, option, fallback="")
        shown = mask(current) if (section, option) in _SECRET_KEYS else current
        suffix = f" [{shown}]" if current else ""
        answer = ask(f"{label}{suffix}: ").strip()
        if answer:
            config.raw.set(section, option, answer)


def mask(value: str) -> str:
    if not value:
        return ""
    return "*" * 8


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)

    if args.command == "start":
        try:
            config.validate()
        except ConfigurationError as exc:
            LOGGER.error("%s (run `liveu-stats-bot init` first)", exc)
            return 1
        return StatsBotApp.start(config)

    if args.command == "init":
        prompt_settings(config)
        save_config(config)
        print(f"Configuration saved to {config.path!s}")
        return 0

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                if (section, key) in _SECRET_KEYS:
                    value = mask(value)
                print(f"{key} = {value}")
            print()
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
