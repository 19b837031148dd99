#!/usr/bin/env python3
"""Process entry point: configure logging, build the container and run the bot."""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from sayu_player.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from sayu_player.config.settings import Settings
    from sayu_player.infrastructure.discord.bot import MusicBot

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _load_logging_config(config_path: Path) -> dict | None:
    try:
        with open(config_path) as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return None


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    """Apply ``logging_config.json`` and force both the root and package loggers to ``log_level``."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    config = _load_logging_config(config_path)

    configured = False
    if config is not None:
        try:
            logging.config.dictConfig(config)
            configured = True
        except ValueError:
            pass
    if not configured:
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.warning("Could not load %s, falling back to basic config", config_path)

    logging.getLogger().setLevel(level)
    logging.getLogger("sayu_player").setLevel(level)


def _build_bot(settings: Settings) -> MusicBot:
    from sayu_player.config.container import create_container
    from sayu_player.infrastructure.discord.bot import create_bot

    return create_bot(create_container(settings), settings)


def main() -> int:
    from sayu_player.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    bot = _build_bot(settings)

    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return 0


def cli() -> None:
    """Console script entry point (``sayu-player``)."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
