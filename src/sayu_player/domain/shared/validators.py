"""Shared validators for Discord-specific values in settings and models."""

from sayu_player.domain.shared.messages import ErrorMessages

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def validate_discord_snowflake(value: int) -> int:
    """Validate a Discord snowflake ID.

    Discord snowflake IDs are 64-bit unsigned integers identifying guilds,
    channels, users and so on.

    Raises:
        ValueError: If the snowflake ID is invalid.
    """
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= 2**64:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


def validate_log_level(value: str) -> str:
    """Normalize a logging level name to upper case, rejecting unknown names."""
    upper = value.upper()
    if upper not in VALID_LOG_LEVELS:
        raise ValueError(
            ErrorMessages.INVALID_LOG_LEVEL.format(level=value, valid_levels=sorted(VALID_LOG_LEVELS))
        )
    return upper
