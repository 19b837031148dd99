"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Settings Validation Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Queue Errors
    QUEUE_FULL = "Queue is full (max {max_size} tracks)"

    # Startup Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    VOICE_CLEANUP_ERROR = "Error during voice cleanup in guild %s"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    VOICE_CONNECTION_LOST = "Voice connection lost in guild %s, resetting engine"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_RESET = "Reset engine in guild %s"
    PLAYBACK_TRANSPORT_ERROR = "Transport error while playing '%s' in guild %s: %r"
    PLAYBACK_START_FAILED = "Failed to start '%s' in guild %s: %r"
    PLAYBACK_ALL_FAILED = "No playable track left in guild %s after %d attempts"
    PLAYBACK_STALE_SIGNAL = "Ignoring stale end signal for playback %s in guild %s (current %s)"
    PLAYBACK_CONNECT_FAILED = "Voice connect failed in guild %s: %s"

    # Track Operations
    TRACK_SKIPPED = "Skipped track: %s in guild %s"
    TRACK_FINISHED = "Track finished: %s in guild %s"
    TRACK_ENDED = "Track ended in guild %s (error: %s)"

    # Queue Operations
    QUEUE_EXHAUSTED = "Queue exhausted in guild %s"
    QUEUE_ENQUEUED = "Enqueued track '%s' at position %s in guild %s"
    QUEUE_REMOVED = "Removed track '%s' from queue in guild %s"
    QUEUE_CLEARED = "Cleared %s tracks from queue in guild %s"
    QUEUE_JUMPED = "Jumped to position %s in guild %s"

    # Loop Mode
    LOOP_MODE_CHANGED = "Loop mode changed to %s in guild %s"

    # Engine/Registry Lifecycle
    ENGINE_CREATED = "Created playback engine for guild %s"
    ENGINE_DISPOSED = "Disposed playback engine for guild %s"
    ENGINE_DISPOSE_ERROR = "Error while disposing engine for guild %s"
    ENGINE_COMMAND_FAILED = "Command %s failed in guild %s"
    ENGINE_WORKER_STOPPED = "Engine worker for guild %s stopped"

    # Event Bus
    EVENT_HANDLER_ERROR = "Error in handler for %s"
    EVENT_TRACK_STARTED = "Event: started '%s' (#%s) in guild %s"
    EVENT_TRACK_FAILED = "Event: '%s' failed in guild %s"
    EVENT_QUEUE_EXHAUSTED = "Event: queue exhausted after '%s' in guild %s"
    EVENT_PLAYBACK_STOPPED = "Event: playback stopped in guild %s (%s)"
    EVENT_ANNOUNCE_FAILED = "Failed to post announcement in channel %s: %s"

    # Resolution/Search
    YTDLP_NO_URL_IN_INFO_DICT = "No URL found in info dict"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"

    # Application Lifecycle
    BOT_STARTING = "Starting sayu-player in {environment} mode"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_GUILD_JOINED = "Joined guild %s (#%s)"
    BOT_GUILD_REMOVED = "Removed from guild %s (#%s)"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_SYNCED_GUILD = "Synced %s commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %s commands globally"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync commands globally: %s"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s': %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    """

    # Action Messages
    ACTION_NOW_PLAYING = "▶️ Now playing: **{title}**"
    ACTION_QUEUED = "➕ Queued **{title}** at position {position}"
    ACTION_SKIPPED_NEXT = "⏭️ Skipped **{title}**. Now playing: **{next_title}**"
    ACTION_SKIPPED_END = "⏭️ Skipped **{title}**. Nothing left to play."
    ACTION_STOPPED = "⏹️ Stopped playback and cleared the queue."
    ACTION_LEFT = "👋 Left the voice channel."
    ACTION_JOINED = "🔊 Joined the voice channel."
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."
    ACTION_TRACK_REMOVED = "🗑️ Removed **{title}** from the queue."
    ACTION_QUEUE_CLEARED = "🗑️ Cleared {count} tracks from the queue."
    ACTION_JUMPED = "⏩ Jumped to **{title}**."

    LOOP_MODE_SET = {
        "none": "🔁 Loop disabled.",
        "track": "🔂 Looping the current track.",
        "queue": "🔁 Looping the whole queue.",
    }

    # State Messages
    STATE_QUEUE_EMPTY = "The queue is empty."
    STATE_NOTHING_PLAYING = "Nothing is playing."
    STATE_NOTHING_PAUSED = "Nothing is paused."
    STATE_NEED_TO_BE_IN_VOICE = "You need to be in a voice channel first."
    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_NOW_PLAYING_MARKER = "▶"

    # Help Messages
    HELP_HEADER = "📖 **/{group}** commands"
    HELP_LINE = "`/{group} {name}`: {description}"
    HELP_MORE = "Full guide: <{url}>"
    SOURCE_CODE = "📦 Source code: <{url}>"

    # Announcements
    ANNOUNCE_TRACK_FAILED = "⚠️ Couldn't play **{title}**, moving on."

    # Error Messages
    ERROR_OUT_OF_RANGE = "There is no track at position {position}."
    ERROR_EMPTY_QUEUE = "There is nothing in the queue to do that with."
    ERROR_NOT_CONNECTED = "I'm not connected to a voice channel."
    ERROR_CONNECTION_TIMEOUT = "I couldn't join your voice channel in time. Try again."
    ERROR_ALREADY_CONNECTED_ELSEWHERE = "I'm already playing in another voice channel."
    ERROR_PERMISSION_DENIED = "I don't have permission to join that voice channel."
    ERROR_TRACK_NOT_FOUND = "Couldn't find a track for: {query}"
    ERROR_RESOLUTION = "Something went wrong looking up: {query}"
    ERROR_INVALID_OPERATION = "That can't be done right now."
    ERROR_QUEUE_FULL = "The queue is full."
    ERROR_ENGINE_CLOSED = "The player for this server is shutting down. Try again."
    ERROR_OCCURRED = "An error occurred: {error}"
