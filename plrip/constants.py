"""Constants and logging setup for the playlist ripper."""

import logging
import sys

APP_NAME = "plrip"

# --- Schedule ---
TRACK_WAIT_SEC = 120.0        # Pause after every valid playlist track
SYNC_INTERVAL_SEC = 14400.0   # 4 hours between playlist passes

# --- Retry ---
RESOLVE_MAX_ATTEMPTS = 3
RESOLVE_RETRY_DELAY_SEC = 30.0
RETRY_MAX_ATTEMPTS = 3
RETRY_BASE_DELAY_SEC = 1.0
RETRY_MAX_DELAY_SEC = 10.0

# --- Matching ---
ARTIST_MATCH_LENGTH = 3
TITLE_MATCH_LENGTH = 5

# --- Formats ---
LOSSLESS_EXT = "flac"
TARGET_EXT = "wav"
TARGET_CODEC = "pcm_s16le"

# --- External tools ---
DEFAULT_PLAYLIST_COMMAND = "python /app/spotify-playlist/spotify-playlist.py {playlist} {client_id} {client_secret}"
DEFAULT_RESOLVER_COMMAND = "python /app/spotify-to-tidal/spotify-to-tidal.py {url}"
DEFAULT_DOWNLOADER_COMMAND = "python /app/tidalrip/tidalrip.py {url} -o {output_dir}"
FFMPEG_BINARY = "ffmpeg"

# --- Logging ---
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    logger = logging.getLogger(APP_NAME)
    logger.setLevel(level)

    # Suppress noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("spotipy").setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module."""
    return logging.getLogger(f"{APP_NAME}.{name}")
