"""Configuration and the playlist snapshot file."""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from plrip.constants import (
    APP_NAME,
    ARTIST_MATCH_LENGTH,
    DEFAULT_DOWNLOADER_COMMAND,
    DEFAULT_PLAYLIST_COMMAND,
    DEFAULT_RESOLVER_COMMAND,
    LOSSLESS_EXT,
    RESOLVE_MAX_ATTEMPTS,
    RESOLVE_RETRY_DELAY_SEC,
    SYNC_INTERVAL_SEC,
    TARGET_EXT,
    TITLE_MATCH_LENGTH,
    TRACK_WAIT_SEC,
    get_logger,
)
from plrip.exceptions import ConfigError
from plrip.models import Track

logger = get_logger("config")


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}")


@dataclass(frozen=True)
class MatchSettings:
    """Prefix lengths used by the duplicate detector."""

    artist_length: int = ARTIST_MATCH_LENGTH
    title_length: int = TITLE_MATCH_LENGTH
    target_ext: str = TARGET_EXT


@dataclass
class SyncConfig:
    """
    Everything the sync loop needs, with the defaults it runs with.

    Delays are in seconds. ``output_dir`` must already exist; ``validate``
    raises ConfigError otherwise.
    """

    playlist: str
    output_dir: Path
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    track_delay: float = TRACK_WAIT_SEC
    sync_interval: float = SYNC_INTERVAL_SEC
    max_resolve_attempts: int = RESOLVE_MAX_ATTEMPTS
    resolve_retry_delay: float = RESOLVE_RETRY_DELAY_SEC
    lossless_ext: str = LOSSLESS_EXT
    match: MatchSettings = field(default_factory=MatchSettings)
    playlist_command: str = DEFAULT_PLAYLIST_COMMAND
    resolver_command: str = DEFAULT_RESOLVER_COMMAND
    downloader_command: str = DEFAULT_DOWNLOADER_COMMAND
    command_timeout: Optional[float] = None
    app_name: str = APP_NAME

    def __post_init__(self) -> None:
        self.output_dir = Path(self.output_dir)

    @property
    def target_ext(self) -> str:
        return self.match.target_ext

    @property
    def error_log_path(self) -> Path:
        return self.output_dir / f"{self.app_name}_errors.log"

    @property
    def snapshot_path(self) -> Path:
        return self.output_dir / f".{self.app_name}_snapshot.json"

    def validate(self) -> None:
        if not self.playlist:
            raise ConfigError("A playlist URL or ID is required")
        if not self.output_dir.is_dir():
            raise ConfigError(
                f"Output directory does not exist: {self.output_dir}",
                details={"output_dir": str(self.output_dir)},
            )
        if self.max_resolve_attempts < 1:
            raise ConfigError("max_resolve_attempts must be at least 1")
        if min(self.track_delay, self.sync_interval, self.resolve_retry_delay) < 0:
            raise ConfigError("Delays cannot be negative")
        if self.match.artist_length < 1 or self.match.title_length < 1:
            raise ConfigError("Match prefix lengths must be at least 1")

    @classmethod
    def from_env(cls, **overrides) -> "SyncConfig":
        """Build a config from PLRIP_* / SPOTIFY_* environment variables; keyword arguments win."""
        values = {
            "playlist": os.environ.get("PLRIP_PLAYLIST", ""),
            "output_dir": os.environ.get("PLRIP_OUTPUT_DIR", ""),
            "client_id": os.environ.get("SPOTIFY_CLIENT_ID"),
            "client_secret": os.environ.get("SPOTIFY_CLIENT_SECRET"),
            "track_delay": _env_float("PLRIP_TRACK_DELAY", TRACK_WAIT_SEC),
            "sync_interval": _env_float("PLRIP_SYNC_INTERVAL", SYNC_INTERVAL_SEC),
            "max_resolve_attempts": int(_env_float("PLRIP_MAX_ATTEMPTS", RESOLVE_MAX_ATTEMPTS)),
            "resolve_retry_delay": _env_float("PLRIP_RETRY_DELAY", RESOLVE_RETRY_DELAY_SEC),
            "playlist_command": os.environ.get("PLRIP_PLAYLIST_COMMAND", DEFAULT_PLAYLIST_COMMAND),
            "resolver_command": os.environ.get("PLRIP_RESOLVER_COMMAND", DEFAULT_RESOLVER_COMMAND),
            "downloader_command": os.environ.get("PLRIP_DOWNLOADER_COMMAND", DEFAULT_DOWNLOADER_COMMAND),
        }
        timeout = os.environ.get("PLRIP_COMMAND_TIMEOUT")
        if timeout:
            values["command_timeout"] = _env_float("PLRIP_COMMAND_TIMEOUT", 0.0)
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


class PlaylistSnapshot:
    """
    Flat file with the track list seen on the previous pass.

    Only used to report what changed between passes; the output directory
    stays the authority on what has been downloaded.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> list[Track]:
        if not self.path.exists():
            return []
        try:
            with open(self.path) as f:
                data = json.load(f)
            return [Track(**item) for item in data.get("tracks", [])]
        except (json.JSONDecodeError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable snapshot {self.path}: {e}")
            return []

    def save(self, tracks: Iterable[Track]) -> None:
        data = {"tracks": [asdict(track) for track in tracks]}
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Snapshot saved to {self.path}")

    def diff(self, tracks: Iterable[Track]) -> tuple[list[Track], list[Track]]:
        """Return (added, removed) compared to the stored snapshot."""
        previous = self.load()
        current = list(tracks)
        previous_signatures = {track.signature for track in previous}
        current_signatures = {track.signature for track in current}
        added = [track for track in current if track.signature not in previous_signatures]
        removed = [track for track in previous if track.signature not in current_signatures]
        return added, removed
