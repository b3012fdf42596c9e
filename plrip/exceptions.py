"""
Exceptions raised by plrip.

    PlripError (base)
        ConfigError - bad arguments or settings, fatal at startup
        PlaylistError - the playlist could not be fetched
        ResolveError - a source URL could not be mapped to Tidal
        DownloadError - the downloader reported a failure
        TranscodeError - ffmpeg failed or produced nothing

Everything below ConfigError is a track-level (or pass-level) failure: the
sync loop logs it and moves on.
"""


class PlripError(Exception):
    """Base exception carrying a human-readable message and optional context."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return str(self.message)


class ConfigError(PlripError):
    pass


class PlaylistError(PlripError):
    pass


class ResolveError(PlripError):
    pass


class DownloadError(PlripError):
    pass


class TranscodeError(PlripError):
    pass
