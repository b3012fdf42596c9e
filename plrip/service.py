import time
from pathlib import Path
from typing import Callable, Optional, Protocol

from plrip.config import PlaylistSnapshot, SyncConfig
from plrip.constants import get_logger
from plrip.errorlog import ErrorLog
from plrip.exceptions import DownloadError, PlripError, ResolveError, TranscodeError
from plrip.library import DirectoryLibrary, DuplicateDetector
from plrip.models import PassResult, Track
from plrip.retry import retry_with_backoff

logger = get_logger("service")


class PlaylistSource(Protocol):
    def get_playlist_records(self, playlist: str) -> list[dict]: ...


class Resolver(Protocol):
    def resolve(self, track: Track) -> str: ...


class Downloader(Protocol):
    def download(self, url: str, output_dir: Path) -> Optional[Path]: ...


class Transcoder(Protocol):
    def transcode(self, source: Path, destination: Path, tags: Optional[dict] = None) -> Path: ...


class Outcome:
    INVALID = "invalid"
    EXISTING = "existing"
    DOWNLOADED = "downloaded"
    FAILED = "failed"


class SyncService:
    """
    Mirrors one playlist into the output directory.

    A pass walks the playlist in order and, for each track not already on
    disk, resolves it to Tidal, downloads the lossless file, converts it to
    the target format and removes the lossless file. Any collaborator failure
    is written to the error log and the pass carries on with the next track.
    """

    def __init__(
        self,
        config: SyncConfig,
        source: PlaylistSource,
        resolver: Resolver,
        downloader: Downloader,
        transcoder: Transcoder,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.source = source
        self.resolver = resolver
        self.downloader = downloader
        self.transcoder = transcoder
        self.sleep = sleep
        self.library = DirectoryLibrary(config.output_dir)
        self.detector = DuplicateDetector(self.library, config.match)
        self.errors = ErrorLog(config.error_log_path)
        self.snapshot = PlaylistSnapshot(config.snapshot_path)

    def run_forever(self) -> None:
        hours = self.config.sync_interval / 3600
        while True:
            try:
                result = self.sync_pass()
                logger.info(f"Sync completed: {result.summary()}")
            except PlripError as e:
                logger.error(f"Sync pass aborted: {e}")

            logger.info(f"Waiting {self.config.sync_interval:.0f} seconds ({hours:g} hours) before next sync...")
            self.sleep(self.config.sync_interval)

    def sync_pass(self) -> PassResult:
        logger.info(f"Syncing tracks from playlist: {self.config.playlist}")
        records = self.source.get_playlist_records(self.config.playlist)

        tracks = [track for track in map(Track.from_record, records) if track]
        added, removed = self.snapshot.diff(tracks)
        logger.info(f"Playlist has {len(tracks)} tracks ({len(added)} added, {len(removed)} removed since last pass)")

        result = PassResult()
        for record in records:
            outcome = self.process_record(record)
            result.record(outcome)
            if outcome == Outcome.FAILED:
                result.failures.append(str(Track.from_record(record)))

        result.recovered = self.cleanup()
        self.snapshot.save(tracks)
        return result

    def process_record(self, record: dict) -> str:
        track = Track.from_record(record)
        if track is None:
            logger.warning(f"Skipping invalid track data: {record}")
            return Outcome.INVALID

        logger.info(f"Processing: {track}")
        try:
            if self.already_downloaded(track):
                logger.info(f"File already exists in output directory, skipping: {track}")
                return Outcome.EXISTING
            return self.process_track(track)
        finally:
            logger.debug(f"Waiting {self.config.track_delay:.0f} seconds before processing next track...")
            self.sleep(self.config.track_delay)

    def already_downloaded(self, track: Track) -> bool:
        if self.detector.exists(track.artist, track.title):
            return True
        # Names too short for prefix matching: only the exact output name counts
        if not self.detector.has_reliable_keys(track.artist, track.title):
            return (self.config.output_dir / track.filename(self.config.target_ext)).exists()
        return False

    def process_track(self, track: Track) -> str:
        """Resolve, download and convert one track that is not on disk yet."""
        try:
            tidal_url = self.resolve(track)
        except ResolveError as e:
            self.errors.record(
                f"Failed to convert to Tidal URL after {self.config.max_resolve_attempts} attempts: "
                f"{track} ({track.source_url}). Error: {e}"
            )
            return Outcome.FAILED
        logger.info(f"Resolved {track} to {tidal_url}")

        try:
            reported = self.downloader.download(tidal_url, self.config.output_dir)
        except DownloadError as e:
            self.errors.record(f"Failed to download track: {track} ({tidal_url}). Error: {e}")
            return Outcome.FAILED

        lossless = self.locate_download(reported)
        if lossless is None:
            self.errors.record(
                f"Download reported success but no .{self.config.lossless_ext} file was found: "
                f"{track} ({tidal_url})"
            )
            return Outcome.FAILED

        destination = self.config.output_dir / track.filename(self.config.target_ext)
        if not self.convert(lossless, destination, {"artist": track.artist, "title": track.title}):
            return Outcome.FAILED

        logger.info(f"Successfully processed: {track}")
        return Outcome.DOWNLOADED

    def resolve(self, track: Track) -> str:
        attempt = retry_with_backoff(
            max_attempts=self.config.max_resolve_attempts,
            base_delay=self.config.resolve_retry_delay,
            max_delay=self.config.resolve_retry_delay,
            exceptions=(ResolveError,),
            factor=1.0,
            jitter=False,
            reraise=True,
            sleep=self.sleep,
        )(self.resolver.resolve)
        logger.info(f"Converting Spotify URL to Tidal URL: {track.source_url}")
        return attempt(track)

    def locate_download(self, reported: Optional[Path]) -> Optional[Path]:
        """The downloader's own path if it is on disk, else the newest lossless file in the output directory."""
        if reported is not None:
            reported = Path(reported)
            if reported.is_file():
                return reported
            logger.warning(f"Downloader path does not exist: {reported}; falling back to newest file")
        return self.library.newest(self.config.lossless_ext)

    def convert(self, source: Path, destination: Path, tags: Optional[dict] = None) -> bool:
        """Transcode and drop the source once the destination exists. Failures go to the error log."""
        try:
            self.transcoder.transcode(source, destination, tags or {})
        except TranscodeError as e:
            self.errors.record(f"Conversion failed, keeping {source}: {e}")
            return False

        if not destination.exists():
            self.errors.record(f"Conversion failed, keeping {source}: expected {destination.name}")
            return False

        try:
            source.unlink()
        except OSError as e:
            logger.warning(f"Could not delete {source}: {e}")
        return True

    def cleanup(self) -> int:
        """Convert lossless leftovers (e.g. from a crashed run). Returns how many were converted."""
        recovered = 0
        for path in self.library.files(self.config.lossless_ext):
            destination = path.with_suffix(f".{self.config.target_ext}")
            if destination.exists():
                logger.info(f"{destination.name} already exists, removing leftover {path.name}")
                try:
                    path.unlink()
                except OSError as e:
                    logger.warning(f"Could not delete {path}: {e}")
                continue
            logger.info(f"Converting leftover file: {path.name}")
            if self.convert(path, destination):
                recovered += 1
        return recovered
