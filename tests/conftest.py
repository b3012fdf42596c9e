"""Test configuration and fixtures"""

from pathlib import Path

import pytest

from plrip.config import SyncConfig
from plrip.exceptions import DownloadError, PlaylistError, ResolveError, TranscodeError


class FakeSource:
    def __init__(self, records=None, error=None):
        self.records = records or []
        self.error = error
        self.calls = 0

    def get_playlist_records(self, playlist):
        self.calls += 1
        if self.error:
            raise PlaylistError(self.error)
        return list(self.records)


class FakeResolver:
    """Per source URL, a list of outcomes: a URL string or an error message prefixed with '!'."""

    def __init__(self, outcomes=None, default="https://tidal.com/browse/track/1"):
        self.outcomes = {url: list(values) for url, values in (outcomes or {}).items()}
        self.default = default
        self.calls = []

    def resolve(self, track):
        self.calls.append(track.source_url)
        queue = self.outcomes.get(track.source_url)
        if not queue:
            return self.default
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if outcome.startswith("!"):
            raise ResolveError(outcome[1:])
        return outcome


class FakeDownloader:
    """Writes a .flac into the output directory like the real downloader would."""

    def __init__(self, report_path=True, write_file=True, error=None, name="download.flac"):
        self.report_path = report_path
        self.write_file = write_file
        self.error = error
        self.name = name
        self.calls = []

    def download(self, url, output_dir):
        self.calls.append(url)
        if self.error:
            raise DownloadError(self.error)
        path = Path(output_dir) / self.name
        if self.write_file:
            path.write_bytes(b"fLaC")
        return path if self.report_path else None


class FakeTranscoder:
    def __init__(self, error=None, write_output=True):
        self.error = error
        self.write_output = write_output
        self.calls = []

    def transcode(self, source, destination, tags=None):
        self.calls.append((Path(source), Path(destination), dict(tags or {})))
        if self.error:
            raise TranscodeError(self.error)
        if self.write_output:
            Path(destination).write_bytes(b"RIFF")
        return Path(destination)


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "music"
    path.mkdir()
    return path


@pytest.fixture
def config(output_dir):
    return SyncConfig(
        playlist="https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M",
        output_dir=output_dir,
        client_id="id",
        client_secret="secret",
        track_delay=120,
        sync_interval=14400,
        max_resolve_attempts=3,
        resolve_retry_delay=30,
    )


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def sample_record():
    return {
        "artist": "The Beatles",
        "name": "Hey Jude",
        "url": "https://open.spotify.com/track/0aym2LBJBk9DAYuHHutrIl",
    }


def error_lines(config):
    if not config.error_log_path.exists():
        return []
    return config.error_log_path.read_text().splitlines()
