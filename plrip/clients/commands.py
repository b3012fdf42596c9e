"""
External tools driven as subprocesses.

Each tool prints a JSON-ish response on stdout, sometimes after its own log
output. ``parse_response`` takes the last line that decodes as a JSON object
and otherwise falls back to pulling ``"key": "value"`` pairs out of the text.
"""

import json
import re
import shlex
import subprocess
from pathlib import Path
from typing import Optional

from plrip.constants import get_logger
from plrip.exceptions import DownloadError, PlaylistError, PlripError, ResolveError

logger = get_logger("commands")

_PAIR = re.compile(r'"(\w+)"\s*:\s*"((?:[^"\\]|\\.)*)"')


def build_argv(template: str, **values: str) -> list[str]:
    """Split a command template and fill ``{placeholders}`` token by token."""
    return [token.format(**values) for token in shlex.split(template)]


def parse_response(text: str) -> dict:
    for line in reversed(text.strip().splitlines()):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    return {key: value for key, value in _PAIR.findall(text)}


def parse_records(text: str) -> list[dict]:
    """Playlist records: a JSON array, or one object per line."""
    stripped = text.strip()
    if stripped.startswith("["):
        try:
            data = json.loads(stripped)
            return [item if isinstance(item, dict) else {} for item in data]
        except json.JSONDecodeError:
            pass
    return [parse_response(line) for line in stripped.splitlines() if line.strip()]


def is_success(response: dict) -> bool:
    return response.get("status") == "success"


def error_message(response: dict, output: str) -> str:
    if response.get("message"):
        return str(response["message"])
    lines = output.strip().splitlines()
    return lines[-1] if lines else "no output"


class CommandRunner:
    """Runs one command template and returns its stdout."""

    def __init__(self, template: str, timeout: Optional[float] = None):
        self.template = template
        self.timeout = timeout

    def run(self, error_cls: type[PlripError] = PlripError, **values: str) -> str:
        argv = build_argv(self.template, **values)
        logger.debug(f"Running: {shlex.join(argv)}")
        try:
            result = subprocess.run(
                argv, capture_output=True, text=True, errors="replace", timeout=self.timeout, check=False
            )
        except FileNotFoundError:
            raise error_cls(f"Command not found: {argv[0]}", details={"argv": argv})
        except subprocess.TimeoutExpired:
            raise error_cls(f"Command timed out after {self.timeout}s: {argv[0]}", details={"argv": argv})
        except OSError as e:
            raise error_cls(f"Could not run {argv[0]}: {e}", details={"argv": argv})

        if result.stderr:
            logger.debug(f"{argv[0]} stderr: {result.stderr.strip()}")
        if result.returncode != 0 and not result.stdout.strip():
            raise error_cls(
                f"{argv[0]} exited with code {result.returncode}",
                details={"argv": argv, "stderr": result.stderr},
            )
        return result.stdout


class CommandPlaylistSource:
    def __init__(self, template: str, client_id: str = "", client_secret: str = "", timeout: Optional[float] = None):
        self.runner = CommandRunner(template, timeout)
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""

    def get_playlist_records(self, playlist: str) -> list[dict]:
        output = self.runner.run(
            PlaylistError,
            playlist=playlist,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )
        records = parse_records(output)
        logger.info(f"Playlist command returned {len(records)} records")
        return records


class CommandResolver:
    """Maps a Spotify track URL to a Tidal URL through an external converter."""

    def __init__(self, template: str, timeout: Optional[float] = None):
        self.runner = CommandRunner(template, timeout)

    def resolve(self, track) -> str:
        output = self.runner.run(ResolveError, url=track.source_url)
        logger.debug(f"Resolver response: {output.strip()}")
        response = parse_response(output)
        tidal_url = response.get("tidal_url")
        if not is_success(response) or not isinstance(tidal_url, str) or not tidal_url:
            raise ResolveError(error_message(response, output), details={"url": track.source_url})
        return tidal_url


class CommandDownloader:
    """Fetches a Tidal URL into a directory through an external downloader."""

    def __init__(self, template: str, timeout: Optional[float] = None):
        self.runner = CommandRunner(template, timeout)

    def download(self, url: str, output_dir: Path) -> Optional[Path]:
        output = self.runner.run(DownloadError, url=url, output_dir=str(output_dir))
        logger.debug(f"Downloader response: {output.strip()}")
        response = parse_response(output)
        if not is_success(response):
            raise DownloadError(error_message(response, output), details={"url": url})
        path = response.get("file_path") or response.get("path")
        return Path(path) if isinstance(path, str) and path else None
