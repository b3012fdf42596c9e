"""
Duplicate detection against the output directory.

There is no index of downloaded tracks: the directory itself is the record.
``DirectoryLibrary`` hides the listing so a different store can be dropped in
behind ``DuplicateDetector`` without touching its callers.

Matching is deliberately loose. Both artist and title are reduced to lowercase
ASCII letters and digits and cut to short prefixes; a file matches when its
normalized name contains both prefixes. Decorated file names ("(Remastered)",
bitrate tags) still match, at the cost of the occasional false positive.
"""

import re
from pathlib import Path
from typing import Optional

from plrip.config import MatchSettings
from plrip.constants import get_logger

logger = get_logger("library")

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def normalize(text: str) -> str:
    """Drop everything but ASCII letters and digits, then lowercase."""
    return _NON_ALNUM.sub("", text).lower()


def match_keys(artist: str, title: str, settings: MatchSettings) -> tuple[str, str]:
    return normalize(artist)[: settings.artist_length], normalize(title)[: settings.title_length]


class DirectoryLibrary:
    """Audio files of one directory, looked up by extension."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def files(self, ext: str) -> list[Path]:
        suffix = f".{ext.lower().lstrip('.')}"
        if not self.root.is_dir():
            return []
        return [path for path in self.root.iterdir() if path.is_file() and path.suffix.lower() == suffix]

    def newest(self, ext: str) -> Optional[Path]:
        """Most recently modified file with the extension, or None."""
        candidates = self.files(ext)
        if not candidates:
            return None
        return max(candidates, key=lambda path: path.stat().st_mtime)


class DuplicateDetector:
    def __init__(self, library: DirectoryLibrary, settings: Optional[MatchSettings] = None):
        self.library = library
        self.settings = settings or MatchSettings()

    def has_reliable_keys(self, artist: str, title: str) -> bool:
        artist_key, title_key = match_keys(artist, title, self.settings)
        return len(artist_key) >= self.settings.artist_length and len(title_key) >= self.settings.title_length

    def exists(self, artist: str, title: str) -> bool:
        """
        True if some output file looks like ``artist - title``.

        False is returned both when nothing matches and when the names are too
        short to fill the prefixes; the latter is logged as a warning since it
        does not prove the track is missing.
        """
        if not self.has_reliable_keys(artist, title):
            logger.warning(f"Artist or title too short for reliable matching: {artist} - {title}")
            return False

        artist_key, title_key = match_keys(artist, title, self.settings)

        for path in self.library.files(self.settings.target_ext):
            name = normalize(path.stem)
            if artist_key in name and title_key in name:
                logger.debug(f"Match found: '{path.stem}' contains artist '{artist_key}' and title '{title_key}'")
                return True

        return False


def exists(artist: str, title: str, output_dir: Path, settings: Optional[MatchSettings] = None) -> bool:
    """Check ``output_dir`` for a file matching ``artist`` and ``title``."""
    return DuplicateDetector(DirectoryLibrary(output_dir), settings).exists(artist, title)
