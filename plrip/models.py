import re
from dataclasses import dataclass, field
from typing import Optional

# Characters most filesystems refuse in a file name
_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def safe_filename_part(text: str) -> str:
    """Replace characters that cannot appear in a file name. Letters and digits are kept as is."""
    return _UNSAFE_CHARS.sub("_", text).strip().rstrip(".")


def _text(value) -> str:
    """Stripped string value of a record field; anything that is not a string counts as missing."""
    return value.strip() if isinstance(value, str) else ""


@dataclass(frozen=True)
class Track:
    """A playlist entry that carries everything the pipeline needs."""

    artist: str
    title: str
    source_url: str

    @classmethod
    def from_record(cls, record: dict) -> Optional["Track"]:
        """Build a track from a raw ``{artist, name, url}`` record, or None if a field is missing."""
        if not isinstance(record, dict):
            return None
        artist = _text(record.get("artist"))
        title = _text(record.get("name")) or _text(record.get("title"))
        url = _text(record.get("url"))
        if not artist or not title or not url:
            return None
        return cls(artist=artist, title=title, source_url=url)

    @property
    def signature(self) -> str:
        return f"{self.artist.lower().strip()}::{self.title.lower().strip()}"

    def filename(self, ext: str) -> str:
        return f"{safe_filename_part(self.artist)} - {safe_filename_part(self.title)}.{ext}"

    def __str__(self) -> str:
        return f"{self.artist} - {self.title}"


@dataclass
class PassResult:
    """Counters for one sync pass."""

    total: int = 0
    downloaded: int = 0
    existing: int = 0
    invalid: int = 0
    failed: int = 0
    recovered: int = 0
    failures: list[str] = field(default_factory=list)

    def record(self, outcome: str) -> None:
        self.total += 1
        setattr(self, outcome, getattr(self, outcome) + 1)

    def summary(self) -> str:
        return (
            f"{self.total} tracks: {self.downloaded} downloaded, {self.existing} already present, "
            f"{self.failed} failed, {self.invalid} invalid, {self.recovered} recovered"
        )
