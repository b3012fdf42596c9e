from datetime import datetime
from pathlib import Path

from plrip.constants import LOG_DATE_FORMAT, get_logger

logger = get_logger("errors")


class ErrorLog:
    """Append-only file of track-level failures, one ``[timestamp] message`` line each."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def record(self, message: str) -> None:
        timestamp = datetime.now().strftime(LOG_DATE_FORMAT)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(f"[{timestamp}] {message}\n")
        logger.error(message)
