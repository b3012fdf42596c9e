import shutil
import subprocess
from pathlib import Path
from typing import Optional

from plrip.constants import FFMPEG_BINARY, TARGET_CODEC, get_logger
from plrip.exceptions import TranscodeError

logger = get_logger("transcoder")


class FFmpegTranscoder:
    """
    Converts one audio file with the ffmpeg binary.

    Tags are written as ``-metadata key=value``. The comment tags (``comment``
    and the RIFF ``ICMT`` chunk) are always cleared so downloader stamps do not
    survive into the final file.
    """

    def __init__(self, binary: str = FFMPEG_BINARY, codec: str = TARGET_CODEC, timeout: Optional[float] = None):
        self.binary = shutil.which(binary) or binary
        self.codec = codec
        self.timeout = timeout

    def build_command(self, source: Path, destination: Path, tags: Optional[dict] = None) -> list[str]:
        cmd = [self.binary, "-y", "-i", str(source), "-c:a", self.codec]
        for key, value in (tags or {}).items():
            if key.lower() in ("comment", "icmt"):
                continue
            cmd.extend(["-metadata", f"{key}={value}"])
        cmd.extend(["-metadata", "comment=", "-metadata", "ICMT=", str(destination)])
        return cmd

    def transcode(self, source: Path, destination: Path, tags: Optional[dict] = None) -> Path:
        cmd = self.build_command(source, destination, tags)
        logger.info(f"Converting {Path(source).name} -> {Path(destination).name}")
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, errors="replace", timeout=self.timeout, check=False
            )
        except FileNotFoundError:
            raise TranscodeError(f"ffmpeg not found: {self.binary}", details={"source": str(source)})
        except subprocess.TimeoutExpired:
            raise TranscodeError(f"ffmpeg timed out after {self.timeout}s", details={"source": str(source)})
        except OSError as e:
            raise TranscodeError(f"Could not run ffmpeg: {e}", details={"source": str(source)})

        if result.returncode != 0:
            stderr_tail = " | ".join(result.stderr.strip().splitlines()[-3:])
            raise TranscodeError(
                f"ffmpeg exited with code {result.returncode}: {stderr_tail}",
                details={"source": str(source), "stderr": result.stderr},
            )
        return Path(destination)
