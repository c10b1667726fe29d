from __future__ import annotations

from dataclasses import dataclass, asdict
from pathlib import Path
from urllib.parse import quote

MUSIC = "music"
BINAURAL = "binaural"
CHANNEL_KINDS = (MUSIC, BINAURAL)


def format_time(seconds: float | None) -> str:
    """Format seconds as M:SS, or --:-- when unknown."""
    if seconds is None:
        return "--:--"
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def strip_extension(filename: str) -> str:
    """Drop the trailing extension, keeping names like 'a.' untouched."""
    stem, dot, ext = filename.rpartition(".")
    if not dot or not ext:
        return filename
    return stem


@dataclass(frozen=True)
class Track:
    """A playable audio item from the catalog."""
    id: str
    name: str
    url: str

    @classmethod
    def from_file(cls, file_path: Path, kind: str) -> Track:
        """Build a track from an audio file inside a kind directory.

        Args:
            file_path: Path to the audio file.
            kind: Channel kind the file belongs to ("music" or "binaural").

        Returns:
            Track keyed by filename, with the extension stripped for display.
        """
        filename = file_path.name
        return cls(
            id=filename,
            name=strip_extension(filename),
            url=f"/audio/{kind}/{quote(filename)}",
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)
