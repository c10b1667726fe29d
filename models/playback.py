from enum import Enum


class PlaybackState(Enum):
    """Playback state of a single channel."""
    STOPPED = "stopped"
    PLAYING = "playing"
