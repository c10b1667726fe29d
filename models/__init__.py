from .track import Track, MUSIC, BINAURAL, CHANNEL_KINDS, format_time
from .playback import PlaybackState

__all__ = ["Track", "MUSIC", "BINAURAL", "CHANNEL_KINDS", "format_time", "PlaybackState"]
