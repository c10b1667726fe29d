from __future__ import annotations

import logging
from typing import Callable, List, Optional

from models.playback import PlaybackState
from models.track import Track
from services.errors import PlaybackError, SelectionError
from services.media_resource import MediaListener, MediaResource

logger = logging.getLogger(__name__)

DEFAULT_VOLUME = 50
MIN_VOLUME = 0
MAX_VOLUME = 100

ResourceFactory = Callable[[Track], MediaResource]


class Channel(MediaListener):
    """One audio slot: track selection, volume and playback telemetry.

    The channel owns at most one media resource at a time. It is created when
    a track is selected and released on reselection or ``close()``.

    ``loop=False`` stops at the end of the track instead of restarting. The
    app always loops; the flag keeps the end-of-stream contract explicit for
    media backends.
    """

    def __init__(self, kind: str, resource_factory: ResourceFactory, loop: bool = True):
        self.kind = kind
        self.loop = loop
        self._resource_factory = resource_factory
        self._resource: Optional[MediaResource] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._change_callbacks: List[Callable[[Channel], None]] = []
        self._error_callbacks: List[Callable[[Channel, str], None]] = []

        self.available_tracks: List[Track] = []
        self.selected_track_id: str = ""
        self.volume: int = DEFAULT_VOLUME
        self.state: PlaybackState = PlaybackState.STOPPED
        self.current_time: float = 0.0
        self.duration: Optional[float] = None
        self.error: str = ""

    @property
    def is_enabled(self) -> bool:
        """Whether the channel has any tracks to choose from."""
        return bool(self.available_tracks)

    @property
    def selected_track(self) -> Optional[Track]:
        for track in self.available_tracks:
            if track.id == self.selected_track_id:
                return track
        return None

    @property
    def progress_percent(self) -> float:
        if not self.duration:
            return 0.0
        return 100.0 * self.current_time / self.duration

    @property
    def resource(self) -> Optional[MediaResource]:
        return self._resource

    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    def on_change(self, callback: Callable[[Channel], None]) -> None:
        """Register a callback fired whenever channel state changes."""
        self._change_callbacks.append(callback)

    def on_media_error(self, callback: Callable[[Channel, str], None]) -> None:
        """Register a callback fired when the media resource reports an error."""
        self._error_callbacks.append(callback)

    def _notify(self) -> None:
        for callback in list(self._change_callbacks):
            callback(self)

    def set_tracks(self, tracks: List[Track]) -> None:
        """Populate available tracks and auto-select the first one."""
        self.available_tracks = list(tracks)
        self.select_track(self.available_tracks[0].id if self.available_tracks else "")

    def select_track(self, track_id: str) -> None:
        """Select a track by id, or deselect with an empty id.

        Raises:
            SelectionError: If the id is not among the available tracks.
        """
        track = None
        if track_id:
            track = next((t for t in self.available_tracks if t.id == track_id), None)
            if track is None:
                raise SelectionError(f"Track '{track_id}' is not available for {self.kind}")

        self._detach()
        self.selected_track_id = track_id
        self.current_time = 0.0
        self.duration = None
        self.state = PlaybackState.STOPPED
        self.error = ""

        if track is not None:
            self._attach(track)

        logger.debug(f"{self.kind} channel selected '{track_id}'")
        self._notify()

    def _attach(self, track: Track) -> None:
        resource = self._resource_factory(track)
        resource.loop = self.loop
        resource.set_volume(self.volume / MAX_VOLUME)
        self._unsubscribe = resource.subscribe(self)
        self._resource = resource

    def _detach(self) -> None:
        if self._resource is None:
            return
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._resource.release()
        self._resource = None

    def set_volume(self, volume: int) -> None:
        """Set channel volume.

        Raises:
            ValueError: If volume is not an integer in [0, 100].
        """
        if isinstance(volume, bool) or not isinstance(volume, int):
            raise ValueError(f"Volume must be an integer, got {volume!r}")
        if not MIN_VOLUME <= volume <= MAX_VOLUME:
            raise ValueError(f"Volume must be between {MIN_VOLUME} and {MAX_VOLUME}, got {volume}")

        self.volume = volume
        if self._resource is not None:
            self._resource.set_volume(volume / MAX_VOLUME)
        self._notify()

    async def play(self) -> None:
        """Start audio output from the current position.

        Raises:
            SelectionError: If no track is selected.
            PlaybackError: If the media resource cannot start.
        """
        if self._resource is None:
            raise SelectionError(f"No {self.kind} track selected")

        if self.is_playing():
            return

        try:
            await self._resource.play()
        except PlaybackError:
            self.state = PlaybackState.STOPPED
            self._notify()
            raise
        except Exception as e:
            self.state = PlaybackState.STOPPED
            self._notify()
            raise PlaybackError(f"Failed to play {self.kind} track: {e}") from e

        self.state = PlaybackState.PLAYING
        self.error = ""
        self._notify()

    async def preload(self) -> None:
        """Load the selected track without starting output."""
        if self._resource is not None:
            await self._resource.load()

    def pause(self) -> None:
        if not self.is_playing():
            return
        self._resource.pause()
        self.state = PlaybackState.STOPPED
        self._notify()

    def seek(self, seconds: float) -> None:
        """Move the read cursor, clamped to [0, duration].

        Raises:
            SelectionError: If no track is selected.
            PlaybackError: If the duration is not known yet.
        """
        if self._resource is None:
            raise SelectionError(f"No {self.kind} track selected")
        if self.duration is None:
            raise PlaybackError(f"{self.kind.capitalize()} track duration is not known yet")

        target = max(0.0, min(float(seconds), self.duration))
        self._resource.seek(target)
        self.current_time = target
        self._notify()

    def tick(self) -> None:
        if self._resource is not None:
            self._resource.tick()

    def close(self) -> None:
        self._detach()
        self.state = PlaybackState.STOPPED

    def on_position(self, seconds: float) -> None:
        seconds = max(0.0, seconds)
        if self.duration is not None:
            seconds = min(seconds, self.duration)
        self.current_time = seconds
        self._notify()

    def on_duration(self, seconds: float) -> None:
        self.duration = max(0.0, seconds)
        self.current_time = min(self.current_time, self.duration)
        self._notify()

    def on_end_of_stream(self) -> None:
        if self.loop:
            self.current_time = 0.0
            logger.debug(f"{self.kind} channel looped")
        else:
            self.state = PlaybackState.STOPPED
            if self.duration is not None:
                self.current_time = self.duration
        self._notify()

    def on_error(self, message: str) -> None:
        logger.error(f"{self.kind} media error: {message}")
        self.error = message
        self.state = PlaybackState.STOPPED
        for callback in list(self._error_callbacks):
            callback(self, message)
        self._notify()
