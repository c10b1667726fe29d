from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from models.track import Track, MUSIC, BINAURAL, CHANNEL_KINDS
from services.channel import Channel, ResourceFactory
from services.errors import CatalogError, MixerError, PlaybackError, SelectionError

logger = logging.getLogger(__name__)

CATALOG_LOAD_FAILED = "Failed to load audio tracks. Please restart the application."
NO_TRACK_SELECTED = "Please select at least one audio track"
PLAYBACK_FAILED = "Failed to play audio. Please try again."
MEDIA_FAILED = "Failed to load {kind} track"


class DualChannelPlayer:
    """Coordinates the music and binaural channels as one playback transaction.

    Every public operation catches mixer errors at this boundary and stores a
    single human-readable message in ``error``. Successful operations clear it.
    """

    def __init__(self, catalog, resource_factory: ResourceFactory):
        """Initialize the player.

        Args:
            catalog: Provider with an async ``list(kind)`` returning tracks.
            resource_factory: Callable creating a media resource for a track.
        """
        self.catalog = catalog
        self.channels: Dict[str, Channel] = {
            kind: Channel(kind, resource_factory) for kind in CHANNEL_KINDS
        }
        self.is_playing: bool = False
        self.is_loading: bool = False
        self.error: str = ""
        self.last_exception: Optional[Exception] = None
        self._change_callbacks: List[Callable[[DualChannelPlayer], None]] = []
        for channel in self.channels.values():
            channel.on_media_error(self._on_media_error)

    @property
    def music(self) -> Channel:
        return self.channels[MUSIC]

    @property
    def binaural(self) -> Channel:
        return self.channels[BINAURAL]

    def on_change(self, callback: Callable[[DualChannelPlayer], None]) -> None:
        self._change_callbacks.append(callback)

    def _notify(self) -> None:
        for callback in list(self._change_callbacks):
            callback(self)

    def _fail(self, exc: Exception, message: Optional[str] = None) -> bool:
        self.last_exception = exc
        self.error = message or str(exc)
        logger.error(f"{type(exc).__name__}: {exc}")
        self._notify()
        return False

    def _succeed(self) -> bool:
        self.last_exception = None
        self.error = ""
        self._notify()
        return True

    def _stop_mix(self) -> None:
        for channel in self.channels.values():
            channel.pause()
        self.is_playing = False

    def _on_media_error(self, channel: Channel, message: str) -> None:
        self._stop_mix()
        self._fail(PlaybackError(message), MEDIA_FAILED.format(kind=channel.kind))

    def channel(self, kind: str) -> Channel:
        """Return the channel for a kind.

        Raises:
            SelectionError: If the kind is unknown.
        """
        try:
            return self.channels[kind]
        except KeyError:
            raise SelectionError(f"Unknown channel: {kind}") from None

    async def load_catalog(self) -> bool:
        """Fetch both track lists and populate the channels.

        On failure both channels stay empty and a generic error is surfaced.
        There is no automatic retry.
        """
        self.is_loading = True
        self.error = ""
        self._notify()

        try:
            results = await asyncio.gather(*(self.catalog.list(kind) for kind in CHANNEL_KINDS))
            catalogs = dict(zip(CHANNEL_KINDS, results))
            for kind, tracks in catalogs.items():
                if not isinstance(tracks, list) or not all(isinstance(t, Track) for t in tracks):
                    raise CatalogError(f"Catalog returned malformed {kind} tracks")
        except CatalogError as e:
            return self._finish_loading(e)
        except Exception as e:
            return self._finish_loading(CatalogError(f"Catalog fetch failed: {e}"))

        for kind, tracks in catalogs.items():
            self.channels[kind].set_tracks(tracks)

        logger.info(
            f"Catalog loaded: {len(catalogs[MUSIC])} music, {len(catalogs[BINAURAL])} binaural tracks"
        )
        self.is_loading = False
        return self._succeed()

    def _finish_loading(self, exc: CatalogError) -> bool:
        self.is_loading = False
        for channel in self.channels.values():
            channel.close()
            channel.available_tracks = []
            channel.selected_track_id = ""
        return self._fail(exc, CATALOG_LOAD_FAILED)

    def playable_channels(self) -> List[Channel]:
        return [channel for channel in self.channels.values() if channel.selected_track is not None]

    async def preload(self) -> bool:
        """Decode the selected tracks ahead of playback so durations are known.

        Load failures arrive as media errors and are surfaced in ``error``.
        """
        await asyncio.gather(*(channel.preload() for channel in self.playable_channels()))
        return not any(channel.error for channel in self.channels.values())

    async def toggle_play_pause(self) -> bool:
        """Start both selected channels together, or pause both.

        If any channel fails to start, channels that did start are paused
        again so that audio output matches ``is_playing``.
        """
        if self.is_playing:
            self._stop_mix()
            return self._succeed()

        playable = self.playable_channels()
        if not playable:
            return self._fail(SelectionError("No track selected"), NO_TRACK_SELECTED)

        results = await asyncio.gather(
            *(channel.play() for channel in playable), return_exceptions=True
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            self._stop_mix()
            first = failures[0]
            if not isinstance(first, MixerError):
                first = PlaybackError(str(first))
            return self._fail(first, PLAYBACK_FAILED)

        self.is_playing = True
        logger.info(f"Playback started on {', '.join(c.kind for c in playable)}")
        return self._succeed()

    async def select_channel_track(self, kind: str, track_id: str) -> bool:
        """Select a track on a channel, resuming it if the mix is playing."""
        try:
            channel = self.channel(kind)
            channel.select_track(track_id)
            if channel.selected_track is not None:
                if self.is_playing:
                    await channel.play()
                else:
                    await channel.preload()
        except MixerError as e:
            if isinstance(e, PlaybackError):
                # The new track could not start; report the mix as paused.
                self._stop_mix()
            return self._fail(e)
        if channel.error:
            return False
        return self._succeed()

    def set_channel_volume(self, kind: str, volume: int) -> bool:
        try:
            self.channel(kind).set_volume(volume)
        except (SelectionError, ValueError) as e:
            return self._fail(e)
        return self._succeed()

    def seek_channel(self, kind: str, seconds: float) -> bool:
        try:
            self.channel(kind).seek(seconds)
        except MixerError as e:
            return self._fail(e)
        return self._succeed()

    def tick(self) -> bool:
        """Drive telemetry for both channels.

        Returns False when a channel failed during this tick. The mix is then
        paused and ``error`` holds the message.
        """
        previous = self.last_exception
        for channel in self.channels.values():
            try:
                channel.tick()
            except Exception as e:
                logger.error(f"Telemetry failed on {channel.kind} channel: {e}", exc_info=True)
                self._stop_mix()
                error = e if isinstance(e, MixerError) else PlaybackError(str(e))
                self._fail(error, PLAYBACK_FAILED)
        return self.last_exception is previous

    def close(self) -> None:
        """Stop playback and release all media resources."""
        for channel in self.channels.values():
            channel.pause()
            channel.close()
        self.is_playing = False
        logger.info("Player closed")
