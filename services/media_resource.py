from __future__ import annotations

import asyncio
import hashlib
import logging
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import unquote

import numpy as np
import pygame
import pygame.sndarray
import requests
from pedalboard.io import AudioFile

from models.track import Track
from services.errors import PlaybackError

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
NUM_CHANNELS = 2
MIXER_BUFFER = 512


class MediaListener:
    """Receiver for media resource telemetry.

    Subclasses override the notifications they care about.
    """

    def on_position(self, seconds: float) -> None:
        pass

    def on_duration(self, seconds: float) -> None:
        pass

    def on_end_of_stream(self) -> None:
        pass

    def on_error(self, message: str) -> None:
        pass


class MediaResource:
    """A live decoder/player bound to one track locator.

    Telemetry is pushed to subscribed listeners from ``tick()``, which the
    owner calls on its event loop.
    """

    def __init__(self, url: str):
        self.url = url
        self.loop = True
        self._listeners: List[MediaListener] = []

    def subscribe(self, listener: MediaListener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit_position(self, seconds: float) -> None:
        for listener in list(self._listeners):
            listener.on_position(seconds)

    def _emit_duration(self, seconds: float) -> None:
        for listener in list(self._listeners):
            listener.on_duration(seconds)

    def _emit_end_of_stream(self) -> None:
        for listener in list(self._listeners):
            listener.on_end_of_stream()

    def _emit_error(self, message: str) -> None:
        for listener in list(self._listeners):
            listener.on_error(message)

    async def load(self) -> None:
        """Prepare the media without starting output.

        Failures are reported to listeners through ``on_error``.
        """

    async def play(self) -> None:
        raise NotImplementedError

    def pause(self) -> None:
        raise NotImplementedError

    def seek(self, seconds: float) -> None:
        raise NotImplementedError

    def set_volume(self, level: float) -> None:
        """Set output level (0.0 to 1.0)."""
        raise NotImplementedError

    def tick(self) -> None:
        pass

    def release(self) -> None:
        self._listeners.clear()


_mixer_ready = False


def ensure_mixer() -> None:
    """Initialize the shared pygame mixer once.

    Raises:
        PlaybackError: If no audio output device can be opened.
    """
    global _mixer_ready
    if _mixer_ready:
        return

    try:
        pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=NUM_CHANNELS, buffer=MIXER_BUFFER)
        pygame.mixer.set_num_channels(8)
    except pygame.error as e:
        logger.error(f"Failed to initialize audio mixer: {e}")
        raise PlaybackError(f"Audio output not available: {e}") from e

    _mixer_ready = True
    logger.info(f"Audio mixer initialized ({SAMPLE_RATE}Hz, {NUM_CHANNELS}ch)")


def decode_audio(file_path: Path) -> np.ndarray:
    """Decode an audio file to interleaved 16-bit stereo at the mixer rate.

    Returns:
        Contiguous int16 array shaped (frames, 2).
    """
    with AudioFile(str(file_path)).resampled_to(SAMPLE_RATE) as f:
        audio = f.read(f.frames)

    if audio.shape[0] == 1:
        audio = np.repeat(audio, NUM_CHANNELS, axis=0)
    elif audio.shape[0] > NUM_CHANNELS:
        audio = audio[:NUM_CHANNELS]

    pcm = np.clip(audio.T, -1.0, 1.0) * 32767
    return np.ascontiguousarray(pcm.astype(np.int16))


class LocatorResolver:
    """Maps catalog urls to local files.

    ``/audio/<kind>/<name>`` resolves under ``audio_dir``; http(s) urls are
    downloaded once into a cache directory.
    """

    def __init__(self, audio_dir: Path, base_url: Optional[str] = None,
                 cache_dir: Optional[Path] = None):
        self.audio_dir = Path(audio_dir)
        self.base_url = base_url.rstrip('/') if base_url else None
        self.cache_dir = cache_dir or Path(tempfile.gettempdir()) / "meditation-mixer"

    def resolve(self, url: str) -> Path:
        if self.base_url and url.startswith('/'):
            url = f"{self.base_url}{url}"

        if url.startswith(('http://', 'https://')):
            return self._download(url)

        relative = unquote(url)
        if relative.startswith('/audio/'):
            relative = relative[len('/audio/'):]
        return self.audio_dir / relative.lstrip('/')

    def _download(self, url: str) -> Path:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        suffix = Path(unquote(url)).suffix
        target = self.cache_dir / (hashlib.md5(url.encode()).hexdigest() + suffix)
        if target.exists():
            return target

        logger.info(f"Downloading {url}")
        response = requests.get(url)
        response.raise_for_status()
        target.write_bytes(response.content)
        return target


class PygameMediaResource(MediaResource):
    """Media resource playing a decoded track on its own pygame mixer channel.

    Looping is left to the mixer so restarts are gapless. A start at the top
    of the track plays the whole sound with ``loops=-1``; a start mid-track
    plays the tail and keeps the whole sound queued behind it.
    """

    def __init__(self, url: str, resolver: LocatorResolver,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(url)
        self._resolver = resolver
        self._clock = clock
        self._load_lock = asyncio.Lock()
        self._samples: Optional[np.ndarray] = None
        self._sound: Optional[pygame.mixer.Sound] = None
        self._duration: Optional[float] = None
        self._channel: Optional[pygame.mixer.Channel] = None
        self._volume: float = 1.0
        self._position: float = 0.0
        self._segment_start: float = 0.0
        self._started_at: float = 0.0
        self._paused_at: float = 0.0
        self._paused = False
        self._requeue = False
        self._wraps = 0

    def _load(self) -> None:
        path = self._resolver.resolve(self.url)
        logger.info(f"Decoding {path}")
        samples = decode_audio(path)
        if len(samples) == 0:
            raise PlaybackError(f"{path} contains no audio")
        self._samples = samples
        self._duration = len(samples) / SAMPLE_RATE

    async def _ensure_loaded(self) -> None:
        async with self._load_lock:
            if self._samples is None:
                await asyncio.to_thread(self._load)
                self._emit_duration(self._duration)

    def _past_end(self, offset: float) -> bool:
        return int(offset * SAMPLE_RATE) >= len(self._samples)

    def _start_at(self, offset: float) -> None:
        """Start output at ``offset``, which must lie before the last frame."""
        frame = int(offset * SAMPLE_RATE)
        if self._sound is None:
            self._sound = pygame.sndarray.make_sound(self._samples)

        if self._channel is not None:
            self._channel.stop()

        channel = pygame.mixer.find_channel()
        if channel is None:
            raise PlaybackError("No free mixer channel")

        channel.set_volume(self._volume)
        if frame == 0:
            channel.play(self._sound, loops=-1 if self.loop else 0)
        else:
            channel.play(pygame.sndarray.make_sound(self._samples[frame:]))
            if self.loop:
                channel.queue(self._sound)

        self._channel = channel
        self._paused = False
        self._requeue = self.loop and frame > 0
        self._wraps = 0
        self._segment_start = offset
        self._started_at = self._clock()

    def _stop(self) -> None:
        if self._channel is not None:
            self._channel.stop()
            self._channel = None
        self._paused = False

    def _elapsed_position(self) -> float:
        now = self._paused_at if self._paused else self._clock()
        return self._segment_start + now - self._started_at

    def is_playing(self) -> bool:
        return self._channel is not None and not self._paused

    async def load(self) -> None:
        try:
            await self._ensure_loaded()
        except Exception as e:
            logger.error(f"Failed to load {self.url}: {e}")
            self._emit_error(f"Failed to load {self.url}: {e}")

    async def play(self) -> None:
        if self.is_playing():
            return

        try:
            ensure_mixer()
            await self._ensure_loaded()

            if self._paused and self._channel is not None:
                self._channel.unpause()
                self._started_at += self._clock() - self._paused_at
                self._paused = False
            else:
                if self._past_end(self._position):
                    self._position = 0.0
                self._start_at(self._position)
        except PlaybackError:
            raise
        except Exception as e:
            logger.error(f"Failed to start {self.url}: {e}")
            raise PlaybackError(f"Failed to play {self.url}: {e}") from e

    def pause(self) -> None:
        if not self.is_playing():
            return
        self._paused_at = self._clock()
        self._channel.pause()
        self._paused = True

    def seek(self, seconds: float) -> None:
        if self._duration is None:
            raise PlaybackError("Cannot seek before the track is loaded")

        target = max(0.0, min(seconds, self._duration))
        if self._past_end(target):
            if not self.loop:
                self._stop()
                self._position = self._duration
                self._emit_end_of_stream()
                self._emit_position(self._duration)
                return
            self._emit_end_of_stream()
            target = 0.0

        if self.is_playing():
            self._start_at(target)
        else:
            self._stop()
            self._position = target
        self._emit_position(target)

    def set_volume(self, level: float) -> None:
        self._volume = max(0.0, min(1.0, level))
        if self._channel is not None:
            self._channel.set_volume(self._volume)

    def tick(self) -> None:
        if not self.is_playing():
            return

        try:
            self._advance()
        except (PlaybackError, pygame.error) as e:
            logger.error(f"Playback of {self.url} failed: {e}")
            self._stop()
            self._emit_error(f"Playback of {self.url} failed: {e}")

    def _advance(self) -> None:
        position = self._elapsed_position()

        if not self.loop:
            if self._channel.get_busy() and position < self._duration:
                self._emit_position(position)
                return
            self._stop()
            self._position = self._duration
            self._emit_end_of_stream()
            self._emit_position(self._duration)
            return

        if not self._channel.get_busy():
            # The mixer dropped the sound; start the loop over.
            self._start_at(0.0)
            self._emit_end_of_stream()
            self._emit_position(0.0)
            return

        if self._requeue and self._channel.get_queue() is None:
            self._channel.queue(self._sound)

        wraps = int(position // self._duration)
        if wraps > self._wraps:
            self._wraps = wraps
            self._emit_end_of_stream()
        self._emit_position(position % self._duration)

    def release(self) -> None:
        self._stop()
        self._samples = None
        self._sound = None
        super().release()


class PygameResourceFactory:
    """Creates pygame-backed media resources for tracks."""

    def __init__(self, resolver: LocatorResolver):
        self.resolver = resolver

    def __call__(self, track: Track) -> PygameMediaResource:
        return PygameMediaResource(track.url, self.resolver)
