from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models.track import Track, MUSIC, BINAURAL
from services.errors import CatalogError, PlaybackError
from services.media_resource import MediaResource


class FakeMediaResource(MediaResource):
    def __init__(self, url, duration=120.0, fail=False, load_error=None, gate=None):
        super().__init__(url)
        self.duration = duration
        self.fail = fail
        self.load_error = load_error
        self.tick_error = None
        self.gate = gate
        self.load_calls = 0
        self.play_calls = 0
        self.pause_calls = 0
        self.volume = None
        self.position = 0.0
        self.playing = False
        self.released = False

    async def load(self):
        self.load_calls += 1
        if self.load_error:
            self._emit_error(self.load_error)

    async def play(self):
        self.play_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise PlaybackError(f"cannot decode {self.url}")
        self.playing = True
        self._emit_duration(self.duration)

    def pause(self):
        self.pause_calls += 1
        self.playing = False

    def seek(self, seconds):
        self.position = seconds
        self._emit_position(seconds)

    def set_volume(self, level):
        self.volume = level

    def tick(self):
        if self.tick_error is not None:
            raise self.tick_error

    def advance(self, seconds):
        self.position += seconds
        if self.position >= self.duration:
            if self.loop:
                self.position = 0.0
            else:
                self.playing = False
            self._emit_end_of_stream()
        self._emit_position(self.position)

    def release(self):
        self.released = True
        self.playing = False
        super().release()


class FakeResourceFactory:
    def __init__(self):
        self.created = []
        self.failing_urls = set()
        self.load_errors = {}
        self.duration = 120.0
        self.gate = None

    def __call__(self, track):
        resource = FakeMediaResource(
            track.url,
            duration=self.duration,
            fail=track.url in self.failing_urls,
            load_error=self.load_errors.get(track.url),
            gate=self.gate,
        )
        self.created.append(resource)
        return resource

    def for_url(self, url):
        matches = [r for r in self.created if r.url == url]
        return matches[-1] if matches else None


class FakeCatalog:
    def __init__(self, music=None, binaural=None, error=None):
        self.tracks = {MUSIC: music or [], BINAURAL: binaural or []}
        self.error = error
        self.calls = []

    async def list(self, kind):
        self.calls.append(kind)
        if self.error is not None:
            raise self.error
        return self.tracks[kind]


def make_track(filename, kind=MUSIC):
    return Track.from_file(Path(filename), kind)


@pytest.fixture
def resource_factory():
    return FakeResourceFactory()


@pytest.fixture
def music_tracks():
    return [make_track("a.mp3"), make_track("b.ogg")]


@pytest.fixture
def binaural_tracks():
    return [make_track("alpha 10hz.wav", BINAURAL), make_track("theta.m4a", BINAURAL)]


@pytest.fixture
def catalog_error():
    return CatalogError("manifest missing")
