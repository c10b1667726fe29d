import numpy as np
import pytest

import services.media_resource as media_resource
from services.errors import PlaybackError
from services.media_resource import (
    SAMPLE_RATE,
    LocatorResolver,
    MediaListener,
    MediaResource,
    PygameMediaResource,
)


class RecordingListener(MediaListener):
    def __init__(self):
        self.events = []

    def on_position(self, seconds):
        self.events.append(("position", seconds))

    def on_duration(self, seconds):
        self.events.append(("duration", seconds))

    def on_end_of_stream(self):
        self.events.append(("end",))

    def on_error(self, message):
        self.events.append(("error", message))


class FakeMixerChannel:
    def __init__(self):
        self.sounds = []
        self.loops = []
        self.queued = None
        self.volume = None
        self.paused = False
        self.stopped = False
        self.busy = True

    def play(self, sound, loops=0):
        self.sounds.append(sound)
        self.loops.append(loops)
        self.queued = None
        self.busy = True
        self.stopped = False

    def queue(self, sound):
        self.queued = sound

    def get_queue(self):
        return self.queued

    def pause(self):
        self.paused = True

    def unpause(self):
        self.paused = False

    def stop(self):
        self.stopped = True
        self.busy = False

    def set_volume(self, volume):
        self.volume = volume

    def get_busy(self):
        return self.busy


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def mixer_channel(monkeypatch):
    channel = FakeMixerChannel()
    monkeypatch.setattr(media_resource, "ensure_mixer", lambda: None)
    monkeypatch.setattr(media_resource.pygame.mixer, "find_channel", lambda *a, **k: channel)
    monkeypatch.setattr(media_resource.pygame.sndarray, "make_sound", lambda samples: samples)
    return channel


@pytest.fixture
def resource(tmp_path, monkeypatch, mixer_channel, clock):
    samples = np.zeros((SAMPLE_RATE * 10, 2), dtype=np.int16)
    monkeypatch.setattr(media_resource, "decode_audio", lambda path: samples)
    resource = PygameMediaResource("/audio/music/a.mp3", LocatorResolver(tmp_path), clock=clock)
    listener = RecordingListener()
    resource.subscribe(listener)
    resource.listener = listener
    return resource


def test_subscribe_and_unsubscribe():
    resource = MediaResource("/audio/music/a.mp3")
    listener = RecordingListener()
    unsubscribe = resource.subscribe(listener)

    resource._emit_position(1.0)
    unsubscribe()
    resource._emit_position(2.0)

    assert listener.events == [("position", 1.0)]


def test_resolver_maps_local_urls(tmp_path):
    resolver = LocatorResolver(tmp_path)

    assert resolver.resolve("/audio/music/Deep%20Focus.mp3") == tmp_path / "music" / "Deep Focus.mp3"


def test_resolver_prefixes_base_url(tmp_path, monkeypatch):
    resolver = LocatorResolver(tmp_path, base_url="http://localhost:5000/")
    seen = []
    monkeypatch.setattr(resolver, "_download", lambda url: seen.append(url) or tmp_path / "x.mp3")

    resolver.resolve("/audio/binaural/a.wav")

    assert seen == ["http://localhost:5000/audio/binaural/a.wav"]


@pytest.mark.asyncio
async def test_play_decodes_and_reports_duration(resource, mixer_channel):
    resource.set_volume(0.4)
    await resource.play()

    assert resource.is_playing()
    assert resource.listener.events == [("duration", 10.0)]
    assert mixer_channel.volume == pytest.approx(0.4)
    assert len(mixer_channel.sounds[0]) == SAMPLE_RATE * 10


@pytest.mark.asyncio
async def test_decode_failure_is_playback_error(tmp_path, monkeypatch, mixer_channel):
    def broken(path):
        raise RuntimeError("unsupported format")

    monkeypatch.setattr(media_resource, "decode_audio", broken)
    resource = PygameMediaResource("/audio/music/a.m4a", LocatorResolver(tmp_path))

    with pytest.raises(PlaybackError):
        await resource.play()
    assert not resource.is_playing()


@pytest.mark.asyncio
async def test_tick_reports_position(resource, clock):
    await resource.play()
    clock.now += 2.5

    resource.tick()

    assert resource.listener.events[-1] == ("position", pytest.approx(2.5))


@pytest.mark.asyncio
async def test_pause_and_resume_keep_position(resource, mixer_channel, clock):
    await resource.play()
    clock.now += 3.0
    resource.pause()
    clock.now += 100.0

    assert mixer_channel.paused
    await resource.play()
    clock.now += 1.0
    resource.tick()

    assert not mixer_channel.paused
    assert resource.listener.events[-1] == ("position", pytest.approx(4.0))


@pytest.mark.asyncio
async def test_seek_while_playing_restarts_from_offset(resource, mixer_channel, clock):
    await resource.play()

    resource.seek(4.0)
    clock.now += 1.0
    resource.tick()

    assert len(mixer_channel.sounds[-1]) == SAMPLE_RATE * 6
    assert resource.listener.events[-1] == ("position", pytest.approx(5.0))


@pytest.mark.asyncio
async def test_seek_clamps(resource):
    await resource.play()

    resource.seek(-3.0)
    assert resource.listener.events[-1] == ("position", 0.0)

    resource.seek(99.0)
    assert resource.listener.events[-2:] == [("end",), ("position", 0.0)]


def test_seek_before_load_fails(resource):
    with pytest.raises(PlaybackError):
        resource.seek(1.0)


@pytest.mark.asyncio
async def test_end_of_stream_loops(resource, mixer_channel, clock):
    await resource.play()
    clock.now += 10.5

    resource.tick()

    assert resource.listener.events[-2:] == [("end",), ("position", pytest.approx(0.5))]
    assert resource.is_playing()
    assert len(mixer_channel.sounds) == 1
    assert mixer_channel.loops == [-1]


@pytest.mark.asyncio
async def test_release_stops_channel(resource, mixer_channel):
    await resource.play()

    resource.release()

    assert mixer_channel.stopped
    assert not resource.is_playing()


@pytest.mark.asyncio
async def test_mid_track_start_queues_whole_track(resource, mixer_channel, clock):
    await resource.play()

    resource.seek(4.0)

    assert len(mixer_channel.sounds[-1]) == SAMPLE_RATE * 6
    assert len(mixer_channel.queued) == SAMPLE_RATE * 10


@pytest.mark.asyncio
async def test_loop_from_offset_continues_without_restart(resource, mixer_channel, clock):
    await resource.play()
    resource.seek(4.0)
    mixer_channel.queued = None
    clock.now += 7.0

    resource.tick()

    assert resource.listener.events[-2:] == [("end",), ("position", pytest.approx(1.0))]
    assert len(mixer_channel.sounds) == 2
    assert len(mixer_channel.queued) == SAMPLE_RATE * 10


@pytest.mark.asyncio
async def test_seek_to_end_while_playing_restarts_loop(resource, mixer_channel):
    await resource.play()

    resource.seek(10.0)

    assert resource.is_playing()
    assert resource.listener.events[-2:] == [("end",), ("position", 0.0)]
    assert len(mixer_channel.sounds[-1]) == SAMPLE_RATE * 10
    assert mixer_channel.loops[-1] == -1
    assert all(len(sound) > 0 for sound in mixer_channel.sounds)


@pytest.mark.asyncio
async def test_paused_seek_to_end_then_play(resource, mixer_channel):
    await resource.play()
    resource.pause()

    resource.seek(10.0)
    await resource.play()

    assert resource.is_playing()
    assert len(mixer_channel.sounds[-1]) == SAMPLE_RATE * 10
    assert all(len(sound) > 0 for sound in mixer_channel.sounds)


@pytest.mark.asyncio
async def test_seek_to_end_without_loop_stops(resource, mixer_channel):
    resource.loop = False
    await resource.play()

    resource.seek(10.0)

    assert not resource.is_playing()
    assert mixer_channel.stopped
    assert resource.listener.events[-2:] == [("end",), ("position", 10.0)]

    await resource.play()
    assert len(mixer_channel.sounds[-1]) == SAMPLE_RATE * 10


@pytest.mark.asyncio
async def test_load_reports_duration_without_playing(resource, mixer_channel):
    await resource.load()

    assert resource.listener.events == [("duration", 10.0)]
    assert mixer_channel.sounds == []
    assert not resource.is_playing()


@pytest.mark.asyncio
async def test_load_failure_emits_error(tmp_path, monkeypatch, mixer_channel):
    def broken(path):
        raise RuntimeError("unsupported format")

    monkeypatch.setattr(media_resource, "decode_audio", broken)
    resource = PygameMediaResource("/audio/music/a.m4a", LocatorResolver(tmp_path))
    listener = RecordingListener()
    resource.subscribe(listener)

    await resource.load()

    assert [event[0] for event in listener.events] == ["error"]
    assert "unsupported format" in listener.events[0][1]


@pytest.mark.asyncio
async def test_empty_decode_is_playback_error(tmp_path, monkeypatch, mixer_channel):
    monkeypatch.setattr(media_resource, "decode_audio", lambda path: np.zeros((0, 2), dtype=np.int16))
    resource = PygameMediaResource("/audio/music/empty.wav", LocatorResolver(tmp_path))

    with pytest.raises(PlaybackError):
        await resource.play()
    assert mixer_channel.sounds == []


@pytest.mark.asyncio
async def test_tick_failure_emits_error(resource, mixer_channel, monkeypatch):
    await resource.play()
    mixer_channel.busy = False
    monkeypatch.setattr(media_resource.pygame.mixer, "find_channel", lambda *a, **k: None)

    resource.tick()

    assert resource.listener.events[-1][0] == "error"
    assert not resource.is_playing()
