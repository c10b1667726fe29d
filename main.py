from textual.app import App, ComposeResult
from textual.widgets import Footer, Static
from textual.containers import Vertical
from textual.binding import Binding
import logging
import os
from pathlib import Path

from widgets import Header, HelpScreen
from views import ChannelPanel
from models.track import MUSIC, BINAURAL, CHANNEL_KINDS
from services.media_resource import LocatorResolver, PygameResourceFactory
from services.player import DualChannelPlayer
from services.track_catalog import catalog_from_location

TELEMETRY_INTERVAL = 0.25
VOLUME_STEP = 5
SEEK_STEP = 10.0

DEFAULT_AUDIO_DIR = Path("public") / "audio"
DEFAULT_MANIFEST = Path("public") / "audio-list.json"

log_dir = Path.home() / '.local' / 'share' / 'meditation-mixer'
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / 'meditation-mixer.log'

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_file)
    ]
)

logger = logging.getLogger(__name__)


def default_catalog_location() -> str:
    """Resolve MIXER_CATALOG, falling back to the manifest or the audio directory."""
    location = os.environ.get('MIXER_CATALOG')
    if location:
        return location
    if DEFAULT_MANIFEST.exists():
        return str(DEFAULT_MANIFEST)
    return os.environ.get('MIXER_AUDIO_DIR', str(DEFAULT_AUDIO_DIR))


def build_player(catalog_location: str) -> DualChannelPlayer:
    """Wire a player to its catalog and pygame media backend."""
    audio_dir = Path(os.environ.get('MIXER_AUDIO_DIR', DEFAULT_AUDIO_DIR))
    base_url = catalog_location if catalog_location.startswith(('http://', 'https://')) else None

    resolver = LocatorResolver(audio_dir, base_url=base_url)
    catalog = catalog_from_location(catalog_location)
    return DualChannelPlayer(catalog, PygameResourceFactory(resolver))


class MixerApp(App):
    """Terminal meditation mixer: one music track and one binaural beat, looped together."""

    CSS_PATH = "styles/app.tcss"

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("space", "play_pause", "Play/Pause", priority=True),
        Binding("tab", "switch_channel", "Channel", priority=True),
        Binding("+", "volume_up", "Vol+", priority=True),
        Binding("=", "volume_up", "Vol+", show=False, priority=True),
        Binding("-", "volume_down", "Vol-", priority=True),
        Binding("left", "seek_back", "-10s", priority=True),
        Binding("right", "seek_forward", "+10s", priority=True),
        Binding("enter", "choose_track", "Select", show=False),
        Binding("h", "show_help", "Help", priority=True),
        Binding("?", "show_help", "Help", show=False, priority=True),
    ]

    def __init__(self, player: DualChannelPlayer, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.player = player
        self.active_kind = MUSIC
        logger.info("Services initialized successfully")

    def compose(self) -> ComposeResult:
        """Compose the main application layout."""
        yield Header()

        with Vertical(id="channels"):
            yield ChannelPanel(self.player.music, id="music-panel", classes="active")
            yield ChannelPanel(self.player.binaural, id="binaural-panel")
            yield Static("", id="empty-library")

        yield Footer()

    def on_mount(self) -> None:
        """Load the catalog and start the telemetry timer."""
        self.query_one("#empty-library", Static).display = False
        self.run_worker(self._load_catalog, exclusive=True)
        self.set_interval(TELEMETRY_INTERVAL, self._tick)

    def on_unmount(self) -> None:
        self.player.close()

    def _tick(self) -> None:
        if not self.player.tick():
            self.query_one(Header).is_playing = self.player.is_playing
            self._report_error()

    def _panel(self, kind: str) -> ChannelPanel:
        return self.query_one(f"#{kind}-panel", ChannelPanel)

    async def _load_catalog(self) -> None:
        """Fetch the track catalog once and populate both selectors."""
        logger.info("Loading track catalog")
        loaded = await self.player.load_catalog()

        header = self.query_one(Header)
        header.is_loading = False

        if not loaded:
            self._report_error()
            return

        for kind in CHANNEL_KINDS:
            self._panel(kind).populate()

        music_count = len(self.player.music.available_tracks)
        binaural_count = len(self.player.binaural.available_tracks)

        if music_count == 0 and binaural_count == 0:
            empty = self.query_one("#empty-library", Static)
            empty.update(
                "No audio files found.\n\n"
                "Add audio files to:\n"
                "  public/audio/music/\n"
                "  public/audio/binaural/"
            )
            empty.display = True
            self.notify("No audio files found", severity="warning", timeout=8)
        else:
            self.notify(
                f"✓ Loaded {music_count} music and {binaural_count} binaural tracks",
                severity="information",
                timeout=3
            )
            if music_count == 0:
                self._activate(BINAURAL)

        if not await self.player.preload():
            self._report_error()

    def _report_error(self) -> None:
        if self.player.error:
            self.notify(f"❌ {self.player.error}", severity="error", timeout=5)

    def _activate(self, kind: str) -> None:
        self._panel(self.active_kind).remove_class("active")
        self.active_kind = kind
        self._panel(kind).add_class("active")

    async def action_play_pause(self) -> None:
        """Toggle play/pause on both channels together."""
        await self.player.toggle_play_pause()
        self.query_one(Header).is_playing = self.player.is_playing
        self._report_error()

    def action_switch_channel(self) -> None:
        self._activate(BINAURAL if self.active_kind == MUSIC else MUSIC)

    def action_choose_track(self) -> None:
        self._panel(self.active_kind).focus_selector()

    async def on_channel_panel_track_chosen(self, message: ChannelPanel.TrackChosen) -> None:
        """Apply a track picked in a channel selector."""
        await self.player.select_channel_track(message.kind, message.track_id)
        self.query_one(Header).is_playing = self.player.is_playing
        self._report_error()

    def _change_volume(self, delta: int) -> None:
        channel = self.player.channel(self.active_kind)
        volume = max(0, min(100, channel.volume + delta))
        self.player.set_channel_volume(self.active_kind, volume)
        self._report_error()

    def action_volume_up(self) -> None:
        """Increase active channel volume."""
        self._change_volume(VOLUME_STEP)

    def action_volume_down(self) -> None:
        """Decrease active channel volume."""
        self._change_volume(-VOLUME_STEP)

    def _seek(self, delta: float) -> None:
        channel = self.player.channel(self.active_kind)
        if channel.selected_track is None:
            return
        self.player.seek_channel(self.active_kind, channel.current_time + delta)
        self._report_error()

    def action_seek_back(self) -> None:
        self._seek(-SEEK_STEP)

    def action_seek_forward(self) -> None:
        self._seek(SEEK_STEP)

    def action_show_help(self) -> None:
        self.push_screen(HelpScreen())


def main():
    """Entry point for the meditation mixer.

    Handles initialization errors and provides user-friendly error messages.
    """
    try:
        logger.info("=" * 60)
        logger.info("Meditation mixer starting up")
        logger.info("=" * 60)

        catalog_location = default_catalog_location()
        logger.info(f"Using catalog: {catalog_location}")

        app = MixerApp(build_player(catalog_location))
        app.run()

        logger.info("Meditation mixer shut down cleanly")

    except KeyboardInterrupt:
        logger.info("Meditation mixer interrupted by user")
        print("\n\nGoodbye! 👋\n")
        exit(0)
    except Exception as e:
        logger.critical(f"Unexpected fatal error: {type(e).__name__}: {e}", exc_info=True)
        print("\n❌ Meditation mixer encountered an unexpected error\n")
        print(f"{type(e).__name__}: {e}\n")
        print(f"Check {log_file} for more details.\n")
        exit(1)


if __name__ == "__main__":
    main()
