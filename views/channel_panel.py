from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Vertical
from textual.message import Message
from textual.widgets import Label, ProgressBar, Select, Static

from models.track import MUSIC, BINAURAL, format_time
from services.channel import Channel, MAX_VOLUME
from styles import CHANNEL_ACCENTS, COLOR_BASS, COLOR_PRIMARY, COLOR_HIGHLIGHT, COLOR_MUTED, COLOR_INACTIVE

logger = logging.getLogger(__name__)

VOLUME_BAR_WIDTH = 30

CHANNEL_TITLES = {
    MUSIC: ("🎵 Music Track", "No music tracks available"),
    BINAURAL: ("〰 Binaural Beat", "No binaural tracks available"),
}


class ChannelPanel(Container):
    """Selector, volume bar and progress display for one channel."""

    DEFAULT_CSS = """
    ChannelPanel {
        background: #1a1a1a;
        border: solid #555555;
        padding: 0 1;
        height: auto;
    }

    ChannelPanel.active {
        border: solid #ff8c00;
    }

    ChannelPanel .channel-title {
        color: #ff8c00;
        text-style: bold;
        padding: 0 0 1 0;
    }

    ChannelPanel ProgressBar {
        padding: 1 0 0 0;
    }
    """

    class TrackChosen(Message):
        """Sent when the user picks a different track in the selector."""

        def __init__(self, kind: str, track_id: str) -> None:
            super().__init__()
            self.kind = kind
            self.track_id = track_id

    def __init__(self, channel: Channel, **kwargs):
        super().__init__(**kwargs)
        self.channel = channel
        self._title, self._empty_prompt = CHANNEL_TITLES[channel.kind]
        self._select: Select | None = None
        self._volume_widget: Static | None = None
        self._progress_bar: ProgressBar | None = None
        self._time_widget: Static | None = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self._title, classes="channel-title")
            yield Select([], prompt=self._empty_prompt, id=f"{self.channel.kind}-select", disabled=True)
            yield Static(self._render_volume_bar(), id=f"{self.channel.kind}-volume")
            yield ProgressBar(total=100, show_eta=False, id=f"{self.channel.kind}-progress")
            yield Static("0:00 / --:--", id=f"{self.channel.kind}-time", classes="time-display")

    def on_mount(self) -> None:
        kind = self.channel.kind
        self._select = self.query_one(f"#{kind}-select", Select)
        self._volume_widget = self.query_one(f"#{kind}-volume", Static)
        self._progress_bar = self.query_one(f"#{kind}-progress", ProgressBar)
        self._time_widget = self.query_one(f"#{kind}-time", Static)

        self.channel.on_change(lambda _channel: self.update_telemetry())
        self.update_telemetry()

    def populate(self) -> None:
        """Fill the selector from the channel's available tracks."""
        if self._select is None:
            return

        options = [(track.name, track.id) for track in self.channel.available_tracks]
        self._select.set_options(options)
        self._select.disabled = not self.channel.is_enabled
        if self.channel.selected_track_id:
            self._select.value = self.channel.selected_track_id

        logger.debug(f"{self.channel.kind} selector populated with {len(options)} tracks")

    def focus_selector(self) -> None:
        if self._select is not None and not self._select.disabled:
            self._select.focus()

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        value = event.value
        if not isinstance(value, str) or value == self.channel.selected_track_id:
            return
        self.post_message(self.TrackChosen(self.channel.kind, value))

    def _render_volume_bar(self) -> Text:
        volume = self.channel.volume
        filled_bars = int((volume / MAX_VOLUME) * VOLUME_BAR_WIDTH)

        result = Text()
        result.append("Volume ", style=COLOR_MUTED)
        result.append("│", style=COLOR_MUTED)

        for i in range(VOLUME_BAR_WIDTH):
            if i < filled_bars:
                if i < VOLUME_BAR_WIDTH * 0.5:
                    result.append("█", style=COLOR_BASS)
                elif i < VOLUME_BAR_WIDTH * 0.75:
                    result.append("█", style=COLOR_PRIMARY)
                else:
                    result.append("█", style=COLOR_HIGHLIGHT)
            else:
                result.append("─", style=COLOR_INACTIVE)

        result.append("│ ", style=COLOR_MUTED)
        result.append(f"{volume}%", style=f"{COLOR_PRIMARY} bold")
        return result

    def update_telemetry(self) -> None:
        """Refresh volume, progress and time from the channel."""
        if self._volume_widget is None:
            return

        channel = self.channel
        self._volume_widget.update(self._render_volume_bar())
        self._progress_bar.update(progress=channel.progress_percent)

        time_text = Text()
        if channel.is_playing():
            time_text.append("▶ ", style=f"{CHANNEL_ACCENTS[channel.kind]} bold")
        else:
            time_text.append("⏸ ", style=COLOR_MUTED)
        time_text.append(f"{format_time(channel.current_time)} / {format_time(channel.duration)}", style=COLOR_MUTED)
        self._time_widget.update(time_text)
