from textual.widgets import Static
from textual.reactive import reactive
from textual.containers import Vertical
from textual.app import ComposeResult
from rich.text import Text
from styles import COLOR_BASS, COLOR_PRIMARY, COLOR_MUTED, COLOR_DIM

MIXER_ASCII = """
 ╔╦╗╔═╗╔╦╗╦╔╦╗╔═╗╔╦╗╦╔═╗╔╗╔   ╔╦╗╦═╗ ╦╔═╗╦═╗
 ║║║║╣  ║║║ ║ ╠═╣ ║ ║║ ║║║║   ║║║║╔╩╦╝║╣ ╠╦╝
 ╩ ╩╚═╝═╩╝╩ ╩ ╩ ╩ ╩ ╩╚═╝╝╚╝   ╩ ╩╩╩ ╚═╚═╝╩╚═
"""


class Header(Vertical):
    is_playing: reactive[bool] = reactive(False)
    is_loading: reactive[bool] = reactive(True)

    def compose(self) -> ComposeResult:
        yield Static(MIXER_ASCII, id="header-logo")
        yield Static("─" * 80, id="header-divider")
        yield Static(self._render_status(), id="header-status")

    def _render_status(self) -> Text:
        result = Text()
        result.append("Mix ", style=COLOR_MUTED)
        result.append("│ ", style=COLOR_MUTED)

        if self.is_loading:
            result.append("LOADING TRACKS…", style=COLOR_DIM)
        elif self.is_playing:
            result.append("▶ PLAYING", style=f"{COLOR_PRIMARY} bold")
        else:
            result.append("⏸ PAUSED", style=f"{COLOR_BASS} bold")

        result.append("    │    Loop ", style=COLOR_MUTED)
        result.append("ON", style=f"{COLOR_PRIMARY} bold")
        return result

    def _refresh_status(self) -> None:
        if not self.is_mounted:
            return
        self.query_one("#header-status", Static).update(self._render_status())

    def watch_is_playing(self, new_value: bool) -> None:
        self._refresh_status()

    def watch_is_loading(self, new_value: bool) -> None:
        self._refresh_status()
