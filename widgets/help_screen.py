from __future__ import annotations

from textual.screen import ModalScreen
from textual.widgets import Static, Button
from textual.containers import Container, VerticalScroll
from textual.app import ComposeResult

HELP_TEXT = """[bold #ff8c00]🧘 MEDITATION MIXER[/bold #ff8c00]

Pick one music track and one binaural beat, set each volume,
and play both together as a looping ambient mix.

[bold]CHANNELS[/bold]
  Tab         Switch active channel (music / binaural)
  Enter       Open the track selector of the active channel

[bold]PLAYBACK CONTROLS[/bold]
  Space       Play/Pause both channels together
  ←/→         Seek active channel back/forward 10 seconds

[bold]VOLUME CONTROLS[/bold]
  +/=         Increase active channel volume
  -           Decrease active channel volume

[bold]OTHER[/bold]
  h/?         Show this help
  q           Quit application

[bold]LIBRARY[/bold]
  • Tracks come from public/audio/music/ and public/audio/binaural/
    (or the catalog set in MIXER_CATALOG)
  • Supported formats: MP3, WAV, OGG, M4A
  • Both channels loop until paused"""


class HelpScreen(ModalScreen[None]):
    """Modal screen displaying help information."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-container {
        width: 80;
        height: 80%;
        background: #1a1a1a;
        border: thick #cc5500;
        padding: 1 2;
    }

    #help-scroll {
        width: 100%;
        height: 1fr;
        margin-bottom: 1;
    }

    #help-content {
        width: 100%;
        height: auto;
    }

    #help-close-button {
        width: 100%;
        height: auto;
        background: #2d2d2d;
        color: #ff8c00;
        border: solid #ff8c00;
        text-style: bold;
    }

    #help-close-button:hover {
        background: #3d3d3d;
        color: #ffb347;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the help screen."""
        with Container(id="help-container"):
            with VerticalScroll(id="help-scroll"):
                yield Static(HELP_TEXT, id="help-content")

            yield Button("Close (Esc)", id="help-close-button", variant="primary")

    def on_mount(self) -> None:
        """Focus the button when screen mounts."""
        self.call_after_refresh(self._focus_button)

    def _focus_button(self) -> None:
        button = self.query_one("#help-close-button", Button)
        button.focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle close button press."""
        if event.button.id == "help-close-button":
            self.dismiss()

    async def on_key(self, event) -> None:
        """Close on escape."""
        if event.key == "escape":
            self.dismiss()
            event.prevent_default()
            event.stop()
