"""Help screen — modal overlay showing keybindings."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.containers import Center, Middle
from textual.screen import ModalScreen
from textual.widgets import Static

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType

_HELP = """\
[bold]Keybindings[/bold]

  [bold]Enter[/bold]     Ask (in the question field)
  [bold]Ctrl+r[/bold]    Ask the question
  [bold]Ctrl+o[/bold]    Upload the document
  [bold]Ctrl+l[/bold]    Show collection info
  [bold]Ctrl+t[/bold]    Toggle streaming
  [bold]Tab[/bold]       Next field
  [bold]F1[/bold]        This help
  [bold]Ctrl+q[/bold]    Quit

[bold]Answer formatting[/bold]

  # Heading, **bold**, *italic*, _italic_, `code`
  - bullet / 1. numbered items

Press [bold]F1[/bold] or [bold]Escape[/bold] to dismiss.
"""


class HelpScreen(ModalScreen[None]):
    """Modal help overlay showing all keybindings."""

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "dismiss_help", "Close"),
        ("f1", "dismiss_help", "Close"),
    ]

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }
    HelpScreen > Center > Middle > Static {
        width: 56;
        padding: 2 4;
        background: $surface;
        border: tall $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Create the help content."""
        with Center(), Middle():
            yield Static(_HELP, markup=True)

    def action_dismiss_help(self) -> None:
        """Dismiss the help screen."""
        self.dismiss(None)
