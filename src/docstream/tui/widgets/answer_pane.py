"""Answer pane — displays rendered Rich markup, replacing it on every update."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static


class AnswerPane(Static):
    """A content sink: each ``set_content`` call overwrites the pane."""

    DEFAULT_CSS = """
    AnswerPane {
        height: auto;
        padding: 1 2;
    }
    AnswerPane.-empty {
        display: none;
    }
    """

    def __init__(self, *, id: str | None = None) -> None:  # noqa: A002
        super().__init__("", id=id, classes="-empty")
        self.markup_source = ""

    def set_content(self, markup: str) -> None:
        """Replace the displayed content with ``markup``."""
        self.markup_source = markup
        self.update(Text.from_markup(markup))
        self.set_class(not markup, "-empty")
