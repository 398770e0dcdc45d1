"""Transient status banner for upload and query progress."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.widgets import Static

if TYPE_CHECKING:
    from textual.timer import Timer

STATUS_KINDS = ("info", "success", "error")
AUTO_HIDE_SECONDS = 5.0


class StatusBanner(Static):
    """A status sink; success and error messages hide themselves after a while."""

    DEFAULT_CSS = """
    StatusBanner {
        height: auto;
        padding: 0 1;
        display: none;
    }
    StatusBanner.-visible {
        display: block;
    }
    StatusBanner.-info {
        background: $primary 20%;
    }
    StatusBanner.-success {
        background: $success 30%;
    }
    StatusBanner.-error {
        background: $error 30%;
    }
    """

    def __init__(self, *, id: str | None = None) -> None:  # noqa: A002
        super().__init__("", id=id, markup=False)
        self.message = ""
        self.kind = ""
        self._hide_timer: Timer | None = None

    def show_status(self, message: str, kind: str) -> None:
        """Show ``message`` styled by ``kind`` ("info", "success" or "error")."""
        if kind not in STATUS_KINDS:
            msg = f"Unknown status kind: {kind!r}"
            raise ValueError(msg)
        self.message = message
        self.kind = kind
        self.update(message)
        for k in STATUS_KINDS:
            self.set_class(k == kind, f"-{k}")
        self.add_class("-visible")

        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
        if kind in ("success", "error"):
            self._hide_timer = self.set_timer(AUTO_HIDE_SECONDS, self.hide)

    def hide(self) -> None:
        self.remove_class("-visible")
