"""Textual App — main TUI entry point."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Button, Checkbox, Footer, Header, Input, Label

from docstream.config import ClientConfig
from docstream.markup import RICH
from docstream.messages import (
    CollectionInfoRequest,
    CollectionInfoResult,
    ErrorResult,
    QueryRequest,
    QueryResult,
    Request,
    Response,
    StatusUpdate,
    StreamComplete,
    StreamUpdate,
    UploadRequest,
    UploadResult,
)
from docstream.results import format_error, format_json, format_query_result
from docstream.tui.help_screen import HelpScreen
from docstream.tui.widgets.answer_pane import AnswerPane
from docstream.tui.widgets.status_banner import StatusBanner

if TYPE_CHECKING:
    from textual.binding import BindingType

POLL_INTERVAL = 0.05

UPLOAD_LABEL = "Upload Document"
QUERY_LABEL = "Query"
COLLECTION_LABEL = "Get Collection Info"


class DocstreamApp(App[None]):
    """Upload documents, ask questions and watch streamed answers."""

    TITLE = "docstream"

    CSS = """
    #main-container {
        height: 1fr;
        padding: 0 1;
    }
    .row {
        height: auto;
    }
    .row Input {
        width: 1fr;
    }
    #stream-check {
        width: auto;
    }
    #query-result {
        border: round $primary;
    }
    #collection-info {
        border: round $secondary;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("f1", "show_help", "Help", show=True),
        Binding("ctrl+r", "query", "Ask", show=True),
        Binding("ctrl+o", "upload", "Upload", show=True),
        Binding("ctrl+l", "collection_info", "Collection", show=True),
        Binding("ctrl+t", "toggle_stream", "Stream", show=False),
    ]

    def __init__(
        self,
        config: ClientConfig | None = None,
        request_queue: asyncio.Queue[Request] | None = None,
        response_queue: asyncio.Queue[Response] | None = None,
    ) -> None:
        super().__init__()
        self._config = config if config is not None else ClientConfig()
        self._request_queue: asyncio.Queue[Request] = (
            request_queue if request_queue is not None else asyncio.Queue()
        )
        self._response_queue: asyncio.Queue[Response] = (
            response_queue if response_queue is not None else asyncio.Queue()
        )
        self._query_seq = 0
        self.current_query_id: int | None = None

    def compose(self) -> ComposeResult:
        """Create the form and result panes."""
        yield Header()
        with VerticalScroll(id="main-container"):
            with Horizontal(classes="row"):
                yield Input(
                    value=self._config.company_id or "",
                    placeholder="Company ID",
                    id="company-id",
                )
                yield Button(COLLECTION_LABEL, id="collection-btn")
            with Horizontal(classes="row"):
                yield Input(placeholder="Path to document…", id="file-path")
                yield Button(UPLOAD_LABEL, id="upload-btn", variant="primary")
            yield StatusBanner(id="upload-status")
            with Horizontal(classes="row"):
                yield Input(placeholder="Ask a question…", id="query-input")
                yield Checkbox("Stream", value=self._config.stream, id="stream-check")
                yield Button(QUERY_LABEL, id="query-btn", variant="success")
            yield StatusBanner(id="query-status")
            yield Label("", id="file-info")
            yield AnswerPane(id="query-result")
            yield AnswerPane(id="collection-info")
        yield Footer()

    def on_mount(self) -> None:
        """Start polling the response queue."""
        self.set_interval(POLL_INTERVAL, self._poll_responses)
        self.query_one("#query-input", Input).focus()

    # === Helpers ===

    def _company_id(self) -> str:
        return self.query_one("#company-id", Input).value.strip()

    def _set_busy(self, button_id: str, label: str, *, busy: bool) -> None:
        button = self.query_one(f"#{button_id}", Button)
        button.disabled = busy
        button.label = label

    @property
    def query_status(self) -> StatusBanner:
        return self.query_one("#query-status", StatusBanner)

    @property
    def upload_status(self) -> StatusBanner:
        return self.query_one("#upload-status", StatusBanner)

    @property
    def answer_pane(self) -> AnswerPane:
        return self.query_one("#query-result", AnswerPane)

    @property
    def collection_pane(self) -> AnswerPane:
        return self.query_one("#collection-info", AnswerPane)

    # === Response handling ===

    async def _poll_responses(self) -> None:
        """Drain the response queue and update the UI."""
        while not self._response_queue.empty():
            try:
                resp = self._response_queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._handle_response(resp)

    def _handle_response(self, resp: Response) -> None:
        """Dispatch a response message to the appropriate handler."""
        if isinstance(resp, StreamUpdate | StatusUpdate | StreamComplete | QueryResult) and (
            resp.query_id != self.current_query_id
        ):
            # Left over from a superseded query
            return
        if isinstance(resp, StreamUpdate):
            self.answer_pane.set_content(resp.markup)
        elif isinstance(resp, StatusUpdate):
            self.query_status.show_status(resp.message, resp.kind)
        elif isinstance(resp, StreamComplete):
            self._finish_query()
        elif isinstance(resp, QueryResult):
            self.answer_pane.set_content(format_query_result(resp.payload, RICH))
            self.query_status.show_status("Query successful!", "success")
            self._finish_query()
        elif isinstance(resp, UploadResult):
            self._on_upload_result(resp)
        elif isinstance(resp, CollectionInfoResult):
            self.collection_pane.set_content(format_json(resp.payload, RICH))
            self._set_busy("collection-btn", COLLECTION_LABEL, busy=False)
        elif isinstance(resp, ErrorResult):
            self._on_error_result(resp)

    def _finish_query(self) -> None:
        self.current_query_id = None
        self._set_busy("query-btn", QUERY_LABEL, busy=False)

    def _on_upload_result(self, result: UploadResult) -> None:
        self.upload_status.show_status(f"Success! {result.chunks_count} chunks created.", "success")
        self.query_one("#file-path", Input).value = ""
        self.query_one("#file-info", Label).update("")
        self._set_busy("upload-btn", UPLOAD_LABEL, busy=False)

    def _on_error_result(self, result: ErrorResult) -> None:
        """Route an error to the banner (and pane) of the request that failed."""
        if result.request_type == "QueryRequest":
            if result.query_id != self.current_query_id:
                return
            self.query_status.show_status(f"Error: {result.error}", "error")
            if result.payload is not None:
                self.answer_pane.set_content(format_json(result.payload, RICH))
            else:
                self.answer_pane.set_content(format_error(result.error, RICH))
            self._finish_query()
        elif result.request_type == "UploadRequest":
            self.upload_status.show_status(f"Error: {result.error}", "error")
            self._set_busy("upload-btn", UPLOAD_LABEL, busy=False)
        elif result.request_type == "CollectionInfoRequest":
            self.collection_pane.set_content(format_error(result.error, RICH))
            self._set_busy("collection-btn", COLLECTION_LABEL, busy=False)
        else:
            self.notify(f"Error ({result.request_type}): {result.error}", severity="error")

    # === Actions ===

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Dispatch button clicks to actions."""
        actions = {
            "query-btn": self.action_query,
            "upload-btn": self.action_upload,
            "collection-btn": self.action_collection_info,
        }
        handler = actions.get(event.button.id or "")
        if handler is not None:
            handler()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter in the question field asks; in the path field uploads."""
        if event.input.id == "query-input":
            self.action_query()
        elif event.input.id == "file-path":
            self.action_upload()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Show the size of the selected file."""
        if event.input.id != "file-path":
            return
        info = self.query_one("#file-info", Label)
        path = Path(event.value.strip()).expanduser()
        if event.value.strip() and path.is_file():
            info.update(f"Selected: {path.name} ({path.stat().st_size / 1024:.2f} KB)")
        else:
            info.update("")

    def action_query(self) -> None:
        """Send the question, superseding any query still running."""
        question = self.query_one("#query-input", Input).value.strip()
        company_id = self._company_id()
        if not question:
            self.query_status.show_status("Please enter a query", "error")
            return
        if not company_id:
            self.query_status.show_status("Please enter a company ID", "error")
            return

        self._query_seq += 1
        self.current_query_id = self._query_seq
        stream = self.query_one("#stream-check", Checkbox).value
        self._set_busy("query-btn", "Querying…", busy=True)
        self.query_status.show_status("Querying documents...", "info")
        self.answer_pane.set_content("")
        self._request_queue.put_nowait(
            QueryRequest(
                query_id=self.current_query_id,
                company_id=company_id,
                query=question,
                stream=stream,
            )
        )

    def action_upload(self) -> None:
        """Upload the document named in the path field."""
        raw_path = self.query_one("#file-path", Input).value.strip()
        company_id = self._company_id()
        if not raw_path:
            self.upload_status.show_status("Please select a file", "error")
            return
        if not Path(raw_path).expanduser().is_file():
            self.upload_status.show_status(f"File not found: {raw_path}", "error")
            return
        if not company_id:
            self.upload_status.show_status("Please enter a company ID", "error")
            return

        self._set_busy("upload-btn", "Uploading…", busy=True)
        self.upload_status.show_status("Uploading document...", "info")
        self._request_queue.put_nowait(UploadRequest(company_id=company_id, path=raw_path))

    def action_collection_info(self) -> None:
        """Fetch and show collection metadata."""
        company_id = self._company_id()
        if not company_id:
            self.collection_pane.set_content("Please enter a company ID")
            return
        self._set_busy("collection-btn", "Loading…", busy=True)
        self._request_queue.put_nowait(CollectionInfoRequest(company_id=company_id))

    def action_toggle_stream(self) -> None:
        """Toggle streamed answers."""
        checkbox = self.query_one("#stream-check", Checkbox)
        checkbox.value = not checkbox.value

    def action_show_help(self) -> None:
        """Show the help overlay."""
        self.push_screen(HelpScreen())
