"""CLI entry point and subcommand definitions."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from rich.console import Console
from rich.live import Live
from rich.text import Text

from docstream.api import ApiError, fetch_collection_info, query, stream_query, upload_document
from docstream.config import ClientConfig, ConfigError, load_config
from docstream.markdown_light import render_markdown
from docstream.markup import DIALECTS, get_dialect
from docstream.results import format_json, format_query_result
from docstream.stream import StreamSession

if TYPE_CHECKING:
    from collections.abc import Callable

    from docstream.markup import Dialect

logger = logging.getLogger(__name__)

_STATUS_STYLES = {"info": "dim", "success": "green", "error": "bold red"}


class _LiveSink:
    """Content sink redrawing a Rich Live region in place."""

    def __init__(self, live: Live) -> None:
        self._live = live

    def set_content(self, markup: str) -> None:
        self._live.update(Text.from_markup(markup), refresh=True)


class _LatestSink:
    """Content sink that keeps only the most recent markup."""

    def __init__(self) -> None:
        self.markup = ""

    def set_content(self, markup: str) -> None:
        self.markup = markup


class _ConsoleStatus:
    """Status sink printing banners to stderr."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def show_status(self, message: str, kind: str) -> None:
        self._console.print(message, style=_STATUS_STYLES.get(kind, ""), markup=False)


def _emit(markup: str, dialect: Dialect, console: Console) -> None:
    """Print rendered markup: Rich markup is styled, HTML is printed as-is."""
    if dialect.name == "rich":
        console.print(Text.from_markup(markup))
    else:
        print(markup)


def _require_company_id(args: argparse.Namespace, config: ClientConfig) -> str:
    company_id: str | None = args.company_id or config.company_id
    if not company_id:
        print("Please enter a company ID (--company-id or config.toml)", file=sys.stderr)
        sys.exit(1)
    return company_id


def _cmd_upload(args: argparse.Namespace, config: ClientConfig) -> None:
    """Upload a document for processing."""
    company_id = _require_company_id(args, config)
    path = Path(args.file).expanduser()
    if not path.is_file():
        print(f"Please select a file: {path} does not exist", file=sys.stderr)
        sys.exit(1)
    data = asyncio.run(
        upload_document(config.api_base_url, company_id, path, timeout=config.timeout)
    )
    print(f"Success! {data.get('chunks_count')} chunks created.")


def _cmd_ask(args: argparse.Namespace, config: ClientConfig) -> None:
    """Ask a question, streaming the answer unless disabled."""
    company_id = _require_company_id(args, config)
    dialect = get_dialect(args.format)
    console = Console()
    stream = config.stream if args.stream is None else args.stream

    if not stream:
        payload = asyncio.run(
            query(config.api_base_url, company_id, args.question, timeout=config.timeout)
        )
        _emit(format_query_result(payload, dialect), dialect, console)
        return

    status = _ConsoleStatus(Console(stderr=True))
    chunks = stream_query(config.api_base_url, company_id, args.question, timeout=config.timeout)
    if dialect.name == "rich":
        with Live(console=console, auto_refresh=False, vertical_overflow="visible") as live:
            session = StreamSession(_LiveSink(live), status=status, dialect=dialect)
            outcome = asyncio.run(session.run(chunks))
    else:
        sink = _LatestSink()
        session = StreamSession(sink, status=status, dialect=dialect)
        outcome = asyncio.run(session.run(chunks))
        if sink.markup:
            print(sink.markup)
    if outcome.error is not None:
        sys.exit(1)


def _cmd_collection(args: argparse.Namespace, config: ClientConfig) -> None:
    """Show collection metadata as JSON."""
    company_id = _require_company_id(args, config)
    data = asyncio.run(
        fetch_collection_info(config.api_base_url, company_id, timeout=config.timeout)
    )
    dialect = get_dialect(args.format)
    _emit(format_json(data, dialect), dialect, Console())


def _cmd_render(args: argparse.Namespace, _config: ClientConfig) -> None:
    """Render a local text file (or stdin) the way answers are rendered."""
    text = Path(args.file).read_text() if args.file and args.file != "-" else sys.stdin.read()
    dialect = get_dialect(args.format)
    _emit(render_markdown(text, dialect), dialect, Console())


def _launch_tui(config: ClientConfig) -> None:
    """Launch the Textual TUI with a backend worker.

    Imports are deferred to avoid loading Textual for CLI-only commands.
    """
    from docstream.backend import backend_worker  # noqa: PLC0415
    from docstream.messages import Request, Response  # noqa: PLC0415, TC001
    from docstream.tui.app import DocstreamApp  # noqa: PLC0415

    request_queue: asyncio.Queue[Request] = asyncio.Queue()
    response_queue: asyncio.Queue[Response] = asyncio.Queue()

    app = DocstreamApp(config=config, request_queue=request_queue, response_queue=response_queue)

    async def _run() -> None:
        worker = asyncio.create_task(backend_worker(request_queue, response_queue, config))
        try:
            await app.run_async()
        finally:
            worker.cancel()

    asyncio.run(_run())


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docstream",
        description="Ask questions about your documents and watch the answers stream in",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", type=Path, help="Path to config.toml")
    parser.add_argument("--api-url", help="Base URL of the document QA service")
    parser.add_argument("--company-id", help="Collection to upload to and query")
    subparsers = parser.add_subparsers(dest="command")
    formats = sorted(DIALECTS)

    # upload
    upload_parser = subparsers.add_parser("upload", help="Upload a document")
    upload_parser.add_argument("file", help="Document to upload")

    # ask
    ask_parser = subparsers.add_parser("ask", help="Ask a question about the documents")
    ask_parser.add_argument("question", help="Natural-language question")
    ask_parser.add_argument(
        "--stream",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Stream the answer as it is generated (default from config)",
    )
    ask_parser.add_argument("--format", choices=formats, default="rich", help="Output markup")

    # collection
    collection_parser = subparsers.add_parser("collection", help="Show collection info")
    collection_parser.add_argument(
        "--format", choices=formats, default="rich", help="Output markup"
    )

    # render
    render_parser = subparsers.add_parser("render", help="Render a local text file")
    render_parser.add_argument(
        "file", nargs="?", default="-", help="File to render (default: stdin)"
    )
    render_parser.add_argument("--format", choices=formats, default="html", help="Output markup")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the appropriate subcommand."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    if args.api_url:
        config = replace(config, api_base_url=args.api_url.rstrip("/"))

    logger.debug("Using API at %s", config.api_base_url)

    if args.command is None:
        _launch_tui(config)
        return

    dispatch: dict[str, Callable[[argparse.Namespace, ClientConfig], None]] = {
        "upload": _cmd_upload,
        "ask": _cmd_ask,
        "collection": _cmd_collection,
        "render": _cmd_render,
    }
    try:
        dispatch[args.command](args, config)
    except (ApiError, httpx.HTTPError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
