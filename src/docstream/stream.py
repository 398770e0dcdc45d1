"""Stream reassembly: decode chunks, accumulate, re-render, push to a sink."""

from __future__ import annotations

import codecs
import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import httpx

from docstream.api import ApiError
from docstream.markdown_light import render_markdown
from docstream.markup import HTML, Dialect
from docstream.results import format_error

if TYPE_CHECKING:
    from collections.abc import AsyncIterable

logger = logging.getLogger(__name__)

STREAM_ENCODING = "utf-8"

# Errors from the network boundary that end a session without crashing it.
TRANSPORT_ERRORS = (httpx.HTTPError, ApiError, OSError)


class ContentSink(Protocol):
    """Displays markup; each call replaces what was shown before."""

    def set_content(self, markup: str) -> None: ...


class StatusSink(Protocol):
    """Displays a short status banner ("info", "success" or "error")."""

    def show_status(self, message: str, kind: str) -> None: ...


@dataclass(frozen=True)
class StreamOutcome:
    """Summary of one streaming session."""

    text: str
    rendered: str
    chunks: int
    error: Exception | None = None
    superseded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.superseded


class SessionTracker:
    """Hands out stream sessions; starting a new one supersedes the old one."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.current: StreamSession | None = None

    def begin(
        self,
        sink: ContentSink,
        *,
        status: StatusSink | None = None,
        dialect: Dialect = HTML,
    ) -> StreamSession:
        """Create the new current session."""
        session = StreamSession(
            sink, status=status, dialect=dialect, session_id=next(self._ids), tracker=self
        )
        if self.current is not None:
            logger.debug("Session %d superseded by %d", self.current.session_id, session.session_id)
        self.current = session
        return session

    def is_current(self, session: StreamSession) -> bool:
        return self.current is session


class StreamSession:
    """One streaming query: owns the accumulation buffer and its sinks.

    The buffer only grows. After every chunk the whole buffer is rendered and
    replaces the sink content. Writes are skipped once the session has been
    superseded by a newer one from the same tracker.
    """

    def __init__(
        self,
        sink: ContentSink,
        *,
        status: StatusSink | None = None,
        dialect: Dialect = HTML,
        session_id: int = 0,
        tracker: SessionTracker | None = None,
    ) -> None:
        self.session_id = session_id
        self._sink = sink
        self._status = status
        self._dialect = dialect
        self._tracker = tracker
        self._decoder = codecs.getincrementaldecoder(STREAM_ENCODING)(errors="replace")
        self._buffer = ""
        self._rendered = ""
        self._chunks = 0

    @property
    def text(self) -> str:
        """The decoded text received so far."""
        return self._buffer

    @property
    def is_current(self) -> bool:
        return self._tracker is None or self._tracker.is_current(self)

    def feed(self, data: bytes, *, final: bool = False) -> str:
        """Decode ``data``, append it and return the full re-render."""
        self._buffer += self._decoder.decode(data, final=final)
        self._rendered = render_markdown(self._buffer, self._dialect)
        return self._rendered

    def _write(self, markup: str) -> bool:
        if not self.is_current:
            return False
        self._sink.set_content(markup)
        return True

    def _report(self, message: str, kind: str) -> None:
        if self._status is not None and self.is_current:
            self._status.show_status(message, kind)

    def _outcome(
        self, *, error: Exception | None = None, superseded: bool = False
    ) -> StreamOutcome:
        return StreamOutcome(
            text=self._buffer,
            rendered=self._rendered,
            chunks=self._chunks,
            error=error,
            superseded=superseded,
        )

    async def run(self, chunks: AsyncIterable[bytes]) -> StreamOutcome:
        """Consume ``chunks`` until end-of-stream, error, or supersession.

        Transport errors are reported, not raised. Cancellation propagates
        after the source has been released.
        """
        if not self._write(""):
            return self._outcome(superseded=True)
        self._report("Streaming response...", "info")

        iterator = aiter(chunks)
        try:
            async for data in iterator:
                self._chunks += 1
                markup = self.feed(data)
                logger.debug(
                    "Session %d chunk %d: %d bytes, %d chars total",
                    self.session_id,
                    self._chunks,
                    len(data),
                    len(self._buffer),
                )
                if not self._write(markup):
                    return self._outcome(superseded=True)
        except TRANSPORT_ERRORS as e:
            return self._fail(e)
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        tail_len = len(self._buffer)
        markup = self.feed(b"", final=True)
        if len(self._buffer) != tail_len and not self._write(markup):
            return self._outcome(superseded=True)
        self._report("Streaming complete!", "success")
        return self._outcome()

    def _fail(self, error: Exception) -> StreamOutcome:
        logger.warning("Stream session %d failed: %s", self.session_id, error)
        # Nothing shown yet: replace the empty container with the error.
        # Otherwise keep the partial answer on screen.
        if not self._buffer:
            self._write(format_error(str(error), self._dialect))
        self._report(f"Error: {error}", "error")
        return self._outcome(error=error)
