"""Shared fixtures: client config, recording sinks, fake byte streams."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest

from docstream.config import ClientConfig

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

API_URL = "http://qa.test"

SAMPLE_ANSWER = """\
# Summary
The contract runs for **two years**.

- renewal is *automatic*
- notice period: `90 days`

**Key Risks**
1. Early termination fee
Done."""


@dataclass
class RecordingSink:
    """Content sink remembering every markup it was given."""

    writes: list[str] = field(default_factory=list)

    def set_content(self, markup: str) -> None:
        self.writes.append(markup)

    @property
    def content(self) -> str:
        return self.writes[-1] if self.writes else ""


@dataclass
class RecordingStatus:
    """Status sink remembering (message, kind) pairs."""

    events: list[tuple[str, str]] = field(default_factory=list)

    def show_status(self, message: str, kind: str) -> None:
        self.events.append((message, kind))

    @property
    def kinds(self) -> list[str]:
        return [kind for _msg, kind in self.events]


class FakeStream:
    """Async byte-stream source yielding fixed chunks, optionally failing."""

    def __init__(self, chunks: list[bytes], *, error: Exception | None = None) -> None:
        self.chunks = chunks
        self.error = error
        self.pulled = 0
        self.closed = False

    async def _gen(self) -> AsyncIterator[bytes]:
        try:
            for chunk in self.chunks:
                self.pulled += 1
                yield chunk
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._gen()


@pytest.fixture
def config() -> ClientConfig:
    """Client config pointing at a mocked service."""
    return ClientConfig(api_base_url=API_URL, company_id="acme", timeout=5.0)
