"""Request/response message types for TUI ↔ backend communication."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias

# === Requests (TUI → Backend) ===


@dataclass(frozen=True)
class UploadRequest:
    """Ask the backend to upload a document into a company's collection."""

    company_id: str
    path: str


@dataclass(frozen=True)
class QueryRequest:
    """Ask the backend to answer a question, streamed or in one piece.

    A newer QueryRequest supersedes any query still running.
    """

    query_id: int
    company_id: str
    query: str
    stream: bool = True


@dataclass(frozen=True)
class CollectionInfoRequest:
    """Ask the backend for collection metadata."""

    company_id: str


Request: TypeAlias = "UploadRequest | QueryRequest | CollectionInfoRequest"


# === Responses (Backend → TUI) ===


@dataclass(frozen=True)
class UploadResult:
    """Report a processed upload."""

    path: str
    chunks_count: int | None
    payload: dict[str, Any]


@dataclass(frozen=True)
class QueryResult:
    """Report a complete (non-streamed) answer payload."""

    query_id: int
    payload: dict[str, Any]


@dataclass(frozen=True)
class StreamUpdate:
    """Replace the answer pane with a fresh render of the streamed answer."""

    query_id: int
    markup: str


@dataclass(frozen=True)
class StatusUpdate:
    """Show a status banner for a running query."""

    query_id: int
    message: str
    kind: str  # "info" | "success" | "error"


@dataclass(frozen=True)
class StreamComplete:
    """Report the end of a streamed answer (or its failure)."""

    query_id: int
    chunks: int
    error: str = ""


@dataclass(frozen=True)
class CollectionInfoResult:
    """Report collection metadata, displayed verbatim."""

    company_id: str
    payload: dict[str, Any]


@dataclass(frozen=True)
class ErrorResult:
    """Report an error processing a request."""

    request_type: str
    error: str
    query_id: int | None = None
    payload: Any = None


Response: TypeAlias = (
    "UploadResult | QueryResult | StreamUpdate | StatusUpdate | StreamComplete | CollectionInfoResult | ErrorResult"
)
