"""Backend worker — processes request queue, dispatches to the QA service."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from docstream.api import ApiError, fetch_collection_info, query, stream_query, upload_document
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
from docstream.stream import SessionTracker

if TYPE_CHECKING:
    from docstream.config import ClientConfig
    from docstream.markup import Dialect

logger = logging.getLogger(__name__)


class _QueueSink:
    """Content and status sink that forwards to the response queue."""

    def __init__(self, response_queue: asyncio.Queue[Response], query_id: int) -> None:
        self._queue = response_queue
        self._query_id = query_id

    def set_content(self, markup: str) -> None:
        self._queue.put_nowait(StreamUpdate(query_id=self._query_id, markup=markup))

    def show_status(self, message: str, kind: str) -> None:
        self._queue.put_nowait(StatusUpdate(query_id=self._query_id, message=message, kind=kind))


async def _handle_upload(req: UploadRequest, config: ClientConfig) -> UploadResult:
    """Upload a document and report how many chunks it produced."""
    path = Path(req.path).expanduser()
    payload = await upload_document(
        config.api_base_url, req.company_id, path, timeout=config.timeout
    )
    return UploadResult(path=str(path), chunks_count=payload.get("chunks_count"), payload=payload)


async def _handle_collection_info(
    req: CollectionInfoRequest,
    config: ClientConfig,
) -> CollectionInfoResult:
    """Fetch collection metadata."""
    payload = await fetch_collection_info(
        config.api_base_url, req.company_id, timeout=config.timeout
    )
    return CollectionInfoResult(company_id=req.company_id, payload=payload)


async def _run_query(
    req: QueryRequest,
    response_queue: asyncio.Queue[Response],
    config: ClientConfig,
    tracker: SessionTracker,
    dialect: Dialect,
) -> None:
    """Answer one query, posting results for the TUI."""
    if not req.stream:
        try:
            payload = await query(
                config.api_base_url, req.company_id, req.query, timeout=config.timeout
            )
        except ApiError as e:
            await response_queue.put(
                ErrorResult("QueryRequest", str(e), query_id=req.query_id, payload=e.payload)
            )
            return
        await response_queue.put(QueryResult(query_id=req.query_id, payload=payload))
        return

    sink = _QueueSink(response_queue, req.query_id)
    session = tracker.begin(sink, status=sink, dialect=dialect)
    chunks = stream_query(config.api_base_url, req.company_id, req.query, timeout=config.timeout)
    outcome = await session.run(chunks)
    if not outcome.superseded:
        error = str(outcome.error) if outcome.error is not None else ""
        await response_queue.put(
            StreamComplete(query_id=req.query_id, chunks=outcome.chunks, error=error)
        )


async def backend_worker(
    request_queue: asyncio.Queue[Request],
    response_queue: asyncio.Queue[Response],
    config: ClientConfig,
    *,
    dialect: Dialect = RICH,
) -> None:
    """Process requests from the TUI and post results back.

    Queries run as their own task so a newer query can cancel an older one
    while uploads and collection lookups keep being served.
    """
    tracker = SessionTracker()
    query_task: asyncio.Task[None] | None = None

    async def _guarded_query(req: QueryRequest) -> None:
        try:
            await _run_query(req, response_queue, config, tracker, dialect)
        except asyncio.CancelledError:
            logger.debug("Query %d cancelled", req.query_id)
            raise
        except Exception as e:  # noqa: BLE001
            await response_queue.put(ErrorResult("QueryRequest", str(e), query_id=req.query_id))

    try:
        while True:
            req = await request_queue.get()
            try:
                result: Response
                if isinstance(req, QueryRequest):
                    if query_task is not None and not query_task.done():
                        query_task.cancel()
                    query_task = asyncio.create_task(_guarded_query(req))
                    continue
                if isinstance(req, UploadRequest):
                    result = await _handle_upload(req, config)
                elif isinstance(req, CollectionInfoRequest):
                    result = await _handle_collection_info(req, config)
                else:
                    result = ErrorResult(
                        request_type=type(req).__name__, error="Unknown request type"
                    )
                await response_queue.put(result)
            except Exception as e:  # noqa: BLE001
                payload = e.payload if isinstance(e, ApiError) else None
                await response_queue.put(
                    ErrorResult(request_type=type(req).__name__, error=str(e), payload=payload)
                )
            finally:
                request_queue.task_done()
    finally:
        if query_task is not None and not query_task.done():
            query_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await query_task
