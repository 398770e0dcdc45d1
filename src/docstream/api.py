"""HTTP client for the document QA service: upload, query, stream, collections."""

from __future__ import annotations

import logging
import mimetypes
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
REQUEST_TIMEOUT = 60.0  # seconds, answers can take a while to generate


class ApiError(Exception):
    """Raised when the service answers with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        payload: Any = None,  # noqa: ANN401
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def _endpoint(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}{API_PREFIX}{path}"


def _json_or_none(response: httpx.Response) -> Any:  # noqa: ANN401
    try:
        return response.json()
    except ValueError:
        return None


def _raise_for_error(response: httpx.Response, fallback: str) -> None:
    """Raise ApiError with the service's ``detail`` message, if any."""
    if response.is_success:
        return
    payload = _json_or_none(response)
    detail = payload.get("detail") if isinstance(payload, dict) else None
    message = str(detail) if detail else fallback
    logger.warning(
        "%s %s -> %d: %s", response.request.method, response.url, response.status_code, message
    )
    raise ApiError(message, status_code=response.status_code, payload=payload)


async def upload_document(
    base_url: str,
    company_id: str,
    path: Path,
    *,
    timeout: float = REQUEST_TIMEOUT,
) -> dict[str, Any]:
    """Upload a document for processing into the company's collection."""
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    files = {"file": (path.name, path.read_bytes(), content_type)}
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.post(
            _endpoint(base_url, "/process-document"),
            params={"company_id": company_id},
            files=files,
        )
    _raise_for_error(response, "Upload failed")
    return response.json()


async def query(
    base_url: str,
    company_id: str,
    question: str,
    *,
    timeout: float = REQUEST_TIMEOUT,
) -> dict[str, Any]:
    """Ask a question and wait for the complete answer payload."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.post(
            _endpoint(base_url, "/query"),
            json={"company_id": company_id, "query": question},
        )
    _raise_for_error(response, "Query failed")
    return response.json()


async def stream_query(
    base_url: str,
    company_id: str,
    question: str,
    *,
    timeout: float = REQUEST_TIMEOUT,
) -> AsyncIterator[bytes]:
    """Ask a question and yield the answer body as raw byte chunks.

    Closing the generator early releases the connection.
    """
    async with (
        httpx.AsyncClient(timeout=timeout) as client,
        client.stream(
            "POST",
            _endpoint(base_url, "/query/stream"),
            json={"company_id": company_id, "query": question},
        ) as response,
    ):
        if not response.is_success:
            await response.aread()
            _raise_for_error(response, "Streaming query failed")
        async for chunk in response.aiter_bytes():
            yield chunk


async def fetch_collection_info(
    base_url: str,
    company_id: str,
    *,
    timeout: float = REQUEST_TIMEOUT,
) -> dict[str, Any]:
    """Fetch metadata about the company's document collection."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        url = _endpoint(base_url, f"/collections/{quote(company_id, safe='')}")
        response = await client.get(url)
    _raise_for_error(response, "Collection info failed")
    return response.json()
