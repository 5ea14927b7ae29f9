"""Shared HTTP transport -- async and sync executors for the Metis API.

Resource clients hand the transport a :class:`RequestDescriptor` (or call one
of the per-method helpers) and get the raw response body back as text. Every
failure surfaces as exactly one classified :class:`~metis.exceptions.MetisError`.
No retries are performed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Union

import httpx

from metis.config import MetisConfig
from metis.exceptions import (
    ApiError,
    AuthError,
    InvalidEndpoint,
    MetisError,
    NetworkError,
)
from metis.multipart import encode_multipart

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

# A JSON string, an ordered multipart field mapping, or no body at all.
RequestBody = Union[str, Mapping[str, Any], None]


# ---------------------------------------------------------------------------
# URL composition
# ---------------------------------------------------------------------------


def build_url(
    base_url: str,
    path: str,
    query_params: Mapping[str, str] | None = None,
) -> httpx.URL:
    """Join *base_url* and *path* and append *query_params* in insertion order."""
    raw = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as exc:
        raise InvalidEndpoint(f"Invalid endpoint URL {raw!r}: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidEndpoint(f"Invalid endpoint URL {raw!r}")
    if query_params:
        url = url.copy_merge_params(dict(query_params))
    return url


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


def _extract_error_message(resp: httpx.Response, fallback: str) -> str:
    """Best-effort extraction of ``{"message": "..."}`` from an error body."""
    try:
        payload = resp.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return fallback


def classify_exchange(
    response: httpx.Response | None,
    error: BaseException | None = None,
) -> MetisError | None:
    """Map an exchange outcome to an SDK error, or ``None`` on 2xx.

    Order matters: no response at all, then exactly 401, then any other
    non-2xx. The response body must already be read.
    """
    if response is None:
        return NetworkError(f"Network error: {error}")
    if response.is_success:
        return None
    if response.status_code == 401:
        return AuthError(f"Authentication failed: {response.reason_phrase}")
    fallback = f"Error {response.status_code}: {response.reason_phrase}"
    return ApiError(_extract_error_message(response, fallback), response.status_code)


# ---------------------------------------------------------------------------
# Request construction -- pure, shared by both executors.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestDescriptor:
    """One request as a resource client describes it to the transport."""

    method: HttpMethod
    path: str
    query_params: Mapping[str, str] = field(default_factory=dict)
    body: RequestBody = None


def _auth_headers(config: MetisConfig) -> dict[str, str]:
    return {"Authorization": f"Bearer {config.api_key}"}


def build_request_kwargs(config: MetisConfig, descriptor: RequestDescriptor) -> dict[str, Any]:
    """Build ``httpx`` request arguments; raises before anything hits the wire."""
    kwargs: dict[str, Any] = {
        "url": build_url(config.base_url, descriptor.path, descriptor.query_params),
        "headers": _auth_headers(config),
    }
    body = descriptor.body
    if isinstance(body, str):
        kwargs["headers"]["Content-Type"] = JSON_CONTENT_TYPE
        kwargs["content"] = body.encode("utf-8")
    elif body is not None:
        kwargs["files"] = encode_multipart(body)
    return kwargs


def _finish(response: httpx.Response) -> str:
    error = classify_exchange(response)
    if error is not None:
        logger.debug("%s %s failed: %s", response.request.method, response.request.url, error)
        raise error
    return response.text


# ---------------------------------------------------------------------------
# Async executor
# ---------------------------------------------------------------------------


class AsyncHttpTransport:
    """Awaitable executor over one shared ``httpx.AsyncClient`` pool.

    Usage::

        async with AsyncHttpTransport(MetisConfig(api_key="secret")) as http:
            body = await http.get("api/v1/meta")
    """

    def __init__(self, config: MetisConfig) -> None:
        self.config = config
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(config.timeout))

    async def __aenter__(self) -> AsyncHttpTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def get(self, path: str, query_params: Mapping[str, str] | None = None) -> str:
        return await self.execute(RequestDescriptor("GET", path, query_params or {}))

    async def post(self, path: str, body: str = "", query_params: Mapping[str, str] | None = None) -> str:
        return await self.execute(RequestDescriptor("POST", path, query_params or {}, body))

    async def put(self, path: str, body: str, query_params: Mapping[str, str] | None = None) -> str:
        return await self.execute(RequestDescriptor("PUT", path, query_params or {}, body))

    async def patch(self, path: str, body: str, query_params: Mapping[str, str] | None = None) -> str:
        return await self.execute(RequestDescriptor("PATCH", path, query_params or {}, body))

    async def delete(self, path: str, query_params: Mapping[str, str] | None = None) -> str:
        return await self.execute(RequestDescriptor("DELETE", path, query_params or {}))

    async def post_multipart(
        self,
        path: str,
        parts: Mapping[str, Any],
        query_params: Mapping[str, str] | None = None,
    ) -> str:
        return await self.execute(RequestDescriptor("POST", path, query_params or {}, parts))

    async def execute(self, descriptor: RequestDescriptor) -> str:
        """Send *descriptor* and return the fully buffered body text."""
        request = self._client.build_request(descriptor.method, **build_request_kwargs(self.config, descriptor))
        logger.debug("%s %s", request.method, request.url)
        try:
            response = await self._client.send(request)
        except httpx.RequestError as exc:
            raise classify_exchange(None, exc) from exc
        return _finish(response)


# ---------------------------------------------------------------------------
# Sync executor -- same request building and classification as the async one.
# ---------------------------------------------------------------------------


class HttpTransport:
    """Blocking executor over one shared ``httpx.Client`` pool.

    Usage::

        with HttpTransport(MetisConfig(api_key="secret")) as http:
            body = http.get("api/v1/meta")
    """

    def __init__(self, config: MetisConfig) -> None:
        self.config = config
        self._client = httpx.Client(timeout=httpx.Timeout(config.timeout))

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    def get(self, path: str, query_params: Mapping[str, str] | None = None) -> str:
        return self.execute(RequestDescriptor("GET", path, query_params or {}))

    def post(self, path: str, body: str = "", query_params: Mapping[str, str] | None = None) -> str:
        return self.execute(RequestDescriptor("POST", path, query_params or {}, body))

    def put(self, path: str, body: str, query_params: Mapping[str, str] | None = None) -> str:
        return self.execute(RequestDescriptor("PUT", path, query_params or {}, body))

    def patch(self, path: str, body: str, query_params: Mapping[str, str] | None = None) -> str:
        return self.execute(RequestDescriptor("PATCH", path, query_params or {}, body))

    def delete(self, path: str, query_params: Mapping[str, str] | None = None) -> str:
        return self.execute(RequestDescriptor("DELETE", path, query_params or {}))

    def post_multipart(
        self,
        path: str,
        parts: Mapping[str, Any],
        query_params: Mapping[str, str] | None = None,
    ) -> str:
        return self.execute(RequestDescriptor("POST", path, query_params or {}, parts))

    def execute(self, descriptor: RequestDescriptor) -> str:
        """Send *descriptor* and return the fully buffered body text."""
        request = self._client.build_request(descriptor.method, **build_request_kwargs(self.config, descriptor))
        logger.debug("%s %s", request.method, request.url)
        try:
            response = self._client.send(request)
        except httpx.RequestError as exc:
            raise classify_exchange(None, exc) from exc
        return _finish(response)
