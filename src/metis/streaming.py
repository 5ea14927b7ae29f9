"""Server-sent-event consumption for streaming endpoints.

Each stream gets its own short-lived ``httpx`` client with the longer
``stream_timeout``, so a slow stream never holds a connection from the shared
pool. Events are pulled lazily: the connection opens on the first pull and
the body is read only as far as the caller has asked.

The connection is released when the stream is exhausted, when it fails, or
when the caller closes it early::

    with consumer.open("api/v1/chat/session/s1/message/stream", body, decode) as events:
        for event in events:
            if done(event):
                break
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator, Mapping
from typing import Any, Callable, Generic, TypeVar

import httpx

from metis.config import MetisConfig
from metis.exceptions import ParseError
from metis.http import RequestDescriptor, build_request_kwargs, classify_exchange

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

T = TypeVar("T")

Decoder = Callable[[str], Any]

_SKIP = object()


def iter_data_payloads(lines: Iterable[str]) -> Iterator[str]:
    """Yield the payload of each ``data:`` line until the ``[DONE]`` sentinel.

    Blank lines, comments and other SSE fields are ignored.
    """
    for line in lines:
        if not line.startswith(DATA_PREFIX):
            continue
        payload = line[len(DATA_PREFIX) :].strip()
        if payload == DONE_SENTINEL:
            return
        yield payload


async def aiter_data_payloads(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Async version of :func:`iter_data_payloads`."""
    async for line in lines:
        if not line.startswith(DATA_PREFIX):
            continue
        payload = line[len(DATA_PREFIX) :].strip()
        if payload == DONE_SENTINEL:
            return
        yield payload


def _decode_payload(payload: str, decode: Decoder | None, strict: bool) -> Any:
    if decode is None:
        return payload
    try:
        return decode(payload)
    except Exception as exc:
        if strict:
            raise ParseError(f"Undecodable stream payload: {payload!r}") from exc
        logger.debug("skipping undecodable stream payload: %r", payload)
        return _SKIP


# ---------------------------------------------------------------------------
# Sync stream
# ---------------------------------------------------------------------------


class EventStream(Generic[T]):
    """Forward-only, non-restartable iterator over decoded stream events."""

    def __init__(
        self,
        config: MetisConfig,
        request_kwargs: dict[str, Any],
        decode: Decoder | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._config = config
        self._request_kwargs = request_kwargs
        self._decode = decode
        self._strict = strict
        self._events = self._generate()
        self.response: httpx.Response | None = None
        self.closed = False

    def __iter__(self) -> EventStream[T]:
        return self

    def __next__(self) -> T:
        if self.closed:
            raise StopIteration
        try:
            return next(self._events)
        except BaseException:
            self.close()
            raise

    def __enter__(self) -> EventStream[T]:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self._events.close()

    def _generate(self) -> Iterator[T]:
        with httpx.Client(timeout=httpx.Timeout(self._config.stream_timeout)) as client:
            request = client.build_request("POST", **self._request_kwargs)
            logger.debug("streaming %s %s", request.method, request.url)
            try:
                response = client.send(request, stream=True)
            except httpx.RequestError as exc:
                raise classify_exchange(None, exc) from exc
            self.response = response
            try:
                if not response.is_success:
                    response.read()
                    raise classify_exchange(response)
                for payload in iter_data_payloads(response.iter_lines()):
                    value = _decode_payload(payload, self._decode, self._strict)
                    if value is not _SKIP:
                        yield value
            except httpx.RequestError as exc:
                raise classify_exchange(None, exc) from exc
            finally:
                response.close()


class StreamConsumer:
    """Opens :class:`EventStream` instances for one client configuration."""

    def __init__(self, config: MetisConfig) -> None:
        self.config = config

    def open(
        self,
        path: str,
        body: str,
        decode: Decoder | None = None,
        *,
        strict: bool = False,
        query_params: Mapping[str, str] | None = None,
    ) -> EventStream[Any]:
        """POST *body* to *path* and return a lazy stream of events.

        With ``decode=None`` the raw payload strings are yielded. Payloads that
        *decode* rejects are skipped, or raise :class:`ParseError` when
        ``strict`` is set.
        """
        kwargs = build_request_kwargs(self.config, RequestDescriptor("POST", path, query_params or {}, body))
        return EventStream(self.config, kwargs, decode, strict=strict)


# ---------------------------------------------------------------------------
# Async stream
# ---------------------------------------------------------------------------


class AsyncEventStream(Generic[T]):
    """Async forward-only iterator over decoded stream events.

    ``async for`` does not close an async iterator on ``break``; use
    ``async with`` or call :meth:`aclose` when stopping early.
    """

    def __init__(
        self,
        config: MetisConfig,
        request_kwargs: dict[str, Any],
        decode: Decoder | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._config = config
        self._request_kwargs = request_kwargs
        self._decode = decode
        self._strict = strict
        self._events = self._generate()
        self.response: httpx.Response | None = None
        self.closed = False

    def __aiter__(self) -> AsyncEventStream[T]:
        return self

    async def __anext__(self) -> T:
        if self.closed:
            raise StopAsyncIteration
        try:
            return await self._events.__anext__()
        except BaseException:
            await self.aclose()
            raise

    async def __aenter__(self) -> AsyncEventStream[T]:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the connection. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        await self._events.aclose()

    async def _generate(self) -> AsyncIterator[T]:
        async with httpx.AsyncClient(timeout=httpx.Timeout(self._config.stream_timeout)) as client:
            request = client.build_request("POST", **self._request_kwargs)
            logger.debug("streaming %s %s", request.method, request.url)
            try:
                response = await client.send(request, stream=True)
            except httpx.RequestError as exc:
                raise classify_exchange(None, exc) from exc
            self.response = response
            try:
                if not response.is_success:
                    await response.aread()
                    raise classify_exchange(response)
                async for payload in aiter_data_payloads(response.aiter_lines()):
                    value = _decode_payload(payload, self._decode, self._strict)
                    if value is not _SKIP:
                        yield value
            except httpx.RequestError as exc:
                raise classify_exchange(None, exc) from exc
            finally:
                await response.aclose()


class AsyncStreamConsumer:
    """Opens :class:`AsyncEventStream` instances for one client configuration."""

    def __init__(self, config: MetisConfig) -> None:
        self.config = config

    def open(
        self,
        path: str,
        body: str,
        decode: Decoder | None = None,
        *,
        strict: bool = False,
        query_params: Mapping[str, str] | None = None,
    ) -> AsyncEventStream[Any]:
        """Async version of :meth:`StreamConsumer.open`. The stream opens on first pull."""
        kwargs = build_request_kwargs(self.config, RequestDescriptor("POST", path, query_params or {}, body))
        return AsyncEventStream(self.config, kwargs, decode, strict=strict)
