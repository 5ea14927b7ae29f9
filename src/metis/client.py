"""Async and sync resource clients for the Metis API."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from metis.config import (
    DEFAULT_BASE_URL,
    DEFAULT_STREAM_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    MetisConfig,
)
from metis.exceptions import ParseError
from metis.http import AsyncHttpTransport, HttpTransport
from metis.multipart import FilePart, JsonField, MultipartField, TextField
from metis.streaming import AsyncEventStream, AsyncStreamConsumer, EventStream, StreamConsumer
from metis.types import (
    AsyncMessageResult,
    AsyncTaskCreationResponse,
    Bot,
    BotCloneRequest,
    BotCreationRequest,
    BotUpdateRequest,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ChatStreamChunk,
    ChatUser,
    Chunk,
    Corpus,
    CorpusRequest,
    CorpusType,
    CreateChunkRequest,
    CreateSessionRequest,
    EmbeddingRequest,
    EmbeddingResponse,
    FileCorpusRequest,
    Message,
    MetaResponse,
    Page,
    PaginatedMessageResponse,
    PaginatedSessionsResponse,
    PricingResponse,
    RagWebPage,
    RelevantChunk,
    SendMessageRequest,
    SessionInfo,
    SessionResponse,
    StorageFile,
    StorageFiles,
    TextCorpusRequest,
    ToggleUrlPageRequest,
    ToggleUrlPageResponse,
    UpdateChunkRequest,
    UpdateCorpusRequest,
    UpdateSessionRequest,
    UpdateTextRequest,
    UrlCorpusRequest,
    UserStatement,
)

M = TypeVar("M", bound=BaseModel)

FilePath = str | os.PathLike[str]


# ---------------------------------------------------------------------------
# Shared body builders -- pure functions that translate SDK types into the
# wire format. Both async and sync clients call them.
# ---------------------------------------------------------------------------


def _dump(model: BaseModel) -> str:
    return model.model_dump_json(by_alias=True, exclude_none=True)


def _build_session_body(
    bot_id: str,
    user: ChatUser | None,
    initial_messages: list[Message] | None,
) -> str:
    return _dump(CreateSessionRequest(bot_id=bot_id, user=user, initial_messages=initial_messages))


def _build_update_session_body(user: ChatUser | None, headline: str | None) -> str:
    return _dump(UpdateSessionRequest(user=user, headline=headline))


def _build_message_body(message: Message) -> str:
    return _dump(SendMessageRequest(message=message))


def _build_sessions_params(user_id: str | None, bot_id: str | None) -> dict[str, str]:
    params: dict[str, str] = {}
    if user_id is not None:
        params["userId"] = user_id
    if bot_id is not None:
        params["botId"] = bot_id
    return params


def _build_page_params(page: int, size: int) -> dict[str, str]:
    return {"page": str(page), "size": str(size)}


def _build_file_parts(files: Sequence[FilePath]) -> dict[str, MultipartField]:
    """Index-suffixed file parts: ``files[0]``, ``files[1]``, ..."""
    return {f"files[{index}]": FilePart.from_path(path) for index, path in enumerate(files)}


def _build_corpus_parts(
    request: CorpusRequest,
    corpus_type: CorpusType,
    **fields: str,
) -> dict[str, MultipartField]:
    """Build the multipart fields common to every POST api/v1/corpora.

    *fields* are the type-specific plain values and follow ``name`` and
    ``type``. Nested configs travel as JSON text in plain form fields.
    """
    parts: dict[str, MultipartField] = {
        "name": TextField(request.name),
        "type": TextField(corpus_type.value),
    }
    for key, value in fields.items():
        parts[key] = TextField(value)
    if request.description is not None:
        parts["description"] = TextField(request.description)
    for key in ("chunking", "embedding", "ranking", "reranking"):
        meta = getattr(request, key)
        if meta is not None:
            parts[key] = JsonField(meta)
    return parts


def _build_text_corpus_parts(request: TextCorpusRequest) -> dict[str, MultipartField]:
    return _build_corpus_parts(request, CorpusType.TEXT, text=request.text)


def _build_url_corpus_parts(request: UrlCorpusRequest) -> dict[str, MultipartField]:
    return _build_corpus_parts(
        request,
        CorpusType.URL,
        url=request.url,
        crawlingDepth=str(request.crawling_depth),
    )


def _build_file_corpus_parts(request: FileCorpusRequest) -> dict[str, MultipartField]:
    parts = _build_corpus_parts(request, CorpusType.FILE)
    if request.ocr is not None:
        parts["ocr"] = TextField(str(request.ocr).lower())
    parts.update(_build_file_parts(request.files))
    return parts


def _build_add_files_parts(files: Sequence[FilePath], ocr: bool) -> dict[str, MultipartField]:
    parts: dict[str, MultipartField] = {}
    if ocr:
        parts["ocr"] = TextField("true")
    parts.update(_build_file_parts(files))
    return parts


def _build_streaming_completion_body(request: ChatCompletionRequest) -> str:
    return _dump(request.model_copy(update={"stream": True}))


# ---------------------------------------------------------------------------
# Shared response handling
# ---------------------------------------------------------------------------


def _parse(model: type[M], raw: str) -> M:
    """Decode a 2xx body into *model*; a shape mismatch is a :class:`ParseError`."""
    try:
        return model.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise ParseError(f"Failed to parse {model.__name__} response: {exc}") from exc


def _parse_list(model: type[M], raw: str) -> list[M]:
    if raw.strip() in ("", "null"):
        return []
    try:
        return TypeAdapter(list[model]).validate_json(raw)  # type: ignore[valid-type]
    except PydanticValidationError as exc:
        raise ParseError(f"Failed to parse list of {model.__name__} response: {exc}") from exc


def _first_storage_file(raw: str) -> StorageFile:
    files = _parse(StorageFiles, raw).files
    if not files:
        raise ParseError("Storage response contained no files")
    return files[0]


def _resolve_config(
    api_key: str | None,
    config: MetisConfig | None,
    base_url: str,
    timeout: float,
    stream_timeout: float,
) -> MetisConfig:
    if config is not None:
        return config
    return MetisConfig(
        api_key=api_key or "",
        base_url=base_url,
        timeout=timeout,
        stream_timeout=stream_timeout,
    )


# ---------------------------------------------------------------------------
# Async client
# ---------------------------------------------------------------------------


class MetisClient:
    """Async client for the Metis API.

    Usage::

        async with MetisClient(api_key="secret") as client:
            session = await client.create_session("bot-id")
            async with client.stream_message(session.id, Message(type="USER", content="hi")) as chunks:
                async for chunk in chunks:
                    print(chunk.content or "", end="")
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        stream_timeout: float = DEFAULT_STREAM_TIMEOUT_SECONDS,
        config: MetisConfig | None = None,
    ) -> None:
        self.config = _resolve_config(api_key, config, base_url, timeout, stream_timeout)
        self._http = AsyncHttpTransport(self.config)
        self._streams = AsyncStreamConsumer(self.config)

    async def __aenter__(self) -> MetisClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the shared connection pool."""
        await self._http.close()

    # --- Chat ---

    async def create_session(
        self,
        bot_id: str,
        user: ChatUser | None = None,
        initial_messages: list[Message] | None = None,
    ) -> SessionResponse:
        """Start a chat session with a bot."""
        raw = await self._http.post("api/v1/chat/session", _build_session_body(bot_id, user, initial_messages))
        return _parse(SessionResponse, raw)

    async def update_session(
        self,
        session_id: str,
        *,
        user: ChatUser | None = None,
        headline: str | None = None,
    ) -> SessionInfo:
        raw = await self._http.post(
            f"api/v1/chat/session/{session_id}", _build_update_session_body(user, headline)
        )
        return _parse(SessionInfo, raw)

    async def get_session(self, session_id: str) -> SessionResponse:
        raw = await self._http.get(f"api/v1/chat/session/{session_id}")
        return _parse(SessionResponse, raw)

    async def get_session_info(self, session_id: str) -> SessionInfo:
        """Fetch a session without its message history."""
        raw = await self._http.get(f"api/v1/chat/session/{session_id}/info")
        return _parse(SessionInfo, raw)

    async def get_session_messages(self, session_id: str, page: int, size: int) -> PaginatedMessageResponse:
        raw = await self._http.get(
            f"api/v1/chat/session/{session_id}/messages/paginated", _build_page_params(page, size)
        )
        return _parse(PaginatedMessageResponse, raw)

    async def list_sessions(
        self,
        *,
        user_id: str | None = None,
        bot_id: str | None = None,
    ) -> list[SessionResponse]:
        """List sessions, optionally filtered by user or bot."""
        raw = await self._http.get("api/v1/chat/sessions", _build_sessions_params(user_id, bot_id))
        return _parse_list(SessionResponse, raw)

    async def list_sessions_paginated(
        self,
        page: int,
        size: int,
        *,
        user_id: str | None = None,
        bot_id: str | None = None,
    ) -> PaginatedSessionsResponse:
        params = _build_page_params(page, size) | _build_sessions_params(user_id, bot_id)
        raw = await self._http.get("api/v1/chat/session/paginated", params)
        return _parse(PaginatedSessionsResponse, raw)

    async def delete_session(self, session_id: str) -> None:
        await self._http.delete(f"api/v1/chat/session/{session_id}")

    async def send_message(self, session_id: str, message: Message) -> ChatMessage:
        """Send a message and wait for the bot's full reply."""
        raw = await self._http.post(f"api/v1/chat/session/{session_id}/message", _build_message_body(message))
        return _parse(ChatMessage, raw)

    async def send_async_message(self, session_id: str, message: Message) -> AsyncTaskCreationResponse:
        """Queue a message; poll the reply with :meth:`check_async_message_result`."""
        raw = await self._http.post(
            f"api/v1/chat/session/{session_id}/message/async", _build_message_body(message)
        )
        return _parse(AsyncTaskCreationResponse, raw)

    async def check_async_message_result(self, session_id: str, task_id: str) -> AsyncMessageResult:
        raw = await self._http.get(f"api/v1/chat/session/{session_id}/message/async/{task_id}")
        return _parse(AsyncMessageResult, raw)

    def stream_message(
        self,
        session_id: str,
        message: Message,
        *,
        strict: bool = False,
    ) -> AsyncEventStream[ChatStreamChunk]:
        """Send a message and stream the reply chunk by chunk.

        Always consume the stream inside ``async with`` so the connection is
        released even when the loop stops early::

            async with client.stream_message(session_id, message) as chunks:
                async for chunk in chunks:
                    ...
        """
        return self._streams.open(
            f"api/v1/chat/session/{session_id}/message/stream",
            _build_message_body(message),
            ChatStreamChunk.model_validate_json,
            strict=strict,
        )

    # --- Bots ---

    async def create_bot(self, request: BotCreationRequest) -> Bot:
        raw = await self._http.post("api/v1/bots", _dump(request))
        return _parse(Bot, raw)

    async def get_bot(self, bot_id: str) -> Bot:
        raw = await self._http.get(f"api/v1/bots/{bot_id}")
        return _parse(Bot, raw)

    async def list_bots(self) -> list[Bot]:
        raw = await self._http.get("api/v1/bots/all")
        return _parse_list(Bot, raw)

    async def update_bot(self, bot_id: str, request: BotUpdateRequest) -> Bot:
        """Replace a bot's settings."""
        raw = await self._http.put(f"api/v1/bots/{bot_id}", _dump(request))
        return _parse(Bot, raw)

    async def patch_bot(self, bot_id: str, request: BotUpdateRequest) -> Bot:
        """Update only the fields set on *request*."""
        raw = await self._http.patch(f"api/v1/bots/{bot_id}", _dump(request))
        return _parse(Bot, raw)

    async def clone_bot(self, bot_id: str, request: BotCloneRequest) -> Bot:
        raw = await self._http.post(f"api/v1/bots/{bot_id}/clone", _dump(request))
        return _parse(Bot, raw)

    async def delete_bot(self, bot_id: str) -> None:
        await self._http.delete(f"api/v1/bots/{bot_id}")

    # --- Corpora ---

    async def create_text_corpus(self, request: TextCorpusRequest) -> Corpus:
        raw = await self._http.post_multipart("api/v1/corpora", _build_text_corpus_parts(request))
        return _parse(Corpus, raw)

    async def create_url_corpus(self, request: UrlCorpusRequest) -> Corpus:
        """Create a corpus by crawling a website."""
        raw = await self._http.post_multipart("api/v1/corpora", _build_url_corpus_parts(request))
        return _parse(Corpus, raw)

    async def create_file_corpus(self, request: FileCorpusRequest) -> Corpus:
        """Create a corpus from local files."""
        raw = await self._http.post_multipart("api/v1/corpora", _build_file_corpus_parts(request))
        return _parse(Corpus, raw)

    async def update_corpus(self, corpus_id: str, request: UpdateCorpusRequest) -> Corpus:
        raw = await self._http.put(f"api/v1/corpora/{corpus_id}", _dump(request))
        return _parse(Corpus, raw)

    async def list_corpora(self) -> list[Corpus]:
        raw = await self._http.get("api/v1/corpora/all")
        return _parse_list(Corpus, raw)

    async def get_corpus(self, corpus_id: str) -> Corpus:
        raw = await self._http.get(f"api/v1/corpora/{corpus_id}")
        return _parse(Corpus, raw)

    async def delete_corpus(self, corpus_id: str) -> None:
        await self._http.delete(f"api/v1/corpora/{corpus_id}")

    async def get_chunks(self, corpus_id: str, page: int, size: int) -> Page[Chunk]:
        raw = await self._http.get(f"api/v1/corpora/{corpus_id}/chunks", _build_page_params(page, size))
        return _parse(Page[Chunk], raw)

    async def create_chunk(self, corpus_id: str, request: CreateChunkRequest) -> Chunk:
        raw = await self._http.post(f"api/v1/corpora/{corpus_id}/chunks", _dump(request))
        return _parse(Chunk, raw)

    async def update_chunk(self, corpus_id: str, chunk_id: str, request: UpdateChunkRequest) -> Chunk:
        raw = await self._http.put(f"api/v1/corpora/{corpus_id}/chunks/{chunk_id}", _dump(request))
        return _parse(Chunk, raw)

    async def find_relevant(self, corpus_id: str, query: str) -> list[RelevantChunk]:
        """Rank the corpus's chunks against *query*."""
        raw = await self._http.get(f"api/v1/corpora/{corpus_id}/relevant", {"query": query})
        return _parse_list(RelevantChunk, raw)

    async def update_corpus_text(self, corpus_id: str, text: str) -> Corpus:
        """Replace the source text of a TEXT corpus."""
        raw = await self._http.put(f"api/v1/corpora/{corpus_id}/text", _dump(UpdateTextRequest(text=text)))
        return _parse(Corpus, raw)

    async def get_url_pages(self, corpus_id: str, page: int, size: int) -> Page[RagWebPage]:
        raw = await self._http.get(f"api/v1/corpora/{corpus_id}/url/pages", _build_page_params(page, size))
        return _parse(Page[RagWebPage], raw)

    async def toggle_url_page(self, corpus_id: str, page_id: str, enable: bool) -> ToggleUrlPageResponse:
        raw = await self._http.post(
            f"api/v1/corpora/{corpus_id}/url/page/{page_id}/toggle",
            _dump(ToggleUrlPageRequest(enable=enable)),
        )
        return _parse(ToggleUrlPageResponse, raw)

    async def add_corpus_files(
        self,
        corpus_id: str,
        files: Sequence[FilePath],
        *,
        ocr: bool = False,
    ) -> Corpus:
        raw = await self._http.post_multipart(f"api/v1/corpora/{corpus_id}/files", _build_add_files_parts(files, ocr))
        return _parse(Corpus, raw)

    async def delete_corpus_file(self, corpus_id: str, file_id: str) -> None:
        await self._http.delete(f"api/v1/corpora/{corpus_id}/files/{file_id}")

    async def rechunk_corpus_file(self, corpus_id: str, file_id: str) -> None:
        await self._http.post(f"api/v1/corpora/{corpus_id}/files/{file_id}/rechunk")

    # --- Storage ---

    async def upload_files(self, files: Sequence[FilePath]) -> list[StorageFile]:
        raw = await self._http.post_multipart("api/v1/storage", _build_file_parts(files))
        return _parse(StorageFiles, raw).files

    async def upload_file(self, file: FilePath) -> StorageFile:
        """Upload one file and return its storage record."""
        raw = await self._http.post_multipart("api/v1/storage", _build_file_parts([file]))
        return _first_storage_file(raw)

    # --- Wrapper ---

    async def chat_completions(self, provider: str, request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Call a provider's chat-completions endpoint through Metis."""
        raw = await self._http.post(f"api/v1/chat/{provider}/completions", _dump(request))
        return _parse(ChatCompletionResponse, raw)

    def stream_chat_completions(self, provider: str, request: ChatCompletionRequest) -> AsyncEventStream[str]:
        """Stream a provider's chat completion as raw ``data:`` payload strings.

        Consume it inside ``async with`` like :meth:`stream_message`.
        """
        return self._streams.open(
            f"api/v1/chat/{provider}/completions",
            _build_streaming_completion_body(request),
        )

    async def embeddings(self, provider: str, request: EmbeddingRequest) -> EmbeddingResponse:
        raw = await self._http.post(f"api/v1/wrapper/{provider}/embeddings", _dump(request))
        return _parse(EmbeddingResponse, raw)

    # --- Meta / Credit ---

    async def get_meta(self) -> MetaResponse:
        raw = await self._http.get("api/v1/meta")
        return _parse(MetaResponse, raw)

    async def get_pricing(self) -> PricingResponse:
        raw = await self._http.get("api/v1/meta/pricing")
        return _parse(PricingResponse, raw)

    async def get_credit_statement(self) -> UserStatement:
        raw = await self._http.get("api/v1/credit/statement")
        return _parse(UserStatement, raw)


# ---------------------------------------------------------------------------
# Sync client -- delegates body building and response handling to shared code.
# ---------------------------------------------------------------------------


class MetisSyncClient:
    """Synchronous client for the Metis API.

    Usage::

        with MetisSyncClient(api_key="secret") as client:
            meta = client.get_meta()
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        stream_timeout: float = DEFAULT_STREAM_TIMEOUT_SECONDS,
        config: MetisConfig | None = None,
    ) -> None:
        self.config = _resolve_config(api_key, config, base_url, timeout, stream_timeout)
        self._http = HttpTransport(self.config)
        self._streams = StreamConsumer(self.config)

    def __enter__(self) -> MetisSyncClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the shared connection pool."""
        self._http.close()

    # --- Chat ---

    def create_session(
        self,
        bot_id: str,
        user: ChatUser | None = None,
        initial_messages: list[Message] | None = None,
    ) -> SessionResponse:
        """Start a chat session with a bot."""
        raw = self._http.post("api/v1/chat/session", _build_session_body(bot_id, user, initial_messages))
        return _parse(SessionResponse, raw)

    def update_session(
        self,
        session_id: str,
        *,
        user: ChatUser | None = None,
        headline: str | None = None,
    ) -> SessionInfo:
        raw = self._http.post(f"api/v1/chat/session/{session_id}", _build_update_session_body(user, headline))
        return _parse(SessionInfo, raw)

    def get_session(self, session_id: str) -> SessionResponse:
        raw = self._http.get(f"api/v1/chat/session/{session_id}")
        return _parse(SessionResponse, raw)

    def get_session_info(self, session_id: str) -> SessionInfo:
        """Fetch a session without its message history."""
        raw = self._http.get(f"api/v1/chat/session/{session_id}/info")
        return _parse(SessionInfo, raw)

    def get_session_messages(self, session_id: str, page: int, size: int) -> PaginatedMessageResponse:
        raw = self._http.get(f"api/v1/chat/session/{session_id}/messages/paginated", _build_page_params(page, size))
        return _parse(PaginatedMessageResponse, raw)

    def list_sessions(
        self,
        *,
        user_id: str | None = None,
        bot_id: str | None = None,
    ) -> list[SessionResponse]:
        """List sessions, optionally filtered by user or bot."""
        raw = self._http.get("api/v1/chat/sessions", _build_sessions_params(user_id, bot_id))
        return _parse_list(SessionResponse, raw)

    def list_sessions_paginated(
        self,
        page: int,
        size: int,
        *,
        user_id: str | None = None,
        bot_id: str | None = None,
    ) -> PaginatedSessionsResponse:
        params = _build_page_params(page, size) | _build_sessions_params(user_id, bot_id)
        raw = self._http.get("api/v1/chat/session/paginated", params)
        return _parse(PaginatedSessionsResponse, raw)

    def delete_session(self, session_id: str) -> None:
        self._http.delete(f"api/v1/chat/session/{session_id}")

    def send_message(self, session_id: str, message: Message) -> ChatMessage:
        """Send a message and wait for the bot's full reply."""
        raw = self._http.post(f"api/v1/chat/session/{session_id}/message", _build_message_body(message))
        return _parse(ChatMessage, raw)

    def send_async_message(self, session_id: str, message: Message) -> AsyncTaskCreationResponse:
        """Queue a message; poll the reply with :meth:`check_async_message_result`."""
        raw = self._http.post(f"api/v1/chat/session/{session_id}/message/async", _build_message_body(message))
        return _parse(AsyncTaskCreationResponse, raw)

    def check_async_message_result(self, session_id: str, task_id: str) -> AsyncMessageResult:
        raw = self._http.get(f"api/v1/chat/session/{session_id}/message/async/{task_id}")
        return _parse(AsyncMessageResult, raw)

    def stream_message(
        self,
        session_id: str,
        message: Message,
        *,
        strict: bool = False,
    ) -> EventStream[ChatStreamChunk]:
        """Send a message and stream the reply chunk by chunk."""
        return self._streams.open(
            f"api/v1/chat/session/{session_id}/message/stream",
            _build_message_body(message),
            ChatStreamChunk.model_validate_json,
            strict=strict,
        )

    # --- Bots ---

    def create_bot(self, request: BotCreationRequest) -> Bot:
        raw = self._http.post("api/v1/bots", _dump(request))
        return _parse(Bot, raw)

    def get_bot(self, bot_id: str) -> Bot:
        raw = self._http.get(f"api/v1/bots/{bot_id}")
        return _parse(Bot, raw)

    def list_bots(self) -> list[Bot]:
        raw = self._http.get("api/v1/bots/all")
        return _parse_list(Bot, raw)

    def update_bot(self, bot_id: str, request: BotUpdateRequest) -> Bot:
        """Replace a bot's settings."""
        raw = self._http.put(f"api/v1/bots/{bot_id}", _dump(request))
        return _parse(Bot, raw)

    def patch_bot(self, bot_id: str, request: BotUpdateRequest) -> Bot:
        """Update only the fields set on *request*."""
        raw = self._http.patch(f"api/v1/bots/{bot_id}", _dump(request))
        return _parse(Bot, raw)

    def clone_bot(self, bot_id: str, request: BotCloneRequest) -> Bot:
        raw = self._http.post(f"api/v1/bots/{bot_id}/clone", _dump(request))
        return _parse(Bot, raw)

    def delete_bot(self, bot_id: str) -> None:
        self._http.delete(f"api/v1/bots/{bot_id}")

    # --- Corpora ---

    def create_text_corpus(self, request: TextCorpusRequest) -> Corpus:
        raw = self._http.post_multipart("api/v1/corpora", _build_text_corpus_parts(request))
        return _parse(Corpus, raw)

    def create_url_corpus(self, request: UrlCorpusRequest) -> Corpus:
        """Create a corpus by crawling a website."""
        raw = self._http.post_multipart("api/v1/corpora", _build_url_corpus_parts(request))
        return _parse(Corpus, raw)

    def create_file_corpus(self, request: FileCorpusRequest) -> Corpus:
        """Create a corpus from local files."""
        raw = self._http.post_multipart("api/v1/corpora", _build_file_corpus_parts(request))
        return _parse(Corpus, raw)

    def update_corpus(self, corpus_id: str, request: UpdateCorpusRequest) -> Corpus:
        raw = self._http.put(f"api/v1/corpora/{corpus_id}", _dump(request))
        return _parse(Corpus, raw)

    def list_corpora(self) -> list[Corpus]:
        raw = self._http.get("api/v1/corpora/all")
        return _parse_list(Corpus, raw)

    def get_corpus(self, corpus_id: str) -> Corpus:
        raw = self._http.get(f"api/v1/corpora/{corpus_id}")
        return _parse(Corpus, raw)

    def delete_corpus(self, corpus_id: str) -> None:
        self._http.delete(f"api/v1/corpora/{corpus_id}")

    def get_chunks(self, corpus_id: str, page: int, size: int) -> Page[Chunk]:
        raw = self._http.get(f"api/v1/corpora/{corpus_id}/chunks", _build_page_params(page, size))
        return _parse(Page[Chunk], raw)

    def create_chunk(self, corpus_id: str, request: CreateChunkRequest) -> Chunk:
        raw = self._http.post(f"api/v1/corpora/{corpus_id}/chunks", _dump(request))
        return _parse(Chunk, raw)

    def update_chunk(self, corpus_id: str, chunk_id: str, request: UpdateChunkRequest) -> Chunk:
        raw = self._http.put(f"api/v1/corpora/{corpus_id}/chunks/{chunk_id}", _dump(request))
        return _parse(Chunk, raw)

    def find_relevant(self, corpus_id: str, query: str) -> list[RelevantChunk]:
        """Rank the corpus's chunks against *query*."""
        raw = self._http.get(f"api/v1/corpora/{corpus_id}/relevant", {"query": query})
        return _parse_list(RelevantChunk, raw)

    def update_corpus_text(self, corpus_id: str, text: str) -> Corpus:
        """Replace the source text of a TEXT corpus."""
        raw = self._http.put(f"api/v1/corpora/{corpus_id}/text", _dump(UpdateTextRequest(text=text)))
        return _parse(Corpus, raw)

    def get_url_pages(self, corpus_id: str, page: int, size: int) -> Page[RagWebPage]:
        raw = self._http.get(f"api/v1/corpora/{corpus_id}/url/pages", _build_page_params(page, size))
        return _parse(Page[RagWebPage], raw)

    def toggle_url_page(self, corpus_id: str, page_id: str, enable: bool) -> ToggleUrlPageResponse:
        raw = self._http.post(
            f"api/v1/corpora/{corpus_id}/url/page/{page_id}/toggle",
            _dump(ToggleUrlPageRequest(enable=enable)),
        )
        return _parse(ToggleUrlPageResponse, raw)

    def add_corpus_files(
        self,
        corpus_id: str,
        files: Sequence[FilePath],
        *,
        ocr: bool = False,
    ) -> Corpus:
        raw = self._http.post_multipart(f"api/v1/corpora/{corpus_id}/files", _build_add_files_parts(files, ocr))
        return _parse(Corpus, raw)

    def delete_corpus_file(self, corpus_id: str, file_id: str) -> None:
        self._http.delete(f"api/v1/corpora/{corpus_id}/files/{file_id}")

    def rechunk_corpus_file(self, corpus_id: str, file_id: str) -> None:
        self._http.post(f"api/v1/corpora/{corpus_id}/files/{file_id}/rechunk")

    # --- Storage ---

    def upload_files(self, files: Sequence[FilePath]) -> list[StorageFile]:
        raw = self._http.post_multipart("api/v1/storage", _build_file_parts(files))
        return _parse(StorageFiles, raw).files

    def upload_file(self, file: FilePath) -> StorageFile:
        """Upload one file and return its storage record."""
        raw = self._http.post_multipart("api/v1/storage", _build_file_parts([file]))
        return _first_storage_file(raw)

    # --- Wrapper ---

    def chat_completions(self, provider: str, request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Call a provider's chat-completions endpoint through Metis."""
        raw = self._http.post(f"api/v1/chat/{provider}/completions", _dump(request))
        return _parse(ChatCompletionResponse, raw)

    def stream_chat_completions(self, provider: str, request: ChatCompletionRequest) -> EventStream[str]:
        """Stream a provider's chat completion as raw ``data:`` payload strings."""
        return self._streams.open(
            f"api/v1/chat/{provider}/completions",
            _build_streaming_completion_body(request),
        )

    def embeddings(self, provider: str, request: EmbeddingRequest) -> EmbeddingResponse:
        raw = self._http.post(f"api/v1/wrapper/{provider}/embeddings", _dump(request))
        return _parse(EmbeddingResponse, raw)

    # --- Meta / Credit ---

    def get_meta(self) -> MetaResponse:
        raw = self._http.get("api/v1/meta")
        return _parse(MetaResponse, raw)

    def get_pricing(self) -> PricingResponse:
        raw = self._http.get("api/v1/meta/pricing")
        return _parse(PricingResponse, raw)

    def get_credit_statement(self) -> UserStatement:
        raw = self._http.get("api/v1/credit/statement")
        return _parse(UserStatement, raw)
