"""Metis Python SDK -- typed client for the Metis conversational-AI platform."""

from metis.client import MetisClient, MetisSyncClient
from metis.config import MetisConfig
from metis.exceptions import (
    ApiError,
    AuthError,
    EncodingError,
    InvalidEndpoint,
    MetisError,
    NetworkError,
    ParseError,
)
from metis.http import AsyncHttpTransport, HttpTransport, RequestDescriptor
from metis.multipart import FilePart, JsonField, TextField
from metis.streaming import AsyncEventStream, AsyncStreamConsumer, EventStream, StreamConsumer
from metis.types import (
    AsyncMessageResult,
    AsyncTaskCreationResponse,
    Attachment,
    Bot,
    BotCloneRequest,
    BotCreationRequest,
    BotFunction,
    BotUpdateRequest,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ChatStreamChunk,
    ChatUser,
    Chunk,
    ChunkingMeta,
    Corpus,
    CorpusRequest,
    CorpusType,
    CreateChunkRequest,
    EmbeddingMeta,
    EmbeddingRequest,
    EmbeddingResponse,
    FileCorpusRequest,
    Message,
    MessageType,
    MetaResponse,
    Page,
    PaginatedMessageResponse,
    PaginatedSessionsResponse,
    PricingResponse,
    Provider,
    ProviderConfig,
    RagWebPage,
    RankingMeta,
    RelevantChunk,
    RerankingMeta,
    SessionInfo,
    SessionResponse,
    StorageFile,
    TextCorpusRequest,
    ToggleUrlPageResponse,
    UpdateChunkRequest,
    UpdateCorpusRequest,
    UpdateSessionRequest,
    UrlCorpusRequest,
    UserStatement,
)

__all__ = [
    # Clients
    "MetisClient",
    "MetisSyncClient",
    "MetisConfig",
    # Transport
    "HttpTransport",
    "AsyncHttpTransport",
    "RequestDescriptor",
    "StreamConsumer",
    "AsyncStreamConsumer",
    "EventStream",
    "AsyncEventStream",
    # Multipart fields
    "TextField",
    "FilePart",
    "JsonField",
    # Types: shared
    "Message",
    "MessageType",
    "Attachment",
    "Provider",
    "ProviderConfig",
    "StorageFile",
    "Page",
    # Types: chat
    "ChatUser",
    "ChatMessage",
    "ChatStreamChunk",
    "SessionResponse",
    "SessionInfo",
    "UpdateSessionRequest",
    "PaginatedMessageResponse",
    "PaginatedSessionsResponse",
    "AsyncTaskCreationResponse",
    "AsyncMessageResult",
    # Types: bots
    "Bot",
    "BotCreationRequest",
    "BotUpdateRequest",
    "BotFunction",
    "BotCloneRequest",
    # Types: corpora
    "Corpus",
    "CorpusType",
    "CorpusRequest",
    "TextCorpusRequest",
    "UrlCorpusRequest",
    "FileCorpusRequest",
    "UpdateCorpusRequest",
    "Chunk",
    "CreateChunkRequest",
    "UpdateChunkRequest",
    "RelevantChunk",
    "RagWebPage",
    "ToggleUrlPageResponse",
    "EmbeddingMeta",
    "ChunkingMeta",
    "RankingMeta",
    "RerankingMeta",
    # Types: wrapper
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "EmbeddingRequest",
    "EmbeddingResponse",
    # Types: meta / credit
    "MetaResponse",
    "PricingResponse",
    "UserStatement",
    # Exceptions
    "MetisError",
    "NetworkError",
    "AuthError",
    "ApiError",
    "EncodingError",
    "ParseError",
    "InvalidEndpoint",
]
