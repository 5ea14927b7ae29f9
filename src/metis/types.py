"""Pydantic models for the Metis API's request and response records.

The wire format is camelCase; fields are snake_case in Python and accept
either spelling on input.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Shared ---


class MessageType(str, Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"
    SYSTEM = "SYSTEM"


class Attachment(_Model):
    """A file or link attached to a message."""

    type: str
    url: str
    name: str | None = None
    metadata: dict[str, Any] | None = None


class Message(_Model):
    """A single conversational message."""

    type: MessageType
    content: str | None = None
    attachments: list[Attachment] | None = None
    metadata: dict[str, Any] | None = None


class Provider(_Model):
    name: str
    model: str | None = None
    accept_image_attachment: bool = False
    accept_file_attachment: bool = False


class ProviderWithTags(_Model):
    name: str
    model: str
    tags: list[str] = Field(default_factory=list)


class ProviderConfig(_Model):
    """Model selection and sampling parameters for a bot."""

    provider: Provider
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None


class StorageFile(_Model):
    """A file held in gateway storage."""

    object_name: str
    url: str
    size: int
    content_type: str
    name: str | None = None


class StorageFiles(_Model):
    files: list[StorageFile] = Field(default_factory=list)


T = TypeVar("T")


class Page(_Model, Generic[T]):
    """One page of a paginated listing. Pages are numbered from 0."""

    content: list[T] = Field(default_factory=list)
    total_pages: int
    total_elements: int
    current_page: int


# --- Chat ---


class ChatUser(_Model):
    id: str
    name: str | None = None
    email: str | None = None
    metadata: dict[str, Any] | None = None


class ChatMessage(_Model):
    id: str
    session_id: str
    message: Message
    timestamp: datetime


class CreateSessionRequest(_Model):
    bot_id: str
    user: ChatUser | None = None
    initial_messages: list[Message] | None = None


class SendMessageRequest(_Model):
    message: Message


class SessionResponse(_Model):
    """A chat session with its messages."""

    id: str
    bot_id: str
    user: ChatUser | None = None
    messages: list[ChatMessage] = Field(default_factory=list)
    start_date: datetime
    headline: str | None = None


class UpdateSessionRequest(_Model):
    user: ChatUser | None = None
    headline: str | None = None


class SessionInfo(_Model):
    """Session details without the message history."""

    id: str
    bot_id: str
    user: ChatUser | None = None
    start_date: datetime
    headline: str | None = None


class PaginatedMessageResponse(_Model):
    messages: list[ChatMessage] = Field(default_factory=list)
    total_pages: int
    total_elements: int
    current_page: int


class PaginatedSessionsResponse(_Model):
    sessions: list[SessionResponse] = Field(default_factory=list)
    total_pages: int
    total_elements: int
    current_page: int


class AsyncTaskCreationResponse(_Model):
    task_id: str
    status: str


class AsyncMessageResult(_Model):
    """Status of a message sent with ``send_async_message``; ``message`` is set once done."""

    task_id: str
    status: str
    message: ChatMessage | None = None


class ChatStreamChunk(_Model):
    """One chunk of a streamed chat reply."""

    id: str
    content: str | None = None
    done: bool


# --- Bots ---


class SummarizationConfig(_Model):
    provider: str
    enabled: bool = True


class FunctionParameter(_Model):
    type: str
    description: str
    required: bool = False
    enum: list[str] | None = None


class BotFunction(_Model):
    name: str
    description: str
    parameters: dict[str, FunctionParameter] = Field(default_factory=dict)


class BotCreationRequest(_Model):
    """Request body for creating a bot."""

    name: str
    provider_config: ProviderConfig
    instructions: str | None = None
    corpora: list[dict[str, Any]] | None = None
    summarizer: SummarizationConfig | None = None
    functions: list[BotFunction] | None = None
    description: str | None = None
    avatar: StorageFile | None = None
    enabled: bool = True
    auto_generate_headline: bool = False
    public: bool = False
    memory_enabled: bool = True
    google_search_enabled: bool = False


class BotUpdateRequest(_Model):
    """Request body for PUT/PATCH on a bot. Unset fields are omitted."""

    name: str | None = None
    instructions: str | None = None
    provider_config: ProviderConfig | None = None
    corpora: list[dict[str, Any]] | None = None
    summarizer: SummarizationConfig | None = None
    functions: list[BotFunction] | None = None
    description: str | None = None
    avatar: StorageFile | None = None
    enabled: bool | None = None
    auto_generate_headline: bool | None = None
    public: bool | None = None
    memory_enabled: bool | None = None
    google_search_enabled: bool | None = None


class BotCloneRequest(_Model):
    name: str
    description: str | None = None


class Bot(_Model):
    id: str
    name: str
    provider_config: ProviderConfig
    instructions: str | None = None
    corpora: list[dict[str, Any]] | None = None
    summarizer: SummarizationConfig | None = None
    functions: list[BotFunction] | None = None
    description: str | None = None
    avatar: StorageFile | None = None
    enabled: bool = True
    auto_generate_headline: bool = False
    public: bool = False
    memory_enabled: bool = True
    google_search_enabled: bool = False
    created_at: datetime | None = None


# --- Corpora ---


class EmbeddingMeta(_Model):
    provider: str
    model: str | None = None


class ChunkingMeta(_Model):
    provider: str
    chunk_size: int | None = None
    chunk_overlap: int | None = None


class RankingMeta(_Model):
    top_k: int | None = None


class RerankingMeta(_Model):
    provider: str
    model: str | None = None
    top_k: int | None = None


class CorpusType(str, Enum):
    TEXT = "TEXT"
    URL = "URL"
    FILE = "FILE"


class CorpusRequest(_Model):
    """Settings shared by every corpus creation request."""

    name: str
    description: str | None = None
    embedding: EmbeddingMeta | None = None
    chunking: ChunkingMeta | None = None
    ranking: RankingMeta | None = None
    reranking: RerankingMeta | None = None


class TextCorpusRequest(CorpusRequest):
    text: str


class UrlCorpusRequest(CorpusRequest):
    """Crawl *url* down to ``crawling_depth`` links deep."""

    url: str
    crawling_depth: int


class FileCorpusRequest(CorpusRequest):
    """Multipart request for creating a corpus from local files."""

    files: list[Path]
    ocr: bool | None = None


class UpdateCorpusRequest(_Model):
    name: str | None = None
    description: str | None = None
    embedding: EmbeddingMeta | None = None
    chunking: ChunkingMeta | None = None
    ranking: RankingMeta | None = None
    reranking: RerankingMeta | None = None


class UpdateTextRequest(_Model):
    text: str


class Corpus(_Model):
    id: str
    name: str
    type: str
    description: str | None = None
    user_id: str | None = None
    embedding: EmbeddingMeta | None = None
    chunking: ChunkingMeta | None = None
    ranking: RankingMeta | None = None
    reranking: RerankingMeta | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Chunk(_Model):
    """One indexed slice of a corpus."""

    id: str
    corpus_id: str
    content: str
    metadata: dict[str, Any] | None = None
    enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CreateChunkRequest(_Model):
    content: str
    metadata: dict[str, Any] | None = None


class UpdateChunkRequest(_Model):
    content: str | None = None
    metadata: dict[str, Any] | None = None
    enabled: bool | None = None


class RelevantChunk(_Model):
    chunk: Chunk
    score: float


class RagWebPage(_Model):
    """A crawled page of a URL corpus."""

    id: str
    corpus_id: str
    url: str
    title: str | None = None
    enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ToggleUrlPageRequest(_Model):
    enable: bool


class ToggleUrlPageResponse(_Model):
    corpus_id: str
    page_id: str
    updated_chunks: int


# --- Wrapper (provider pass-through) ---


class ChatCompletionRequest(_Model):
    messages: list[Message]
    model: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    n: int | None = None
    stream: bool = False
    max_tokens: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    logit_bias: dict[str, float] | None = None
    user: str | None = None


class Usage(_Model):
    prompt_tokens: int
    completion_tokens: int = 0
    total_tokens: int


class Choice(_Model):
    index: int
    message: Message
    finish_reason: str | None = None


class ChatCompletionResponse(_Model):
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage | None = None


class EmbeddingRequest(_Model):
    input: list[str]
    model: str | None = None
    user: str | None = None


class Embedding(_Model):
    embedding: list[float]
    index: int


class EmbeddingResponse(_Model):
    data: list[Embedding]
    model: str
    usage: Usage


# --- Meta / Credit ---


class MetaResponse(_Model):
    """Providers and models available on the platform."""

    summarizers: list[Provider] = Field(default_factory=list)
    chunkers: list[Provider] = Field(default_factory=list)
    chat_providers: list[Provider] = Field(default_factory=list)
    embedding_providers: list[Provider] = Field(default_factory=list)
    reranker_providers: list[Provider] = Field(default_factory=list)
    generation_providers: list[ProviderWithTags] = Field(default_factory=list)


class PricingProvider(_Model):
    name: str
    model: str
    currency: str
    fixed_call_income: float
    input_token_unit_income: float
    output_token_unit_income: float


class PricingResponse(_Model):
    chat_providers: list[PricingProvider] = Field(default_factory=list)
    image_providers: list[PricingProvider] = Field(default_factory=list)


class Transaction(_Model):
    id: str
    user_id: str
    amount: float
    balance: float
    agent: str
    reason: str
    timestamp: datetime


class UserStatement(_Model):
    """The caller's credit balance and transaction history."""

    user_id: str
    balance: float
    transactions: list[Transaction] = Field(default_factory=list)
