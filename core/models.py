"""Data models for the teachings RAG pipeline."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SectionType = Literal["incident", "teaching", "philosophy", "practice", "other"]


class CamelModel(BaseModel):
    """Model exchanged with the web client using camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Chunk(BaseModel):
    """An indexed passage of corpus text with its metadata."""

    id: str = ""
    content: str
    embedding: list[float] = Field(default_factory=list)
    source: str = "unknown"
    category: str = "general"
    tags: list[str] = Field(default_factory=list)
    key_concepts: list[str] = Field(default_factory=list)
    importance: int = 3
    word_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("source", "category", mode="before")
    @classmethod
    def _blank_to_default(cls, v, info):
        if isinstance(v, str) and not v.strip():
            return "unknown" if info.field_name == "source" else "general"
        return v

    @field_validator("importance", mode="before")
    @classmethod
    def _clamp_importance(cls, v):
        return min(5, max(1, int(v)))

    @model_validator(mode="after")
    def _fill_word_count(self) -> Chunk:
        if not self.word_count:
            self.word_count = len(self.content.split())
        return self


class ScoredChunk(BaseModel):
    """A chunk plus request-scoped relevance fields."""

    chunk: Chunk
    similarity: float = 1.0
    raw_sim: float = 0.0
    has_incident: bool = False

    @property
    def id(self) -> str:
        return self.chunk.id

    @property
    def content(self) -> str:
        return self.chunk.content

    @property
    def source(self) -> str:
        return self.chunk.source

    @property
    def category(self) -> str:
        return self.chunk.category

    @property
    def tags(self) -> list[str]:
        return self.chunk.tags

    @property
    def importance(self) -> int:
        return self.chunk.importance


class UserContext(CamelModel):
    """Optional seeker profile supplied by the caller."""

    spiritual_level: int = Field(default=1, ge=1, le=10)
    preferred_topics: list[str] = Field(default_factory=list)
    preferred_style: str = "gentle"
    meditation_experience: str = "beginner"
    spiritual_goals: list[str] = Field(default_factory=list)

    @field_validator("spiritual_level", mode="before")
    @classmethod
    def _unset_level_is_one(cls, v):
        return v or 1


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class SourceAttribution(BaseModel):
    """One entry per passage included in the assembled context."""

    source: str
    category: str
    importance: int = 3
    tags: list[str] = Field(default_factory=list)
    word_count: int = 0
    type: SectionType


class CacheEntry(BaseModel):
    response: str
    source_attribution: list[SourceAttribution] = Field(default_factory=list)
    follow_up_questions: list[str] = Field(default_factory=list)
    topics_discussed: list[str] = Field(default_factory=list)


class ChatRequest(CamelModel):
    """Inbound chat request body."""

    message: str = ""
    conversation_id: str | None = None
    message_history: list[HistoryMessage] = Field(default_factory=list)
    user_id: str | None = None
    user_context: UserContext | None = None
    language_code: str | None = "en"
    user_name: str | None = None


class SearchStats(CamelModel):
    candidates_retrieved: int = 0
    chunks_selected: int = 0
    search_method: Literal["embedding", "text_search"] | None = None
    embedding_success: bool = False
    from_cache: bool = False
    degradations: list[str] = Field(default_factory=list)


class ChatResponse(CamelModel):
    """Outbound (non-streamed) chat response."""

    response: str
    conversation_id: str
    follow_up_questions: list[str] = Field(default_factory=list, max_length=3)
    source_attribution: list[SourceAttribution] = Field(default_factory=list)
    topics_discussed: list[str] = Field(default_factory=list)
    detected_language: str = "en"
    search_stats: SearchStats = Field(default_factory=SearchStats)
