"""End-to-end chat pipeline: rate limit, cache, retrieve, assemble, generate."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, AsyncIterator, Literal

from core.config import settings
from core.errors import (
    ConfigurationError,
    RateLimitError,
    StorageError,
    UpstreamError,
    ValidationError,
)
from core.models import CacheEntry, ChatRequest, ChatResponse, ScoredChunk, SearchStats
from core.outcome import Outcome
from generation.context_builder import assemble_context
from generation.followups import extract_topics, generate_follow_up_questions
from generation.generator import AnswerGenerator, postprocess_answer
from language.normalizer import resolve_language
from retrieval.diversity import DiversitySelector, GreedyDiversitySelector
from retrieval.embedder import Embedder
from retrieval.query_rewriter import expand_query_terms, rewrite_with_history, translate_to_english
from retrieval.reranker import apply_similarity_floor, mmr_rerank
from retrieval.retriever import CandidateRetriever
from retrieval.reweighter import reweight, score_candidates
from service.cache import ResponseCache
from service.rate_limiter import SlidingWindowRateLimiter

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from core.models import HistoryMessage, UserContext
    from storage.vector_store import VectorStore

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too Many Requests. Please slow down and try again shortly."

CLARIFICATION = {
    "en": (
        "I may not have enough context. Can you clarify your question or mention "
        "the source/topic?"
    ),
    "te": (
        "పూర్తి సందర్భం లేదు. దయచేసి మీ ప్రశ్నను కొంచెం స్పష్టంగా చెప్పగలరా లేదా "
        "సంబంధిత అంశం/గ్రంథం సూచించగలరా?"
    ),
}


@dataclass
class RetrievalResult:
    """Relevant chunks for a question and how they were found."""

    chunks: list[ScoredChunk] = field(default_factory=list)
    candidates_retrieved: int = 0
    search_method: Literal["embedding", "text_search"] = "embedding"
    embedding_success: bool = False


def new_conversation_id() -> str:
    return f"conv_{int(time.time() * 1000)}"


def clarification_message(language: str) -> str:
    return CLARIFICATION["en"] if language == "en" else CLARIFICATION["te"]


def _keyword_terms(message: str) -> list[str]:
    words = message.lower().split(" ")
    return [w for w in words if len(w) > 3 and w.isascii() and w.isalnum()]


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class ChatService:
    """Answers chat requests from the teachings corpus.

    Collaborators are injected so tests and alternative deployments can swap
    them; anything left as None is built from settings.
    """

    def __init__(
        self,
        vector_store: VectorStore | None,
        embedder: Embedder | None = None,
        generator: AnswerGenerator | None = None,
        cache: ResponseCache | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        selector: DiversitySelector | None = None,
        openai_client: AsyncOpenAI | None = None,
    ):
        self.vector_store = vector_store
        self.openai_client = openai_client
        self.embedder = embedder or Embedder(openai_client=openai_client)
        self.generator = generator or AnswerGenerator(openai_client=openai_client)
        self.cache = cache if cache is not None else ResponseCache()
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        self.selector = selector or GreedyDiversitySelector()
        self.retriever = CandidateRetriever(vector_store) if vector_store is not None else None

    async def handle(self, request: ChatRequest, client_id: str = "unknown") -> ChatResponse:
        """Run one chat request through the full pipeline.

        Args:
            request: Validated request body
            client_id: Rate-limit identity of the caller

        Returns:
            ChatResponse, either freshly generated or served from cache

        Raises:
            RateLimitError: the client exceeded its budget
            ValidationError: the message is blank
            ConfigurationError: the vector store or API key is not configured
            UpstreamError: answer generation failed
        """
        if not self.rate_limiter.allow(client_id):
            raise RateLimitError(RATE_LIMIT_MESSAGE)

        message = request.message
        if not message or not message.strip():
            raise ValidationError("Message is required")

        conversation_id = request.conversation_id or new_conversation_id()
        language = resolve_language(request.language_code, message)
        degradations = [language.reason] if language.degraded else []
        lang = language.value

        cached = self.cache.get(lang, message)
        if cached is not None:
            logger.info("Serving cached answer (%s): %s", lang, message)
            return ChatResponse(
                response=cached.response,
                conversation_id=conversation_id,
                follow_up_questions=cached.follow_up_questions,
                source_attribution=cached.source_attribution,
                topics_discussed=cached.topics_discussed,
                detected_language=lang,
                search_stats=SearchStats(from_cache=True),
            )

        retrieval = await self.retrieve_candidates(
            message, request.message_history, lang, request.user_context
        )
        if retrieval.degraded:
            degradations.append(retrieval.reason)
        result = retrieval.value

        eligible = apply_similarity_floor(result.chunks)
        ranked = mmr_rerank(message, eligible, k=settings.max_chunks)

        stats = SearchStats(
            candidates_retrieved=result.candidates_retrieved,
            chunks_selected=len(ranked),
            search_method=result.search_method,
            embedding_success=result.embedding_success,
            degradations=degradations,
        )

        if not ranked:
            logger.warning("No usable passages for query, asking for clarification")
            return ChatResponse(
                response=clarification_message(lang),
                conversation_id=conversation_id,
                detected_language=lang,
                search_stats=stats,
            )

        context = assemble_context(ranked)
        answer = await self.generator.generate(
            message,
            context.text,
            history=request.message_history,
            user_context=request.user_context,
            language=lang,
        )
        answer = postprocess_answer(answer, ranked, lang, request.user_name)

        entry = CacheEntry(
            response=answer,
            source_attribution=context.attribution,
            follow_up_questions=generate_follow_up_questions(message, result.chunks),
            topics_discussed=extract_topics(message, result.chunks),
        )
        self.cache.put(lang, message, entry)

        return ChatResponse(
            response=entry.response,
            conversation_id=conversation_id,
            follow_up_questions=entry.follow_up_questions,
            source_attribution=entry.source_attribution,
            topics_discussed=entry.topics_discussed,
            detected_language=lang,
            search_stats=stats,
        )

    async def retrieve_candidates(
        self,
        message: str,
        history: list[HistoryMessage],
        language: str,
        user_context: UserContext | None = None,
    ) -> Outcome[RetrievalResult]:
        """Find relevant chunks, degrading to keyword search when embedding fails.

        Pipeline steps:
        1. History-aware rewrite and translation into the indexing language
        2. Embed and retrieve re-weighted candidates (at most the candidate ceiling)
        3. Diversity selection
        4. Append keyword-expansion hits behind the selected chunks

        Raises:
            ConfigurationError: the vector store or API key is not configured
        """
        if self.vector_store is None:
            raise ConfigurationError("Vector store is not configured")

        reasons = []
        rewritten = await rewrite_with_history(message, history, self.openai_client)
        if rewritten.degraded:
            reasons.append(rewritten.reason)
        translated = await translate_to_english(rewritten.value, language, self.openai_client)
        if translated.degraded:
            reasons.append(translated.reason)
        expansions = expand_query_terms(rewritten.value)

        try:
            embedding = await self.embedder.embed(translated.value)
        except UpstreamError as e:
            logger.warning("Embedding failed, falling back to text search: %s", e)
            chunks = await self._text_search(message, user_context)
            reasons.append(f"embedding failed: {e}")
            return Outcome.degrade(
                RetrievalResult(chunks, len(chunks), "text_search", embedding_success=False),
                "; ".join(reasons),
            )

        try:
            candidates = await self.retriever.retrieve(embedding, user_context)
        except StorageError as e:
            logger.warning("Vector search failed, falling back to text search: %s", e)
            chunks = await self._text_search(message, user_context)
            reasons.append(f"vector search failed: {e}")
            return Outcome.degrade(
                RetrievalResult(chunks, len(chunks), "text_search", embedding_success=True),
                "; ".join(reasons),
            )

        selected = self.selector.select(candidates)
        if expansions:
            try:
                selected = await self._merge_expansions(
                    selected, {c.id for c in candidates}, expansions, user_context
                )
            except StorageError as e:
                logger.warning("Keyword expansion lookup failed, ignoring: %s", e)
                reasons.append(f"keyword expansion failed: {e}")

        result = RetrievalResult(selected, len(candidates), "embedding", embedding_success=True)
        if reasons:
            return Outcome.degrade(result, "; ".join(reasons))
        return Outcome.ok(result)

    async def _merge_expansions(
        self,
        selected: list[ScoredChunk],
        seen: set[str],
        expansions: list[str],
        user_context: UserContext | None,
    ) -> list[ScoredChunk]:
        """Append unseen keyword hits after the selected chunks.

        Hits carry no vector score, so they never take a selected chunk's slot.
        """
        extra = await self.vector_store.term_search(expansions, limit=settings.expansion_limit)
        seen = set(seen)
        fresh = []
        for chunk in extra:
            if chunk.id not in seen:
                seen.add(chunk.id)
                fresh.append((chunk, 0.0))
        logger.info("Keyword expansion %s added %d chunks", expansions, len(fresh))
        return selected + score_candidates(fresh, user_context)

    async def _text_search(
        self, message: str, user_context: UserContext | None
    ) -> list[ScoredChunk]:
        """Last-resort keyword retrieval; returns an empty list if everything fails."""
        try:
            chunks = await self.vector_store.text_search(message, limit=settings.max_chunks)
        except StorageError as e:
            terms = _keyword_terms(message)
            logger.warning("Fulltext search failed (%s), trying terms %s", e, terms)
            if not terms:
                return []
            try:
                chunks = await self.vector_store.term_search(terms, limit=settings.max_chunks)
            except StorageError as err:
                logger.error("Keyword fallback failed: %s", err)
                return []
        logger.info("Text search returned %d chunks", len(chunks))
        return [reweight(c, 0.0, user_context) for c in chunks]

    async def stream_events(self, response: ChatResponse) -> AsyncIterator[str]:
        """Replay a finished answer as server-sent events.

        The answer is already complete; slices are paced to look like typing.
        """
        text = response.response
        step = max(settings.stream_min_step, len(text) // 100)
        for start in range(0, len(text), step):
            yield _sse({"type": "chunk", "content": text[start : start + step]})
            await asyncio.sleep(settings.stream_delay_seconds)
        sources = [a.model_dump() for a in response.source_attribution]
        yield _sse({"type": "end", "sources": sources})
