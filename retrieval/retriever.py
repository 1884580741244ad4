"""Candidate retrieval: vector search followed by profile-aware re-weighting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.config import settings
from core.models import ScoredChunk
from retrieval.reweighter import score_candidates

if TYPE_CHECKING:
    from core.models import UserContext
    from storage.vector_store import VectorStore

logger = logging.getLogger(__name__)


class CandidateRetriever:
    """Fetches nearest neighbours and turns them into re-weighted candidates."""

    def __init__(self, vector_store: VectorStore, max_candidates: int | None = None):
        """Initialize retriever with a vector store.

        Args:
            vector_store: Store exposing ``similarity_search``
            max_candidates: Candidate ceiling (default: settings.max_candidate_chunks)
        """
        self.vector_store = vector_store
        self.max_candidates = max_candidates or settings.max_candidate_chunks

    async def retrieve(
        self, query_embedding: list[float], user_context: UserContext | None = None
    ) -> list[ScoredChunk]:
        """Execute candidate retrieval.

        Pipeline steps:
        1. Similarity search above the low retrieval floor, up to the ceiling
        2. Hard-filter by seeker level and preferred topics
        3. Flag narrative/incident passages
        4. Re-weight similarity multiplicatively
        5. Sort by re-weighted similarity and truncate to the ceiling

        Raises:
            StorageError: the vector store is unreachable
        """
        results = await self.vector_store.similarity_search(
            query_embedding,
            min_score=settings.retrieval_floor,
            limit=self.max_candidates,
        )
        logger.debug("Vector search returned %d results", len(results))

        candidates = score_candidates(results, user_context, limit=self.max_candidates)
        logger.info(
            "Retrieved %d candidates (%d incident)",
            len(candidates),
            sum(1 for c in candidates if c.has_incident),
        )
        return candidates
