"""Category-aware diversity selection over re-weighted candidates."""

from __future__ import annotations

import logging
import math
from typing import Protocol

from core.config import settings
from core.models import ScoredChunk

logger = logging.getLogger(__name__)


class DiversitySelector(Protocol):
    def select(self, candidates: list[ScoredChunk]) -> list[ScoredChunk]: ...


class GreedyDiversitySelector:
    """Single-pass greedy selection that reserves room for narrative passages.

    Order-sensitive: candidates are expected best-first. Selection runs in
    four phases (incidents, high-importance chunks, novel regular chunks,
    backfill) and never exceeds ``max_chunks``.
    """

    def __init__(
        self,
        max_chunks: int | None = None,
        incident_share: float | None = None,
        high_importance_share: float | None = None,
        high_similarity: float | None = None,
    ):
        self.max_chunks = max_chunks or settings.max_chunks
        self.incident_share = (
            settings.incident_share if incident_share is None else incident_share
        )
        self.high_importance_share = (
            settings.high_importance_share
            if high_importance_share is None
            else high_importance_share
        )
        self.high_similarity = (
            settings.high_similarity if high_similarity is None else high_similarity
        )

    def select(self, candidates: list[ScoredChunk]) -> list[ScoredChunk]:
        """Pick at most ``max_chunks`` diverse candidates.

        Args:
            candidates: Re-weighted candidates, best first

        Returns:
            Selected candidates with unique ids
        """
        incident = [c for c in candidates if c.has_incident]
        high_importance = [c for c in candidates if c.importance >= 4]
        regular = [c for c in candidates if not c.has_incident]

        incident_cap = math.ceil(self.max_chunks * self.incident_share)
        high_cap = math.ceil(self.max_chunks * self.high_importance_share)

        selected: list[ScoredChunk] = []
        taken: set[str] = set()
        sources: set[str] = set()
        categories: set[str] = set()
        concepts: set[str] = set()

        def take(candidate: ScoredChunk) -> None:
            selected.append(candidate)
            taken.add(candidate.id)
            sources.add(candidate.source)
            categories.add(candidate.category)
            concepts.update(candidate.chunk.key_concepts)

        for candidate in incident:
            if len(selected) >= min(incident_cap, self.max_chunks):
                break
            if candidate.id not in taken:
                take(candidate)
        incident_taken = len(selected)

        for candidate in high_importance:
            if len(selected) >= min(incident_taken + high_cap, self.max_chunks):
                break
            if candidate.id not in taken:
                take(candidate)

        for candidate in regular:
            if len(selected) >= self.max_chunks:
                break
            if candidate.id in taken:
                continue
            novel = (
                candidate.source not in sources
                or candidate.category not in categories
                or any(k not in concepts for k in candidate.chunk.key_concepts)
                or candidate.similarity >= self.high_similarity
            )
            if novel:
                take(candidate)

        for candidate in candidates:
            if len(selected) >= self.max_chunks:
                break
            if candidate.id not in taken:
                take(candidate)

        logger.info(
            "Diversity selection kept %d of %d candidates (%d incident)",
            len(selected),
            len(candidates),
            incident_taken,
        )
        return selected
