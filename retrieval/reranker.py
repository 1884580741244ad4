"""Maximal Marginal Relevance re-ranking and the similarity floor guardrail."""

from __future__ import annotations

import logging
import re

import numpy as np

from core.config import settings
from core.models import ScoredChunk

logger = logging.getLogger(__name__)

# Python's \w covers Unicode letters and digits; underscore is excluded explicitly
_TOKEN_SPLIT = re.compile(r"[\W_]+", re.UNICODE)

RELEVANCE_TIE_BREAK = 0.001


def tokenize(text: str) -> set[str]:
    """Lower-cased word tokens split on non-letter/number boundaries."""
    return {t for t in _TOKEN_SPLIT.split((text or "").lower()) if t}


def jaccard(a: set[str], b: set[str]) -> float:
    overlap = len(a & b)
    return overlap / max(1, len(a) + len(b) - overlap)


def relevance(item: ScoredChunk) -> float:
    """Raw store similarity with a tiny re-weighted tie-break."""
    return item.raw_sim + RELEVANCE_TIE_BREAK * item.similarity


def mmr_rerank(
    query: str,
    items: list[ScoredChunk],
    k: int | None = None,
    lambda_: float | None = None,
) -> list[ScoredChunk]:
    """Re-rank items balancing relevance against redundancy.

    Args:
        query: Query text (relevance comes from stored scores, not from it)
        items: Candidates to choose from
        k: Number of items to return (default: settings.max_chunks)
        lambda_: Relevance weight in [0, 1] (default: settings.rerank_lambda)

    Returns:
        ``min(k, len(items))`` items in selection order
    """
    if k is None:
        k = settings.max_chunks
    if lambda_ is None:
        lambda_ = settings.rerank_lambda

    target = min(k, len(items))
    if target <= 0:
        return []

    tokens = [tokenize(item.content) for item in items]
    rel = np.array([relevance(item) for item in items], dtype=float)
    # Max overlap of each item with anything selected so far
    penalty = np.zeros(len(items), dtype=float)
    available = np.ones(len(items), dtype=bool)

    order: list[int] = []
    while len(order) < target:
        scores = lambda_ * rel - (1 - lambda_) * penalty
        scores[~available] = -np.inf
        best = int(np.argmax(scores))  # first maximum wins
        order.append(best)
        available[best] = False

        for i in np.flatnonzero(available):
            overlap = jaccard(tokens[i], tokens[best])
            if overlap > penalty[i]:
                penalty[i] = overlap

    logger.debug("MMR selected %d of %d items for query: %s", target, len(items), query)
    return [items[i] for i in order]


def apply_similarity_floor(
    chunks: list[ScoredChunk], floor: float | None = None
) -> list[ScoredChunk]:
    """Drop chunks scoring below the floor; keep all of them if none pass.

    The score used is the raw store similarity, or the re-weighted
    similarity for chunks that carry no raw score.
    """
    if floor is None:
        floor = settings.min_similarity

    kept = [c for c in chunks if (c.raw_sim or c.similarity or 0.0) >= floor]
    if not kept:
        if chunks:
            logger.warning(
                "No chunk passed similarity floor %.2f, keeping all %d", floor, len(chunks)
            )
        return chunks
    logger.info("Similarity floor %.2f kept %d of %d chunks", floor, len(kept), len(chunks))
    return kept
