"""Relevance re-weighting from seeker profile and narrative content signals."""

from __future__ import annotations

from core.models import Chunk, ScoredChunk, UserContext

INCIDENT_KEYWORDS = (
    "devotee",
    "asked",
    "question",
    "said",
    "replied",
    "conversation",
    "interaction",
    "experience",
    "story",
    "incident",
)

INCIDENT_BOOST = 1.3
BEGINNER_ADVANCED_PENALTY = 0.8
ADVANCED_BASIC_PENALTY = 0.9
PREFERRED_TOPIC_BOOST = 1.2


def has_incident(text: str) -> bool:
    """True when the text carries narrative or conversational markers."""
    lower = (text or "").lower()
    return any(k in lower for k in INCIDENT_KEYWORDS)


def _matches_topics(chunk: Chunk, topics: list[str]) -> bool:
    return any(t in topics for t in chunk.tags)


def filter_by_profile(chunks: list[Chunk], user_context: UserContext | None) -> list[Chunk]:
    """Hard-filter chunks by seeker level and stated topic preferences."""
    if user_context is None:
        return chunks

    level = user_context.spiritual_level
    if level <= 3:
        chunks = [c for c in chunks if c.importance <= 4]
    elif level >= 7:
        chunks = [c for c in chunks if c.importance >= 3]

    if user_context.preferred_topics:
        chunks = [c for c in chunks if _matches_topics(c, user_context.preferred_topics)]
    return chunks


def reweight(
    chunk: Chunk, raw_sim: float, user_context: UserContext | None = None
) -> ScoredChunk:
    """Score a chunk: raw similarity times factors that start at 1.0 and compound."""
    incident = has_incident(chunk.content)
    adjusted = 1.0
    if incident:
        adjusted *= INCIDENT_BOOST

    if user_context is not None:
        level = user_context.spiritual_level
        if level <= 3 and chunk.importance > 4:
            adjusted *= BEGINNER_ADVANCED_PENALTY
        elif level >= 7 and chunk.importance < 3:
            adjusted *= ADVANCED_BASIC_PENALTY
        if user_context.preferred_topics and _matches_topics(chunk, user_context.preferred_topics):
            adjusted *= PREFERRED_TOPIC_BOOST

    return ScoredChunk(
        chunk=chunk,
        similarity=max(0.0, raw_sim) * adjusted,
        raw_sim=raw_sim,
        has_incident=incident,
    )


def score_candidates(
    pairs: list[tuple[Chunk, float]],
    user_context: UserContext | None = None,
    limit: int | None = None,
) -> list[ScoredChunk]:
    """Filter, re-weight and sort (chunk, raw score) pairs, best first."""
    allowed = {id(c) for c in filter_by_profile([c for c, _ in pairs], user_context)}
    scored = [reweight(c, s, user_context) for c, s in pairs if id(c) in allowed]
    scored.sort(key=lambda s: s.similarity, reverse=True)
    if limit is not None:
        scored = scored[:limit]
    return scored
