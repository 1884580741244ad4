"""Structured context assembly for the answer generator."""

from __future__ import annotations

from typing import NamedTuple

from core.models import ScoredChunk, SectionType, SourceAttribution

# (type, section heading, per-chunk label, matcher) in priority order
_SECTIONS: list[tuple[SectionType, str, str, tuple[str, ...] | None]] = [
    ("incident", "PERSONAL INCIDENTS AND INTERACTIONS WITH DEVOTEES:", "INCIDENT", None),
    ("teaching", "DIRECT TEACHINGS AND DIALOGUES:", "TEACHING", ("teaching", "dialogue")),
    ("philosophy", "PHILOSOPHICAL FOUNDATIONS:", "PHILOSOPHY", ("philosophy", "doctrine")),
    ("practice", "PRACTICAL METHODS AND GUIDANCE:", "METHOD", ("practice", "method")),
    ("other", "ADDITIONAL RELEVANT TEACHINGS:", "TEACHING", ()),
]


class AssembledContext(NamedTuple):
    text: str
    attribution: list[SourceAttribution]


def section_type(chunk: ScoredChunk) -> SectionType:
    """First section that claims the chunk."""
    if chunk.has_incident:
        return "incident"
    for kind, _, _, categories in _SECTIONS[1:-1]:
        if chunk.category in categories:
            return kind
    return "other"


def assemble_context(chunks: list[ScoredChunk]) -> AssembledContext:
    """Group ranked chunks into labelled sections and attribute each one.

    Chunks keep their ranked order inside a section. Attribution entries
    follow section order, so they line up with the rendered text.

    Args:
        chunks: Ranked chunks

    Returns:
        AssembledContext with the context text and one attribution per chunk
    """
    buckets: dict[SectionType, list[ScoredChunk]] = {kind: [] for kind, *_ in _SECTIONS}
    for chunk in chunks:
        buckets[section_type(chunk)].append(chunk)

    sections = []
    attribution = []
    for kind, heading, label, _ in _SECTIONS:
        members = buckets[kind]
        if not members:
            continue
        entries = []
        for i, chunk in enumerate(members, start=1):
            attribution.append(
                SourceAttribution(
                    source=chunk.source,
                    category=chunk.category,
                    importance=chunk.importance,
                    tags=list(chunk.tags),
                    word_count=chunk.chunk.word_count,
                    type=kind,
                )
            )
            entries.append(f"{label} {i} (from {chunk.source}):\n{chunk.content}")
        sections.append(heading + "\n" + "\n\n".join(entries))

    return AssembledContext(text="\n\n".join(sections), attribution=attribution)
