"""Knowledge base loader for pre-chunked JSON and JSONL corpora."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from core.models import Chunk

logger = logging.getLogger(__name__)


def _record_to_chunk(record: dict) -> Chunk:
    """Flatten one exported record, reading metadata fallbacks."""
    metadata = record.get("metadata") or {}
    content = record.get("content") or ""
    return Chunk(
        id=str(record.get("id") or ""),
        content=content,
        embedding=record.get("embedding") or [],
        source=record.get("source") or metadata.get("source"),
        category=record.get("category") or metadata.get("category"),
        tags=record.get("tags") or metadata.get("tags") or [],
        key_concepts=(
            record.get("key_concepts")
            or record.get("keyConcepts")
            or metadata.get("key_concepts")
            or []
        ),
        importance=record.get("importance") or metadata.get("importance") or 3,
        word_count=(
            record.get("word_count")
            or metadata.get("word_count")
            or len(content.split())
        ),
    )


def load_knowledge_base(file_path: str) -> list[Chunk]:
    """Load chunks from a knowledge base export.

    Accepts a JSON document of the form ``{"chunks": [...]}`` (or a bare
    list) and JSON Lines with one record per line. Records without content
    are skipped.

    Args:
        file_path: Path to the .json or .jsonl file

    Returns:
        Chunks with defaults applied
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".jsonl":
        records = [json.loads(line) for line in text.splitlines() if line.strip()]
    else:
        data = json.loads(text)
        records = data.get("chunks", []) if isinstance(data, dict) else data

    chunks = []
    for i, record in enumerate(records):
        if not (record.get("content") or "").strip():
            logger.warning("Skipping record %d without content", i)
            continue
        chunks.append(_record_to_chunk(record))

    logger.info("Loaded %d chunks from %s", len(chunks), file_path)
    return chunks
