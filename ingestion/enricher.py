"""Batch embedding of knowledge base chunks before indexing."""

from __future__ import annotations

import logging

import openai

from core.errors import UpstreamError
from core.models import Chunk
from retrieval.embedder import Embedder

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


async def embed_chunks(
    chunks: list[Chunk], embedder: Embedder | None = None, batch_size: int = BATCH_SIZE
) -> list[Chunk]:
    """Embed chunks that do not carry an embedding yet.

    Sets chunk.embedding in place, calling the embeddings API once per batch
    with the primary model.

    Raises:
        ConfigurationError: no API key configured
        UpstreamError: the embeddings API failed
    """
    pending = [c for c in chunks if not c.embedding]
    if not pending:
        return chunks

    if embedder is None:
        embedder = Embedder()
    client = embedder.client

    for start in range(0, len(pending), batch_size):
        batch = pending[start : start + batch_size]
        try:
            response = await client.embeddings.create(
                model=embedder.model, input=[c.content for c in batch]
            )
        except openai.APIError as e:
            logger.error("Failed to embed chunks %d-%d: %s", start, start + len(batch), e)
            raise UpstreamError(
                f"Embedding API error: {getattr(e, 'message', str(e))}",
                status=getattr(e, "status_code", None),
            ) from e

        for chunk, item in zip(batch, response.data):
            chunk.embedding = item.embedding
        logger.debug("Embedded batch %d-%d", start, start + len(batch))

    logger.info("Embedded %d of %d chunks", len(pending), len(chunks))
    return chunks
