"""Neo4j vector and fulltext index store for the teachings corpus."""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Any

from neo4j.exceptions import DriverError, Neo4jError

from core.config import settings
from core.errors import StorageError
from core.models import Chunk

if TYPE_CHECKING:
    from neo4j import AsyncDriver

logger = logging.getLogger(__name__)

INDEX_NAME = "teaching_chunks_index"
FULLTEXT_INDEX_NAME = "teaching_chunks_fulltext"
NODE_LABEL = "TeachingChunk"
EMBEDDING_PROPERTY = "embedding"

_CHUNK_PROJECTION = (
    "{.id, .content, .source, .category, .tags, .key_concepts, .importance, .word_count}"
)


class VectorStore:
    """Neo4j-backed chunk store with cosine similarity and keyword search."""

    def __init__(self, driver: AsyncDriver | None = None):
        if driver is None:
            from neo4j import AsyncGraphDatabase

            self._driver = AsyncGraphDatabase.driver(
                settings.neo4j_uri,
                auth=(settings.neo4j_user, settings.neo4j_password),
            )
        else:
            self._driver = driver

    @classmethod
    def from_settings(cls) -> VectorStore | None:
        """Build a store from settings, or None when Neo4j is not configured."""
        if not settings.neo4j_uri:
            logger.warning("NEO4J_URI is empty; vector store disabled")
            return None
        if not settings.neo4j_password:
            logger.warning("NEO4J_PASSWORD is empty; vector store disabled")
            return None
        return cls()

    async def close(self) -> None:
        await self._driver.close()

    async def _run(self, query: str, **params: Any) -> list[dict]:
        try:
            async with self._driver.session() as session:
                result = await session.run(query, **params)
                return await result.data()
        except (Neo4jError, DriverError) as e:
            raise StorageError(f"Vector store query failed: {e}") from e

    async def init_index(self) -> None:
        """Create the vector and fulltext indexes if they don't exist."""
        await self._run(
            f"""
            CREATE VECTOR INDEX {INDEX_NAME} IF NOT EXISTS
            FOR (n:{NODE_LABEL})
            ON (n.{EMBEDDING_PROPERTY})
            OPTIONS {{
                indexConfig: {{
                    `vector.dimensions`: $dimensions,
                    `vector.similarity_function`: 'cosine'
                }}
            }}
            """,
            dimensions=settings.embedding_dimensions,
        )
        await self._run(
            f"""
            CREATE FULLTEXT INDEX {FULLTEXT_INDEX_NAME} IF NOT EXISTS
            FOR (n:{NODE_LABEL}) ON EACH [n.content]
            """
        )
        logger.info("Indexes '%s' and '%s' initialized", INDEX_NAME, FULLTEXT_INDEX_NAME)

    async def add_chunks(self, chunks: list[Chunk]) -> int:
        """Store chunks as Neo4j nodes with embeddings. Returns count added."""
        if not chunks:
            return 0

        try:
            async with self._driver.session() as session:
                for chunk in chunks:
                    chunk_id = chunk.id or hashlib.md5(chunk.content.encode()).hexdigest()
                    await session.run(
                        f"""
                        MERGE (c:{NODE_LABEL} {{id: $id}})
                        SET c.content = $content,
                            c.source = $source,
                            c.category = $category,
                            c.tags = $tags,
                            c.key_concepts = $key_concepts,
                            c.importance = $importance,
                            c.word_count = $word_count,
                            c.{EMBEDDING_PROPERTY} = $embedding
                        """,
                        id=chunk_id,
                        content=chunk.content,
                        source=chunk.source,
                        category=chunk.category,
                        tags=chunk.tags,
                        key_concepts=chunk.key_concepts,
                        importance=chunk.importance,
                        word_count=chunk.word_count,
                        embedding=chunk.embedding,
                    )
        except (Neo4jError, DriverError) as e:
            raise StorageError(f"Failed to store chunks: {e}") from e

        logger.info("Added %d chunks to vector store", len(chunks))
        return len(chunks)

    async def similarity_search(
        self,
        query_embedding: list[float],
        min_score: float | None = None,
        limit: int | None = None,
    ) -> list[tuple[Chunk, float]]:
        """Nearest neighbours scoring at least ``min_score``, best first."""
        if min_score is None:
            min_score = settings.retrieval_floor
        if limit is None:
            limit = settings.max_candidate_chunks

        records = await self._run(
            f"""
            CALL db.index.vector.queryNodes('{INDEX_NAME}', $limit, $embedding)
            YIELD node, score
            WHERE score >= $min_score
            RETURN node {_CHUNK_PROJECTION} AS chunk, score
            ORDER BY score DESC
            """,
            limit=limit,
            embedding=query_embedding,
            min_score=min_score,
        )
        return [(Chunk.model_validate(r["chunk"]), float(r["score"])) for r in records]

    async def text_search(self, query: str, limit: int | None = None) -> list[Chunk]:
        """Fulltext search over chunk content, most important chunks first."""
        if limit is None:
            limit = settings.max_chunks

        records = await self._run(
            f"""
            CALL db.index.fulltext.queryNodes('{FULLTEXT_INDEX_NAME}', $query)
            YIELD node, score
            RETURN node {_CHUNK_PROJECTION} AS chunk
            ORDER BY node.importance DESC, score DESC
            LIMIT $limit
            """,
            query=query,
            limit=limit,
        )
        return [Chunk.model_validate(r["chunk"]) for r in records]

    async def term_search(self, terms: list[str], limit: int | None = None) -> list[Chunk]:
        """Chunks whose content contains any of ``terms`` (case-insensitive)."""
        if not terms:
            return []
        if limit is None:
            limit = settings.expansion_limit

        records = await self._run(
            f"""
            MATCH (c:{NODE_LABEL})
            WHERE any(t IN $terms WHERE toLower(c.content) CONTAINS t)
            RETURN c {_CHUNK_PROJECTION} AS chunk
            ORDER BY c.importance DESC
            LIMIT $limit
            """,
            terms=[t.lower() for t in terms],
            limit=limit,
        )
        return [Chunk.model_validate(r["chunk"]) for r in records]

    async def delete_all(self) -> int:
        """Delete all chunk nodes. Returns count deleted."""
        records = await self._run(
            f"""
            MATCH (c:{NODE_LABEL})
            WITH collect(c) AS nodes, count(c) AS total
            FOREACH (n IN nodes | DETACH DELETE n)
            RETURN total
            """
        )
        count = records[0]["total"] if records else 0
        logger.info("Deleted %d chunks from vector store", count)
        return count

    async def count(self) -> int:
        """Return total number of chunks."""
        records = await self._run(f"MATCH (c:{NODE_LABEL}) RETURN count(c) AS total")
        return records[0]["total"] if records else 0
