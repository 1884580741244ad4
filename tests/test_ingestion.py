"""Unit tests for ingestion pipeline (loader, enricher)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, Mock

import pytest

from conftest import api_error
from core.errors import UpstreamError
from core.models import Chunk
from ingestion.enricher import embed_chunks
from ingestion.loader import load_knowledge_base
from retrieval.embedder import Embedder


class TestLoader:
    """Tests for knowledge base loader."""

    def test_load_json_document(self, tmp_path):
        path = tmp_path / "kb.json"
        path.write_text(
            json.dumps(
                {
                    "chunks": [
                        {
                            "id": "c1",
                            "content": "The Self alone is real.",
                            "source": "Who am I?",
                            "category": "teaching",
                            "tags": ["self-inquiry"],
                            "importance": 5,
                        },
                        {"id": "c2", "content": "Be still."},
                    ]
                }
            ),
            encoding="utf-8",
        )

        chunks = load_knowledge_base(str(path))

        assert [c.id for c in chunks] == ["c1", "c2"]
        assert chunks[0].source == "Who am I?"
        assert chunks[0].importance == 5
        assert chunks[0].word_count == 5
        assert chunks[1].source == "unknown"
        assert chunks[1].category == "general"
        assert chunks[1].importance == 3

    def test_load_bare_list(self, tmp_path):
        path = tmp_path / "kb.json"
        path.write_text(json.dumps([{"id": "a", "content": "Grace is always there."}]))
        assert [c.id for c in load_knowledge_base(str(path))] == ["a"]

    def test_load_jsonl(self, tmp_path):
        path = tmp_path / "kb.jsonl"
        lines = [
            json.dumps({"id": "a", "content": "First passage"}),
            "",
            json.dumps({"id": "b", "content": "Second passage"}),
        ]
        path.write_text("\n".join(lines), encoding="utf-8")

        assert [c.id for c in load_knowledge_base(str(path))] == ["a", "b"]

    def test_metadata_fallbacks(self, tmp_path):
        path = tmp_path / "kb.json"
        record = {
            "id": "m1",
            "content": "one two three",
            "keyConcepts": ["Self"],
            "metadata": {
                "source": "Talks",
                "category": "dialogue",
                "tags": ["meditation"],
                "importance": 4,
                "word_count": 12,
            },
        }
        path.write_text(json.dumps({"chunks": [record]}), encoding="utf-8")

        chunk = load_knowledge_base(str(path))[0]

        assert chunk.source == "Talks"
        assert chunk.category == "dialogue"
        assert chunk.tags == ["meditation"]
        assert chunk.key_concepts == ["Self"]
        assert chunk.importance == 4
        assert chunk.word_count == 12

    def test_precomputed_embedding_kept(self, tmp_path):
        path = tmp_path / "kb.json"
        path.write_text(json.dumps([{"id": "e", "content": "x", "embedding": [0.5, 0.5]}]))
        assert load_knowledge_base(str(path))[0].embedding == [0.5, 0.5]

    def test_blank_records_skipped(self, tmp_path):
        path = tmp_path / "kb.json"
        path.write_text(
            json.dumps([{"id": "a", "content": "  "}, {"id": "b"}, {"id": "c", "content": "ok"}])
        )
        assert [c.id for c in load_knowledge_base(str(path))] == ["c"]

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            load_knowledge_base("/nonexistent/kb.json")


class TestEmbedChunks:
    """Tests for batch chunk embedding."""

    @staticmethod
    def _echo_embeddings(**kwargs):
        return Mock(data=[Mock(embedding=[float(len(text))]) for text in kwargs["input"]])

    @pytest.mark.asyncio
    async def test_sets_embeddings(self, openai_client):
        chunks = [Chunk(id="1", content="Test content")]

        result = await embed_chunks(chunks, Embedder(openai_client))

        assert result[0].embedding == [0.1, 0.2, 0.3]
        kwargs = openai_client.embeddings.create.call_args.kwargs
        assert kwargs["model"] == "text-embedding-3-small"
        assert kwargs["input"] == ["Test content"]

    @pytest.mark.asyncio
    async def test_batches(self, openai_client):
        openai_client.embeddings.create = AsyncMock(side_effect=self._echo_embeddings)
        chunks = [Chunk(id=str(i), content="x" * (i + 1)) for i in range(5)]

        await embed_chunks(chunks, Embedder(openai_client), batch_size=2)

        assert openai_client.embeddings.create.await_count == 3
        assert [c.embedding for c in chunks] == [[1.0], [2.0], [3.0], [4.0], [5.0]]

    @pytest.mark.asyncio
    async def test_skips_embedded_chunks(self, openai_client):
        chunks = [
            Chunk(id="1", content="done", embedding=[0.9]),
            Chunk(id="2", content="pending"),
        ]

        await embed_chunks(chunks, Embedder(openai_client))

        assert openai_client.embeddings.create.call_args.kwargs["input"] == ["pending"]
        assert chunks[0].embedding == [0.9]

    @pytest.mark.asyncio
    async def test_nothing_pending(self, openai_client):
        assert await embed_chunks([], Embedder(openai_client)) == []
        openai_client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_error(self, openai_client):
        openai_client.embeddings.create.side_effect = api_error(503, "overloaded")

        with pytest.raises(UpstreamError) as exc_info:
            await embed_chunks([Chunk(id="1", content="x")], Embedder(openai_client))

        assert exc_info.value.status == 503
