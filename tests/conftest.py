"""Shared fixtures and factories for the test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, Mock

import httpx
import openai
import pytest

from core.models import Chunk, ScoredChunk


def make_chunk(chunk_id: str, content: str = "", **kwargs) -> Chunk:
    return Chunk(id=chunk_id, content=content or f"Passage {chunk_id} about the Self", **kwargs)


def make_scored(
    chunk_id: str,
    content: str = "",
    similarity: float = 0.5,
    raw_sim: float = 0.5,
    has_incident: bool = False,
    **kwargs,
) -> ScoredChunk:
    return ScoredChunk(
        chunk=make_chunk(chunk_id, content, **kwargs),
        similarity=similarity,
        raw_sim=raw_sim,
        has_incident=has_incident,
    )


def api_error(status: int = 500, message: str = "upstream failure") -> openai.APIStatusError:
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
    return openai.APIStatusError(
        message, response=httpx.Response(status, request=request), body=None
    )


def completion(content: str | None) -> Mock:
    return Mock(choices=[Mock(message=Mock(content=content))])


@pytest.fixture
def openai_client():
    """AsyncOpenAI stand-in with awaitable create methods."""
    client = MagicMock()
    client.embeddings.create = AsyncMock(
        return_value=Mock(data=[Mock(embedding=[0.1, 0.2, 0.3])])
    )
    client.chat.completions.create = AsyncMock(return_value=completion("An answer"))
    return client


@pytest.fixture
def mock_driver():
    """Neo4j AsyncDriver stand-in; ``session.run`` returns ``records``."""
    driver = MagicMock()
    session = MagicMock()
    result = MagicMock()
    result.data = AsyncMock(return_value=[])
    session.run = AsyncMock(return_value=result)
    driver.session.return_value.__aenter__ = AsyncMock(return_value=session)
    driver.session.return_value.__aexit__ = AsyncMock(return_value=False)
    driver.close = AsyncMock()
    return driver, session, result
