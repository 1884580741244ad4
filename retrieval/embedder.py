"""Query embedding with a single fallback model."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import openai

from core.config import settings
from core.errors import ConfigurationError, UpstreamError

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


def _status_of(error: Exception) -> int | None:
    return getattr(error, "status_code", None)


class Embedder:
    """Turns text into a fixed-length vector via the OpenAI embeddings API.

    The primary model is tried once; on any failure the fallback model is
    tried once. There are no further retries.
    """

    def __init__(
        self,
        openai_client: AsyncOpenAI | None = None,
        model: str | None = None,
        fallback_model: str | None = None,
    ):
        self._client = openai_client
        self.model = model or settings.embedding_model
        self.fallback_model = fallback_model or settings.fallback_embedding_model

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not settings.openai_api_key:
                raise ConfigurationError("OpenAI API key is not configured")
            self._client = openai.AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)
        return self._client

    async def _embed_with(self, client: AsyncOpenAI, model: str, text: str) -> list[float]:
        response = await client.embeddings.create(
            model=model,
            input=text,
            timeout=settings.embedding_timeout,
        )
        return response.data[0].embedding

    async def embed(self, text: str) -> list[float]:
        """Embed text, falling back to the secondary model on failure.

        Raises:
            ConfigurationError: no API key configured
            UpstreamError: both models failed
        """
        client = self.client

        try:
            return await self._embed_with(client, self.model, text)
        except openai.APIError as e:
            logger.warning(
                "Primary embedding model %s failed (%s), trying %s",
                self.model,
                _status_of(e) or type(e).__name__,
                self.fallback_model,
            )

        try:
            return await self._embed_with(client, self.fallback_model, text)
        except openai.APIError as e:
            logger.error("Fallback embedding model %s failed: %s", self.fallback_model, e)
            raise UpstreamError(
                f"Embedding API error: {getattr(e, 'message', str(e))}",
                status=_status_of(e),
            ) from e
