"""Teachings RAG configuration via Pydantic settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenAI
    openai_api_key: str = ""
    embedding_model: str = "text-embedding-3-small"
    fallback_embedding_model: str = "text-embedding-ada-002"
    llm_model: str = "gpt-4o-mini"
    embedding_dimensions: int = 1536

    # Neo4j (empty uri = vector store not configured)
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = ""

    # Retrieval
    similarity_threshold: float = 0.65
    max_chunks: int = 25
    max_candidate_chunks: int = 75
    retrieval_floor: float = 0.1
    rerank_lambda: float = 0.7
    incident_share: float = 0.3
    high_importance_share: float = 0.4
    expansion_limit: int = 50

    # Timeouts (seconds)
    embedding_timeout: float = 8.0
    rewrite_timeout: float = 6.0
    generation_timeout: float = 45.0

    # Generation
    generation_temperature: float = 0.3
    generation_max_tokens: int = 1600

    # Response cache and rate limiting
    cache_max_entries: int = 1024
    rate_limit_window_seconds: float = 15.0
    rate_limit_max_requests: int = 5

    # Streaming
    stream_min_step: int = 24
    stream_delay_seconds: float = 0.01

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def min_similarity(self) -> float:
        """Similarity floor applied before MMR re-ranking."""
        return max(0.35, self.similarity_threshold - 0.2)

    @property
    def high_similarity(self) -> float:
        """Similarity above which a regular chunk is always admitted."""
        return self.similarity_threshold + 0.1


settings = Settings()
