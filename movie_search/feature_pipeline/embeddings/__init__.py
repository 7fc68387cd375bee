"""
Embedding providers for Semantic Movie Search.
"""

from typing import Optional

from movie_search.config.settings import Settings, settings as default_settings
from movie_search.exceptions import ConfigurationError

from .base import EmbeddingMode, EmbeddingResponse, IEmbedder
from .openai_embedder import OpenAIEmbedder
from .sentence_transformer_embedder import SentenceTransformerEmbedder


PROVIDERS = ("openai", "sentence_transformers")


def create_embedder(config: Optional[Settings] = None) -> IEmbedder:
    """
    Create the embedder selected by EMBEDDING_PROVIDER.

    Raises:
        ConfigurationError: For an unknown provider or missing credentials
    """
    config = config or default_settings
    provider = config.EMBEDDING_PROVIDER.strip().lower()

    if provider == "openai":
        return OpenAIEmbedder(
            model_name=config.EMBEDDING_MODEL,
            api_key=config.OPENAI_API_KEY,
            dimensions=config.VECTOR_DIMENSIONS,
            timeout=config.EMBEDDING_TIMEOUT_SECONDS
        )
    if provider == "sentence_transformers":
        return SentenceTransformerEmbedder(model_name=config.EMBEDDING_MODEL)

    raise ConfigurationError(
        f"Unknown embedding provider {config.EMBEDDING_PROVIDER!r}; expected one of {PROVIDERS}"
    )


__all__ = [
    "EmbeddingMode",
    "EmbeddingResponse",
    "IEmbedder",
    "OpenAIEmbedder",
    "SentenceTransformerEmbedder",
    "create_embedder",
    "PROVIDERS"
]
