"""
OpenAI embedding provider.
Wraps the async OpenAI embeddings endpoint behind the IEmbedder contract.
"""

from typing import Any, Dict, Optional

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    RateLimitError
)

from movie_search.config.settings import settings
from movie_search.exceptions import ConfigurationError, EmbeddingUnavailable, Timeout
from movie_search.utils.logger import LoggerMixin
from .base import EmbeddingMode, EmbeddingResponse, IEmbedder, require_text


class OpenAIEmbedder(IEmbedder, LoggerMixin):
    """Embeds text with an OpenAI embedding model."""

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        dimensions: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        """
        Initialize the OpenAI embedder.

        Args:
            model_name: Embedding model, defaults to settings.EMBEDDING_MODEL
            api_key: OpenAI API key, defaults to settings.OPENAI_API_KEY
            dimensions: Output size for text-embedding-3 models
            timeout: Per-request timeout in seconds
            client: Preconfigured client, mainly for tests

        Raises:
            ConfigurationError: If no client and no API key are available
        """
        self.model_name = model_name or settings.EMBEDDING_MODEL
        self.dimensions = dimensions

        if client is None:
            api_key = api_key or settings.OPENAI_API_KEY
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY is required for the openai embedding provider")

            client_params: Dict[str, Any] = {
                "api_key": api_key,
                "timeout": timeout or settings.EMBEDDING_TIMEOUT_SECONDS,
                "max_retries": 0
            }
            if settings.OPENAI_BASE_URL:
                client_params["base_url"] = settings.OPENAI_BASE_URL
                self.logger.info(f"Using custom OpenAI endpoint: {settings.OPENAI_BASE_URL}")
            client = AsyncOpenAI(**client_params)

        self.client = client

    async def embed(self, text: str, mode: EmbeddingMode = EmbeddingMode.QUERY) -> EmbeddingResponse:
        """
        Embed text with the configured model.

        OpenAI models embed queries and documents identically, so mode only
        shows up in logs.
        """
        text = require_text(text)

        api_params: Dict[str, Any] = {"input": text, "model": self.model_name}
        if self.dimensions and "text-embedding-3" in self.model_name:
            api_params["dimensions"] = self.dimensions

        self.logger.debug(f"Embedding {mode.value} text ({len(text)} chars) with {self.model_name}")

        try:
            response = await self.client.embeddings.create(**api_params)
        except APITimeoutError as e:
            self.logger.error(f"OpenAI embedding request timed out: {e}")
            raise Timeout(f"OpenAI embedding request timed out: {e}") from e
        except (AuthenticationError, RateLimitError, APIConnectionError, APIError) as e:
            self.logger.error(f"OpenAI embedding request failed: {e}")
            raise EmbeddingUnavailable(f"OpenAI embedding request failed: {e}") from e

        if not response.data:
            raise EmbeddingUnavailable("OpenAI returned no embedding")

        vector = list(response.data[0].embedding)
        self.logger.info(f"Generated embedding with {len(vector)} dimensions")

        return EmbeddingResponse(vector=vector, dimension=len(vector), model=self.model_name)
