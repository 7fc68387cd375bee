"""
Local embedding provider backed by sentence-transformers.
The model is loaded on first use and encoding runs off the event loop.
"""

import asyncio
from typing import Any, Optional

from movie_search.config.settings import settings
from movie_search.exceptions import ConfigurationError, EmbeddingUnavailable
from movie_search.utils.logger import LoggerMixin
from .base import EmbeddingMode, EmbeddingResponse, IEmbedder, require_text


class SentenceTransformerEmbedder(IEmbedder, LoggerMixin):
    """Embeds text with a local SentenceTransformer model."""

    def __init__(self, model_name: Optional[str] = None, model: Optional[Any] = None):
        """
        Initialize the embedder.

        Args:
            model_name: Hugging Face model id, defaults to settings.EMBEDDING_MODEL
            model: Already loaded model, mainly for tests
        """
        self.model_name = model_name or settings.EMBEDDING_MODEL
        self.embedding_model = model
        self._load_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Load the model once."""
        async with self._load_lock:
            if self.embedding_model is not None:
                return
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                raise ConfigurationError(
                    "sentence-transformers is not installed; install the 'local' extra"
                ) from e

            self.logger.info(f"Loading embedding model: {self.model_name}")
            try:
                self.embedding_model = await asyncio.to_thread(SentenceTransformer, self.model_name)
            except (OSError, ValueError) as e:
                self.logger.error(f"Failed to load embedding model {self.model_name}: {e}")
                raise EmbeddingUnavailable(f"Could not load embedding model {self.model_name}: {e}") from e
            self.logger.info("Embedding model loaded successfully")

    def _prompt_name(self, mode: EmbeddingMode) -> Optional[str]:
        # Only models trained with query/document prompts define them
        prompts = getattr(self.embedding_model, "prompts", None) or {}
        return mode.value if mode.value in prompts else None

    async def embed(self, text: str, mode: EmbeddingMode = EmbeddingMode.QUERY) -> EmbeddingResponse:
        """Embed text, using the model's prompt for the mode when it has one."""
        text = require_text(text)
        await self.initialize()

        encode_kwargs = {"convert_to_numpy": True, "normalize_embeddings": True}
        prompt_name = self._prompt_name(mode)
        if prompt_name:
            encode_kwargs["prompt_name"] = prompt_name

        try:
            embedding = await asyncio.to_thread(self.embedding_model.encode, text, **encode_kwargs)
        except (RuntimeError, ValueError) as e:
            self.logger.error(f"Encoding failed: {e}")
            raise EmbeddingUnavailable(f"Local embedding failed: {e}") from e

        vector = [float(x) for x in embedding]
        self.logger.debug(f"Generated {mode.value} embedding with {len(vector)} dimensions")
        return EmbeddingResponse(vector=vector, dimension=len(vector), model=self.model_name)
