"""
Embedding contract shared by all embedding providers.
Queries and stored documents must be embedded with the same model.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List

from pydantic import BaseModel, Field, model_validator

from movie_search.exceptions import InvalidArgument


class EmbeddingMode(str, Enum):
    """What the text being embedded is used for."""
    QUERY = "query"
    DOCUMENT = "document"


class EmbeddingResponse(BaseModel):
    """A single embedding returned by a provider."""
    vector: List[float] = Field(..., min_length=1)
    dimension: int = Field(..., ge=1)
    model: str = Field(..., description="Model that produced the vector")

    @model_validator(mode="after")
    def dimension_matches_vector(self):
        if len(self.vector) != self.dimension:
            raise ValueError(f"Vector has {len(self.vector)} values, expected {self.dimension}")
        return self


class IEmbedder(ABC):
    """Abstract interface for text embedding providers."""

    model_name: str

    @abstractmethod
    async def embed(self, text: str, mode: EmbeddingMode = EmbeddingMode.QUERY) -> EmbeddingResponse:
        """
        Embed one text.

        Raises:
            InvalidArgument: If the text is blank
            EmbeddingUnavailable: If the provider call fails
            Timeout: If the provider times out
        """
        pass


def require_text(text: str) -> str:
    """Reject blank input before paying for a provider call."""
    if not text or not text.strip():
        raise InvalidArgument("Cannot embed empty text")
    return text.strip()
