"""
Abstract base classes and interfaces for the vector storage layer.
This module defines the contracts that concrete implementations must follow.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from movie_search.models.pipeline_stages import PipelineStage


class IDatabaseConnection(ABC):
    """
    Abstract interface for database connections.
    Only manages connection lifecycle.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish database connection."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    def get_database(self) -> Any:
        """Get the database handle."""
        pass

    @abstractmethod
    def get_collection(self, collection_name: str) -> Any:
        """Get a collection handle."""
        pass


class IVectorSearch(ABC):
    """
    Abstract interface for the vector search backend.
    Executes an ordered stage list and returns the raw matches.
    """

    @abstractmethod
    async def run_pipeline(self, stages: Sequence[PipelineStage]) -> List[Dict[str, Any]]:
        """Run the pipeline and return matching documents in backend order."""
        pass


class IIndexManager(ABC):
    """
    Abstract interface for managing vector search indexes.
    """

    @abstractmethod
    async def create_vector_index(
        self,
        collection_name: str,
        index_name: str,
        vector_field: str,
        dimensions: int,
        similarity_metric: str = "cosine",
        filter_fields: Optional[List[str]] = None
    ) -> bool:
        """Create a vector search index on the specified field."""
        pass

    @abstractmethod
    async def get_vector_index(self, collection_name: str, index_name: str) -> Optional[Dict[str, Any]]:
        """Return the index description, or None when it does not exist."""
        pass

    @abstractmethod
    async def index_exists(self, collection_name: str, index_name: str) -> bool:
        """Check if an index exists."""
        pass
