"""
Index management for MongoDB Atlas Vector Search.
Creates and inspects the vector search index backing movie search.
"""

import json
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from movie_search.exceptions import ConfigurationError, SearchBackendUnavailable
from movie_search.utils.logger import LoggerMixin
from .base import IDatabaseConnection, IIndexManager


VALID_SIMILARITY_METRICS = ("cosine", "euclidean", "dotProduct")


def build_vector_index_definition(
    index_name: str,
    vector_field: str,
    dimensions: int,
    similarity_metric: str = "cosine",
    filter_fields: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Build an Atlas vectorSearch index definition.

    Raises:
        ConfigurationError: For an unknown metric or non-positive dimensions
    """
    if similarity_metric not in VALID_SIMILARITY_METRICS:
        raise ConfigurationError(f"Invalid similarity metric: {similarity_metric}")
    if dimensions < 1:
        raise ConfigurationError(f"Invalid vector dimensions: {dimensions}")

    fields: List[Dict[str, Any]] = [
        {
            "type": "vector",
            "path": vector_field,
            "numDimensions": dimensions,
            "similarity": similarity_metric
        }
    ]
    fields.extend({"type": "filter", "path": path} for path in filter_fields or [])

    return {
        "name": index_name,
        "type": "vectorSearch",
        "definition": {"fields": fields}
    }


class MongoIndexManager(IIndexManager, LoggerMixin):
    """
    MongoDB Atlas Vector Search index manager.
    """

    def __init__(self, connection: IDatabaseConnection):
        """
        Initialize index manager.

        Args:
            connection: MongoDB connection instance
        """
        self.connection = connection

    async def create_vector_index(
        self,
        collection_name: str,
        index_name: str,
        vector_field: str,
        dimensions: int,
        similarity_metric: str = "cosine",
        filter_fields: Optional[List[str]] = None
    ) -> bool:
        """
        Create a vector search index.

        Args:
            collection_name: Name of the collection
            index_name: Name of the vector index
            vector_field: Field containing the vector embeddings
            dimensions: Vector dimensions
            similarity_metric: Similarity metric (cosine, euclidean, dotProduct)
            filter_fields: Fields indexed for inline $vectorSearch filtering

        Returns:
            True if the index was created, False if it already existed

        Raises:
            SearchBackendUnavailable: If index creation fails
        """
        index_definition = build_vector_index_definition(
            index_name, vector_field, dimensions, similarity_metric, filter_fields
        )

        if await self.index_exists(collection_name, index_name):
            self.logger.info(f"Vector index '{index_name}' already exists on '{collection_name}'")
            return False

        self.logger.info(f"Creating vector index '{index_name}' on collection '{collection_name}'")
        self.logger.debug(json.dumps(index_definition, indent=2))

        try:
            database = self.connection.get_database()
            await database.command(
                "createSearchIndexes",
                collection_name,
                indexes=[index_definition]
            )
        except PyMongoError as e:
            self.logger.error(f"Failed to create vector index: {str(e)}")
            raise SearchBackendUnavailable(f"Vector index creation failed: {str(e)}") from e

        self.logger.info(f"Vector index '{index_name}' created; Atlas builds it asynchronously")
        return True

    async def get_vector_index(self, collection_name: str, index_name: str) -> Optional[Dict[str, Any]]:
        """
        Look up a search index by name.

        Returns:
            The index description from $listSearchIndexes, or None
        """
        try:
            collection = self.connection.get_collection(collection_name)
            indexes = await collection.aggregate(
                [{"$listSearchIndexes": {"name": index_name}}]
            ).to_list(length=None)
        except PyMongoError as e:
            self.logger.error(f"Failed to list search indexes: {str(e)}")
            raise SearchBackendUnavailable(f"Listing search indexes failed: {str(e)}") from e

        return indexes[0] if indexes else None

    async def index_exists(self, collection_name: str, index_name: str) -> bool:
        """Check if an index exists."""
        return await self.get_vector_index(collection_name, index_name) is not None

    async def verify_dimensions(
        self,
        collection_name: str,
        index_name: str,
        vector_field: str,
        expected_dimensions: int
    ) -> int:
        """
        Check that the index declares the expected vector dimensions.

        Returns:
            The declared number of dimensions

        Raises:
            ConfigurationError: If the index or field is missing, or dimensions differ
        """
        index = await self.get_vector_index(collection_name, index_name)
        if index is None:
            raise ConfigurationError(f"Vector index '{index_name}' not found on '{collection_name}'")

        definition = index.get("latestDefinition") or index.get("definition") or {}
        for field in definition.get("fields", []):
            if field.get("type") == "vector" and field.get("path") == vector_field:
                declared = field.get("numDimensions")
                if declared != expected_dimensions:
                    raise ConfigurationError(
                        f"Index '{index_name}' declares {declared} dimensions, "
                        f"embedder produces {expected_dimensions}"
                    )
                self.logger.info(f"Index '{index_name}' dimensions verified ({declared})")
                return declared

        raise ConfigurationError(f"Index '{index_name}' has no vector field '{vector_field}'")
