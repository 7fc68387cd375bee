"""
Vector search backend using MongoDB Atlas Vector Search.
Executes typed pipeline stages on the movies collection and maps driver
failures onto the package's error taxonomy.
"""

from typing import Any, Dict, List, Optional, Sequence

from pymongo.errors import ExecutionTimeout, NetworkTimeout, OperationFailure, PyMongoError

from movie_search.config.settings import settings
from movie_search.exceptions import (
    ConfigurationError,
    SearchBackendUnavailable,
    Timeout
)
from movie_search.models.pipeline_stages import PipelineStage, VectorSearchStage, to_mongo_pipeline
from movie_search.utils.logger import LoggerMixin
from .base import IDatabaseConnection, IVectorSearch


def _is_dimension_mismatch(error: OperationFailure) -> bool:
    # Atlas: "vector field is indexed with 1536 dimensions but queried with 384"
    message = str(error).lower()
    return "dimensions" in message and "queried with" in message


class MongoMovieSearch(IVectorSearch, LoggerMixin):
    """
    MongoDB Atlas Vector Search backend for the movies collection.
    """

    def __init__(
        self,
        connection: IDatabaseConnection,
        collection_name: Optional[str] = None
    ):
        """
        Initialize vector search.

        Args:
            connection: Database connection, already connected
            collection_name: Name of the movies collection
        """
        self.connection = connection
        self.collection_name = collection_name or settings.COLLECTION_NAME

    def _get_collection(self):
        return self.connection.get_collection(self.collection_name)

    async def run_pipeline(self, stages: Sequence[PipelineStage]) -> List[Dict[str, Any]]:
        """
        Run the aggregation pipeline.

        Args:
            stages: Ordered stages, starting with the vector search stage

        Returns:
            Raw matching documents in backend order

        Raises:
            ConfigurationError: If the query vector does not fit the index
            Timeout: If the driver reports a timeout
            SearchBackendUnavailable: For any other backend failure
        """
        if not stages or not isinstance(stages[0], VectorSearchStage):
            raise ValueError("Pipeline must start with a vector search stage")

        pipeline = to_mongo_pipeline(stages)

        try:
            collection = self._get_collection()
            results = await collection.aggregate(pipeline).to_list(length=None)
        except (ExecutionTimeout, NetworkTimeout) as e:
            self.logger.error(f"Vector search timed out: {str(e)}")
            raise Timeout(f"Vector search timed out: {str(e)}") from e
        except OperationFailure as e:
            if _is_dimension_mismatch(e):
                self.logger.error(f"Query vector does not match index dimensions: {str(e)}")
                raise ConfigurationError(f"Vector dimension mismatch: {str(e)}") from e
            self.logger.error(f"Vector search failed: {str(e)}")
            raise SearchBackendUnavailable(f"Vector search failed: {str(e)}") from e
        except PyMongoError as e:
            self.logger.error(f"Vector search failed: {str(e)}")
            raise SearchBackendUnavailable(f"Vector search failed: {str(e)}") from e

        self.logger.info(f"Vector search returned {len(results)} results")
        return results


# Factory function for dependency injection
def create_vector_search(
    connection: IDatabaseConnection,
    collection_name: Optional[str] = None
) -> IVectorSearch:
    """Create a vector search instance."""
    return MongoMovieSearch(connection, collection_name)
