"""
Semantic movie search service.
Embeds the query, builds the vector search pipeline, runs it and projects
the matches. Every dependency is injected; nothing is cached between calls.
"""

import asyncio
import time
from typing import Any, List, Mapping, Optional, Union

from movie_search.config.settings import settings
from movie_search.exceptions import ConfigurationError, Timeout
from movie_search.feature_pipeline.embeddings import EmbeddingMode, EmbeddingResponse, IEmbedder
from movie_search.feature_pipeline.vector_storage import IVectorSearch, QueryBuilder, ResultProjector
from movie_search.models.schemas import MovieFilters, MovieResult, SearchRequest
from movie_search.utils.logger import LoggerMixin


class MovieSearchService(LoggerMixin):
    """Runs one semantic search per call, embedding then searching."""

    def __init__(
        self,
        embedder: IEmbedder,
        backend: IVectorSearch,
        query_builder: Optional[QueryBuilder] = None,
        projector: Optional[ResultProjector] = None,
        vector_dimensions: Optional[int] = None,
        embedding_model: Optional[str] = None,
        embedding_timeout: Optional[float] = None,
        search_timeout: Optional[float] = None
    ):
        """
        Initialize the search service.

        Args:
            embedder: Query embedding provider
            backend: Vector search backend
            query_builder: Pipeline builder, default configuration if omitted
            projector: Result projector, default configuration if omitted
            vector_dimensions: Dimensions declared by the vector index
            embedding_model: Model the stored documents were embedded with
            embedding_timeout: Seconds allowed for the embedding call
            search_timeout: Seconds allowed for the vector search call

        Raises:
            ConfigurationError: If the embedder uses a different model than the stored documents
        """
        self.embedder = embedder
        self.backend = backend
        self.query_builder = query_builder or QueryBuilder()
        self.projector = projector or ResultProjector()
        self.vector_dimensions = vector_dimensions or settings.VECTOR_DIMENSIONS
        self.embedding_model = embedding_model or settings.EMBEDDING_MODEL
        self.embedding_timeout = embedding_timeout or settings.EMBEDDING_TIMEOUT_SECONDS
        self.search_timeout = search_timeout or settings.SEARCH_TIMEOUT_SECONDS

        if embedder.model_name != self.embedding_model:
            raise ConfigurationError(
                f"Embedder model {embedder.model_name!r} differs from the document "
                f"embedding model {self.embedding_model!r}"
            )

    async def _embed_query(self, query_text: str) -> EmbeddingResponse:
        try:
            embedding = await asyncio.wait_for(
                self.embedder.embed(query_text, EmbeddingMode.QUERY),
                timeout=self.embedding_timeout
            )
        except Timeout:
            raise
        except asyncio.TimeoutError as e:
            self.logger.error(f"Embedding timed out after {self.embedding_timeout}s")
            raise Timeout(f"Embedding timed out after {self.embedding_timeout}s") from e

        if embedding.dimension != self.vector_dimensions:
            self.logger.error(
                f"Embedding has {embedding.dimension} dimensions, index expects {self.vector_dimensions}"
            )
            raise ConfigurationError(
                f"Embedding has {embedding.dimension} dimensions, "
                f"vector index expects {self.vector_dimensions}"
            )
        return embedding

    async def search(self, request: SearchRequest) -> List[MovieResult]:
        """
        Run a semantic search.

        Args:
            request: The search request

        Returns:
            Projected results in descending score order; empty is a valid outcome

        Raises:
            InvalidArgument: If the request is inconsistent
            EmbeddingUnavailable: If the query cannot be embedded
            ConfigurationError: If model or dimensions disagree with the index
            SearchBackendUnavailable: If the vector search fails
            Timeout: If either external call exceeds its budget
        """
        start_time = time.perf_counter()
        self.query_builder.validate_request(request)

        self.logger.info(f"Searching for: {request.query_text!r}")
        embedding = await self._embed_query(request.query_text)

        stages = self.query_builder.build_pipeline(request, embedding.vector)
        stages.append(self.projector.projection_stage())

        try:
            raw_results = await asyncio.wait_for(
                self.backend.run_pipeline(stages),
                timeout=self.search_timeout
            )
        except Timeout:
            raise
        except asyncio.TimeoutError as e:
            self.logger.error(f"Vector search timed out after {self.search_timeout}s")
            raise Timeout(f"Vector search timed out after {self.search_timeout}s") from e

        results = self.projector.project(raw_results)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(f"Found {len(results)} results in {elapsed_ms:.0f}ms")
        return results

    async def search_text(
        self,
        query_text: str,
        limit: Optional[int] = None,
        filters: Union[MovieFilters, Mapping[str, Any], None] = None,
        candidate_pool_size: Optional[int] = None
    ) -> List[MovieResult]:
        """Build a request from plain arguments and run it."""
        config = self.query_builder.config
        request = SearchRequest.create(
            query_text=query_text,
            result_limit=config.default_result_limit if limit is None else limit,
            candidate_pool_size=(
                config.default_candidate_pool_size if candidate_pool_size is None else candidate_pool_size
            ),
            filters=filters
        )
        return await self.search(request)
