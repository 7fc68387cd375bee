"""
Query builder for MongoDB Atlas Vector Search.
Turns a SearchRequest and its query vector into an ordered list of typed
pipeline stages: the $vectorSearch stage, then an optional $match post-filter.

Post-filters run on the already-limited top-K, so a tight filter can return
fewer than result_limit documents even when more matches exist in the corpus.
Route a field through inline_filter_fields once it is indexed as a filter
field to have it constrain the candidate scan instead.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from movie_search.config.search_config import SearchConfiguration
from movie_search.config.settings import settings
from movie_search.exceptions import InvalidArgument
from movie_search.models.pipeline_stages import (
    ConstraintMap,
    FilterPlacement,
    FilterStage,
    PipelineStage,
    VectorSearchStage
)
from movie_search.models.schemas import FilterKey, MovieFilters, SearchRequest
from movie_search.utils.logger import LoggerMixin


class QueryBuilder(LoggerMixin):
    """Builds vector search pipelines from search requests."""

    def __init__(
        self,
        index_name: Optional[str] = None,
        vector_path: Optional[str] = None,
        config: Optional[SearchConfiguration] = None
    ):
        """
        Initialize the query builder.

        Args:
            index_name: Atlas vector search index name
            vector_path: Document field holding the stored embeddings
            config: Field vocabulary and filter placement
        """
        self.index_name = index_name or settings.VECTOR_INDEX_NAME
        self.vector_path = vector_path or settings.VECTOR_FIELD_PATH
        self.config = config or SearchConfiguration()

    def validate_request(self, request: SearchRequest) -> None:
        """
        Check request invariants that do not depend on the query vector.

        Raises:
            InvalidArgument: If result_limit exceeds candidate_pool_size
        """
        if request.result_limit > request.candidate_pool_size:
            raise InvalidArgument(
                f"result_limit ({request.result_limit}) must not exceed "
                f"candidate_pool_size ({request.candidate_pool_size})"
            )

    def build_pipeline(
        self,
        request: SearchRequest,
        query_vector: Sequence[float]
    ) -> List[PipelineStage]:
        """
        Build the ordered stage list for a request.

        Args:
            request: The search request
            query_vector: Embedding of request.query_text

        Returns:
            [VectorSearchStage] or [VectorSearchStage, FilterStage]

        Raises:
            InvalidArgument: If the request is inconsistent or the vector is empty
        """
        self.validate_request(request)
        if not query_vector:
            raise InvalidArgument("query_vector must not be empty")

        inline, post = self._split_constraints(self._constraints_for(request.filters))

        stages: List[PipelineStage] = [
            VectorSearchStage(
                index=self.index_name,
                path=self.vector_path,
                query_vector=list(query_vector),
                num_candidates=request.candidate_pool_size,
                limit=request.result_limit,
                filter=inline or None
            )
        ]
        if post:
            stages.append(FilterStage(constraints=post))

        self.logger.debug(
            f"Built {len(stages)}-stage pipeline "
            f"(inline={sorted(inline)}, post={sorted(post)})"
        )
        return stages

    def _constraints_for(self, filters: MovieFilters) -> ConstraintMap:
        """Translate populated filters into one constraint per field path."""
        constraints: ConstraintMap = {}
        for key in filters.populated_keys():
            field, operator, value = self._constraint_for_key(key, filters)
            # minYear and maxYear land on the same field as one range
            constraints.setdefault(field, {})[operator] = value
        return constraints

    def _constraint_for_key(self, key: FilterKey, filters: MovieFilters) -> Tuple[str, str, object]:
        if key is FilterKey.GENRES:
            return self.config.genres_field, "$in", sorted(filters.genres)
        if key is FilterKey.MIN_YEAR:
            return self.config.year_field, "$gte", filters.min_year
        if key is FilterKey.MAX_YEAR:
            return self.config.year_field, "$lte", filters.max_year
        if key is FilterKey.MIN_RATING:
            return self.config.rating_field, "$gte", filters.min_rating
        raise InvalidArgument(f"Unsupported filter key: {key}")

    def placement_for(self, field: str) -> FilterPlacement:
        """Where constraints on a field are evaluated."""
        if field in self.config.inline_filter_fields:
            return FilterPlacement.INLINE
        return FilterPlacement.POST

    def _split_constraints(self, constraints: ConstraintMap) -> Tuple[ConstraintMap, ConstraintMap]:
        split: Dict[FilterPlacement, ConstraintMap] = {
            FilterPlacement.INLINE: {},
            FilterPlacement.POST: {}
        }
        for field, ops in constraints.items():
            split[self.placement_for(field)][field] = ops
        return split[FilterPlacement.INLINE], split[FilterPlacement.POST]
