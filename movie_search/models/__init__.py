"""Data models and schemas for Semantic Movie Search."""

from .schemas import (
    FilterKey,
    MovieFilters,
    MovieResult,
    SearchRequest,
    parse_filter_string
)
from .pipeline_stages import (
    FilterPlacement,
    FilterStage,
    PipelineStage,
    ProjectStage,
    VectorSearchStage,
    to_mongo_pipeline
)

__all__ = [
    "FilterKey",
    "MovieFilters",
    "MovieResult",
    "SearchRequest",
    "parse_filter_string",
    "FilterPlacement",
    "FilterStage",
    "PipelineStage",
    "ProjectStage",
    "VectorSearchStage",
    "to_mongo_pipeline"
]
