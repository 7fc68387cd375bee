"""
Typed aggregation pipeline stages for MongoDB Atlas Vector Search.
Each stage renders itself to the MongoDB wire form with to_mongo().
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field


# field path -> {operator: value}, e.g. {"year": {"$gte": 1990, "$lte": 2010}}
ConstraintMap = Dict[str, Dict[str, Any]]


class FilterPlacement(str, Enum):
    """Where a constraint is evaluated relative to similarity ranking."""
    INLINE = "inline"  # inside $vectorSearch, before top-K is chosen
    POST = "post"      # $match after $vectorSearch, on the top-K only


class VectorSearchStage(BaseModel):
    """The $vectorSearch stage. Atlas requires it to be the first stage."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["vector_search"] = "vector_search"
    index: str = Field(..., min_length=1, description="Atlas vector search index name")
    path: str = Field(..., min_length=1, description="Field holding stored vectors")
    query_vector: List[float] = Field(..., min_length=1)
    num_candidates: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    filter: Optional[ConstraintMap] = Field(None, description="Inline filter on indexed filter fields")

    def to_mongo(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "index": self.index,
            "path": self.path,
            "queryVector": list(self.query_vector),
            "numCandidates": self.num_candidates,
            "limit": self.limit
        }
        if self.filter:
            body["filter"] = _copy_constraints(self.filter)
        return {"$vectorSearch": body}


class FilterStage(BaseModel):
    """A $match stage applied after similarity ranking."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["filter"] = "filter"
    constraints: ConstraintMap = Field(..., min_length=1)

    def to_mongo(self) -> Dict[str, Any]:
        return {"$match": _copy_constraints(self.constraints)}


class ProjectStage(BaseModel):
    """A $project stage shaping the returned documents."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["project"] = "project"
    projection: Dict[str, Any] = Field(..., min_length=1)

    def to_mongo(self) -> Dict[str, Any]:
        return {"$project": dict(self.projection)}


PipelineStage = Union[VectorSearchStage, FilterStage, ProjectStage]


def _copy_constraints(constraints: ConstraintMap) -> ConstraintMap:
    return {field: dict(ops) for field, ops in constraints.items()}


def to_mongo_pipeline(stages: Sequence[PipelineStage]) -> List[Dict[str, Any]]:
    """Render an ordered stage list into an aggregation pipeline."""
    return [stage.to_mongo() for stage in stages]
