"""
Result projection for movie vector search.
Declares the $project stage sent to Atlas and turns raw documents into
MovieResult models. Scores are attached as reported and order is kept.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from movie_search.config.search_config import SearchConfiguration
from movie_search.exceptions import SearchBackendUnavailable
from movie_search.models.pipeline_stages import ProjectStage
from movie_search.models.schemas import MovieResult
from movie_search.utils.logger import LoggerMixin


SCORE_FIELD = "score"

_LEADING_YEAR = re.compile(r"^\s*(\d{4})")


def _lookup(document: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted field path, returning None when any part is missing."""
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _coerce_year(value: Any) -> Optional[int]:
    # the sample collection holds a few years like "2006è"
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_YEAR.match(str(value))
    return int(match.group(1)) if match else None


class ResultProjector(LoggerMixin):
    """Shapes raw vector search matches into MovieResult models."""

    def __init__(self, config: Optional[SearchConfiguration] = None):
        """
        Initialize the projector.

        Args:
            config: Field vocabulary and cast preview size
        """
        self.config = config or SearchConfiguration()

    @property
    def cast_preview_size(self) -> int:
        return self.config.cast_preview_size

    @property
    def projected_fields(self) -> Tuple[str, ...]:
        """Document paths copied into each match, besides cast and score."""
        config = self.config
        return (
            "title",
            "plot",
            config.year_field,
            config.genres_field,
            "directors",
            config.rating_field,
            "runtime",
            "poster",
        )

    def projection_stage(self) -> ProjectStage:
        """The $project stage requesting the allow-listed fields and the score."""
        projection: Dict[str, Any] = {"_id": 0}
        projection.update({field: 1 for field in self.projected_fields})
        projection[self.config.cast_field] = {
            "$slice": [f"${self.config.cast_field}", self.cast_preview_size]
        }
        projection[SCORE_FIELD] = {"$meta": "vectorSearchScore"}
        return ProjectStage(projection=projection)

    def project_one(self, raw: Mapping[str, Any]) -> MovieResult:
        """
        Project a single raw match.

        Raises:
            SearchBackendUnavailable: If the match has no usable score or
                carries values of the wrong type
        """
        if raw.get(SCORE_FIELD) is None:
            raise SearchBackendUnavailable(
                f"Backend returned a match without a {SCORE_FIELD!r} field: {raw.get('title')!r}"
            )

        config = self.config
        try:
            return MovieResult(
                title=_lookup(raw, "title"),
                plot=_lookup(raw, "plot"),
                year=_coerce_year(_lookup(raw, config.year_field)),
                genres=_as_list(_lookup(raw, config.genres_field)),
                cast=_as_list(_lookup(raw, config.cast_field))[:self.cast_preview_size],
                directors=_as_list(_lookup(raw, "directors")),
                imdb_rating=_lookup(raw, config.rating_field) or None,
                runtime=_lookup(raw, "runtime"),
                poster=_lookup(raw, "poster"),
                score=raw[SCORE_FIELD]
            )
        except ValidationError as e:
            self.logger.error(f"Malformed match from backend: {str(e)}")
            raise SearchBackendUnavailable(f"Backend returned a malformed match: {str(e)}") from e

    def project(self, raw_results: Sequence[Mapping[str, Any]]) -> List[MovieResult]:
        """
        Project raw matches in backend order.

        Args:
            raw_results: Documents returned by the aggregation

        Returns:
            List of MovieResult, one per raw match, same order
        """
        results = [self.project_one(raw) for raw in raw_results]
        self.logger.debug(f"Projected {len(results)} results")
        return results
