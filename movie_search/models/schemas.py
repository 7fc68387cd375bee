"""
Data models and schemas for Semantic Movie Search.
This module defines the Pydantic models for filters, requests and results.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from movie_search.exceptions import InvalidArgument, UnknownFilterKey


# Atlas rejects numCandidates above this value
MAX_CANDIDATE_POOL_SIZE = 10000

GENRE_SEPARATOR = "|"


class FilterKey(str, Enum):
    """Closed vocabulary of filter keys."""
    GENRES = "genres"
    MIN_YEAR = "minYear"
    MAX_YEAR = "maxYear"
    MIN_RATING = "minRating"

    @classmethod
    def parse(cls, raw_key: str) -> "FilterKey":
        """
        Parse a user-supplied key, case-insensitively.

        Raises:
            UnknownFilterKey: If the key is not in the vocabulary
        """
        normalized = raw_key.strip().lower()
        if normalized == "genre":
            return cls.GENRES
        for key in cls:
            if key.value.lower() == normalized:
                return key
        raise UnknownFilterKey(raw_key)

    @property
    def field_name(self) -> str:
        """Attribute name on MovieFilters."""
        return _FIELD_NAMES[self]


_FIELD_NAMES = {
    FilterKey.GENRES: "genres",
    FilterKey.MIN_YEAR: "min_year",
    FilterKey.MAX_YEAR: "max_year",
    FilterKey.MIN_RATING: "min_rating",
}


class MovieFilters(BaseModel):
    """Structured constraints applied to a search. Unset means unconstrained."""
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    genres: Optional[FrozenSet[str]] = Field(None, description="Match any of these genres")
    min_year: Optional[int] = Field(None, alias="minYear", description="Earliest release year")
    max_year: Optional[int] = Field(None, alias="maxYear", description="Latest release year")
    min_rating: Optional[float] = Field(None, alias="minRating", ge=0.0, le=10.0, description="IMDB rating floor")

    @field_validator("genres", mode="before")
    @classmethod
    def clean_genres(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(GENRE_SEPARATOR)
        cleaned = frozenset(g.strip() for g in v if g and g.strip())
        return cleaned or None

    @model_validator(mode="after")
    def year_range_is_ordered(self):
        if self.min_year is not None and self.max_year is not None and self.min_year > self.max_year:
            raise ValueError("minYear must not be greater than maxYear")
        return self

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "MovieFilters":
        """
        Build filters from a loosely keyed mapping such as {"genre": [...], "MinYear": 2000}.

        Raises:
            UnknownFilterKey: For keys outside the vocabulary
            InvalidArgument: For values that fail validation
        """
        if not raw:
            return cls()
        values = {FilterKey.parse(key).field_name: value for key, value in raw.items()}
        try:
            return cls(**values)
        except ValidationError as e:
            raise InvalidArgument(f"Invalid filters: {e}") from e

    def populated_keys(self) -> List[FilterKey]:
        """Filter keys carrying a constraint, in vocabulary order."""
        return [key for key in FilterKey if getattr(self, key.field_name) is not None]

    @property
    def is_empty(self) -> bool:
        return not self.populated_keys()


class SearchRequest(BaseModel):
    """A single user query. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    query_text: str = Field(..., min_length=1, description="Free-text query")
    result_limit: int = Field(default=5, ge=1, description="Maximum results to return")
    candidate_pool_size: int = Field(
        default=150,
        ge=1,
        le=MAX_CANDIDATE_POOL_SIZE,
        description="Nearest-neighbour candidates examined before truncating to the limit"
    )
    filters: MovieFilters = Field(default_factory=MovieFilters)

    @field_validator("query_text")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query_text must not be blank")
        return v.strip()

    @classmethod
    def create(
        cls,
        query_text: str,
        result_limit: int = 5,
        candidate_pool_size: int = 150,
        filters: Union[MovieFilters, Mapping[str, Any], None] = None
    ) -> "SearchRequest":
        """Build a request, reporting validation failures as InvalidArgument."""
        if not isinstance(filters, MovieFilters):
            filters = MovieFilters.from_mapping(filters)
        try:
            return cls(
                query_text=query_text,
                result_limit=result_limit,
                candidate_pool_size=candidate_pool_size,
                filters=filters
            )
        except ValidationError as e:
            raise InvalidArgument(f"Invalid search request: {e}") from e


class MovieResult(BaseModel):
    """A projected search hit."""
    title: Optional[str] = None
    plot: Optional[str] = None
    year: Optional[int] = None
    genres: List[str] = Field(default_factory=list)
    cast: List[str] = Field(default_factory=list)
    directors: List[str] = Field(default_factory=list)
    imdb_rating: Optional[float] = None
    runtime: Optional[int] = None
    poster: Optional[str] = None
    score: float = Field(..., ge=0.0, le=1.0, description="Similarity score reported by the backend")


def parse_filter_string(text: Optional[str]) -> MovieFilters:
    """
    Parse the console filter syntax into MovieFilters.

    Example: "genre:Action|Drama, minYear:2000, minRating:7.5"

    Raises:
        UnknownFilterKey: For keys outside the vocabulary
        InvalidArgument: For malformed parts or values
    """
    if not text or not text.strip():
        return MovieFilters()

    values: Dict[str, Any] = {}
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition(":")
        if not sep:
            raise InvalidArgument(f"Expected key:value, got {part!r}")

        filter_key = FilterKey.parse(key)
        value = value.strip()
        try:
            if filter_key is FilterKey.GENRES:
                values[filter_key.field_name] = [g.strip() for g in value.split(GENRE_SEPARATOR)]
            elif filter_key is FilterKey.MIN_RATING:
                values[filter_key.field_name] = float(value)
            else:
                values[filter_key.field_name] = int(value)
        except ValueError as e:
            raise InvalidArgument(f"Invalid value for {filter_key.value}: {value!r}") from e

    try:
        return MovieFilters(**values)
    except ValidationError as e:
        raise InvalidArgument(f"Invalid filters: {e}") from e
