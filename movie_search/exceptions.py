"""
Exception hierarchy for Semantic Movie Search.
Every failure surfaced to callers derives from MovieSearchError.
Nothing in this package retries; errors propagate unmodified.
"""


class MovieSearchError(Exception):
    """Base exception for movie search operations."""
    pass


class InvalidArgument(MovieSearchError, ValueError):
    """Raised when a search request or filter set is malformed."""
    pass


class UnknownFilterKey(InvalidArgument):
    """Raised when a filter key is not part of the filter vocabulary."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown filter key: {key!r}")


class EmbeddingUnavailable(MovieSearchError):
    """Raised when the embedding service cannot produce a vector."""
    pass


class SearchBackendUnavailable(MovieSearchError):
    """Raised when the vector search backend call fails."""
    pass


class ConnectionError(SearchBackendUnavailable):
    """Raised when the database connection cannot be established."""
    pass


class ConfigurationError(MovieSearchError):
    """Raised when deployment settings disagree, e.g. vector dimensions."""
    pass


class Timeout(MovieSearchError, TimeoutError):
    """Raised when an external call exceeds its time budget."""
    pass
