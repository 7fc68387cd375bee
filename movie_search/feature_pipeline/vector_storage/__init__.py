"""
Vector Storage Module for Semantic Movie Search.
MongoDB Atlas Vector Search query construction, execution and projection.
"""

from .base import (
    IDatabaseConnection,
    IVectorSearch,
    IIndexManager
)

from .mongodb_client import (
    MongoDBConnection,
    MongoDBConnectionFactory
)

from .query_builder import QueryBuilder
from .result_projector import ResultProjector
from .vector_search import MongoMovieSearch, create_vector_search
from .index_manager import MongoIndexManager

# Main entry points
__all__ = [
    "IDatabaseConnection",
    "IVectorSearch",
    "IIndexManager",
    "MongoDBConnection",
    "MongoDBConnectionFactory",
    "QueryBuilder",
    "ResultProjector",
    "MongoMovieSearch",
    "create_vector_search",
    "MongoIndexManager"
]
