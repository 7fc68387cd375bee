"""
Command line front end for Semantic Movie Search.

    movie-search "space exploration and alien encounters" --filters "genre:Sci-Fi"
    movie-search --interactive
    movie-search --examples
    movie-search --create-index
"""

import argparse
import asyncio
import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple

from movie_search.config.search_config import SearchConfigManager, SearchConfiguration
from movie_search.config.settings import settings
from movie_search.exceptions import MovieSearchError
from movie_search.feature_pipeline.embeddings import create_embedder
from movie_search.feature_pipeline.vector_storage import (
    MongoDBConnectionFactory,
    MongoIndexManager,
    QueryBuilder,
    ResultProjector,
    create_vector_search
)
from movie_search.inference_pipeline.presenter import format_results
from movie_search.inference_pipeline.search_service import MovieSearchService
from movie_search.models.schemas import SearchRequest, parse_filter_string
from movie_search.utils.logger import get_logger


logger = get_logger(__name__)

EXIT_COMMANDS = {"quit", "exit"}

# (title, query, filters) run by --examples
EXAMPLE_SEARCHES: List[Tuple[str, str, Dict[str, Any]]] = [
    ("Basic Movie Search", "A violent gangster rises to power", {}),
    ("Search for Sci-Fi Movies", "space exploration and alien encounters", {"genres": ["Sci-Fi"]}),
    (
        "Highly-rated Dramas from 1990-2010",
        "emotional journey and personal growth",
        {"genres": ["Drama"], "minYear": 1990, "maxYear": 2010, "minRating": 7.5}
    ),
    ("Funny Comedies", "hilarious adventure with friends", {"genres": ["Comedy"]}),
]

# (query, filter string) shown by the "examples" command
SAMPLE_QUERIES: List[Tuple[str, str]] = [
    ("A violent gangster rises to power in the criminal underworld", "genre:Crime|Drama, minYear:1930"),
    ("Space exploration and encounters with alien life", "genre:Sci-Fi, minRating:7.0"),
    ("A romantic story about two people falling in love", "genre:Romance, minYear:1990, maxYear:2010"),
    ("An epic adventure with heroes fighting evil", "genre:Action|Adventure, minRating:7.5"),
    ("A funny comedy about friendship and misadventures", "genre:Comedy, minYear:2000"),
]

SEARCH_TIPS = """Search Tips:
  - Use natural language to describe the movie plot
  - Add filters: genre:Action, minYear:2000, maxYear:2020, minRating:7.5
  - Multiple genres: genre:Action|Drama
  - Type "examples" to see sample searches
  - Type "quit" or "exit" to leave
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="movie-search",
        description="Semantic movie search over MongoDB Atlas Vector Search"
    )
    parser.add_argument("query", nargs="?", help="Natural language description of the plot")
    parser.add_argument("-n", "--limit", type=int, default=None, help="Number of results")
    parser.add_argument("--candidates", type=int, default=None, help="Candidate pool size (numCandidates)")
    parser.add_argument("-f", "--filters", default="", help='e.g. "genre:Action|Drama, minYear:2000"')
    parser.add_argument("--config", default=None, help="Search configuration YAML")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-i", "--interactive", action="store_true", help="Interactive search loop")
    mode.add_argument("--examples", action="store_true", help="Run the bundled example searches")
    mode.add_argument("--create-index", action="store_true", help="Create the vector search index")
    mode.add_argument("--check-index", action="store_true", help="Verify the index vector dimensions")
    return parser


def format_sample_queries() -> str:
    lines = ["Example Searches:", ""]
    for position, (query, filters) in enumerate(SAMPLE_QUERIES, 1):
        lines.append(f'{position}. "{query}"')
        lines.append(f"   Filters: {filters}")
        lines.append("")
    return "\n".join(lines)


async def run_query(
    service: MovieSearchService,
    query: str,
    limit: Optional[int] = None,
    candidates: Optional[int] = None,
    filters_text: str = ""
) -> str:
    """Parse console input, search, and return formatted output."""
    config = service.query_builder.config
    request = SearchRequest.create(
        query_text=query,
        result_limit=config.default_result_limit if limit is None else limit,
        candidate_pool_size=config.default_candidate_pool_size if candidates is None else candidates,
        filters=parse_filter_string(filters_text)
    )
    results = await service.search(request)
    return format_results(results)


async def run_examples(service: MovieSearchService) -> None:
    for position, (title, query, filters) in enumerate(EXAMPLE_SEARCHES, 1):
        print(f"\nExample {position}: {title}")
        results = await service.search_text(query, filters=filters)
        print(format_results(results))


async def _prompt(message: str) -> Optional[str]:
    """Read a line from stdin off the event loop; None on end of input."""
    try:
        line = await asyncio.to_thread(input, message)
    except EOFError:
        return None
    return line.strip()


async def interactive_search(service: MovieSearchService) -> None:
    print(f"\nWelcome to {settings.PROJECT_NAME}!")
    print("=" * 60)
    print(SEARCH_TIPS)

    while True:
        query = await _prompt("Enter your search query: ")

        if query is None or query.lower() in EXIT_COMMANDS:
            print("\nGoodbye!\n")
            break
        if query.lower() == "examples":
            print(format_sample_queries())
            continue
        if not query:
            print("Please enter a search query.\n")
            continue

        limit_input = await _prompt("How many results? (default: 5): ")
        if limit_input is None:
            print("\nGoodbye!\n")
            break
        filters_input = await _prompt("Filters (optional, e.g., genre:Action, minYear:2000): ")
        if filters_input is None:
            print("\nGoodbye!\n")
            break

        try:
            limit = int(limit_input) if limit_input else None
            print(await run_query(service, query, limit=limit, filters_text=filters_input))
        except ValueError as e:
            print(f"\nError: {e}\nPlease try again.\n")
        except MovieSearchError as e:
            logger.error(f"Search failed: {e}")
            print(f"\nError: {e}\nPlease try again.\n")


async def manage_index(connection, search_config: SearchConfiguration, create: bool) -> None:
    index_manager = MongoIndexManager(connection)
    if create:
        await index_manager.create_vector_index(
            collection_name=settings.COLLECTION_NAME,
            index_name=settings.VECTOR_INDEX_NAME,
            vector_field=settings.VECTOR_FIELD_PATH,
            dimensions=settings.VECTOR_DIMENSIONS,
            similarity_metric=settings.VECTOR_SIMILARITY,
            filter_fields=search_config.inline_filter_fields
        )
    else:
        declared = await index_manager.verify_dimensions(
            collection_name=settings.COLLECTION_NAME,
            index_name=settings.VECTOR_INDEX_NAME,
            vector_field=settings.VECTOR_FIELD_PATH,
            expected_dimensions=settings.VECTOR_DIMENSIONS
        )
        print(f"Index '{settings.VECTOR_INDEX_NAME}' OK: {declared} dimensions")


async def main_async(args: argparse.Namespace) -> int:
    search_config = SearchConfigManager(args.config or settings.SEARCH_CONFIG_PATH).load_config()

    async with MongoDBConnectionFactory.get_connection() as connection:
        if args.create_index or args.check_index:
            await manage_index(connection, search_config, create=args.create_index)
            return 0

        service = MovieSearchService(
            embedder=create_embedder(settings),
            backend=create_vector_search(connection),
            query_builder=QueryBuilder(config=search_config),
            projector=ResultProjector(config=search_config)
        )

        if args.interactive:
            await interactive_search(service)
        elif args.examples:
            await run_examples(service)
        else:
            print(await run_query(service, args.query, args.limit, args.candidates, args.filters))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.query or args.interactive or args.examples or args.create_index or args.check_index):
        parser.error("a query is required unless --interactive, --examples or an index option is given")

    try:
        return asyncio.run(main_async(args))
    except MovieSearchError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
