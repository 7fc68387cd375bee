"""
Console formatting for movie search results.
"""

from typing import List, Sequence

from movie_search.models.schemas import MovieResult


MAX_PLOT_LENGTH = 150
RULE_WIDTH = 80


def _short_plot(plot: str) -> str:
    if len(plot) > MAX_PLOT_LENGTH:
        return plot[:MAX_PLOT_LENGTH] + "..."
    return plot


def format_result(position: int, movie: MovieResult) -> str:
    """Format one result as a numbered block."""
    lines: List[str] = [
        f"{position}. {movie.title or 'Untitled'} ({movie.year or 'N/A'})",
        f"   Score: {movie.score * 100:.2f}%"
    ]
    if movie.imdb_rating:
        lines.append(f"   IMDB Rating: {movie.imdb_rating}/10")
    if movie.genres:
        lines.append(f"   Genres: {', '.join(movie.genres)}")
    if movie.directors:
        lines.append(f"   Director(s): {', '.join(movie.directors)}")
    if movie.cast:
        lines.append(f"   Cast: {', '.join(movie.cast)}")
    if movie.runtime:
        lines.append(f"   Runtime: {movie.runtime} minutes")
    if movie.plot:
        lines.append(f"   Plot: {_short_plot(movie.plot)}")
    return "\n".join(lines)


def format_results(results: Sequence[MovieResult]) -> str:
    """
    Format a result list for the console.

    An empty list is a successful search with no matches.
    """
    if not results:
        return "No results found."

    blocks = [f"Found {len(results)} results:", "=" * RULE_WIDTH]
    for position, movie in enumerate(results, 1):
        blocks.append(format_result(position, movie))
        blocks.append("-" * RULE_WIDTH)
    return "\n".join(blocks)
