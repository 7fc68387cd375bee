"""
Tests for the search service orchestration.
"""

import asyncio

import pytest

from movie_search.exceptions import (
    ConfigurationError,
    EmbeddingUnavailable,
    InvalidArgument,
    SearchBackendUnavailable,
    Timeout
)
from movie_search.feature_pipeline.embeddings import EmbeddingMode, EmbeddingResponse, IEmbedder
from movie_search.feature_pipeline.vector_storage import IVectorSearch
from movie_search.inference_pipeline.search_service import MovieSearchService
from movie_search.models.pipeline_stages import FilterStage, ProjectStage, VectorSearchStage
from movie_search.models.schemas import SearchRequest


MODEL = "text-embedding-ada-002"
DIMENSIONS = 4


class FakeEmbedder(IEmbedder):
    def __init__(self, vector=None, model_name=MODEL, error=None, delay=0.0):
        self.model_name = model_name
        self.vector = vector or [0.1, 0.2, 0.3, 0.4]
        self.error = error
        self.delay = delay
        self.calls = []

    async def embed(self, text, mode=EmbeddingMode.QUERY):
        self.calls.append((text, mode))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return EmbeddingResponse(vector=self.vector, dimension=len(self.vector), model=self.model_name)


class FakeBackend(IVectorSearch):
    def __init__(self, results=None, error=None, delay=0.0):
        self.results = results or []
        self.error = error
        self.delay = delay
        self.pipelines = []

    async def run_pipeline(self, stages):
        self.pipelines.append(list(stages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return [dict(r) for r in self.results]


def raw_movie(title, score):
    return {
        "title": title,
        "year": 1979,
        "genres": ["Sci-Fi", "Horror"],
        "cast": ["Sigourney Weaver", "Tom Skerritt", "Veronica Cartwright", "Harry Dean Stanton"],
        "imdb": {"rating": 8.5},
        "score": score
    }


def make_service(embedder=None, backend=None, **kwargs):
    return MovieSearchService(
        embedder=embedder or FakeEmbedder(),
        backend=backend or FakeBackend(),
        vector_dimensions=DIMENSIONS,
        embedding_model=MODEL,
        **kwargs
    )


class TestSearchFlow:
    """Test the embed, build, search, project sequence."""

    @pytest.mark.asyncio
    async def test_sci_fi_scenario(self):
        """Test the documented Sci-Fi search end to end with fakes."""
        backend = FakeBackend(results=[
            raw_movie(f"Movie {i}", score) for i, score in enumerate([0.93, 0.92, 0.90, 0.89, 0.85])
        ])
        embedder = FakeEmbedder()
        service = make_service(embedder=embedder, backend=backend)

        request = SearchRequest.create(
            "space exploration and alien encounters",
            result_limit=5,
            candidate_pool_size=150,
            filters={"genres": ["Sci-Fi"]}
        )
        results = await service.search(request)

        assert embedder.calls == [("space exploration and alien encounters", EmbeddingMode.QUERY)]

        stages = backend.pipelines[0]
        assert [type(s) for s in stages] == [VectorSearchStage, FilterStage, ProjectStage]
        assert stages[0].num_candidates == 150
        assert stages[0].limit == 5
        assert stages[0].query_vector == embedder.vector
        assert stages[1].constraints == {"genres": {"$in": ["Sci-Fi"]}}

        assert len(results) == 5
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert all(len(r.cast) <= 3 for r in results)

    @pytest.mark.asyncio
    async def test_zero_results_is_success(self):
        service = make_service(backend=FakeBackend(results=[]))

        results = await service.search(SearchRequest(query_text="nothing matches this"))

        assert results == []

    @pytest.mark.asyncio
    async def test_search_text_uses_configured_defaults(self):
        backend = FakeBackend()
        service = make_service(backend=backend)

        await service.search_text("hilarious adventure with friends", filters={"genre": ["Comedy"]})

        search_stage = backend.pipelines[0][0]
        assert search_stage.limit == 5
        assert search_stage.num_candidates == 150
        assert backend.pipelines[0][1].constraints == {"genres": {"$in": ["Comedy"]}}


class TestFailures:
    """Test error propagation. Nothing is retried and no partial results are returned."""

    @pytest.mark.asyncio
    async def test_invalid_request_fails_before_embedding(self):
        embedder = FakeEmbedder()
        backend = FakeBackend()
        service = make_service(embedder=embedder, backend=backend)

        with pytest.raises(InvalidArgument):
            await service.search(SearchRequest(query_text="x", result_limit=20, candidate_pool_size=10))

        assert embedder.calls == []
        assert backend.pipelines == []

    @pytest.mark.asyncio
    async def test_zero_limit_is_rejected_not_defaulted(self):
        embedder = FakeEmbedder()
        service = make_service(embedder=embedder)

        with pytest.raises(InvalidArgument):
            await service.search_text("heist", limit=0)

        assert embedder.calls == []

    @pytest.mark.asyncio
    async def test_embedding_failure_stops_search(self):
        error = EmbeddingUnavailable("auth failed")
        backend = FakeBackend()
        service = make_service(embedder=FakeEmbedder(error=error), backend=backend)

        with pytest.raises(EmbeddingUnavailable) as exc_info:
            await service.search(SearchRequest(query_text="gangster"))

        assert exc_info.value is error
        assert backend.pipelines == []

    @pytest.mark.asyncio
    async def test_dimension_mismatch_is_configuration_error(self):
        backend = FakeBackend()
        service = make_service(embedder=FakeEmbedder(vector=[0.1, 0.2]), backend=backend)

        with pytest.raises(ConfigurationError, match="dimensions"):
            await service.search(SearchRequest(query_text="gangster"))

        assert backend.pipelines == []

    def test_model_mismatch_is_rejected(self):
        with pytest.raises(ConfigurationError, match="differs"):
            make_service(embedder=FakeEmbedder(model_name="all-MiniLM-L6-v2"))

    @pytest.mark.asyncio
    async def test_backend_failure_propagates_unmodified(self):
        error = SearchBackendUnavailable("cluster paused")
        service = make_service(backend=FakeBackend(error=error))

        with pytest.raises(SearchBackendUnavailable) as exc_info:
            await service.search(SearchRequest(query_text="gangster"))

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_embedding_timeout(self):
        backend = FakeBackend()
        service = make_service(
            embedder=FakeEmbedder(delay=1.0),
            backend=backend,
            embedding_timeout=0.01
        )

        with pytest.raises(Timeout, match="Embedding"):
            await service.search(SearchRequest(query_text="gangster"))

        assert backend.pipelines == []

    @pytest.mark.asyncio
    async def test_search_timeout(self):
        service = make_service(backend=FakeBackend(delay=1.0), search_timeout=0.01)

        with pytest.raises(Timeout, match="Vector search"):
            await service.search(SearchRequest(query_text="gangster"))

    @pytest.mark.asyncio
    async def test_timeout_is_distinct_from_unavailable(self):
        service = make_service(backend=FakeBackend(delay=1.0), search_timeout=0.01)

        with pytest.raises(Timeout) as exc_info:
            await service.search(SearchRequest(query_text="gangster"))

        assert not isinstance(exc_info.value, (EmbeddingUnavailable, SearchBackendUnavailable))


class TestIsolation:
    """Test that queries share no state."""

    @pytest.mark.asyncio
    async def test_concurrent_queries_are_independent(self):
        backend = FakeBackend(results=[raw_movie("Alien", 0.9)])
        service = make_service(backend=backend)

        first, second = await asyncio.gather(
            service.search(SearchRequest.create("alien", filters={"genres": ["Horror"]})),
            service.search(SearchRequest.create("alien", filters={"minYear": 1970}))
        )

        assert first == second
        constraints = sorted(str(p[1].constraints) for p in backend.pipelines)
        assert constraints == sorted([
            str({"genres": {"$in": ["Horror"]}}),
            str({"year": {"$gte": 1970}})
        ])
