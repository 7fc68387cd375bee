"""
Tests for the vector search query builder.
"""

import pytest

from movie_search.config.search_config import SearchConfiguration
from movie_search.exceptions import InvalidArgument
from movie_search.feature_pipeline.vector_storage.query_builder import QueryBuilder
from movie_search.feature_pipeline.vector_storage.result_projector import ResultProjector
from movie_search.models.pipeline_stages import (
    FilterPlacement,
    FilterStage,
    VectorSearchStage,
    to_mongo_pipeline
)
from movie_search.models.schemas import MovieFilters, SearchRequest


QUERY_VECTOR = [0.12, -0.5, 0.33]


@pytest.fixture
def builder():
    return QueryBuilder(index_name="vector_index", vector_path="plot_embedding")


def make_request(filters=None, limit=5, pool=150):
    return SearchRequest(
        query_text="space exploration and alien encounters",
        result_limit=limit,
        candidate_pool_size=pool,
        filters=MovieFilters.from_mapping(filters)
    )


class TestPipelineShape:
    """Test the stage list produced for different filter sets."""

    def test_empty_filters_produce_single_stage(self, builder):
        """Test that no filters means only the vector search stage."""
        stages = builder.build_pipeline(make_request(), QUERY_VECTOR)

        assert len(stages) == 1
        assert isinstance(stages[0], VectorSearchStage)
        assert stages[0].filter is None
        assert to_mongo_pipeline(stages) == [
            {
                "$vectorSearch": {
                    "index": "vector_index",
                    "path": "plot_embedding",
                    "queryVector": QUERY_VECTOR,
                    "numCandidates": 150,
                    "limit": 5
                }
            }
        ]

    def test_pool_and_limit_copied_verbatim(self, builder):
        stages = builder.build_pipeline(make_request(limit=7, pool=321), QUERY_VECTOR)

        assert stages[0].num_candidates == 321
        assert stages[0].limit == 7

    def test_genres_become_separate_membership_stage(self, builder):
        """Test that genres produce a $in constraint after the search stage."""
        stages = builder.build_pipeline(make_request({"genres": ["Sci-Fi"]}), QUERY_VECTOR)

        assert len(stages) == 2
        assert isinstance(stages[0], VectorSearchStage)
        assert stages[0].filter is None
        assert isinstance(stages[1], FilterStage)
        assert stages[1].constraints == {"genres": {"$in": ["Sci-Fi"]}}

    def test_year_bounds_merge_into_single_range(self, builder):
        """Test that minYear and maxYear combine on the same field."""
        stages = builder.build_pipeline(
            make_request({"minYear": 2000, "maxYear": 2020}), QUERY_VECTOR
        )

        assert len(stages) == 2
        assert stages[1].constraints == {"year": {"$gte": 2000, "$lte": 2020}}

    def test_single_year_bound(self, builder):
        stages = builder.build_pipeline(make_request({"maxYear": 1999}), QUERY_VECTOR)
        assert stages[1].constraints == {"year": {"$lte": 1999}}

    def test_all_filters_share_one_post_filter(self, builder):
        """Test that every populated filter lands in the same $match."""
        stages = builder.build_pipeline(
            make_request({
                "genres": ["Drama"],
                "minYear": 1990,
                "maxYear": 2010,
                "minRating": 7.5
            }),
            QUERY_VECTOR
        )

        assert len(stages) == 2
        assert stages[1].to_mongo() == {
            "$match": {
                "genres": {"$in": ["Drama"]},
                "year": {"$gte": 1990, "$lte": 2010},
                "imdb.rating": {"$gte": 7.5}
            }
        }

    def test_custom_field_vocabulary(self):
        config = SearchConfiguration(genres_field="tags", year_field="released_year", rating_field="rating")
        builder = QueryBuilder(index_name="idx", vector_path="emb", config=config)

        stages = builder.build_pipeline(
            make_request({"genres": ["Comedy"], "minYear": 2001, "minRating": 6}), QUERY_VECTOR
        )

        assert stages[1].constraints == {
            "tags": {"$in": ["Comedy"]},
            "released_year": {"$gte": 2001},
            "rating": {"$gte": 6.0}
        }

        projector = ResultProjector(config)
        projection = projector.projection_stage().projection
        assert projection["tags"] == 1
        assert projection["released_year"] == 1
        assert projection["rating"] == 1
        assert "genres" not in projection

        result = projector.project_one(
            {"title": "Office Space", "tags": ["Comedy"], "released_year": 2005, "rating": 7.1, "score": 0.9}
        )
        assert result.genres == ["Comedy"]
        assert result.year == 2005
        assert result.imdb_rating == 7.1


class TestFilterPlacement:
    """Test routing of constraints between inline and post filters."""

    def test_inline_fields_move_into_vector_search(self):
        config = SearchConfiguration(inline_filter_fields=["genres", "year"])
        builder = QueryBuilder(index_name="vector_index", vector_path="plot_embedding", config=config)

        stages = builder.build_pipeline(
            make_request({"genres": ["Drama"], "minYear": 1990, "minRating": 8.0}), QUERY_VECTOR
        )

        assert stages[0].filter == {
            "genres": {"$in": ["Drama"]},
            "year": {"$gte": 1990}
        }
        assert stages[1].constraints == {"imdb.rating": {"$gte": 8.0}}
        assert builder.placement_for("genres") == FilterPlacement.INLINE
        assert builder.placement_for("imdb.rating") == FilterPlacement.POST

    def test_all_inline_produces_single_stage(self):
        config = SearchConfiguration(inline_filter_fields=["genres"])
        builder = QueryBuilder(index_name="vector_index", vector_path="plot_embedding", config=config)

        stages = builder.build_pipeline(make_request({"genres": ["Horror"]}), QUERY_VECTOR)

        assert len(stages) == 1
        assert stages[0].to_mongo()["$vectorSearch"]["filter"] == {"genres": {"$in": ["Horror"]}}

    def test_every_filter_field_appears_exactly_once(self):
        config = SearchConfiguration(inline_filter_fields=["year"])
        builder = QueryBuilder(index_name="vector_index", vector_path="plot_embedding", config=config)

        stages = builder.build_pipeline(
            make_request({"genres": ["Drama"], "minYear": 1990, "maxYear": 2000, "minRating": 7}),
            QUERY_VECTOR
        )

        fields = list(stages[0].filter or {}) + list(stages[1].constraints)
        assert sorted(fields) == ["genres", "imdb.rating", "year"]


class TestDeterminismAndValidation:
    """Test determinism and request validation."""

    def test_same_request_builds_identical_pipeline(self, builder):
        request = make_request({"genres": ["Drama", "Action", "Crime"], "minRating": 7.0})

        first = builder.build_pipeline(request, QUERY_VECTOR)
        second = builder.build_pipeline(request, QUERY_VECTOR)

        assert first == second
        assert to_mongo_pipeline(first) == to_mongo_pipeline(second)
        assert first[1].constraints["genres"] == {"$in": ["Action", "Crime", "Drama"]}

    def test_limit_above_pool_is_rejected(self, builder):
        request = make_request(limit=10, pool=5)

        with pytest.raises(InvalidArgument, match="must not exceed"):
            builder.build_pipeline(request, QUERY_VECTOR)

    def test_limit_equal_to_pool_is_accepted(self, builder):
        stages = builder.build_pipeline(make_request(limit=5, pool=5), QUERY_VECTOR)
        assert stages[0].limit == stages[0].num_candidates == 5

    def test_empty_query_vector_is_rejected(self, builder):
        with pytest.raises(InvalidArgument):
            builder.build_pipeline(make_request(), [])

    def test_building_does_not_mutate_vector(self, builder):
        vector = list(QUERY_VECTOR)
        stages = builder.build_pipeline(make_request(), vector)

        stages[0].to_mongo()["$vectorSearch"]["queryVector"].append(9.9)
        assert vector == QUERY_VECTOR


def test_sci_fi_scenario_pipeline(builder):
    """Test the documented Sci-Fi example end to end at the pipeline level."""
    request = SearchRequest.create(
        query_text="space exploration and alien encounters",
        result_limit=5,
        candidate_pool_size=150,
        filters={"genres": ["Sci-Fi"]}
    )

    pipeline = to_mongo_pipeline(builder.build_pipeline(request, QUERY_VECTOR))

    assert pipeline == [
        {
            "$vectorSearch": {
                "index": "vector_index",
                "path": "plot_embedding",
                "queryVector": QUERY_VECTOR,
                "numCandidates": 150,
                "limit": 5
            }
        },
        {"$match": {"genres": {"$in": ["Sci-Fi"]}}}
    ]
