# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0

"""Vector range query tests."""

import pytest

from ftquery.errors import InvalidEnumValueError, MissingValueError, OutOfRangeError
from ftquery.query.filter import Filter
from ftquery.query.vector import VectorRangeQuery
from ftquery.utils.codec import array_to_buffer


def test_range_query_string(sample_vector):
    query = VectorRangeQuery(sample_vector, "embedding", distance_threshold=0.3)
    assert query.query_string() == (
        "@embedding:[VECTOR_RANGE 0.3 $vec]=>{$YIELD_DISTANCE_AS: vector_distance}"
    )


def test_default_threshold(sample_vector):
    query = VectorRangeQuery(sample_vector, "embedding")
    assert query.distance_threshold == 0.2
    assert "VECTOR_RANGE 0.2 $vec" in query.query_string()


def test_integral_threshold_rendered_as_float(sample_vector):
    query = VectorRangeQuery(sample_vector, "embedding", distance_threshold=1)
    assert "VECTOR_RANGE 1.0 $vec" in query.query_string()


def test_range_query_with_filter(sample_vector):
    query = VectorRangeQuery(sample_vector, "embedding", filter_expression=Filter.tag("genre", "comedy"))
    assert query.query_string() == (
        "(@embedding:[VECTOR_RANGE 0.2 $vec]=>{$YIELD_DISTANCE_AS: vector_distance} @genre:{comedy})"
    )


def test_wildcard_filter_leaves_range_alone(sample_vector):
    query = VectorRangeQuery(sample_vector, "embedding", filter_expression="*")
    assert query.query_string().startswith("@embedding:[VECTOR_RANGE")


def test_params(sample_vector):
    query = VectorRangeQuery(sample_vector, "embedding")
    assert query.params() == {"vec": array_to_buffer(sample_vector)}


def test_epsilon_and_svs_params(sample_vector):
    query = VectorRangeQuery(
        sample_vector,
        "embedding",
        epsilon=0.01,
        search_window_size=10,
        use_search_history="on",
        search_buffer_capacity=30,
    )
    params = query.params()

    assert params["EPSILON"] == 0.01
    assert params["search_window_size"] == 10
    assert params["use_search_history"] == "ON"
    assert params["search_buffer_capacity"] == 30


def test_normalized_threshold_bound(sample_vector):
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery(sample_vector, "embedding", distance_threshold=1.5, normalize_vector_distance=True)

    query = VectorRangeQuery(sample_vector, "embedding", distance_threshold=1.5)
    assert query.distance_threshold == 1.5


def test_negative_threshold_rejected(sample_vector):
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery(sample_vector, "embedding", distance_threshold=-0.1)
    with pytest.raises(MissingValueError):
        VectorRangeQuery(sample_vector, "embedding", distance_threshold=None)


def test_threshold_revalidated_on_mutation(sample_vector):
    query = VectorRangeQuery(sample_vector, "embedding", normalize_vector_distance=True)
    query.distance_threshold = 0.5
    assert "VECTOR_RANGE 0.5 $vec" in query.query_string()

    with pytest.raises(OutOfRangeError):
        query.distance_threshold = 1.2
    assert query.distance_threshold == 0.5


@pytest.mark.parametrize("threshold", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_threshold_rejected(sample_vector, threshold):
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery(sample_vector, "embedding", distance_threshold=threshold)
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery(
            sample_vector, "embedding", distance_threshold=threshold, normalize_vector_distance=True
        )

    query = VectorRangeQuery(sample_vector, "embedding", distance_threshold=0.3)
    with pytest.raises(OutOfRangeError):
        query.distance_threshold = threshold
    assert query.distance_threshold == 0.3
    assert "VECTOR_RANGE 0.3 $vec" in query.query_string()


def test_non_finite_epsilon_rejected(sample_vector):
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery(sample_vector, "embedding", epsilon=float("nan"))
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery(sample_vector, "embedding", epsilon=float("inf"))

    query = VectorRangeQuery(sample_vector, "embedding", epsilon=0.01)
    with pytest.raises(OutOfRangeError):
        query.epsilon = float("nan")
    assert query.params()["EPSILON"] == 0.01


def test_epsilon_validation_and_mutation(sample_vector):
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery(sample_vector, "embedding", epsilon=-0.1)

    query = VectorRangeQuery(sample_vector, "embedding")
    assert "EPSILON" not in query.params()
    query.epsilon = 0.05
    assert query.params()["EPSILON"] == 0.05
    with pytest.raises(OutOfRangeError):
        query.epsilon = -1
    assert query.epsilon == 0.05


def test_path_style_field_is_escaped(sample_vector):
    query = VectorRangeQuery(sample_vector, "$.embedding")
    assert query.query_string().startswith("@\\$\\.embedding:[VECTOR_RANGE")


def test_builder(sample_vector):
    query = (
        VectorRangeQuery.builder()
        .vector(sample_vector)
        .field("embedding")
        .distance_threshold(0.4)
        .epsilon(0.02)
        .sort_by("vector_distance", "desc")
        .build()
    )

    assert query.distance_threshold == 0.4
    assert query.params()["EPSILON"] == 0.02
    assert query.sort_by.direction == "DESC"


def test_builder_validation(sample_vector):
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery.builder().epsilon(-1)
    with pytest.raises(InvalidEnumValueError):
        VectorRangeQuery.builder().use_search_history("never")
    with pytest.raises(OutOfRangeError):
        VectorRangeQuery.builder().vector(sample_vector).field("e").distance_threshold(-1).build()
