import math

import pytest

from app.core.coercion import (
    PlainNumber, WrappedDouble, WrappedInt,
    coerce, load_heatmap_points, parse_encoding, parse_heatmap_point, parse_user_location
)

@pytest.mark.parametrize("value", [0, 1, -3, 12.5, -0.00007, 76.3104])
def test_plain_numbers_are_returned_unchanged(value):
    assert coerce(value) == value

def test_wrapped_double_parses_embedded_string():
    assert coerce({"$numberDouble": "12.5"}) == 12.5

def test_wrapped_int_parses_embedded_string():
    assert coerce({"$numberInt": "1"}) == 1.0

def test_wrapped_and_plain_encodings_agree():
    assert coerce({"$numberDouble": "11.0175"}) == coerce(11.0175)

@pytest.mark.parametrize("value", [
    None,
    "12.5",
    True,
    [],
    {"$numberDouble": "not-a-number"},
    {"$numberInt": "12.5"},
    {"$numberLong": "12"},
    {"$numberDouble": 12.5},
    {"value": 3},
])
def test_unrecognized_shapes_coerce_to_nan(value):
    assert math.isnan(coerce(value))

def test_parse_encoding_returns_tagged_variants():
    assert parse_encoding(3) == PlainNumber(3)
    assert parse_encoding({"$numberDouble": "1.5"}) == WrappedDouble("1.5")
    assert parse_encoding({"$numberInt": "7"}) == WrappedInt("7")
    assert parse_encoding(False) is None

def test_coerce_accepts_variants_directly():
    assert coerce(WrappedInt("42")) == 42.0
    assert coerce(WrappedDouble("-0.5")) == -0.5

def test_parse_heatmap_point_with_wrapped_fields():
    point = parse_heatmap_point({
        "lat": {"$numberDouble": "11.0175"},
        "lon": {"$numberDouble": "76.3104"},
        "prediction": {"$numberInt": "1"},
        "metadata": {"windSpeed": {"$numberDouble": "10"}, "humidity": 40},
    })

    assert point.lat == 11.0175
    assert point.lon == 76.3104
    assert point.prediction == 1
    assert point.metadata.wind_speed == 10.0
    assert point.metadata.humidity == 40
    assert point.metadata.temperature is None

@pytest.mark.parametrize("record", [
    {"lat": "x", "lon": 76.3, "prediction": 1},
    {"lon": 76.3, "prediction": 1},
    {"lat": float("nan"), "lon": 76.3, "prediction": 1},
    {"lat": 11.0, "lon": float("inf"), "prediction": 0},
    {"lat": 11.0, "lon": 76.3, "prediction": 2},
    {"lat": 11.0, "lon": 76.3},
    "not a record",
])
def test_malformed_points_are_discarded(record):
    assert parse_heatmap_point(record) is None

def test_invalid_metadata_fields_are_treated_as_absent():
    point = parse_heatmap_point({
        "lat": 1, "lon": 2, "prediction": 0,
        "metadata": {"temperature": {"$numberDouble": "warm"}},
    })
    assert point.metadata.temperature is None

def test_load_heatmap_points_keeps_only_valid_records(hazard_record):
    points = load_heatmap_points([hazard_record, {"lat": None}, {"lat": 1, "lon": 2, "prediction": 0}])
    assert [p.prediction for p in points] == [1, 0]

def test_load_heatmap_points_handles_missing_snapshot():
    assert load_heatmap_points(None) == []

def test_parse_user_location_reads_tracking_document():
    user = parse_user_location("a@example.com", {"latitude": 11.0, "longitude": 76.0, "speed": 2})
    assert user.id == "a@example.com"
    assert user.email == "a@example.com"
    assert (user.lat, user.lon) == (11.0, 76.0)

def test_parse_user_location_skips_documents_without_coordinates():
    assert parse_user_location("a@example.com", {"latitude": None, "longitude": 76.0}) is None
    assert parse_user_location("a@example.com", None) is None

def test_user_identity_comes_from_the_document_key():
    user = parse_user_location("a@example.com", {"latitude": 1.0, "longitude": 2.0, "email": "b@example.com"})
    assert user.email == "a@example.com"

    user = parse_user_location("a@example.com", {"latitude": 1.0, "longitude": 2.0, "email": None})
    assert user.email == "a@example.com"
