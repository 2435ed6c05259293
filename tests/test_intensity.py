import random

import pytest

from app.core.intensity import intensity, jittered_intensity, render_heatmap
from app.models.heatmap import HeatmapMetadata, HeatmapPoint

def test_base_intensity_without_metadata():
    assert intensity(1) == 0.8
    assert intensity(0) == 0.2

def test_each_metadata_field_applies_its_own_factor():
    assert intensity(0, HeatmapMetadata(wind_speed=50)) == pytest.approx(0.2 * 1.5)
    assert intensity(0, HeatmapMetadata(temperature=50)) == pytest.approx(0.2 * 1.5)
    assert intensity(0, HeatmapMetadata(humidity=100)) == pytest.approx(0.2 * 0.5)

def test_factors_multiply_together():
    metadata = HeatmapMetadata(wind_speed=10, temperature=30, humidity=20)
    expected = 0.2 * 1.1 * 1.1 * 0.9
    assert intensity(0, metadata) == pytest.approx(expected)

def test_intensity_is_capped_at_one():
    assert intensity(1, HeatmapMetadata(wind_speed=100, temperature=45)) == 1.0

@pytest.mark.parametrize("prediction", [0, 1])
@pytest.mark.parametrize("metadata", [
    None,
    HeatmapMetadata(),
    HeatmapMetadata(wind_speed=1000),
    HeatmapMetadata(temperature=500, humidity=-300),
    HeatmapMetadata(wind_speed=-50, temperature=-40, humidity=90),
])
def test_intensity_never_exceeds_one(prediction, metadata):
    assert intensity(prediction, metadata) <= 1.0

def test_extreme_humidity_is_not_floored_by_default():
    assert intensity(1, HeatmapMetadata(humidity=400)) == pytest.approx(-0.8)

def test_floor_clamp_can_be_requested():
    assert intensity(1, HeatmapMetadata(humidity=400), clamp_floor=True) == 0.0

def test_jitter_stays_within_ten_percent():
    rng = random.Random(7)
    for _ in range(200):
        value = jittered_intensity(0.5, rng)
        assert 0.45 <= value <= 0.55

def test_jitter_is_bounded_for_display():
    rng = random.Random(3)
    assert all(0.0 <= jittered_intensity(1.0, rng) <= 1.0 for _ in range(100))
    assert jittered_intensity(-0.8, rng) == 0.0

def test_render_heatmap_does_not_mutate_points():
    point = HeatmapPoint(lat=1.0, lon=2.0, prediction=1)
    rendered = render_heatmap([point], random.Random(1))

    assert rendered[0]["lat"] == 1.0
    assert rendered[0]["lng"] == 2.0
    assert rendered[0]["prediction"] == 1
    assert 0.72 <= rendered[0]["weight"] <= 0.88
    assert point == HeatmapPoint(lat=1.0, lon=2.0, prediction=1)
