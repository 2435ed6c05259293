import logging
import random
from typing import Any, Dict, Iterable, List, Optional

from app.config import settings
from app.models.heatmap import HeatmapMetadata, HeatmapPoint

logger = logging.getLogger(__name__)

HIGH_RISK_BASE = 0.8
LOW_RISK_BASE = 0.2

def intensity(
    prediction: int,
    metadata: Optional[HeatmapMetadata] = None,
    clamp_floor: Optional[bool] = None
) -> float:
    """
    Canonical heatmap intensity for a point

    Args:
        prediction: 1 for a high-risk point, 0 otherwise
        metadata: Optional wind speed, temperature and humidity readings
        clamp_floor: Floor the result at 0 (defaults to INTENSITY_CLAMP_FLOOR)
    """
    base = HIGH_RISK_BASE if prediction == 1 else LOW_RISK_BASE
    modifier = 1.0

    if metadata is not None:
        if metadata.wind_speed is not None:
            modifier *= 1 + metadata.wind_speed / 100
        if metadata.temperature is not None:
            modifier *= 1 + (metadata.temperature - 25) / 50
        if metadata.humidity is not None:
            modifier *= 1 - metadata.humidity / 200

    value = min(1.0, base * modifier)

    if clamp_floor is None:
        clamp_floor = settings.INTENSITY_CLAMP_FLOOR

    if value < 0:
        if clamp_floor:
            return 0.0
        logger.warning(f"Negative heatmap intensity {value:.3f} for metadata {metadata}")

    return value

def jittered_intensity(value: float, rng: Optional[random.Random] = None) -> float:
    """Presentation-only jitter, bounded to [0, 1] for the renderer"""
    rng = rng or random
    spread = settings.INTENSITY_JITTER
    jittered = value * rng.uniform(1 - spread, 1 + spread)
    return max(0.0, min(1.0, jittered))

def render_heatmap(
    points: Iterable[HeatmapPoint],
    rng: Optional[random.Random] = None
) -> List[Dict[str, Any]]:
    """Weighted points for the map layer. Never used for classification."""
    return [
        {
            "lat": point.lat,
            "lng": point.lon,
            "weight": jittered_intensity(intensity(point.prediction, point.metadata), rng),
            "prediction": point.prediction,
        }
        for point in points
    ]
