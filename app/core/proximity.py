import math
from typing import Dict, Iterable, List, Optional, Tuple

from app.config import settings
from app.core.geofencing import degree_equivalent_distance
from app.models.heatmap import HeatmapPoint
from app.models.location import UserLocation
from app.models.safety import SafetyStatus

def _high_risk_points(points: Iterable[HeatmapPoint]) -> List[HeatmapPoint]:
    return [
        point for point in points
        if point.is_high_risk and math.isfinite(point.lat) and math.isfinite(point.lon)
    ]

def nearest_hazard(
    user: UserLocation,
    points: Iterable[HeatmapPoint]
) -> Tuple[float, Optional[HeatmapPoint]]:
    """
    Find the closest high-risk point to a user
    Returns (degree-equivalent distance, point); (inf, None) when there is none
    """
    min_distance = math.inf
    nearest = None

    for point in _high_risk_points(points):
        distance = degree_equivalent_distance(user.lat, user.lon, point.lat, point.lon)
        if distance < min_distance:
            min_distance = distance
            nearest = point

    return min_distance, nearest

def evaluate_user(
    user: UserLocation,
    points: Iterable[HeatmapPoint],
    danger_threshold: Optional[float] = None
) -> SafetyStatus:
    """Classify one user against every high-risk point"""
    if danger_threshold is None:
        danger_threshold = settings.DANGER_THRESHOLD

    # Full scan: min_distance is the true nearest hazard even once in danger
    min_distance, _ = nearest_hazard(user, points)
    in_danger = min_distance < danger_threshold

    return SafetyStatus(user_id=user.id, safe=not in_danger, min_distance=min_distance)

def classify(
    users: Iterable[UserLocation],
    points: Iterable[HeatmapPoint],
    danger_threshold: Optional[float] = None
) -> Dict[str, SafetyStatus]:
    """
    Classify every tracked user as safe or in danger

    Args:
        users: Tracked user positions for this pass
        points: Coerced heatmap points, only prediction == 1 points count
        danger_threshold: Degree-equivalent distance below which a user is unsafe
    """
    hazards = _high_risk_points(points)

    return {
        user.id: evaluate_user(user, hazards, danger_threshold)
        for user in users
    }
