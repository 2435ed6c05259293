import math
from typing import Any, Dict
from app.config import settings

def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points using Haversine formula
    Returns distance in kilometers
    """
    R = settings.EARTH_RADIUS_KM

    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    # Rounding can push a fractionally above 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return R * c

def degree_equivalent_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance expressed in approximate degrees.
    Fixed linear conversion (km / 111), not a projection.
    """
    return calculate_distance(lat1, lon1, lat2, lon2) / settings.KM_PER_DEGREE

def degrees_to_meters(degrees: float) -> float:
    return degrees * settings.KM_PER_DEGREE * 1000

def validate_coordinates(latitude: float, longitude: float) -> Dict[str, Any]:
    """
    Coordinate validation for incoming location updates
    Returns validation result with details
    """
    result: Dict[str, Any] = {
        "valid": False,
        "errors": []
    }

    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        result["errors"].append("Coordinates must be finite numbers")
        return result

    if not (-90 <= latitude <= 90):
        result["errors"].append("Invalid latitude: must be between -90 and 90")

    if not (-180 <= longitude <= 180):
        result["errors"].append("Invalid longitude: must be between -180 and 180")

    result["valid"] = not result["errors"]
    return result
