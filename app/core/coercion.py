"""
Numeric coercion for heatmap and location records.

Records arriving from the document store may carry numbers either as plain
JSON numbers or as extended-JSON wrappers such as {"$numberDouble": "12.5"}
and {"$numberInt": "1"}. Everything is normalised to native floats here;
values that cannot be parsed come back as NaN and the record is discarded.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from app.models.heatmap import HeatmapMetadata, HeatmapPoint
from app.models.location import UserLocation

logger = logging.getLogger(__name__)

DOUBLE_TAG = "$numberDouble"
INT_TAG = "$numberInt"

@dataclass(frozen=True)
class PlainNumber:
    value: float

@dataclass(frozen=True)
class WrappedDouble:
    text: str

@dataclass(frozen=True)
class WrappedInt:
    text: str

NumericEncoding = Union[PlainNumber, WrappedDouble, WrappedInt]

def parse_encoding(raw: Any) -> Optional[NumericEncoding]:
    """Classify a raw JSON value into one of the known numeric encodings"""
    # bool is an int subclass but never a valid coordinate
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return PlainNumber(raw)
    if isinstance(raw, dict) and len(raw) == 1:
        if isinstance(raw.get(DOUBLE_TAG), str):
            return WrappedDouble(raw[DOUBLE_TAG])
        if isinstance(raw.get(INT_TAG), str):
            return WrappedInt(raw[INT_TAG])
    return None

def coerce(value: Any) -> float:
    """
    Convert a plain or wrapped number into a float.
    Returns NaN for unknown shapes or unparseable strings; never raises.
    """
    encoding = value if isinstance(value, (PlainNumber, WrappedDouble, WrappedInt)) else parse_encoding(value)

    try:
        if isinstance(encoding, PlainNumber):
            return float(encoding.value)
        if isinstance(encoding, WrappedDouble):
            return float(encoding.text)
        if isinstance(encoding, WrappedInt):
            return float(int(encoding.text))
    except (ValueError, OverflowError):
        return math.nan

    return math.nan

def coerce_optional(value: Any) -> Optional[float]:
    """Like coerce, but missing or non-finite values become None"""
    if value is None:
        return None
    number = coerce(value)
    return number if math.isfinite(number) else None

def _parse_metadata(raw: Any) -> Optional[HeatmapMetadata]:
    if not isinstance(raw, dict):
        return None
    return HeatmapMetadata(
        wind_speed=coerce_optional(raw.get("windSpeed")),
        temperature=coerce_optional(raw.get("temperature")),
        humidity=coerce_optional(raw.get("humidity")),
    )

def parse_heatmap_point(record: Any) -> Optional[HeatmapPoint]:
    """Build a HeatmapPoint from a raw record, or None if it is malformed"""
    if not isinstance(record, dict):
        return None

    lat = coerce(record.get("lat"))
    lon = coerce(record.get("lon", record.get("lng")))
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None

    prediction = coerce(record.get("prediction"))
    if prediction not in (0.0, 1.0):
        return None

    return HeatmapPoint(
        lat=lat,
        lon=lon,
        prediction=int(prediction),
        metadata=_parse_metadata(record.get("metadata")),
    )

def load_heatmap_points(records: Optional[Iterable[Any]]) -> List[HeatmapPoint]:
    """Coerce a full heatmap snapshot, dropping malformed records"""
    points: List[HeatmapPoint] = []
    discarded = 0

    for record in records or []:
        point = parse_heatmap_point(record)
        if point is None:
            discarded += 1
        else:
            points.append(point)

    if discarded:
        logger.debug(f"Discarded {discarded} malformed heatmap records")

    return points

def parse_user_location(doc_id: str, data: Optional[Dict[str, Any]]) -> Optional[UserLocation]:
    """Read a tracked-location document keyed by the user's email"""
    if not doc_id or not isinstance(data, dict):
        return None

    lat = coerce(data.get("latitude", data.get("lat")))
    lon = coerce(data.get("longitude", data.get("lon")))
    if not (math.isfinite(lat) and math.isfinite(lon)):
        logger.debug(f"Skipping location for {doc_id}: no finite coordinates")
        return None

    return UserLocation(id=doc_id, email=doc_id, lat=lat, lon=lon)
