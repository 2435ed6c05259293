from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlmodel import SQLModel

@dataclass(frozen=True)
class HeatmapMetadata:
    """Environmental readings attached to a heatmap point"""
    wind_speed: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None

@dataclass(frozen=True)
class HeatmapPoint:
    """Coerced hazard sample: finite coordinates and a 0/1 prediction"""
    lat: float
    lon: float
    prediction: int
    metadata: Optional[HeatmapMetadata] = None

    @property
    def is_high_risk(self) -> bool:
        return self.prediction == 1

class HeatmapSnapshotRequest(SQLModel):
    # Raw records, numbers may be plain or {"$numberDouble": "..."} wrapped
    points: List[Dict[str, Any]]

class HeatmapSnapshotResponse(SQLModel):
    accepted: int
    discarded: int
    high_risk: int

class RenderedHeatmapPoint(SQLModel):
    lat: float
    lng: float
    weight: float
    prediction: int
