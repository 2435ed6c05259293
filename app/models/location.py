from dataclasses import dataclass
from typing import Optional

from sqlmodel import SQLModel

@dataclass(frozen=True)
class UserLocation:
    """Last known position of a tracked user"""
    id: str
    lat: float
    lon: float
    email: Optional[str] = None

class LocationUpdateRequest(SQLModel):
    email: str
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None

class LocationResponse(SQLModel):
    id: str
    email: Optional[str]
    latitude: float
    longitude: float
