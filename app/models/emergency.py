from typing import Optional

from sqlmodel import SQLModel

class SOSRequest(SQLModel):
    email: str
    latitude: float
    longitude: float
    message: Optional[str] = None
