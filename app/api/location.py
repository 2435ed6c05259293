from fastapi import APIRouter, HTTPException
from typing import Any, List
from datetime import datetime, timezone

from app.api.deps import StoreDep, MonitorDep
from app.config import settings
from app.core.document_store import InvalidDocumentPath, document_path
from app.core.geofencing import validate_coordinates
from app.models.location import LocationUpdateRequest, LocationResponse

router = APIRouter()

@router.post("/update")
async def update_location(
    store: StoreDep,
    monitor: MonitorDep,
    location_data: LocationUpdateRequest
) -> dict[str, Any]:
    validation = validate_coordinates(location_data.latitude, location_data.longitude)
    if not validation["valid"]:
        raise HTTPException(status_code=400, detail="; ".join(validation["errors"]))

    try:
        path = document_path(settings.LOCATION_COLLECTION, location_data.email)
    except InvalidDocumentPath:
        raise HTTPException(status_code=400, detail="Invalid email")

    timestamp = datetime.now(timezone.utc).isoformat()
    await store.set(path, {
        "latitude": location_data.latitude,
        "longitude": location_data.longitude,
        "timestamp": timestamp,
        "accuracy": location_data.accuracy,
        "speed": location_data.speed,
        "heading": location_data.heading
    })

    # Re-evaluate with the new position
    monitor.mark_inputs_changed()
    monitor.schedule_pass()

    return {
        "message": "Location updated successfully",
        "timestamp": timestamp
    }

@router.get("/active", response_model=List[LocationResponse])
async def get_active_locations(monitor: MonitorDep) -> list[Any]:
    users = await monitor.load_tracked_users()
    return [
        LocationResponse(
            id=user.id,
            email=user.email,
            latitude=user.lat,
            longitude=user.lon
        )
        for user in users
    ]
