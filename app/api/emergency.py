from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from typing import Any

from app.api.deps import EmergencyDep
from app.core.emergency_alert import AlertNotFound
from app.core.geofencing import validate_coordinates
from app.models.emergency import SOSRequest

router = APIRouter()

@router.post("/sos")
async def trigger_sos_alert(
    request: Request,
    emergency_service: EmergencyDep,
    sos_data: SOSRequest,
    background_tasks: BackgroundTasks
) -> dict[str, Any]:
    validation = validate_coordinates(sos_data.latitude, sos_data.longitude)
    if not validation["valid"]:
        raise HTTPException(status_code=400, detail="; ".join(validation["errors"]))

    alert = await emergency_service.raise_alert(
        sos_data.email,
        sos_data.latitude,
        sos_data.longitude,
        sos_data.message
    )

    # Forward to the webhook in background
    background_tasks.add_task(emergency_service.notify_webhook, alert)

    # Notify via WebSocket
    websocket_manager = request.app.state.websocket_manager
    await websocket_manager.broadcast({
        "type": "sos_alert",
        "alert_id": alert["alertId"],
        "user_id": sos_data.email,
        "latitude": sos_data.latitude,
        "longitude": sos_data.longitude,
        "timestamp": alert["timestamp"]
    })

    return {
        "message": "SOS alert sent successfully",
        "alert_id": alert["alertId"],
        "status": alert["status"]
    }

@router.put("/sos/{alert_id}/resolve")
async def resolve_sos_alert(
    emergency_service: EmergencyDep,
    alert_id: str
) -> dict[str, Any]:
    try:
        alert = await emergency_service.resolve_alert(alert_id)
    except AlertNotFound:
        raise HTTPException(status_code=404, detail="Alert not found")

    return {"message": "Alert resolved successfully", "alert_id": alert_id, "status": alert["status"]}
