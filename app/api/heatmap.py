from fastapi import APIRouter
from typing import List

from app.api.deps import StoreDep, MonitorDep
from app.config import settings
from app.core.coercion import load_heatmap_points
from app.core.intensity import render_heatmap
from app.models.heatmap import (
    HeatmapSnapshotRequest, HeatmapSnapshotResponse, RenderedHeatmapPoint
)

router = APIRouter()

@router.put("/snapshot", response_model=HeatmapSnapshotResponse)
async def replace_heatmap_snapshot(
    store: StoreDep,
    snapshot: HeatmapSnapshotRequest
):
    # The monitor follows this document and re-evaluates on change
    await store.set(settings.HEATMAP_DOCUMENT, {"points": snapshot.points})

    points = load_heatmap_points(snapshot.points)
    return HeatmapSnapshotResponse(
        accepted=len(points),
        discarded=len(snapshot.points) - len(points),
        high_risk=sum(1 for point in points if point.is_high_risk)
    )

@router.get("/points", response_model=List[RenderedHeatmapPoint])
async def get_heatmap_points(monitor: MonitorDep):
    """Weighted points for the map layer (display jitter applied)"""
    return render_heatmap(monitor.points)
