from fastapi import APIRouter, HTTPException

from app.api.deps import StoreDep, MonitorDep
from app.core.document_store import InvalidDocumentPath
from app.models.safety import EvaluationResponse, SafetyVerdictRead

router = APIRouter()

@router.post("/evaluate", response_model=EvaluationResponse)
async def evaluate_safety(monitor: MonitorDep):
    """Run a classification pass now and publish every verdict"""
    safety_pass = await monitor.run_pass()
    return safety_pass.to_dict()

@router.get("/{email}", response_model=SafetyVerdictRead)
async def get_safety_verdict(
    store: StoreDep,
    monitor: MonitorDep,
    email: str
):
    try:
        path = monitor.publisher.verdict_path(email)
    except InvalidDocumentPath:
        raise HTTPException(status_code=400, detail="Invalid email")

    verdict = await store.get(path)

    # No verdict yet reads as unknown/safe
    if verdict is None:
        return SafetyVerdictRead(email=email, safe=True, known=False)

    return SafetyVerdictRead(
        email=email,
        safe=bool(verdict.get("safe", True)),
        min_distance=verdict.get("minDistance"),
        updated_at=verdict.get("updatedAt")
    )
