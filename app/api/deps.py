from typing import Annotated
from fastapi import Depends, Request

from app.core.document_store import DocumentStore
from app.core.emergency_alert import EmergencyAlertService
from app.core.safety_monitor import SafetyMonitor

# Collaborators are created in the app lifespan and kept on app.state
def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store

def get_safety_monitor(request: Request) -> SafetyMonitor:
    return request.app.state.safety_monitor

def get_emergency_service(request: Request) -> EmergencyAlertService:
    return request.app.state.emergency_service

StoreDep = Annotated[DocumentStore, Depends(get_document_store)]
MonitorDep = Annotated[SafetyMonitor, Depends(get_safety_monitor)]
EmergencyDep = Annotated[EmergencyAlertService, Depends(get_emergency_service)]
