from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import asyncio
import logging
from typing import Dict, Any, List, Optional
import json
from datetime import datetime, timezone

from app.config import settings
from app.database import AsyncSessionLocal, create_db_and_tables
from app.api import heatmap, location, safety, emergency
from app.core.document_store import (
    DocumentStore, InMemoryDocumentStore, InvalidDocumentPath, SQLDocumentStore
)
from app.core.emergency_alert import EmergencyAlertService
from app.core.geofencing import degrees_to_meters
from app.core.safety_monitor import SafetyMonitor

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

async def create_document_store() -> DocumentStore:
    if settings.DOCUMENT_STORE_BACKEND == "sql":
        await create_db_and_tables()
        return SQLDocumentStore(AsyncSessionLocal)
    return InMemoryDocumentStore()

# Lifespan manager for startup/shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    store = await create_document_store()
    monitor = SafetyMonitor(store)
    await monitor.attach_heatmap_feed()

    app.state.document_store = store
    app.state.safety_monitor = monitor
    app.state.emergency_service = EmergencyAlertService(store)
    logger.info(f"Application starting up ({settings.DOCUMENT_STORE_BACKEND} document store)")
    logger.info(
        f"Danger threshold {settings.DANGER_THRESHOLD} degree-equivalent "
        f"(~{degrees_to_meters(settings.DANGER_THRESHOLD):.1f} m)"
    )
    yield
    # Shutdown
    await monitor.aclose()
    logger.info("Application shutting down")

app = FastAPI(
    title="Hazard Safety API",
    description="Hazard heatmap, proximity safety verdicts and SOS alerts",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(heatmap.router, prefix="/api/heatmap", tags=["Heatmap"])
app.include_router(location.router, prefix="/api/location", tags=["Location"])
app.include_router(safety.router, prefix="/api/safety", tags=["Safety"])
app.include_router(emergency.router, prefix="/api/emergency", tags=["Emergency"])

# WebSocket connection manager
class ConnectionManager:
    def __init__(self):
        # A user may have several clients open at once
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, email: str):
        await websocket.accept()
        self.active_connections.setdefault(email, []).append(websocket)
        logger.info(f"WebSocket connected: {email}")

    def disconnect(self, email: str, websocket: WebSocket):
        sockets = self.active_connections.get(email, [])
        if websocket in sockets:
            sockets.remove(websocket)
            logger.info(f"WebSocket disconnected: {email}")
        if not sockets:
            self.active_connections.pop(email, None)

    def connection_count(self) -> int:
        return sum(len(sockets) for sockets in self.active_connections.values())

    async def broadcast(self, data: dict[str, Any]):
        disconnected = []
        for email, sockets in list(self.active_connections.items()):
            for websocket in list(sockets):
                if not await self.send(email, websocket, data):
                    disconnected.append((email, websocket))

        # Clean up disconnected clients
        for email, websocket in disconnected:
            self.disconnect(email, websocket)

    async def send(self, email: str, websocket: WebSocket, data: dict) -> bool:
        try:
            await websocket.send_text(json.dumps(data, default=str))
            return True
        except Exception as e:
            logger.error(f"Error sending to {email}: {e}")
            return False

manager = ConnectionManager()

def verdict_message(email: str, verdict: Optional[dict]) -> dict[str, Any]:
    if verdict is None:
        return {"type": "safety_status", "email": email, "safe": True, "known": False}
    return {
        "type": "safety_status",
        "email": email,
        "safe": bool(verdict.get("safe", True)),
        "min_distance": verdict.get("minDistance"),
        "updated_at": verdict.get("updatedAt"),
        "known": True
    }

async def forward_verdicts(email: str, websocket: WebSocket, queue: asyncio.Queue):
    while True:
        message = await queue.get()
        await manager.send(email, websocket, message)

@app.websocket("/ws/{email}")
async def websocket_endpoint(websocket: WebSocket, email: str):
    monitor: SafetyMonitor = app.state.safety_monitor
    try:
        path = monitor.publisher.verdict_path(email)
    except InvalidDocumentPath:
        await websocket.close(code=1008)
        return

    await manager.connect(websocket, email)

    # Push the user's own verdict whenever it is republished
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = await app.state.document_store.subscribe(
        path,
        lambda verdict: queue.put_nowait(verdict_message(email, verdict)),
        lambda error: queue.put_nowait({"type": "error", "detail": str(error)})
    )
    forwarder = asyncio.create_task(forward_verdicts(email, websocket, queue))

    try:
        while True:
            # Keep connection alive and handle incoming messages
            await websocket.receive_text()
            # Echo back for heartbeat
            await websocket.send_text(json.dumps({
                "type": "heartbeat",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }))
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error for {email}: {e}")
    finally:
        unsubscribe()
        forwarder.cancel()
        manager.disconnect(email, websocket)

@app.get("/")
async def root():
    return {
        "message": "Hazard Safety API",
        "status": "active",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

# Health check endpoint
@app.get("/health")
async def health_check() -> dict[str, Any]:
    monitor: SafetyMonitor = app.state.safety_monitor
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "active_connections": manager.connection_count(),
        "heatmap_points": len(monitor.points),
        "heatmap_generation": monitor.generation
    }

# Make manager available to other modules
app.state.websocket_manager = manager
