import asyncio
import logging
import uuid
import aiohttp
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from app.config import settings
from app.core.document_store import DocumentStore, document_path

logger = logging.getLogger(__name__)

class AlertNotFound(Exception):
    pass

class EmergencyAlertService:
    def __init__(self, store: DocumentStore, webhook_url: Optional[str] = None):
        self.store = store
        self.webhook_url = settings.SOS_WEBHOOK_URL if webhook_url is None else webhook_url

    def alert_path(self, alert_id: str) -> str:
        return document_path(settings.SOS_COLLECTION, alert_id)

    async def raise_alert(
        self,
        email: str,
        latitude: float,
        longitude: float,
        message: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Record an SOS alert for a user
        Returns the stored alert with its generated id
        """
        alert_id = uuid.uuid4().hex
        alert_data: Dict[str, Any] = {
            "userId": email,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "location": {
                "latitude": latitude,
                "longitude": longitude
            },
            "status": "active",
            "message": message
        }

        await self.store.set(self.alert_path(alert_id), alert_data)
        logger.critical(f"SOS alert {alert_id[:8]} raised by {email} at ({latitude:.5f}, {longitude:.5f})")

        return {"alertId": alert_id, **alert_data}

    async def resolve_alert(self, alert_id: str) -> Dict[str, Any]:
        path = self.alert_path(alert_id)
        if await self.store.get(path) is None:
            raise AlertNotFound(alert_id)

        await self.store.set(
            path,
            {"status": "resolved", "resolvedAt": datetime.now(timezone.utc).isoformat()},
            merge=True
        )
        resolved = await self.store.get(path)
        return {"alertId": alert_id, **(resolved or {})}

    async def notify_webhook(self, alert: Dict[str, Any]) -> bool:
        """Forward an alert to the configured webhook; failures are logged, not raised"""
        if not self.webhook_url:
            return False

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.webhook_url,
                    json=alert,
                    timeout=aiohttp.ClientTimeout(total=settings.SOS_WEBHOOK_TIMEOUT_SECONDS)
                ) as response:
                    if response.status >= 400:
                        response_text = await response.text()
                        logger.error(f"SOS webhook error: {response.status} - {response_text}")
                        return False
                    return True

        except asyncio.TimeoutError:
            logger.error("SOS webhook request timeout")
            return False
        except Exception as e:
            logger.error(f"SOS webhook request error: {e}")
            return False
