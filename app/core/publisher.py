import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from app.config import settings
from app.core.document_store import DocumentStore, document_path
from app.models.location import UserLocation
from app.models.safety import (
    PublishOutcome, PublishReport, PublishResult, SafetyStatus, finite_or_none
)

logger = logging.getLogger(__name__)

class SafetyStatusPublisher:
    """Writes per-user safety verdicts to the document store"""

    def __init__(
        self,
        store: DocumentStore,
        collection: Optional[str] = None,
        subpath: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.store = store
        self.collection = collection or settings.LOCATION_COLLECTION
        self.subpath = subpath or settings.SAFETY_SUBPATH
        self.timeout = settings.PUBLISH_TIMEOUT_SECONDS if timeout is None else timeout

    def verdict_path(self, email_key: str) -> str:
        return document_path(self.collection, email_key, *self.subpath.split("/"))

    async def publish(
        self,
        user_id: str,
        email_key: Optional[str],
        safe: bool,
        min_distance: Optional[float] = None
    ) -> PublishResult:
        """
        Merge {safe, minDistance, updatedAt} into the user's verdict document.
        Users without an identity key are skipped; failures are returned, not raised.
        """
        if not email_key:
            return PublishResult(user_id, email_key, PublishOutcome.SKIPPED)

        try:
            write = self.store.set(
                self.verdict_path(email_key),
                {
                    "safe": safe,
                    "minDistance": finite_or_none(min_distance),
                    "updatedAt": datetime.now(timezone.utc).isoformat()
                },
                merge=True
            )
            if self.timeout and self.timeout > 0:
                await asyncio.wait_for(write, timeout=self.timeout)
            else:
                await write

            return PublishResult(user_id, email_key, PublishOutcome.PUBLISHED)

        except Exception as e:
            logger.error(f"Failed to publish safety status for {email_key}: {e!r}")
            return PublishResult(user_id, email_key, PublishOutcome.FAILED, error=str(e) or type(e).__name__)

    async def publish_batch(
        self,
        users: Iterable[UserLocation],
        statuses: Dict[str, SafetyStatus]
    ) -> PublishReport:
        """Publish every user's verdict independently and aggregate the outcomes"""
        tasks = [
            self.publish(
                user.id,
                user.email,
                statuses[user.id].safe,
                statuses[user.id].min_distance
            )
            for user in users
            if user.id in statuses
        ]

        results = await asyncio.gather(*tasks)
        report = PublishReport(results=list(results))
        self._log_publish_summary(report)
        return report

    def _log_publish_summary(self, report: PublishReport):
        """Log summary of publish results"""
        log_level = logger.warning if report.failed else logger.info
        log_level(
            f"Safety publish summary - Published: {report.published}, "
            f"Failed: {report.failed}, Skipped: {report.skipped}"
        )
