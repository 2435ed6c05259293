import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from app.config import settings
from app.core.coercion import load_heatmap_points, parse_user_location
from app.core.document_store import DocumentStore, Unsubscribe
from app.core.proximity import classify
from app.core.publisher import SafetyStatusPublisher
from app.models.heatmap import HeatmapPoint
from app.models.location import UserLocation
from app.models.safety import PublishReport, SafetyStatus

logger = logging.getLogger(__name__)

@dataclass
class SafetyPass:
    """Outcome of one classification pass"""
    generation: int
    statuses: Dict[str, SafetyStatus] = field(default_factory=dict)
    report: PublishReport = field(default_factory=PublishReport)
    superseded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation": self.generation,
            "superseded": self.superseded,
            "statuses": [status.to_dict() for status in self.statuses.values()],
            "report": self.report.to_dict(),
        }

class SafetyMonitor:
    """
    Keeps the latest heatmap snapshot and turns it, together with the tracked
    user locations, into published safety verdicts.
    """

    def __init__(
        self,
        store: DocumentStore,
        publisher: Optional[SafetyStatusPublisher] = None,
        danger_threshold: Optional[float] = None
    ):
        self.store = store
        self.publisher = publisher or SafetyStatusPublisher(store)
        self.danger_threshold = danger_threshold
        self.points: List[HeatmapPoint] = []
        self.last_pass: Optional[SafetyPass] = None
        self._generation = 0
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def generation(self) -> int:
        return self._generation

    def replace_heatmap(self, records: Optional[List[Any]]) -> List[HeatmapPoint]:
        """Install a new snapshot; each delivery replaces the previous one"""
        self.points = load_heatmap_points(records)
        self._generation += 1
        logger.info(
            f"Heatmap snapshot {self._generation}: {len(self.points)} points, "
            f"{sum(1 for p in self.points if p.is_high_risk)} high risk"
        )
        return self.points

    async def attach_heatmap_feed(self, path: Optional[str] = None):
        """Follow the active heatmap document and re-evaluate on every change"""
        path = path or settings.HEATMAP_DOCUMENT
        self.detach_heatmap_feed()

        def on_change(data: Optional[Dict[str, Any]]):
            self.replace_heatmap((data or {}).get("points"))
            self.schedule_pass()

        def on_error(error: Exception):
            logger.error(f"Heatmap feed error on {path}: {error}")

        self._unsubscribe = await self.store.subscribe(path, on_change, on_error)

    def detach_heatmap_feed(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def load_tracked_users(self) -> List[UserLocation]:
        documents = await self.store.list_documents(settings.LOCATION_COLLECTION)
        users = []
        for doc_id, data in documents.items():
            user = parse_user_location(doc_id, data)
            if user is not None:
                users.append(user)
        return users

    def mark_inputs_changed(self):
        """Record that user locations moved; in-flight passes become stale"""
        self._generation += 1

    async def run_pass(self, users: Optional[List[UserLocation]] = None) -> SafetyPass:
        """Classify every tracked user against the current snapshot and publish"""
        generation = self._generation
        if users is None:
            users = await self.load_tracked_users()

        statuses = classify(users, self.points, self.danger_threshold)
        safety_pass = SafetyPass(generation=generation, statuses=statuses)

        if statuses:
            safety_pass.report = await self.publisher.publish_batch(users, statuses)

        # Publishes are idempotent overwrites; a newer pass simply wins
        if self._generation != generation:
            safety_pass.superseded = True
            logger.debug(f"Safety pass {generation} superseded by {self._generation}")

        in_danger = sum(1 for status in statuses.values() if not status.safe)
        logger.info(f"Safety pass {generation}: {len(statuses)} users, {in_danger} in danger")

        self.last_pass = safety_pass
        return safety_pass

    def schedule_pass(self) -> asyncio.Task:
        """Fire-and-forget pass on the running loop"""
        task = asyncio.get_running_loop().create_task(self._run_scheduled_pass())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_scheduled_pass(self):
        try:
            await self.run_pass()
        except Exception as e:
            logger.error(f"Scheduled safety pass failed: {e}")

    async def aclose(self):
        """Stop following the feed and let in-flight passes finish"""
        self.detach_heatmap_feed()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
