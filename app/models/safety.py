import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from sqlmodel import SQLModel

@dataclass(frozen=True)
class SafetyStatus:
    user_id: str
    safe: bool
    min_distance: float = math.inf

    def to_dict(self) -> Dict:
        return {
            "userId": self.user_id,
            "safe": self.safe,
            "minDistance": finite_or_none(self.min_distance),
        }

class PublishOutcome(str, Enum):
    PUBLISHED = "published"
    FAILED = "failed"
    SKIPPED = "skipped"

@dataclass(frozen=True)
class PublishResult:
    user_id: str
    email_key: Optional[str]
    outcome: PublishOutcome
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == PublishOutcome.PUBLISHED

@dataclass
class PublishReport:
    """Aggregate of one publish batch"""
    results: List[PublishResult] = field(default_factory=list)

    def count(self, outcome: PublishOutcome) -> int:
        return sum(1 for result in self.results if result.outcome == outcome)

    @property
    def published(self) -> int:
        return self.count(PublishOutcome.PUBLISHED)

    @property
    def failed(self) -> int:
        return self.count(PublishOutcome.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(PublishOutcome.SKIPPED)

    @property
    def failures(self) -> List[PublishResult]:
        return [r for r in self.results if r.outcome == PublishOutcome.FAILED]

    def to_dict(self) -> Dict:
        return {
            "published": self.published,
            "failed": self.failed,
            "skipped": self.skipped,
            "failures": [
                {"userId": r.user_id, "email": r.email_key, "error": r.error}
                for r in self.failures
            ],
        }

def finite_or_none(value: Optional[float]) -> Optional[float]:
    """Infinite distances are stored as null"""
    if value is None or not math.isfinite(value):
        return None
    return value

class SafetyVerdictRead(SQLModel):
    email: str
    safe: bool
    min_distance: Optional[float] = None
    updated_at: Optional[str] = None
    known: bool = True

class EvaluationResponse(SQLModel):
    generation: int
    superseded: bool
    statuses: List[Dict]
    report: Dict
