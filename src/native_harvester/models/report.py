"""
Harvest Report Model.

Per-library outcome of a harvest run, serialized next to the harvested
artifacts so that CI jobs can inspect what was bundled.
"""

import time
from dataclasses import dataclass, field
from enum import Enum

from native_harvester.models.plan import DeploymentStatistics


class HarvestStatus(Enum):
    """Status of a single library harvest."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PLANNED = "planned"  # dry run
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class HarvestReport:
    library: str
    rid: str
    status: HarvestStatus = HarvestStatus.PENDING
    primary_binaries: list[str] = field(default_factory=list)
    statistics: DeploymentStatistics | None = None
    error: str | None = None
    finished_at: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status in (HarvestStatus.COMPLETED, HarvestStatus.PLANNED)

    def finish(self, status: HarvestStatus, error: str | None = None) -> None:
        self.status = status
        self.error = error
        self.finished_at = time.time()

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict (handling enums)."""
        return {
            "library": self.library,
            "rid": self.rid,
            "status": self.status.value,
            "primary_binaries": self.primary_binaries,
            "statistics": self.statistics.to_dict() if self.statistics else None,
            "error": self.error,
            "finished_at": self.finished_at,
        }
