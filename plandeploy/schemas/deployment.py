"""
Deployment record schema - status history of a single deployment.

A DeploymentRecord is created when a plan starts deploying. Every status
transition is appended as a StatusEntry keyed by the deployment_id.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

# ULID type alias for documentation
ULID = str


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class DeployStatus(str, Enum):
    """Status values written to the deployment log."""
    STARTED = "started"
    PROCESSING = "processing"
    DEPLOYED = "deployed"
    PUBLISHED = "published"
    FAILED = "failed"


def format_error(error: BaseException) -> str:
    """Render an exception the way it is stored in the log."""
    return f"{type(error).__name__}: {error}"


@dataclass
class StatusEntry:
    """A single status transition."""
    status: DeployStatus
    timestamp: datetime = field(default_factory=_utcnow)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.error:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatusEntry":
        return cls(
            status=DeployStatus(data["status"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            error=data.get("error"),
        )


@dataclass
class DeploymentRecord:
    """
    The log of one deployment.

    Attributes:
        deployment_id: ULID uniquely identifying this deployment
        plan_name: The plan being deployed
        entries: Status transitions in the order they were written
    """
    deployment_id: ULID
    plan_name: str
    entries: list[StatusEntry] = field(default_factory=list)

    @property
    def status(self) -> Optional[DeployStatus]:
        """The most recent status, or None if nothing was recorded."""
        if not self.entries:
            return None
        return self.entries[-1].status

    @property
    def started_at(self) -> Optional[datetime]:
        if not self.entries:
            return None
        return self.entries[0].timestamp

    def statuses(self) -> list[DeployStatus]:
        return [e.status for e in self.entries]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "deployment_id": self.deployment_id,
            "plan_name": self.plan_name,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeploymentRecord":
        """Deserialize from dictionary."""
        return cls(
            deployment_id=data["deployment_id"],
            plan_name=data["plan_name"],
            entries=[StatusEntry.from_dict(e) for e in data.get("entries", [])],
        )
