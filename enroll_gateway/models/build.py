"""
Data models for build tracking.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


UNKNOWN_BUILD_ID = "unknown"


class BuildStatus(str, Enum):
    """Lifecycle state of a tracked build. Completion is tracked by the build service."""

    PENDING = "pending"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render an aware datetime as ISO-8601 UTC with millisecond precision."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class BuildRecord:
    """Most recently requested build for a device."""

    udid: str
    build_id: str = UNKNOWN_BUILD_ID
    status: BuildStatus = BuildStatus.PENDING
    started_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        """Wire representation used by the HTTP API."""
        return {
            "buildId": self.build_id,
            "status": self.status.value,
            "startedAt": format_timestamp(self.started_at),
        }


@dataclass
class TriggerResult:
    """Outcome of a build trigger request."""

    record: BuildRecord
    already_pending: bool = False
