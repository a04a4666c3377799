"""
In-memory storage for pending builds.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from enroll_gateway.models.build import BuildRecord, utcnow


class BuildsStore:
    """Storage for the most recent build record of each device."""

    def __init__(self, ttl: float | None = None, clock: Callable[[], datetime] = utcnow):
        self._builds: dict[str, BuildRecord] = {}
        self._ttl = timedelta(seconds=ttl) if ttl is not None else None
        self._clock = clock

    def add(self, record: BuildRecord) -> None:
        """Store a build record, keyed by its device."""
        self._builds[record.udid] = record

    def get(self, udid: str) -> BuildRecord | None:
        """Get the build record for a device, evicting it if expired."""
        record = self._builds.get(udid)
        if record is None:
            return None
        if self._ttl is not None and self._clock() - record.started_at >= self._ttl:
            del self._builds[udid]
            return None
        return record

    def __contains__(self, udid: str) -> bool:
        return self.get(udid) is not None

    def __len__(self) -> int:
        return len(self._builds)
