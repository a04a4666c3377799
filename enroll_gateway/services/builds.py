"""
Build triggering and status tracking.
"""

import asyncio

from enroll_gateway.core.exceptions import ExternalToolError, ValidationError
from enroll_gateway.core.logging import get_logger
from enroll_gateway.models.build import BuildRecord, BuildStatus, TriggerResult, utcnow
from enroll_gateway.services.eas import EasCli, parse_build_id
from enroll_gateway.state.builds import BuildsStore
from enroll_gateway.state.inflight import InFlight

logger = get_logger(__name__)


class BuildOrchestrator:
    """
    Starts remote builds and remembers the latest one per device.

    A device with a stored record never triggers another build while that
    record is kept; concurrent triggers for a device share one CLI call.
    """

    def __init__(self, cli: EasCli, builds: BuildsStore):
        self._cli = cli
        self._builds = builds
        self._inflight = InFlight()

    async def trigger_build(self, udid: str | None) -> TriggerResult:
        """
        Trigger a build for a device unless one is already pending.

        Raises:
            ValidationError: If udid is missing
            ExternalToolError: If the CLI fails or times out
        """
        if not udid:
            raise ValidationError("UDID is required")

        record = self._builds.get(udid)
        if record is not None:
            logger.info(f"Build {record.build_id} already pending for {udid}")
            return TriggerResult(record=record, already_pending=True)

        pending = self._inflight.get(udid)
        if pending is not None:
            logger.info(f"Build trigger for {udid} already in flight, waiting")
            record = await asyncio.shield(pending)
            return TriggerResult(record=record, already_pending=True)

        task = self._inflight.start(udid, self._start(udid))
        record = await asyncio.shield(task)
        return TriggerResult(record=record)

    def get_status(self, udid: str) -> BuildRecord | None:
        """Return the tracked build for a device, or None."""
        return self._builds.get(udid)

    async def _start(self, udid: str) -> BuildRecord:
        logger.info(f"Triggering build for device {udid}")
        started_at = utcnow()
        try:
            result = await self._cli.start_build()
        except ExternalToolError as e:
            logger.error(f"Failed to trigger build for {udid}: {e}")
            raise

        record = BuildRecord(
            udid=udid,
            build_id=parse_build_id(result.stdout),
            status=BuildStatus.PENDING,
            started_at=started_at,
        )
        self._builds.add(record)
        logger.info(f"Build {record.build_id} triggered for {udid}")
        return record
