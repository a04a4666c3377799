"""
Device registration with the build service.
"""

import asyncio

from enroll_gateway.core.exceptions import ExternalToolError, ValidationError
from enroll_gateway.core.logging import get_logger
from enroll_gateway.models.device import RegistrationResult
from enroll_gateway.services.eas import (
    EasCli,
    FailureKind,
    classify_failure,
    default_device_name,
)
from enroll_gateway.state.devices import DevicesStore
from enroll_gateway.state.inflight import InFlight

logger = get_logger(__name__)


class DeviceRegistry:
    """Registers each device with the build service at most once."""

    def __init__(self, cli: EasCli, devices: DevicesStore):
        self._cli = cli
        self._devices = devices
        self._inflight = InFlight()

    async def register(self, udid: str | None, device_name: str | None = None) -> RegistrationResult:
        """
        Register a device, skipping the CLI for devices already known.

        Args:
            udid: Device identifier
            device_name: Display name; derived from udid when omitted

        Returns:
            RegistrationResult with CLI output for new registrations

        Raises:
            ValidationError: If udid is missing
            ExternalToolError: If the CLI fails for any reason other than
                the device already being registered
        """
        if not udid:
            raise ValidationError("UDID is required")

        if udid in self._devices:
            logger.info(f"Device {udid} already registered, skipping CLI")
            return RegistrationResult(udid=udid, already_registered=True)

        pending = self._inflight.get(udid)
        if pending is not None:
            logger.info(f"Registration of {udid} already in flight, waiting")
            await asyncio.shield(pending)
            return RegistrationResult(udid=udid, already_registered=True)

        name = device_name or default_device_name(udid)
        task = self._inflight.start(udid, self._create(udid, name))
        return await asyncio.shield(task)

    async def _create(self, udid: str, name: str) -> RegistrationResult:
        logger.info(f"Registering device {udid} ({name})")
        try:
            result = await self._cli.create_device(udid, name)
        except ExternalToolError as e:
            if classify_failure(e) is FailureKind.ALREADY_EXISTS:
                logger.info(f"Build service already knows device {udid}")
                self._devices.add(udid)
                return RegistrationResult(udid=udid, already_registered=True)
            logger.error(f"Failed to register device {udid}: {e}")
            raise

        self._devices.add(udid)
        logger.info(f"Device {udid} registered")
        return RegistrationResult(udid=udid, output=result.stdout)
