"""
Adapter for the EAS build-automation CLI.

Composes device registration and build commands, extracts the build
identifier from the CLI output and classifies failures.
"""

import re
from enum import Enum

from enroll_gateway.core.exceptions import ExternalToolError, ToolTimeoutError
from enroll_gateway.models.build import UNKNOWN_BUILD_ID
from enroll_gateway.services.runner import SubprocessRunner, ToolOutput

BUILD_ID_PATTERN = re.compile(r"build ID:\s*([a-zA-Z0-9-]+)", re.IGNORECASE)

# The CLI has no machine-readable error codes; these phrases are what it
# prints when the device is already known to the build service.
ALREADY_EXISTS_PHRASES = ("already registered", "already exists")


class FailureKind(str, Enum):
    """Classification of a failed CLI invocation."""

    ALREADY_EXISTS = "already_exists"
    TIMEOUT = "timeout"
    OTHER = "other"


def default_device_name(udid: str) -> str:
    """Deterministic display name for devices registered without one."""
    return f"iPhone-{udid[-8:]}"


def parse_build_id(stdout: str) -> str:
    """Extract the build identifier from CLI output, or UNKNOWN_BUILD_ID."""
    match = BUILD_ID_PATTERN.search(stdout)
    return match.group(1) if match else UNKNOWN_BUILD_ID


def classify_failure(error: ExternalToolError) -> FailureKind:
    """Map a CLI failure to a FailureKind."""
    if isinstance(error, ToolTimeoutError):
        return FailureKind.TIMEOUT

    text = "\n".join((str(error), error.stderr, error.stdout)).lower()
    if any(phrase in text for phrase in ALREADY_EXISTS_PHRASES):
        return FailureKind.ALREADY_EXISTS
    return FailureKind.OTHER


class EasCli:
    """Runs EAS CLI commands through a SubprocessRunner."""

    def __init__(
        self,
        runner: SubprocessRunner,
        command: list[str],
        platform: str = "ios",
        profile: str = "ad-hoc",
        register_timeout: float = 30,
        build_timeout: float = 60,
        max_output_bytes: int = 10 * 1024 * 1024,
    ):
        self._runner = runner
        self._command = list(command)
        self._platform = platform
        self._profile = profile
        self._register_timeout = register_timeout
        self._build_timeout = build_timeout
        self._max_output_bytes = max_output_bytes

    def device_create_args(self, udid: str, name: str) -> list[str]:
        return [
            *self._command,
            "device:create",
            "--udid", udid,
            "--name", name,
            "--non-interactive",
        ]

    def build_args(self) -> list[str]:
        return [
            *self._command,
            "build",
            "--platform", self._platform,
            "--profile", self._profile,
            "--non-interactive",
            "--no-wait",
        ]

    async def create_device(self, udid: str, name: str) -> ToolOutput:
        """
        Register a device with the build service.

        Raises:
            ExternalToolError: If the CLI fails or times out
        """
        return await self._runner.run(
            self.device_create_args(udid, name),
            timeout=self._register_timeout,
            max_output_bytes=self._max_output_bytes,
        )

    async def start_build(self) -> ToolOutput:
        """
        Request a build without waiting for it to finish.

        Raises:
            ExternalToolError: If the CLI fails or times out
        """
        return await self._runner.run(
            self.build_args(),
            timeout=self._build_timeout,
            max_output_bytes=self._max_output_bytes,
        )
