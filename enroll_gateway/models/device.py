"""
Data model for device registration outcomes.
"""

from dataclasses import dataclass


@dataclass
class RegistrationResult:
    """Outcome of a device registration request."""

    udid: str
    already_registered: bool = False
    output: str | None = None
