"""
Data models.
"""

from .build import BuildRecord, BuildStatus, TriggerResult, UNKNOWN_BUILD_ID
from .device import RegistrationResult

__all__ = [
    "BuildRecord",
    "BuildStatus",
    "RegistrationResult",
    "TriggerResult",
    "UNKNOWN_BUILD_ID",
]
