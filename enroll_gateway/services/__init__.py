"""
Services package - orchestration around the external build CLI.
"""

from .builds import BuildOrchestrator
from .eas import EasCli, FailureKind
from .registry import DeviceRegistry
from .runner import SubprocessRunner, ToolOutput

__all__ = [
    "BuildOrchestrator",
    "DeviceRegistry",
    "EasCli",
    "FailureKind",
    "SubprocessRunner",
    "ToolOutput",
]
