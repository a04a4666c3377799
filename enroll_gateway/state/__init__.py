"""
Process-lifetime in-memory state.
"""

from .builds import BuildsStore
from .devices import DevicesStore
from .inflight import InFlight

__all__ = ["BuildsStore", "DevicesStore", "InFlight"]
