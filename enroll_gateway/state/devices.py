"""
In-memory set of enrolled devices.
"""


class DevicesStore:
    """Devices known to be registered with the build service. Membership only grows."""

    def __init__(self):
        self._devices: set[str] = set()

    def add(self, udid: str) -> None:
        self._devices.add(udid)

    def __contains__(self, udid: str) -> bool:
        return udid in self._devices

    def __len__(self) -> int:
        return len(self._devices)
