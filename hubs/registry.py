"""
Port/device registry for a single hub.

Keeps three pieces of state that must move together:
  - the port map (symbolic name -> port id), seeded per hub family
  - the attached device records, keyed by port id (one per port)
  - the set of virtual port ids the hub synthesized by combining two ports
"""

from enum import IntEnum
from typing import Dict, Optional, Set

from devices.attached_device import AttachedDevice


class HubType(IntEnum):
    UNKNOWN = 0
    BOOST = 2
    TECHNIC = 6


BOOST_PORT_MAP: Dict[str, int] = {
    "A": 0,
    "B": 1,
    "C": 2,
    "D": 3,
    "HUB_LED": 50,
    "TILT_SENSOR": 58,
    "CURRENT_SENSOR": 59,
    "VOLTAGE_SENSOR": 60,
}

TECHNIC_PORT_MAP: Dict[str, int] = {
    "A": 0,
    "B": 1,
    "C": 2,
    "D": 3,
    "HUB_LED": 50,
    "CURRENT_SENSOR": 59,
    "VOLTAGE_SENSOR": 60,
    "ACCELEROMETER": 97,
    "GYRO_SENSOR": 98,
    "TILT_SENSOR": 99,
}


def default_port_map(hub_type: HubType) -> Dict[str, int]:
    """Fresh copy of the port map a hub family starts with."""
    if hub_type == HubType.BOOST:
        return dict(BOOST_PORT_MAP)
    if hub_type == HubType.TECHNIC:
        return dict(TECHNIC_PORT_MAP)
    return {}


class PortRegistry:
    """
    Authoritative port state of one hub. Only the hub's port message handling
    mutates it; everything else reads.
    """

    def __init__(self, port_map: Optional[Dict[str, int]] = None):
        self.port_map: Dict[str, int] = dict(port_map or {})
        self.virtual_ports: Set[int] = set()
        self._devices: Dict[int, AttachedDevice] = {}

    def lookup_by_port_id(self, port_id: int) -> Optional[AttachedDevice]:
        return self._devices.get(port_id)

    def lookup_port_id_by_name(self, name: str) -> Optional[int]:
        return self.port_map.get(name)

    def port_name_for_id(self, port_id: int) -> Optional[str]:
        """Reverse lookup; the first name mapped to ``port_id`` wins."""
        for name, value in self.port_map.items():
            if value == port_id:
                return name
        return None

    def lookup_by_name(self, name: str) -> Optional[AttachedDevice]:
        port_id = self.lookup_port_id_by_name(name)
        if port_id is None:
            return None
        return self.lookup_by_port_id(port_id)

    def register(self, port_id: int, device: AttachedDevice) -> None:
        self._devices[port_id] = device

    def unregister(self, port_id: int) -> Optional[AttachedDevice]:
        """Remove the record at ``port_id`` and, for virtual ports, its synthesized name."""
        device = self._devices.pop(port_id, None)
        if device is not None and port_id in self.virtual_ports:
            name = self.port_name_for_id(port_id)
            if name is not None:
                del self.port_map[name]
            self.virtual_ports.discard(port_id)
        return device

    def add_virtual_port(self, name: str, port_id: int) -> None:
        self.port_map[name] = port_id
        self.virtual_ports.add(port_id)

    def devices(self) -> Dict[int, AttachedDevice]:
        return dict(self._devices)

    def clear(self) -> None:
        """Forget every device and virtual port, keeping the physical port names."""
        for port_id in list(self.virtual_ports):
            name = self.port_name_for_id(port_id)
            if name is not None:
                del self.port_map[name]
        self.virtual_ports.clear()
        self._devices.clear()

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, port_id: int) -> bool:
        return port_id in self._devices
