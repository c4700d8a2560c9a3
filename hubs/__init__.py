"""
Hub package

Per-connection protocol state for LEGO Powered UP hubs:
- Hub: frame processing, property tracking, commands and wait helpers
- PortRegistry: port names, virtual ports and attached device records
"""

from .registry import HubType, PortRegistry, default_port_map
from .hub import ButtonState, Hub, HubEvent

__all__ = [
    "ButtonState",
    "Hub",
    "HubEvent",
    "HubType",
    "PortRegistry",
    "default_port_map",
]
