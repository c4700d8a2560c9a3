"""
BLE side of the hub controller:
- HubScanner: discovers advertising LEGO hubs and their hub family
- LegoService: owns the BLE connections and the Hub objects behind them
"""

from .bluetooth_scanner import DiscoveredHub, HubScanner
from .lego_service import BleakTransport, HubConnectionState, LegoService

__all__ = [
    'BleakTransport',
    'DiscoveredHub',
    'HubConnectionState',
    'HubScanner',
    'LegoService',
]
