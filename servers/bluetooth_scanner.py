#!/usr/bin/env python3
import asyncio
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional

from bleak import BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData

from config import get_settings
from hubs.registry import HubType
from utils.constants import HUB_NAME_MARKERS
from utils.logging_config import get_logger

logger = get_logger(__name__)


class ManufacturerData(IntEnum):
    """System type byte (offset 1) of the LEGO manufacturer data."""

    MOVE_HUB = 64
    TECHNIC_HUB = 128


@dataclass
class DiscoveredHub:
    device: BLEDevice
    name: str
    address: str
    hub_type: HubType
    rssi: Optional[int] = None


def detect_hub_type(manufacturer_data: Dict[int, bytes]) -> HubType:
    """Work out the hub family from the advertised LEGO manufacturer data."""
    data = manufacturer_data.get(get_settings().lego_manufacturer_id)
    if not data or len(data) < 2:
        return HubType.UNKNOWN
    if data[1] == ManufacturerData.MOVE_HUB:
        return HubType.BOOST
    if data[1] == ManufacturerData.TECHNIC_HUB:
        return HubType.TECHNIC
    return HubType.UNKNOWN


def is_lego_hub(device: BLEDevice, advertisement_data: AdvertisementData) -> bool:
    name = device.name or advertisement_data.local_name or ""
    if any(marker.lower() in name.lower() for marker in HUB_NAME_MARKERS):
        return True
    service_uuid = get_settings().lego_service_uuid.lower()
    return service_uuid in (uuid.lower() for uuid in advertisement_data.service_uuids)


class HubScanner:
    def __init__(self):
        self._scanning = False
        self._lock = asyncio.Lock()  # one scan at a time

    async def discover(self, timeout: Optional[float] = None) -> List[DiscoveredHub]:
        """Scan for advertising LEGO hubs and return what was found."""
        timeout = timeout if timeout is not None else get_settings().scan_timeout

        async with self._lock:
            self._scanning = True
            try:
                logger.info(f"Scanning for LEGO hubs ({timeout}s)...")
                found = await BleakScanner.discover(timeout=timeout, return_adv=True)
            except Exception as e:
                logger.error(f"Scan error: {e}", exc_info=True)
                raise
            finally:
                self._scanning = False

        hubs = []
        for device, advertisement_data in found.values():
            if not is_lego_hub(device, advertisement_data):
                continue
            hub_type = detect_hub_type(advertisement_data.manufacturer_data)
            name = device.name or advertisement_data.local_name or ""
            logger.info(f"Found LEGO hub: {name} ({device.address}, {hub_type.name})")
            hubs.append(DiscoveredHub(
                device=device,
                name=name,
                address=device.address,
                hub_type=hub_type,
                rssi=advertisement_data.rssi,
            ))

        if not hubs:
            logger.info("No LEGO hubs found")
        return hubs

    @property
    def is_scanning(self) -> bool:
        """Check if currently scanning"""
        return self._scanning
