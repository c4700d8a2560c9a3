"""Motor record: power mapping and direct power writes."""

import struct
from enum import IntEnum

from config import get_settings
from utils.logging_config import get_logger
from .attached_device import AttachedDevice, DeviceEvent, DeviceTypeCode

logger = get_logger(__name__)


class MotorValue(IntEnum):
    STOP = 0
    BRAKE = 127


def map_speed(power: int) -> int:
    """
    Maps a requested power onto the value the hub accepts:
      - 127 (brake) passes through untouched.
      - Anything else is clamped to the configured range (-100..100 by default).
    """
    if power == MotorValue.BRAKE:
        return int(MotorValue.BRAKE)
    settings = get_settings()
    return max(settings.power_min, min(settings.power_max, int(power)))


class Motor(AttachedDevice):
    """
    A motor attached to a hub port. Motors give no feedback; every power change
    is a fire-and-forget direct write to mode 0.
    """

    is_motor = True

    def __init__(self, device_type: DeviceTypeCode, port_id: int):
        super().__init__(device_type, port_id)
        self._power = 0

    @property
    def power(self) -> int:
        return self._power

    def set_power(self, power: int) -> None:
        """
        Set power in percent, negative values run the motor backwards.

        The power is stored and POWER_CHANGED emitted only after the write
        succeeds, so a failed write leaves the previous power in place.
        """
        mapped = map_speed(power)
        self.write_direct(0x00, struct.pack("b", mapped))
        self._power = mapped
        logger.debug(f"Set power: port={self.port_id} requested={power} mapped={mapped}")
        self.events.emit(DeviceEvent.POWER_CHANGED, mapped)

    def stop(self) -> None:
        """Cut power, letting the motor coast to a halt."""
        self.set_power(MotorValue.STOP)

    def brake(self) -> None:
        """Actively hold the motor still."""
        self.set_power(MotorValue.BRAKE)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["power"] = self._power
        return data
