"""Device-type table and the generic record for anything attached to a hub port."""

from enum import Enum, IntEnum
from typing import Callable, Optional, Union

from errors import DeviceDetachedError, HubNotConnectedError
from protocol.commands import build_write_direct
from utils.events import EventBus
from utils.logging_config import get_logger

logger = get_logger(__name__)


class AttachedDeviceType(IntEnum):
    """IO type ids reported by the hub in attach messages."""

    UNKNOWN = 0
    SIMPLE_MEDIUM_LINEAR_MOTOR = 1
    TRAIN_MOTOR = 2
    LIGHT = 8
    VOLTAGE_SENSOR = 20
    CURRENT_SENSOR = 21
    PIEZO_BUZZER = 22
    HUB_LED = 23
    TILT_SENSOR = 34
    MOTION_SENSOR = 35
    COLOR_DISTANCE_SENSOR = 37
    MEDIUM_LINEAR_MOTOR = 38
    MOVE_HUB_MEDIUM_LINEAR_MOTOR = 39
    MOVE_HUB_TILT_SENSOR = 40
    DUPLO_TRAIN_MOTOR = 41
    DUPLO_TRAIN_SPEAKER = 42
    DUPLO_TRAIN_COLOR_SENSOR = 43
    DUPLO_TRAIN_SPEEDOMETER = 44
    TECHNIC_LARGE_LINEAR_MOTOR = 46  # Technic Control+
    TECHNIC_XLARGE_LINEAR_MOTOR = 47  # Technic Control+
    SPIKE_PRIME_MEDIUM_ANGULAR_MOTOR = 48
    SPIKE_PRIME_LARGE_ANGULAR_MOTOR = 49
    TECHNIC_MEDIUM_HUB_GEST_SENSOR = 54
    REMOTE_CONTROL_BUTTON = 55
    REMOTE_CONTROL_RSSI = 56
    TECHNIC_MEDIUM_HUB_ACCELEROMETER = 57
    TECHNIC_MEDIUM_HUB_GYRO_SENSOR = 58
    TECHNIC_MEDIUM_HUB_TILT_SENSOR = 59
    TECHNIC_MEDIUM_HUB_TEMPERATURE_SENSOR = 60
    SPIKE_PRIME_COLOR_SENSOR = 61
    SPIKE_PRIME_DISTANCE_SENSOR = 62
    SPIKE_PRIME_FORCE_SENSOR = 63
    TECHNIC_MEDIUM_ANGULAR_MOTOR = 75  # Technic Control+
    TECHNIC_LARGE_ANGULAR_MOTOR = 76  # Technic Control+


# Type codes outside the table are kept as plain ints
DeviceTypeCode = Union[AttachedDeviceType, int]


def device_type_from_code(code: int) -> DeviceTypeCode:
    try:
        return AttachedDeviceType(code)
    except ValueError:
        return code


def device_type_name(device_type: DeviceTypeCode) -> str:
    if isinstance(device_type, AttachedDeviceType):
        return device_type.name
    return f"UNKNOWN_{device_type}"


class DeviceEvent(Enum):
    POWER_CHANGED = "power_changed"


class AttachedDevice:
    """
    A device plugged into (or virtually combined onto) a hub port.

    Records are created by the hub when it sees an attach message and are only
    useful while ``attached`` is true. Commands go out through the hub the
    record is registered with.
    """

    is_motor = False
    is_sensor = False

    def __init__(self, device_type: DeviceTypeCode, port_id: int):
        self.device_type = device_type
        self.port_id = port_id
        self.attached = False
        self.events = EventBus()
        self._command_handler: Optional[Callable[[bytes], None]] = None

    @property
    def type_name(self) -> str:
        return device_type_name(self.device_type)

    def bind(self, command_handler: Callable[[bytes], None]) -> None:
        """Route this record's commands to ``command_handler`` and mark it attached."""
        self._command_handler = command_handler
        self.attached = True

    def detach(self) -> None:
        """Drop the connection to the port; the device itself stays plugged in."""
        self.attached = False
        self._command_handler = None

    def write_direct(self, mode: int, data: bytes) -> None:
        """Send ``data`` straight to ``mode`` of this device."""
        if not self.attached:
            raise DeviceDetachedError(f"{self.type_name} on port {self.port_id} is detached")
        if self._command_handler is None:
            raise HubNotConnectedError(f"{self.type_name} on port {self.port_id} has no hub")

        body = build_write_direct(self.port_id, mode, data)
        logger.debug(f"Write direct: {body.hex(' ')}")
        self._command_handler(body)

    def to_dict(self) -> dict:
        return {
            "port_id": self.port_id,
            "type": self.type_name,
            "type_id": int(self.device_type),
            "attached": self.attached,
            "motor": self.is_motor,
            "sensor": self.is_sensor,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.type_name}, port_id={self.port_id}, attached={self.attached})"
