"""Builds the right record type for a newly attached device."""

from .attached_device import AttachedDevice, AttachedDeviceType, device_type_from_code
from .motor import Motor

# Type codes that accept direct power writes on mode 0
MOTOR_TYPES = frozenset({
    AttachedDeviceType.SIMPLE_MEDIUM_LINEAR_MOTOR,
    AttachedDeviceType.TRAIN_MOTOR,
    AttachedDeviceType.MEDIUM_LINEAR_MOTOR,
    AttachedDeviceType.MOVE_HUB_MEDIUM_LINEAR_MOTOR,
    AttachedDeviceType.DUPLO_TRAIN_MOTOR,
    AttachedDeviceType.TECHNIC_LARGE_LINEAR_MOTOR,
    AttachedDeviceType.TECHNIC_XLARGE_LINEAR_MOTOR,
    AttachedDeviceType.SPIKE_PRIME_MEDIUM_ANGULAR_MOTOR,
    AttachedDeviceType.SPIKE_PRIME_LARGE_ANGULAR_MOTOR,
    AttachedDeviceType.TECHNIC_MEDIUM_ANGULAR_MOTOR,
    AttachedDeviceType.TECHNIC_LARGE_ANGULAR_MOTOR,
})


def create_attachment(type_code: int, port_id: int) -> AttachedDevice:
    """Build the record matching ``type_code``: a Motor for motor types, a generic record otherwise."""
    device_type = device_type_from_code(type_code)
    if device_type in MOTOR_TYPES:
        return Motor(device_type, port_id)
    return AttachedDevice(device_type, port_id)
