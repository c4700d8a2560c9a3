"""
devices - Records for the motors, sensors and lights attached to hub ports.
"""

from .attached_device import AttachedDevice, AttachedDeviceType, DeviceEvent
from .motor import Motor, MotorValue, map_speed
from .factory import MOTOR_TYPES, create_attachment

__all__ = [
    "AttachedDevice",
    "AttachedDeviceType",
    "DeviceEvent",
    "Motor",
    "MotorValue",
    "map_speed",
    "MOTOR_TYPES",
    "create_attachment",
]
