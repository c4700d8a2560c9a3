"""Message type constants and outbound command builders.

Every builder returns the command *body*; :func:`protocol.framing.build_frame`
adds the two-byte ``[length, 0x00]`` envelope before the bytes are written to
the hub characteristic.
"""

from enum import IntEnum
from typing import List


class MessageType(IntEnum):
    """Command byte found at offset 2 of every frame."""

    HUB_PROPERTIES = 0x01
    HUB_ACTIONS = 0x02
    HUB_ATTACHED_IO = 0x04
    PORT_INFORMATION_REQUEST = 0x21
    PORT_MODE_INFORMATION_REQUEST = 0x22
    PORT_INFORMATION = 0x43
    PORT_MODE_INFORMATION = 0x44
    PORT_VALUE = 0x45
    PORT_OUTPUT_COMMAND = 0x81
    PORT_OUTPUT_COMMAND_FEEDBACK = 0x82


class HubProperty(IntEnum):
    """Hub property identifiers (byte 3 of a hub property message)."""

    BUTTON = 0x02
    FW_VERSION = 0x03
    HW_VERSION = 0x04
    RSSI = 0x05
    BATTERY_VOLTAGE = 0x06
    PRIMARY_MAC_ADDRESS = 0x0D


class HubPropertyOperation(IntEnum):
    ENABLE_UPDATES = 0x02
    REQUEST_UPDATE = 0x05


class HubAction(IntEnum):
    DISCONNECT = 0x01


class PortInformationType(IntEnum):
    MODE_INFO = 0x01
    MODE_COMBINATIONS = 0x02


class ModeInformationType(IntEnum):
    NAME = 0x00
    RAW = 0x01
    PCT = 0x02
    SI = 0x03
    SYMBOL = 0x04
    VALUE_FORMAT = 0x80


# Startup & completion flags: execute immediately, request command feedback
STARTUP_AND_COMPLETION = 0x11
WRITE_DIRECT_MODE_DATA = 0x51


def _check_byte(name: str, value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")
    return value


def build_disconnect() -> bytes:
    """Build the hub action asking the hub to drop the connection."""
    return bytes([MessageType.HUB_ACTIONS, HubAction.DISCONNECT])


def build_hub_property_request(prop: int) -> bytes:
    """Build a one-shot request for the current value of a hub property."""
    _check_byte("Property id", prop)
    return bytes([MessageType.HUB_PROPERTIES, prop, HubPropertyOperation.REQUEST_UPDATE])


def build_hub_property_subscription(prop: int) -> bytes:
    """Build a request for the hub to report a property every time it changes."""
    _check_byte("Property id", prop)
    return bytes([MessageType.HUB_PROPERTIES, prop, HubPropertyOperation.ENABLE_UPDATES])


def build_port_information_request(port: int) -> List[bytes]:
    """Build the two port information requests for a port.

    The first asks for the mode list, the second for the mode combinations.
    """
    _check_byte("Port id", port)
    return [
        bytes([MessageType.PORT_INFORMATION_REQUEST, port, PortInformationType.MODE_INFO]),
        bytes([MessageType.PORT_INFORMATION_REQUEST, port, PortInformationType.MODE_COMBINATIONS]),
    ]


def build_mode_information_request(port: int, mode: int, info_type: int) -> bytes:
    """Build a mode information request.

    Args:
        port: Port id 0-255.
        mode: Mode number on that port.
        info_type: One of :class:`ModeInformationType` (or any raw byte).
    """
    _check_byte("Port id", port)
    _check_byte("Mode", mode)
    _check_byte("Information type", info_type)
    return bytes([MessageType.PORT_MODE_INFORMATION_REQUEST, port, mode, info_type])


def build_write_direct(port_id: int, mode: int, payload: bytes = b"") -> bytes:
    """Build a port output command writing ``payload`` directly to ``mode``.

    The body is ``len(payload) + 5`` bytes long::

        [0x81, port, 0x11, 0x51, mode, *payload]
    """
    _check_byte("Port id", port_id)
    _check_byte("Mode", mode)
    return bytes([
        MessageType.PORT_OUTPUT_COMMAND,
        port_id,
        STARTUP_AND_COMPLETION,
        WRITE_DIRECT_MODE_DATA,
        mode,
    ]) + bytes(payload)
