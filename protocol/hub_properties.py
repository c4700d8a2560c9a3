"""Hub property response parsing.

A hub property message looks like::

    [length, 0x00, 0x01, property, operation, *payload]

The payload starts at offset 5. Parsers return one of the report dataclasses
below, or ``None`` when the frame is truncated, carries an unknown property or
a value we do not act on.
"""

import struct
from dataclasses import dataclass
from typing import Optional, Union

from .commands import HubProperty
from .framing import Frame

PAYLOAD_OFFSET = 5


@dataclass
class ButtonReport:
    pressed: bool


@dataclass
class VersionReport:
    """Firmware or hardware version, already rendered as ``M.m.bb.dddd``."""

    prop: HubProperty
    version: str


@dataclass
class RssiReport:
    rssi: int


@dataclass
class MacAddressReport:
    address: str


@dataclass
class BatteryReport:
    level: int


HubPropertyReport = Union[ButtonReport, VersionReport, RssiReport, MacAddressReport, BatteryReport]


def decode_version(data: bytes) -> str:
    """Render 4 version bytes as ``major.minor.bugfix.build``.

    The bytes are read as a big-endian 32-bit value and split on hex digits:
    top nibble is the major number, next nibble the minor number, next byte
    the bugfix number and the low 16 bits the build number.

    >>> decode_version(bytes([0x02, 0x00, 0x00, 0x10]))
    '0.2.00.0010'
    """
    if len(data) != 4:
        raise ValueError(f"Version must be 4 bytes, got {len(data)}")
    digits = f"{int.from_bytes(data, 'big'):08x}"
    return f"{digits[0]}.{digits[1]}.{digits[2:4]}.{digits[4:]}"


def decode_rssi(data: bytes) -> int:
    """Decode the RSSI payload, returning 0 when it cannot be decoded.

    One or two bytes are read as an unsigned big-endian number. Anything that
    does not fit a signed 16-bit value counts as a failed decode; otherwise
    the low byte is the signed dBm reading.
    """
    if not data:
        return 0
    signal = int.from_bytes(data[:2], "big")
    if signal > 0x7FFF:
        return 0
    return struct.unpack("b", bytes([signal & 0xFF]))[0]


def _parse_button(frame: Frame) -> Optional[HubPropertyReport]:
    state = frame.byte(PAYLOAD_OFFSET)
    if state == 1:
        return ButtonReport(pressed=True)
    if state == 0:
        return ButtonReport(pressed=False)
    return None


def _parse_version(frame: Frame) -> Optional[HubPropertyReport]:
    data = frame.slice(PAYLOAD_OFFSET, 4)
    if len(data) < 4:
        return None
    return VersionReport(prop=HubProperty(frame.byte(3)), version=decode_version(data))


def _parse_rssi(frame: Frame) -> Optional[HubPropertyReport]:
    rssi = decode_rssi(frame.slice(PAYLOAD_OFFSET, 2))
    # FIXME: a genuine 0 dBm reading is indistinguishable from a failed decode
    if not rssi:
        return None
    return RssiReport(rssi=rssi)


def _parse_mac_address(frame: Frame) -> Optional[HubPropertyReport]:
    data = frame.slice(PAYLOAD_OFFSET)
    if not data:
        return None
    return MacAddressReport(address=data.hex(":"))


def _parse_battery(frame: Frame) -> Optional[HubPropertyReport]:
    level = frame.byte(PAYLOAD_OFFSET)
    if level is None:
        return None
    return BatteryReport(level=level)


_PARSERS = {
    HubProperty.BUTTON: _parse_button,
    HubProperty.FW_VERSION: _parse_version,
    HubProperty.HW_VERSION: _parse_version,
    HubProperty.RSSI: _parse_rssi,
    HubProperty.PRIMARY_MAC_ADDRESS: _parse_mac_address,
    HubProperty.BATTERY_VOLTAGE: _parse_battery,
}


def parse_hub_property(frame: Frame) -> Optional[HubPropertyReport]:
    """Parse a hub property response frame into a report."""
    prop = frame.byte(3)
    parser = _PARSERS.get(prop)
    if parser is None:
        return None
    return parser(frame)
