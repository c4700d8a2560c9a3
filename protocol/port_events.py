"""Attached I/O message parsing.

Layout of the messages the hub sends when something is plugged in or out::

    detach:        [len, 0x00, 0x04, port, 0x00]
    attach:        [len, 0x00, 0x04, port, 0x01, type_lo, type_hi, ...]
    virtual port:  [len, 0x00, 0x04, port, 0x02, type_lo, type_hi, first, second]

Applying the events to a hub's registry is the job of
:class:`hubs.hub.Hub`; this module only turns bytes into values.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .framing import Frame


class PortEvent(IntEnum):
    DETACHED = 0x00
    ATTACHED = 0x01
    ATTACHED_VIRTUAL = 0x02


@dataclass
class DetachEvent:
    port_id: int


@dataclass
class AttachEvent:
    port_id: int
    device_type: int


@dataclass
class VirtualPortEvent:
    port_id: int
    device_type: int
    first_port_id: int
    second_port_id: int


PortMessage = Union[DetachEvent, AttachEvent, VirtualPortEvent]


def _device_type(frame: Frame) -> Optional[int]:
    data = frame.slice(5, 2)
    if len(data) < 2:
        return None
    return int.from_bytes(data, "little")


def parse_port_message(frame: Frame) -> Optional[PortMessage]:
    """Parse an attached I/O frame, returning None for truncated or unknown events."""
    port_id = frame.byte(3)
    event = frame.byte(4)
    if port_id is None or event is None:
        return None

    if event == PortEvent.DETACHED:
        return DetachEvent(port_id=port_id)

    if event == PortEvent.ATTACHED:
        device_type = _device_type(frame)
        if device_type is None:
            return None
        return AttachEvent(port_id=port_id, device_type=device_type)

    if event == PortEvent.ATTACHED_VIRTUAL:
        device_type = _device_type(frame)
        first = frame.byte(7)
        second = frame.byte(8)
        if device_type is None or first is None or second is None:
            return None
        return VirtualPortEvent(
            port_id=port_id,
            device_type=device_type,
            first_port_id=first,
            second_port_id=second,
        )

    return None
