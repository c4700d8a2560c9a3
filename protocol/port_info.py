"""Parsers for messages we acknowledge but do not interpret yet.

Port information, mode information, port value and output command feedback
messages are decoded only far enough to log which port they concern.
"""

from dataclasses import dataclass
from typing import Optional

from .commands import PortInformationType
from .framing import Frame


@dataclass
class PortInformation:
    port_id: int
    mode_count: int


@dataclass
class PortNotice:
    """Port id of a message whose payload is left unparsed."""

    port_id: int
    payload: bytes


def parse_port_information(frame: Frame) -> Optional[PortInformation]:
    """Parse a mode-info port information response.

    Mode combination responses are skipped.
    """
    port_id = frame.byte(3)
    info_type = frame.byte(4)
    if port_id is None or info_type is None:
        return None
    if info_type == PortInformationType.MODE_COMBINATIONS:
        return None
    mode_count = frame.byte(6)
    if mode_count is None:
        return None
    return PortInformation(port_id=port_id, mode_count=mode_count)


def parse_port_notice(frame: Frame) -> Optional[PortNotice]:
    port_id = frame.byte(3)
    if port_id is None:
        return None
    return PortNotice(port_id=port_id, payload=frame.slice(4))
