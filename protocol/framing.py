"""Frame envelope builder and inbound frame assembler.

Frame layout::

    +--------+----------+---------+---------------------------+
    | Length | Reserved | Command |     Command payload       |
    | 1 byte | 1 byte   | 1 byte  |     Length - 3 bytes      |
    +--------+----------+---------+---------------------------+

- Length: size of the whole frame, header bytes included
- Reserved: hub id, always 0x00
- Command: message type selector (see :class:`protocol.commands.MessageType`)

A single BLE notification may carry part of a frame, one frame or several
frames back to back, so inbound bytes go through a :class:`FrameAssembler`.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from utils.logging_config import get_logger

logger = get_logger(__name__)

HEADER_SIZE = 3
MAX_FRAME_SIZE = 0xFF


@dataclass(frozen=True)
class Frame:
    """One complete protocol frame."""

    data: bytes

    @property
    def length(self) -> int:
        return self.data[0]

    @property
    def command(self) -> Optional[int]:
        return self.data[2] if len(self.data) >= HEADER_SIZE else None

    def byte(self, offset: int) -> Optional[int]:
        """Return the byte at ``offset``, or None when the frame is too short."""
        if 0 <= offset < len(self.data):
            return self.data[offset]
        return None

    def slice(self, start: int, length: Optional[int] = None) -> bytes:
        if length is None:
            return self.data[start:]
        return self.data[start:start + length]

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"Frame(length={self.length}, data={self.data.hex(' ')})"


def build_frame(body: bytes) -> bytes:
    """Prefix a command body with the ``[length, 0x00]`` envelope.

    Args:
        body: Command bytes starting with the message type.

    Returns:
        The frame ready to be written to the hub characteristic.
    """
    size = len(body) + 2
    if size > MAX_FRAME_SIZE:
        raise ValueError(f"Frame too long: {size} bytes (max {MAX_FRAME_SIZE})")
    return bytes([size, 0x00]) + bytes(body)


class FrameAssembler:
    """Accumulates raw notification bytes and hands out complete frames.

    ``on_frame`` is called synchronously for each complete frame, in wire
    order, before any further buffered bytes are looked at.
    """

    def __init__(self, on_frame: Callable[[Frame], None]):
        self._on_frame = on_frame
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet part of a complete frame."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> None:
        if data:
            self._buffer += data

        while self._buffer:
            length = self._buffer[0]
            if length == 0:
                # A zero length can never complete; drop it so the stream can resync
                logger.warning("Discarding zero length byte at head of buffer")
                del self._buffer[0]
                continue
            if length > len(self._buffer):
                break

            frame = Frame(bytes(self._buffer[:length]))
            del self._buffer[:length]
            logger.debug(f"Received frame: {frame.data.hex(' ')}")
            self._on_frame(frame)

    def reset(self) -> None:
        self._buffer.clear()
