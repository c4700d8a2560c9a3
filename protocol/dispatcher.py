"""Routes complete frames to the decoder registered for their message type."""

from typing import Callable, Dict

from utils.logging_config import get_logger
from .commands import MessageType
from .framing import Frame, HEADER_SIZE

logger = get_logger(__name__)

FrameHandler = Callable[[Frame], None]


class MessageDispatcher:
    """Looks at the command byte (offset 2) and calls the matching handler.

    Frames with an unregistered command byte are ignored so that newer hub
    firmware never breaks processing.
    """

    def __init__(self):
        self._handlers: Dict[int, FrameHandler] = {}

    def register(self, message_type: MessageType, handler: FrameHandler) -> None:
        self._handlers[int(message_type)] = handler

    def unregister(self, message_type: MessageType) -> None:
        self._handlers.pop(int(message_type), None)

    def dispatch(self, frame: Frame) -> None:
        if len(frame) < HEADER_SIZE:
            logger.warning(f"Dropping malformed frame: {frame.data.hex(' ')}")
            return

        handler = self._handlers.get(frame.command)
        if handler is None:
            logger.debug(f"Ignoring message type 0x{frame.command:02x}")
            return
        handler(frame)
