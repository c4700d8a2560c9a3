"""Protocol layer: frame assembly, message dispatch, decoders and command builders."""

from .framing import Frame, FrameAssembler, build_frame
from .dispatcher import MessageDispatcher
from .commands import MessageType, HubProperty

__all__ = [
    "Frame",
    "FrameAssembler",
    "build_frame",
    "MessageDispatcher",
    "MessageType",
    "HubProperty",
]
