"""
Exceptions raised by the hub controller.

Protocol decoding never raises; these cover misuse of the command side.
"""


class LegoError(Exception):
    """Base class for hub controller errors."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class HubNotConnectedError(LegoError):
    """A command was issued to a hub without a live transport."""


class DeviceDetachedError(LegoError):
    """A command was issued to an attached device that is no longer attached."""


class HubCapacityError(LegoError):
    """The maximum number of simultaneous hub connections has been reached."""
