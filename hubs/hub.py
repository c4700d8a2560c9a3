"""
Hub model for LEGO Powered UP smart hubs.

A Hub owns everything that belongs to one connection: the inbound frame
buffer, the port registry and the event bus. Raw notification bytes go in
through feed(); commands leave through the transport's write().

The transport is any object with a ``write(data: bytes)`` method that sends
the bytes to the hub characteristic without waiting for an answer
(see servers.lego_service.BleakTransport).
"""

import asyncio
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

from config import get_settings
from devices.attached_device import AttachedDevice
from devices.factory import create_attachment
from devices.motor import Motor
from errors import HubNotConnectedError
from protocol.commands import (
    HubProperty,
    MessageType,
    build_disconnect,
    build_hub_property_request,
    build_hub_property_subscription,
    build_mode_information_request,
    build_port_information_request,
)
from protocol.dispatcher import MessageDispatcher
from protocol.framing import Frame, FrameAssembler, build_frame
from protocol.hub_properties import (
    BatteryReport,
    ButtonReport,
    MacAddressReport,
    RssiReport,
    VersionReport,
    parse_hub_property,
)
from protocol.port_events import AttachEvent, DetachEvent, VirtualPortEvent, parse_port_message
from protocol.port_info import parse_port_information, parse_port_notice
from utils.constants import DEFAULT_ADDRESS, DEFAULT_BATTERY, DEFAULT_RSSI, DEFAULT_VERSION
from utils.events import EventBus
from utils.logging_config import get_logger
from .registry import HubType, PortRegistry, default_port_map

logger = get_logger(__name__)


class HubEvent(Enum):
    DISCONNECTED = "disconnected"
    READY = "ready"
    BUTTON = "button"
    BATTERY_LEVEL = "battery_level"
    RSSI = "rssi"
    DEVICE_ATTACHED = "device_attached"
    DEVICE_DETACHED = "device_detached"


class ButtonState(IntEnum):
    RELEASED = 0
    UP = 1
    PRESSED = 2
    STOP = 127
    DOWN = 255


class Hub:
    """
    One connected hub. Properties are updated from hub property reports,
    attached devices from attached I/O messages; both happen synchronously
    inside feed(), in the order the frames arrived.
    """

    def __init__(
        self,
        name: str = "",
        address: str = DEFAULT_ADDRESS,
        hub_type: HubType = HubType.UNKNOWN,
        transport: Any = None,
    ):
        self.name = name
        self.address = address
        self.hub_type = hub_type
        self.firmware = DEFAULT_VERSION
        self.hardware = DEFAULT_VERSION
        self.battery = DEFAULT_BATTERY
        self.rssi = DEFAULT_RSSI
        self.button_state = ButtonState.RELEASED

        self.registry = PortRegistry(default_port_map(hub_type))
        self.events = EventBus()
        self.transport = transport
        self.ready = False

        self._dispatcher = MessageDispatcher()
        self._dispatcher.register(MessageType.HUB_PROPERTIES, self._handle_hub_property)
        self._dispatcher.register(MessageType.HUB_ATTACHED_IO, self._handle_port_message)
        self._dispatcher.register(MessageType.PORT_INFORMATION, self._handle_port_information)
        self._dispatcher.register(MessageType.PORT_MODE_INFORMATION, self._handle_mode_information)
        self._dispatcher.register(MessageType.PORT_VALUE, self._handle_sensor_message)
        self._dispatcher.register(MessageType.PORT_OUTPUT_COMMAND_FEEDBACK, self._handle_port_action)
        self._assembler = FrameAssembler(self._dispatcher.dispatch)

    @property
    def connected(self) -> bool:
        return self.transport is not None

    @property
    def port_map(self) -> Dict[str, int]:
        return self.registry.port_map

    @property
    def attached_devices(self) -> Dict[int, AttachedDevice]:
        return self.registry.devices()

    def attach_transport(self, transport: Any) -> None:
        self.transport = transport

    # Inbound

    def feed(self, data: bytes) -> None:
        """Process a chunk of raw bytes received from the hub."""
        self._assembler.feed(bytes(data))

    def notification_handler(self, sender: Any, data: bytearray) -> None:
        """bleak notification callback."""
        self.feed(data)

    # Outbound

    def send(self, body: bytes) -> None:
        """Wrap a command body in the frame envelope and write it to the hub."""
        if self.transport is None:
            raise HubNotConnectedError(f"Hub {self.address} is not connected")
        frame = build_frame(body)
        logger.debug(f"send: {frame.hex(' ')}", extra={"hub": self.address})
        self.transport.write(frame)

    def request_hub_property_value(self, prop: int) -> None:
        self.send(build_hub_property_request(prop))

    def request_hub_property_reports(self, prop: int) -> None:
        self.send(build_hub_property_subscription(prop))

    def request_port_information(self, port_id: int) -> None:
        for body in build_port_information_request(port_id):
            self.send(body)

    def request_mode_information(self, port_id: int, mode: int, info_type: int) -> None:
        self.send(build_mode_information_request(port_id, mode, info_type))

    async def initialize(self) -> None:
        """Subscribe to the reports we track, ask for the static properties, then signal READY."""
        self.request_hub_property_reports(HubProperty.BUTTON)
        self.request_hub_property_value(HubProperty.FW_VERSION)
        self.request_hub_property_value(HubProperty.HW_VERSION)
        self.request_hub_property_reports(HubProperty.RSSI)
        self.request_hub_property_reports(HubProperty.BATTERY_VOLTAGE)
        self.request_hub_property_value(HubProperty.PRIMARY_MAC_ADDRESS)

        # Give the hub time to answer before anyone reads the properties
        await asyncio.sleep(get_settings().ready_delay)
        if self.transport is None:
            logger.warning(f"Hub {self.name} dropped before it was ready", extra={"hub": self.address})
            return
        self.ready = True
        logger.info(f"Hub ready: {self.name} firmware={self.firmware}", extra={"hub": self.address})
        self.events.emit(HubEvent.READY)

    def disconnect(self) -> None:
        """Ask the hub to drop the connection. DISCONNECTED follows from the transport."""
        self.send(build_disconnect())

    def handle_disconnected(self) -> None:
        """Called by the transport once the link is gone."""
        if self.transport is None and not self.ready:
            return
        self.transport = None
        self.ready = False
        for device in self.registry.devices().values():
            device.detach()
        self.registry.clear()
        self._assembler.reset()
        logger.info(f"Hub disconnected: {self.name}", extra={"hub": self.address})
        self.events.emit(HubEvent.DISCONNECTED)

    # Decoders

    def _handle_hub_property(self, frame: Frame) -> None:
        report = parse_hub_property(frame)
        if report is None:
            return

        if isinstance(report, ButtonReport):
            self.button_state = ButtonState.PRESSED if report.pressed else ButtonState.RELEASED
            self.events.emit(HubEvent.BUTTON, self.button_state)
        elif isinstance(report, VersionReport):
            if report.prop == HubProperty.FW_VERSION:
                self.firmware = report.version
            else:
                self.hardware = report.version
        elif isinstance(report, RssiReport):
            self.rssi = report.rssi
            self.events.emit(HubEvent.RSSI, report.rssi)
        elif isinstance(report, MacAddressReport):
            self.address = report.address
        elif isinstance(report, BatteryReport):
            if report.level != self.battery:
                logger.debug(f"battery: {report.level}", extra={"hub": self.address})
                self.battery = report.level
                self.events.emit(HubEvent.BATTERY_LEVEL, report.level)

    def _handle_port_message(self, frame: Frame) -> None:
        message = parse_port_message(frame)
        if message is None:
            return

        if isinstance(message, DetachEvent):
            device = self.registry.unregister(message.port_id)
            if device is None:
                return
            device.detach()
            logger.debug(f"Detached {device.type_name} from port {message.port_id}", extra={"hub": self.address})
            self.events.emit(HubEvent.DEVICE_DETACHED, device)
        elif isinstance(message, AttachEvent):
            self._attach_device(message.port_id, create_attachment(message.device_type, message.port_id))
        elif isinstance(message, VirtualPortEvent):
            first = self.registry.port_name_for_id(message.first_port_id) or ""
            second = self.registry.port_name_for_id(message.second_port_id) or ""
            self.registry.add_virtual_port(first + second, message.port_id)
            logger.debug(
                f"Virtual port {first + second!r} created on {message.port_id}",
                extra={"hub": self.address},
            )
            self._attach_device(message.port_id, create_attachment(message.device_type, message.port_id))

    def _attach_device(self, port_id: int, device: AttachedDevice) -> None:
        existing = self.registry.lookup_by_port_id(port_id)
        if existing is not None and existing.device_type == device.device_type:
            return
        if existing is not None:
            existing.detach()

        device.bind(self.send)
        self.registry.register(port_id, device)
        logger.debug(f"Attached {device.type_name} to port {port_id}", extra={"hub": self.address})
        self.events.emit(HubEvent.DEVICE_ATTACHED, device)

    def _handle_port_information(self, frame: Frame) -> None:
        info = parse_port_information(frame)
        if info is None:
            return
        # TODO: request mode name/range/format for each of the info.mode_count modes
        logger.debug(f"Port information: port={info.port_id} modes={info.mode_count}")

    def _handle_mode_information(self, frame: Frame) -> None:
        """Mode information carries nothing we store yet."""

    def _handle_sensor_message(self, frame: Frame) -> None:
        notice = parse_port_notice(frame)
        if notice is not None:
            logger.debug(f"Sensor value on port {notice.port_id}")

    def _handle_port_action(self, frame: Frame) -> None:
        notice = parse_port_notice(frame)
        if notice is not None:
            logger.debug(f"Output feedback on port {notice.port_id}")

    # Waiting

    async def wait_for_device_by_name(self, name: str, timeout: Optional[float] = None) -> Optional[AttachedDevice]:
        """
        Return the device attached to the port called ``name``, waiting for it to
        be attached if necessary. Frames keep being processed while waiting.

        Returns None if nothing attaches to that port within ``timeout`` seconds.
        """
        if timeout is None:
            timeout = get_settings().wait_for_device_timeout

        device = self.registry.lookup_by_name(name)
        if device is not None:
            return device

        future = asyncio.get_running_loop().create_future()

        def on_attached(attached: AttachedDevice):
            if not future.done() and self.registry.lookup_port_id_by_name(name) == attached.port_id:
                future.set_result(attached)

        self.events.subscribe(HubEvent.DEVICE_ATTACHED, on_attached)
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Timed out waiting for device on {name!r}", extra={"hub": self.address})
            return None
        finally:
            self.events.unsubscribe(HubEvent.DEVICE_ATTACHED, on_attached)

    async def wait_for_attached_motor(self, port: str, timeout: Optional[float] = None) -> Optional[Motor]:
        """Like wait_for_device_by_name, but only a motor counts as a result."""
        device = await self.wait_for_device_by_name(port, timeout)
        if isinstance(device, Motor):
            return device
        return None

    async def wait(self, duration: float) -> None:
        """Pause the caller for ``duration`` seconds while frames keep flowing."""
        await asyncio.sleep(duration)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "hub_type": self.hub_type.name,
            "firmware": self.firmware,
            "hardware": self.hardware,
            "battery": self.battery,
            "rssi": self.rssi,
            "button": self.button_state.name,
            "connected": self.connected,
            "ready": self.ready,
            "ports": dict(self.registry.port_map),
            "devices": {
                str(port_id): device.to_dict()
                for port_id, device in sorted(self.registry.devices().items())
            },
        }
