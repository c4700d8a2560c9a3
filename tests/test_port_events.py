"""
Tests for attached I/O messages: parsing, and how a hub applies them.
"""
from protocol.framing import Frame
from protocol.port_events import AttachEvent, DetachEvent, VirtualPortEvent, parse_port_message
from devices.attached_device import AttachedDeviceType
from devices.motor import Motor
from hubs.hub import HubEvent

from tests.frames import attach_frame, detach_frame, virtual_attach_frame


class TestParsePortMessage:
    """Test suite for the attached I/O parser."""

    def test_detach(self):
        assert parse_port_message(Frame(detach_frame(1))) == DetachEvent(port_id=1)

    def test_attach_type_is_little_endian(self):
        """Test a type code of 27 00 on the wire is device type 39."""
        message = parse_port_message(Frame(attach_frame(0, 39)))

        assert message == AttachEvent(port_id=0, device_type=39)

    def test_attach_two_byte_type(self):
        message = parse_port_message(Frame(attach_frame(0, 0x0102)))

        assert message.device_type == 0x0102

    def test_virtual_port(self):
        message = parse_port_message(Frame(virtual_attach_frame(16, 39, 0, 1)))

        assert message == VirtualPortEvent(port_id=16, device_type=39, first_port_id=0, second_port_id=1)

    def test_truncated_attach(self):
        assert parse_port_message(Frame(bytes([0x06, 0x00, 0x04, 0x00, 0x01, 0x27]))) is None

    def test_unknown_event(self):
        assert parse_port_message(Frame(bytes([0x05, 0x00, 0x04, 0x00, 0x09]))) is None


class TestHubPortEvents:
    """Test suite for applying attach/detach events to a hub."""

    def test_move_hub_motor_attach_scenario(self, hub):
        """Test the Boost internal motor on port A turns into a motor record."""
        hub.feed(bytes([0x0F, 0x00, 0x04, 0x00, 0x01, 0x27, 0x00, 0, 0, 0, 0, 0, 0, 0, 0]))

        device = hub.registry.lookup_by_name("A")
        assert isinstance(device, Motor)
        assert device.device_type == AttachedDeviceType.MOVE_HUB_MEDIUM_LINEAR_MOTOR
        assert device.port_id == 0
        assert device.attached is True

    def test_attach_emits_event(self, hub):
        seen = []
        hub.events.subscribe(HubEvent.DEVICE_ATTACHED, seen.append)

        hub.feed(attach_frame(1, AttachedDeviceType.TRAIN_MOTOR))

        assert [d.port_id for d in seen] == [1]

    def test_attach_same_type_twice_is_idempotent(self, hub):
        """Test a repeated attach keeps the first record and stays quiet."""
        seen = []
        hub.events.subscribe(HubEvent.DEVICE_ATTACHED, seen.append)
        hub.feed(attach_frame(1, AttachedDeviceType.TRAIN_MOTOR))
        first = hub.registry.lookup_by_port_id(1)

        hub.feed(attach_frame(1, AttachedDeviceType.TRAIN_MOTOR))

        assert hub.registry.lookup_by_port_id(1) is first
        assert len(seen) == 1
        assert len(hub.registry) == 1

    def test_attach_different_type_replaces_record(self, hub):
        hub.feed(attach_frame(1, AttachedDeviceType.TRAIN_MOTOR))
        old = hub.registry.lookup_by_port_id(1)

        hub.feed(attach_frame(1, AttachedDeviceType.COLOR_DISTANCE_SENSOR))

        new = hub.registry.lookup_by_port_id(1)
        assert new is not old
        assert new.device_type == AttachedDeviceType.COLOR_DISTANCE_SENSOR
        assert old.attached is False

    def test_unknown_type_code_is_kept(self, hub):
        hub.feed(attach_frame(2, 200))

        device = hub.registry.lookup_by_port_id(2)
        assert device.device_type == 200
        assert device.type_name == "UNKNOWN_200"
        assert not device.is_motor

    def test_detach_absent_port_is_noop(self, hub):
        """Test detaching a port with no record changes nothing and emits nothing."""
        seen = []
        hub.events.subscribe(HubEvent.DEVICE_DETACHED, seen.append)
        before = dict(hub.port_map)

        hub.feed(detach_frame(3))

        assert seen == []
        assert len(hub.registry) == 0
        assert hub.port_map == before

    def test_detach_marks_record_and_emits(self, hub):
        hub.feed(attach_frame(1, AttachedDeviceType.TRAIN_MOTOR))
        device = hub.registry.lookup_by_port_id(1)
        seen = []
        hub.events.subscribe(HubEvent.DEVICE_DETACHED, seen.append)

        hub.feed(detach_frame(1))

        assert seen == [device]
        assert device.attached is False
        assert 1 not in hub.registry

    def test_virtual_port_name_from_physical_ports(self, hub):
        """Test a virtual port combining A and B is registered as "AB"."""
        hub.feed(attach_frame(0, 39))
        hub.feed(attach_frame(1, 39))

        hub.feed(virtual_attach_frame(16, 39, 0, 1))

        assert hub.port_map["AB"] == 16
        assert 16 in hub.registry.virtual_ports
        assert isinstance(hub.registry.lookup_by_name("AB"), Motor)

    def test_virtual_port_detach_restores_port_map(self, hub):
        """Test creating then detaching a virtual port leaves the map as it was."""
        before = dict(hub.port_map)

        hub.feed(virtual_attach_frame(16, 39, 0, 1))
        hub.feed(detach_frame(16))

        assert hub.port_map == before
        assert hub.registry.virtual_ports == set()

    def test_virtual_port_with_unknown_members(self, hub):
        """Test unresolved member ports contribute an empty string to the name."""
        hub.feed(virtual_attach_frame(17, 39, 40, 42))

        assert hub.port_map[""] == 17
        assert 17 in hub.registry.virtual_ports

        hub.feed(detach_frame(17))

        assert "" not in hub.port_map

    def test_split_notification(self, hub):
        """Test an attach frame split over two notifications is applied once complete."""
        frame = attach_frame(0, 39)

        hub.feed(frame[:6])
        assert hub.registry.lookup_by_port_id(0) is None

        hub.feed(frame[6:])
        assert hub.registry.lookup_by_port_id(0) is not None
