"""
Unit tests for outbound command builders.
"""
import pytest

from protocol.commands import (
    HubProperty,
    ModeInformationType,
    build_disconnect,
    build_hub_property_request,
    build_hub_property_subscription,
    build_mode_information_request,
    build_port_information_request,
    build_write_direct,
)
from protocol.framing import build_frame


class TestCommandBuilders:
    """Test suite for command bodies."""

    def test_disconnect(self):
        assert build_frame(build_disconnect()) == bytes([0x04, 0x00, 0x02, 0x01])

    def test_hub_property_request(self):
        """Test a one-shot property request uses operation 0x05."""
        body = build_hub_property_request(HubProperty.FW_VERSION)

        assert build_frame(body) == bytes([0x05, 0x00, 0x01, 0x03, 0x05])

    def test_hub_property_subscription(self):
        """Test a property subscription uses operation 0x02."""
        body = build_hub_property_subscription(HubProperty.BATTERY_VOLTAGE)

        assert build_frame(body) == bytes([0x05, 0x00, 0x01, 0x06, 0x02])

    def test_port_information_request_sends_both_types(self):
        frames = [build_frame(body) for body in build_port_information_request(2)]

        assert frames == [
            bytes([0x05, 0x00, 0x21, 0x02, 0x01]),
            bytes([0x05, 0x00, 0x21, 0x02, 0x02]),
        ]

    def test_mode_information_request(self):
        body = build_mode_information_request(1, 3, ModeInformationType.VALUE_FORMAT)

        assert build_frame(body) == bytes([0x06, 0x00, 0x22, 0x01, 0x03, 0x80])

    @pytest.mark.parametrize("payload", [b"", b"\x32", b"\x01\x02\x03\x04"])
    def test_write_direct_layout(self, payload):
        """Test the direct write body layout for payloads of different sizes."""
        body = build_write_direct(3, 0, payload)

        assert len(body) == len(payload) + 5
        assert body[0] == 0x81
        assert body[1] == 3
        assert body[2:5] == bytes([0x11, 0x51, 0x00])
        assert body[5:] == payload

        frame = build_frame(body)
        assert len(frame) == len(payload) + 7
        assert frame[2] == 0x81

    @pytest.mark.parametrize("value", [-1, 256])
    def test_out_of_range_port_rejected(self, value):
        with pytest.raises(ValueError):
            build_write_direct(value, 0)

        with pytest.raises(ValueError):
            build_hub_property_request(value)
