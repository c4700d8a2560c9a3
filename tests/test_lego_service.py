"""
Tests for the BLE connection service with bleak mocked out.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from config import get_settings
from errors import HubCapacityError, HubNotConnectedError
from hubs.hub import HubEvent
from hubs.registry import HubType
from servers.bluetooth_scanner import DiscoveredHub
from servers.lego_service import BleakTransport, HubConnectionState, LegoService


def make_client(connected: bool = True) -> MagicMock:
    client = MagicMock()
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.start_notify = AsyncMock()
    client.write_gatt_char = AsyncMock()
    client.is_connected = connected
    return client


def make_discovered(address: str = "00:16:53:aa:bb:cc") -> DiscoveredHub:
    return DiscoveredHub(device=MagicMock(address=address), name="Move Hub", address=address, hub_type=HubType.BOOST)


@pytest.fixture
def service():
    """Fresh LegoService; the singleton is reset around each test."""
    LegoService._instance = None
    yield LegoService()
    LegoService._instance = None


class TestBleakTransport:
    """Test suite for the ordered write queue."""

    @pytest.mark.asyncio
    async def test_writes_in_order(self):
        client = make_client()
        transport = BleakTransport(client, "char")
        transport.start()

        transport.write(b"\x01")
        transport.write(b"\x02")
        transport.write(b"\x03")
        await transport.flush()
        await transport.close()

        assert [c.args[1] for c in client.write_gatt_char.await_args_list] == [b"\x01", b"\x02", b"\x03"]

    @pytest.mark.asyncio
    async def test_failed_write_does_not_stop_queue(self):
        client = make_client()
        client.write_gatt_char.side_effect = [OSError("radio"), None]
        transport = BleakTransport(client, "char")
        transport.start()

        transport.write(b"\x01")
        transport.write(b"\x02")
        await transport.flush()
        await transport.close()

        assert client.write_gatt_char.await_count == 2


class TestLegoService:
    """Test suite for LegoService connection management."""

    def test_singleton(self, service):
        assert LegoService() is service

    @pytest.mark.asyncio
    async def test_connect_initializes_hub(self, service):
        client = make_client()
        discovered = make_discovered()

        with patch("servers.lego_service.BleakClient", return_value=client):
            hub = await service.connect(discovered)

        settings = get_settings()
        client.connect.assert_awaited_once()
        client.start_notify.assert_awaited_once_with(settings.lego_char_uuid, hub.notification_handler)
        assert hub.ready is True
        assert hub.hub_type == HubType.BOOST
        assert service.get_hub(discovered.address) is hub
        assert service.get_current_state(discovered.address) == HubConnectionState.CONNECTED

        await service.disconnect_all()

    @pytest.mark.asyncio
    async def test_initial_requests_reach_the_client(self, service):
        client = make_client()

        with patch("servers.lego_service.BleakClient", return_value=client):
            await service.connect(make_discovered())
        await service.disconnect_all()

        written = [c.args[1] for c in client.write_gatt_char.await_args_list]
        assert written[0] == bytes([0x05, 0x00, 0x01, 0x02, 0x02])
        assert written[-1] == bytes([0x04, 0x00, 0x02, 0x01])
        assert len(written) == 7

    @pytest.mark.asyncio
    async def test_connect_failure_leaves_no_hub(self, service):
        client = make_client(connected=False)
        client.connect.side_effect = OSError("adapter off")
        discovered = make_discovered()

        with patch("servers.lego_service.BleakClient", return_value=client):
            with pytest.raises(OSError):
                await service.connect(discovered)

        assert service.get_hub(discovered.address) is None
        assert service.connected_hubs == []

    @pytest.mark.asyncio
    async def test_link_loss_during_initialize_fails_connect(self, service):
        """Test connect raises when the hub drops before it becomes ready."""
        client = make_client(connected=False)
        discovered = make_discovered()
        callbacks = {}

        def build_client(device, disconnected_callback):
            callbacks["disconnected"] = disconnected_callback
            return client

        async def start_notify(char_uuid, handler):
            asyncio.get_running_loop().call_soon(callbacks["disconnected"], client)

        client.start_notify.side_effect = start_notify

        with patch("servers.lego_service.BleakClient", side_effect=build_client):
            with pytest.raises(HubNotConnectedError):
                await service.connect(discovered)

        assert service.get_hub(discovered.address) is None
        assert service.connected_hubs == []

    @pytest.mark.asyncio
    async def test_capacity_limit(self, service):
        service.max_connections = 0

        with pytest.raises(HubCapacityError):
            await service.connect(make_discovered())

    @pytest.mark.asyncio
    async def test_link_loss_marks_hub_disconnected(self, service):
        """Test the bleak disconnect callback tears the hub down."""
        client = make_client()
        discovered = make_discovered()

        with patch("servers.lego_service.BleakClient", return_value=client) as client_cls:
            hub = await service.connect(discovered)
        seen = []
        hub.events.subscribe(HubEvent.DISCONNECTED, lambda: seen.append(True))

        client_cls.call_args.kwargs["disconnected_callback"](client)
        await asyncio.sleep(0)

        assert seen == [True]
        assert hub.connected is False
        assert service.get_hub(discovered.address) is None

    @pytest.mark.asyncio
    async def test_disconnect(self, service):
        client = make_client()
        discovered = make_discovered()

        with patch("servers.lego_service.BleakClient", return_value=client):
            hub = await service.connect(discovered)

        await service.disconnect(discovered.address)

        client.disconnect.assert_awaited_once()
        assert hub.connected is False
        assert service.connected_hubs == []

    @pytest.mark.asyncio
    async def test_disconnect_unknown_address(self, service):
        await service.disconnect("11:22:33:44:55:66")

        assert service.connected_hubs == []

    @pytest.mark.asyncio
    async def test_scan_skips_connected_hubs(self, service):
        client = make_client()
        first = make_discovered("00:00:00:00:00:01")
        second = make_discovered("00:00:00:00:00:02")

        with patch("servers.lego_service.BleakClient", return_value=client):
            await service.connect(first)
        service.scanner.discover = AsyncMock(return_value=[first, second])

        found = await service.scan_for_devices(timeout=0.1)

        assert found == [second]
        await service.disconnect_all()

    @pytest.mark.asyncio
    async def test_scan_and_connect_respects_capacity(self, service):
        service.max_connections = 1
        service.scanner.discover = AsyncMock(return_value=[
            make_discovered("00:00:00:00:00:01"),
            make_discovered("00:00:00:00:00:02"),
        ])

        with patch("servers.lego_service.BleakClient", side_effect=lambda *a, **kw: make_client()):
            hubs = await service.scan_and_connect(timeout=0.1)

        assert [hub.address for hub in hubs] == ["00:00:00:00:00:01"]
        await service.disconnect_all()
