import asyncio
from enum import Enum
from typing import Callable, Dict, List, Optional

from bleak import BleakClient

from config import get_settings
from errors import HubCapacityError, HubNotConnectedError
from hubs.hub import Hub
from servers.bluetooth_scanner import DiscoveredHub, HubScanner
from utils.logging_config import get_logger

logger = get_logger(__name__)

FLUSH_TIMEOUT = 1.0


class HubConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class BleakTransport:
    """
    Writes frames to the hub characteristic in the order they were produced.

    write() only queues; a background task drains the queue so protocol code
    never waits on the radio.
    """

    def __init__(self, client: BleakClient, char_uuid: str):
        self.client = client
        self.char_uuid = char_uuid
        self._queue: asyncio.Queue = asyncio.Queue()
        self._writer_task: Optional[asyncio.Task] = None

    def start(self):
        if self._writer_task is None:
            self._writer_task = asyncio.create_task(self._process_writes())

    def write(self, data: bytes) -> None:
        self._queue.put_nowait(bytes(data))

    async def _process_writes(self):
        while True:
            data = await self._queue.get()
            try:
                await self.client.write_gatt_char(self.char_uuid, data, response=True)
            except Exception as e:
                logger.error(f"Error writing {data.hex(' ')}: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    async def flush(self, timeout: float = FLUSH_TIMEOUT):
        """Wait until every queued frame has been handed to bleak."""
        try:
            await asyncio.wait_for(self._queue.join(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{self._queue.qsize()} frames still queued after {timeout}s")

    async def close(self):
        if self._writer_task is not None:
            self._writer_task.cancel()
            try:
                await self._writer_task
            except asyncio.CancelledError:
                pass
            self._writer_task = None


class ConnectedHub:
    def __init__(self, discovered: DiscoveredHub, hub: Hub):
        self.discovered = discovered
        self.hub = hub
        self.state = HubConnectionState.DISCONNECTED
        self._state_callbacks: List[Callable[[HubConnectionState], None]] = []
        self.client: Optional[BleakClient] = None
        self.transport: Optional[BleakTransport] = None

    def add_state_callback(self, callback):
        self._state_callbacks.append(callback)

    def remove_state_callback(self, callback):
        if callback in self._state_callbacks:
            self._state_callbacks.remove(callback)

    def update_state(self, new_state: HubConnectionState):
        self.state = new_state
        for callback in self._state_callbacks:
            callback(new_state)


class LegoService:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(LegoService, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._initialized = True
        self._connected_hubs: Dict[str, ConnectedHub] = {}
        self.scanner = HubScanner()
        self.max_connections = get_settings().max_hub_connections

    @property
    def can_connect_more(self) -> bool:
        return len(self._connected_hubs) < self.max_connections

    @property
    def connected_hubs(self) -> List[Hub]:
        return [entry.hub for entry in self._connected_hubs.values()]

    def get_hub(self, address: str) -> Optional[Hub]:
        entry = self._connected_hubs.get(address)
        return entry.hub if entry else None

    def get_current_state(self, address: str) -> HubConnectionState:
        entry = self._connected_hubs.get(address)
        return entry.state if entry else HubConnectionState.DISCONNECTED

    async def scan_for_devices(self, timeout: Optional[float] = None) -> List[DiscoveredHub]:
        """Scan for LEGO hubs we are not connected to yet."""
        found = await self.scanner.discover(timeout)
        return [hub for hub in found if hub.address not in self._connected_hubs]

    async def connect(self, discovered: DiscoveredHub) -> Hub:
        """Connect to a discovered hub and bring it to the ready state."""
        if not self.can_connect_more:
            raise HubCapacityError(f"Maximum number of connections ({self.max_connections}) reached")

        settings = get_settings()
        address = discovered.address
        hub = Hub(name=discovered.name, address=address, hub_type=discovered.hub_type)
        entry = ConnectedHub(discovered, hub)
        self._connected_hubs[address] = entry
        entry.update_state(HubConnectionState.CONNECTING)

        try:
            logger.info(f"Connecting to {discovered.name} ({address})...")
            client = BleakClient(
                discovered.device,
                disconnected_callback=lambda _client: self._on_client_disconnected(address),
            )
            entry.client = client
            await client.connect()

            entry.transport = BleakTransport(client, settings.lego_char_uuid)
            entry.transport.start()
            hub.attach_transport(entry.transport)
            await client.start_notify(settings.lego_char_uuid, hub.notification_handler)

            entry.update_state(HubConnectionState.CONNECTED)
            await hub.initialize()
            if not hub.ready:
                raise HubNotConnectedError(f"Hub {address} disconnected during initialization")
            logger.info(f"Successfully connected to {discovered.name}")
            return hub

        except Exception as e:
            logger.error(f"Connection error for {address}: {e}", exc_info=True)
            entry.update_state(HubConnectionState.ERROR)
            self._connected_hubs.pop(address, None)
            hub.transport = None
            if entry.transport is not None:
                await entry.transport.close()
            if entry.client is not None and entry.client.is_connected:
                await entry.client.disconnect()
            raise

    async def scan_and_connect(self, timeout: Optional[float] = None) -> List[Hub]:
        """Scan, then connect to as many new hubs as capacity allows."""
        hubs = []
        for discovered in await self.scan_for_devices(timeout):
            if not self.can_connect_more:
                logger.warning(f"Skipping {discovered.address}: connection limit reached")
                break
            hubs.append(await self.connect(discovered))
        return hubs

    def _on_client_disconnected(self, address: str):
        entry = self._handle_disconnect(address)
        if entry is not None and entry.transport is not None:
            asyncio.get_running_loop().create_task(entry.transport.close())

    def _handle_disconnect(self, address: str) -> Optional[ConnectedHub]:
        entry = self._connected_hubs.pop(address, None)
        if entry is None:
            return None
        logger.info(f"Hub {address} disconnected")
        entry.hub.handle_disconnected()
        entry.update_state(HubConnectionState.DISCONNECTED)
        return entry

    async def disconnect(self, address: str):
        """Ask a hub to disconnect, then drop the BLE link."""
        entry = self._connected_hubs.get(address)
        if entry is None:
            return

        try:
            if entry.hub.connected:
                entry.hub.disconnect()
            if entry.transport is not None:
                await entry.transport.flush()
            if entry.client is not None:
                await entry.client.disconnect()
        except Exception as e:
            logger.error(f"Disconnect error for {address}: {e}", exc_info=True)
        finally:
            self._handle_disconnect(address)
            if entry.transport is not None:
                await entry.transport.close()

    async def disconnect_all(self):
        """Disconnect from all connected hubs."""
        for address in list(self._connected_hubs.keys()):
            await self.disconnect(address)
