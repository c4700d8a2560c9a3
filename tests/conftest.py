"""
Pytest configuration and shared fixtures for the hub controller tests.

Hubs are driven with a recording transport instead of a BLE connection; the
API tests swap the LegoService for a mock through FastAPI dependency
overrides.
"""

import os
from typing import Generator, List
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app
os.environ["REQUIRE_AUTH"] = "true"
os.environ["API_KEYS"] = "test-api-key-12345"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:8080"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["READY_DELAY"] = "0.01"

from hubs.hub import Hub  # noqa: E402
from hubs.registry import HubType  # noqa: E402


class RecordingTransport:
    """Stands in for BleakTransport and keeps every frame written to it."""

    def __init__(self):
        self.writes: List[bytes] = []

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))


@pytest.fixture
def test_api_key() -> str:
    """Test API key fixture."""
    return "test-api-key-12345"


@pytest.fixture
def invalid_api_key() -> str:
    """Invalid API key fixture."""
    return "invalid-key-67890"


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def hub(transport) -> Hub:
    """A connected Boost hub with a recording transport."""
    return Hub(name="Move Hub", address="00:16:53:aa:bb:cc", hub_type=HubType.BOOST, transport=transport)


@pytest.fixture
def technic_hub(transport) -> Hub:
    return Hub(name="Technic Hub", address="90:84:2b:00:00:01", hub_type=HubType.TECHNIC, transport=transport)


@pytest.fixture
def mock_lego_service():
    """Mock LegoService so the API never touches Bluetooth."""
    service = MagicMock()
    service.connected_hubs = []
    service.get_hub = MagicMock(return_value=None)
    service.scan_and_connect = AsyncMock(return_value=[])
    service.disconnect = AsyncMock()
    service.disconnect_all = AsyncMock()
    return service


@pytest.fixture
def client(mock_lego_service) -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI app.

    Uses TestClient for synchronous tests.
    """
    from webservice.hub_service import app, get_service

    app.dependency_overrides[get_service] = lambda: mock_lego_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
