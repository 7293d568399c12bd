"""Pytest configuration and fixtures for OPC UA bridge tests."""

import sys
from pathlib import Path

# Add parent directory to Python path so we can import opcua_bridge
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from opcua_bridge.client import ConnState
from opcua_bridge.opcua_logging import OpcuaLogger
from opcua_bridge.server import OpcuaServer

from tests.doubles import FakeDeviceService, FakeOpcuaClient
from tests.doubles.devices import DEVICE_NAME, RESOURCES, endpoint_description, make_device


@pytest.fixture(autouse=True)
def reset_logger():
    """Each test starts with the fallback logger."""
    OpcuaLogger.reset()
    yield
    OpcuaLogger.reset()


@pytest.fixture
def device_service() -> FakeDeviceService:
    service = FakeDeviceService()
    service.add_device(make_device(), RESOURCES)
    return service


@pytest.fixture
def fake_client() -> FakeOpcuaClient:
    return FakeOpcuaClient(ConnState.CLOSED)


@pytest.fixture
def discovery():
    discovered = []

    async def _discover(url: str):
        discovered.append(url)
        return [endpoint_description()]

    _discover.discovered = discovered
    return _discover


@pytest.fixture
def server(device_service, fake_client, discovery) -> OpcuaServer:
    return OpcuaServer(
        DEVICE_NAME,
        device_service,
        client_factory=lambda url, security: fake_client,
        endpoint_discovery=discovery,
    )
