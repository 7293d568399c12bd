"""Test doubles for the OPC UA bridge."""

from .fake_client import FakeOpcuaClient, FakeSubscription
from .fake_device_service import FakeDeviceService

__all__ = ["FakeOpcuaClient", "FakeSubscription", "FakeDeviceService"]
