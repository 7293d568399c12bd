"""Tests for command classification."""

import pytest

from opcua_bridge.errors import (
    NotFoundError,
    OperationError,
    ResourcePermissionError,
    UnsupportedOperationError,
)
from opcua_bridge.server import CommandKind, CommandRouter
from opcua_bridge.types import AdminState, DataNode, MethodNode, OperatingState

from tests.doubles.devices import DEVICE_NAME, make_device

DATA = DataNode("ns=2;i=1")
METHOD = MethodNode("ns=2;s=m", "ns=2;s=o")


@pytest.fixture
def router(device_service):
    return CommandRouter(DEVICE_NAME, device_service)


class TestDeviceChecks:

    def test_unknown_device(self, device_service):
        with pytest.raises(NotFoundError):
            CommandRouter("Other", device_service).check_device()

    def test_locked(self, router, device_service):
        device_service.update_device(make_device(admin_state=AdminState.LOCKED))
        with pytest.raises(OperationError, match="is locked"):
            router.check_device()

    def test_down(self, router, device_service):
        device_service.update_device(make_device(operating_state=OperatingState.DOWN))
        with pytest.raises(OperationError, match="is down"):
            router.check_device()

    def test_available(self, router):
        assert router.check_device().name == DEVICE_NAME


class TestRoute:

    @pytest.mark.parametrize("kind", list(CommandKind))
    def test_hidden_rejected_first(self, router, kind):
        with pytest.raises(ResourcePermissionError):
            router.route(kind, "r", METHOD if kind != CommandKind.METHOD else DATA, True)

    @pytest.mark.parametrize("kind", [CommandKind.READ, CommandKind.WRITE])
    def test_method_on_data_path(self, router, kind):
        with pytest.raises(UnsupportedOperationError):
            router.route(kind, "r", METHOD, False)

    def test_data_on_method_path(self, router):
        with pytest.raises(UnsupportedOperationError):
            router.route(CommandKind.METHOD, "r", DATA, False)

    @pytest.mark.parametrize("kind,address", [
        (CommandKind.READ, DATA),
        (CommandKind.WRITE, DATA),
        (CommandKind.METHOD, METHOD),
        (CommandKind.READ, None),
    ])
    def test_dispatch(self, router, kind, address):
        router.route(kind, "r", address, False)


class TestRouteMethod:

    def test_lock_checked_before_lookup(self, router, device_service):
        device_service.update_device(make_device(admin_state=AdminState.LOCKED))
        with pytest.raises(OperationError):
            router.route_method("Missing")
        assert device_service.resource_lookups == []

    def test_not_found(self, router):
        with pytest.raises(NotFoundError):
            router.route_method("Missing")

    def test_hidden(self, router):
        with pytest.raises(ResourcePermissionError):
            router.route_method("HiddenMethod")

    def test_node_resource(self, router):
        with pytest.raises(UnsupportedOperationError):
            router.route_method("Counter")

    def test_method_resource(self, router):
        device, descriptor = router.route_method("Square")
        assert device.name == DEVICE_NAME
        assert descriptor.address == MethodNode("ns=2;s=square", "ns=2;s=main")
