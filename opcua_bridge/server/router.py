"""
Command routing.

Classifies each command against the device state and the resource's
address kind, and rejects combinations the core cannot serve before
any network I/O happens.
"""

from enum import Enum
from typing import Optional

from ..errors import (
    NotFoundError,
    OperationError,
    ResourcePermissionError,
    UnsupportedOperationError,
)
from ..metadata import DeviceService
from ..types import (
    AdminState,
    DataNode,
    Device,
    MethodNode,
    ResourceAddress,
    ResourceDescriptor,
)


class CommandKind(Enum):
    READ = "read"
    WRITE = "write"
    METHOD = "method"


class CommandRouter:
    """
    Stateless per-call classification of commands for one device.

    Checks run in a fixed priority order: device availability, resource
    existence, visibility, then address kind against the command kind.
    """

    def __init__(self, device_name: str, device_service: DeviceService):
        self.device_name = device_name
        self._device_service = device_service

    def check_device(self) -> Device:
        """
        Look up the device and make sure it accepts commands.

        Raises:
            NotFoundError: If the device is unknown
            OperationError: If the device is locked or down
        """
        device = self._device_service.get_device_by_name(self.device_name)
        if not device.is_available:
            reason = "locked" if device.admin_state == AdminState.LOCKED else "down"
            raise OperationError(f"device '{self.device_name}' is {reason}")
        return device

    def find_resource(self, resource_name: str) -> ResourceDescriptor:
        """
        Raises:
            NotFoundError: If the device has no such resource
        """
        descriptor, found = self._device_service.device_resource(self.device_name, resource_name)
        if not found or descriptor is None:
            raise NotFoundError(
                f"resource '{resource_name}' not found on device '{self.device_name}'"
            )
        return descriptor

    def route(
        self,
        kind: CommandKind,
        resource_name: str,
        address: Optional[ResourceAddress],
        is_hidden: bool
    ) -> None:
        """
        Reject a command whose resource cannot serve the command kind.

        A resource without any address attribute passes; the read and
        write paths report it as an invalid address and the method path
        does the same.

        Raises:
            ResourcePermissionError: If the resource is hidden
            UnsupportedOperationError: If the address kind does not match
        """
        if is_hidden:
            raise ResourcePermissionError(f"resource '{resource_name}' is hidden")

        if kind in (CommandKind.READ, CommandKind.WRITE) and isinstance(address, MethodNode):
            raise UnsupportedOperationError(
                f"resource '{resource_name}' is a method and does not support {kind.value}"
            )

        if kind == CommandKind.METHOD and isinstance(address, DataNode):
            raise UnsupportedOperationError(
                f"resource '{resource_name}' is a data node and cannot be called"
            )

    def route_method(self, resource_name: str) -> tuple[Device, ResourceDescriptor]:
        """
        Run the full method-path classification for a resource name.

        Raises:
            NotFoundError, OperationError, ResourcePermissionError,
            UnsupportedOperationError
        """
        device = self.check_device()
        descriptor = self.find_resource(resource_name)
        self.route(CommandKind.METHOD, descriptor.name, descriptor.address, descriptor.is_hidden)
        return device, descriptor
