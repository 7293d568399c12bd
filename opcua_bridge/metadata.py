"""
Device and resource metadata lookup.

The core consults the device framework's metadata service through the
DeviceService protocol. StaticDeviceService is an in-memory
implementation built from the service configuration file.
"""

import asyncio
from typing import Optional, Protocol

from .errors import ConfigurationError, NotFoundError
from .opcua_logging import log_info
from .types import AsyncValues, Device, ResourceDescriptor


class DeviceService(Protocol):
    """Metadata collaborator of the core."""

    def get_device_by_name(self, name: str) -> Device:
        """Raises NotFoundError for unknown devices."""
        ...

    def device_resource(self, device_name: str, resource_name: str) -> tuple[Optional[ResourceDescriptor], bool]:
        ...

    def async_values(self) -> asyncio.Queue:
        """Queue receiving AsyncValues produced by subscriptions."""
        ...


class StaticDeviceService:
    """
    DeviceService backed by in-memory device and resource tables.
    """

    def __init__(self):
        self._devices: dict[str, Device] = {}
        self._resources: dict[str, dict[str, ResourceDescriptor]] = {}
        self._async_values: asyncio.Queue[AsyncValues] = asyncio.Queue()

    def add_device(self, device: Device, resources: Optional[list[ResourceDescriptor]] = None) -> None:
        self._devices[device.name] = device
        self._resources[device.name] = {r.name: r for r in resources or []}

    def update_device(self, device: Device) -> None:
        if device.name not in self._devices:
            raise NotFoundError(f"device '{device.name}' not found")
        self._devices[device.name] = device

    def remove_device(self, name: str) -> None:
        self._devices.pop(name, None)
        self._resources.pop(name, None)

    def device_names(self) -> list[str]:
        return list(self._devices)

    def get_device_by_name(self, name: str) -> Device:
        try:
            return self._devices[name]
        except KeyError:
            raise NotFoundError(f"device '{name}' not found")

    def device_resource(self, device_name: str, resource_name: str) -> tuple[Optional[ResourceDescriptor], bool]:
        descriptor = self._resources.get(device_name, {}).get(resource_name)
        return descriptor, descriptor is not None

    def async_values(self) -> asyncio.Queue:
        return self._async_values

    @classmethod
    def from_config(cls, config: dict) -> 'StaticDeviceService':
        """
        Build the service from a loaded service configuration.

        Raises:
            ConfigurationError: If a device or resource entry is invalid
        """
        service = cls()
        for entry in config.get("devices", []):
            device = Device.from_dict(entry)
            resources = [ResourceDescriptor.from_dict(r) for r in entry.get("resources", [])]

            names = [r.name for r in resources]
            if len(names) != len(set(names)):
                raise ConfigurationError(f"Device '{device.name}' has duplicate resource names")

            service.add_device(device, resources)
            log_info(f"Registered device '{device.name}' with {len(resources)} resource(s)")
        return service
