"""
Multi-device OPC UA driver.

Keeps one OpcuaServer per device and maps the device framework's
lifecycle callbacks (add, update, remove, stop) onto session teardown
and subscription restarts.
"""

from typing import Any, Optional

from .client import ClientFactory, EndpointDiscovery
from .errors import BridgeError
from .metadata import DeviceService, StaticDeviceService
from .opcua_logging import get_logger, log_info, log_warn
from .security import ClientCertificateManager
from .server import OpcuaServer
from .types import CommandRequest, CommandValue


class OpcuaDriver:
    """
    Routes framework commands to the per-device command engines.

    Servers are created on first use. A device update recreates the
    session and restarts its subscription; a removal tears it down.
    """

    def __init__(
        self,
        device_service: DeviceService,
        client_factory: Optional[ClientFactory] = None,
        endpoint_discovery: Optional[EndpointDiscovery] = None,
        certificate_manager: Optional[ClientCertificateManager] = None
    ):
        self.device_service = device_service
        self._client_factory = client_factory
        self._endpoint_discovery = endpoint_discovery
        self._certificate_manager = certificate_manager
        self._servers: dict[str, OpcuaServer] = {}

    @classmethod
    def from_config(cls, config: dict, **kwargs) -> 'OpcuaDriver':
        """
        Build a driver and its static metadata service from a loaded
        service configuration (see config.load_config).
        """
        service = config.get("service", {})
        get_logger().set_level(service.get("log_level", "INFO"))

        if "certificate_manager" not in kwargs:
            kwargs["certificate_manager"] = ClientCertificateManager(
                service.get("certs_dir", "certs"),
                service.get("application_uri", "urn:opcua-bridge:client"),
            )
        return cls(StaticDeviceService.from_config(config), **kwargs)

    @property
    def device_names(self) -> list[str]:
        return list(self._servers)

    def server_for(self, device_name: str) -> OpcuaServer:
        server = self._servers.get(device_name)
        if server is None:
            server = OpcuaServer(
                device_name,
                self.device_service,
                client_factory=self._client_factory,
                endpoint_discovery=self._endpoint_discovery,
                certificate_manager=self._certificate_manager,
            )
            self._servers[device_name] = server
        return server

    # ------------------------------------------------------------
    # commands
    # ------------------------------------------------------------

    async def handle_read_commands(
        self,
        device_name: str,
        requests: list[CommandRequest]
    ) -> list[Optional[CommandValue]]:
        return await self.server_for(device_name).process_read_commands(requests)

    async def handle_write_commands(
        self,
        device_name: str,
        requests: list[CommandRequest],
        values: list[CommandValue]
    ) -> None:
        await self.server_for(device_name).process_write_commands(requests, values)

    async def handle_method_call(
        self,
        device_name: str,
        resource_name: str,
        parameters: Optional[list[Any]] = None
    ) -> Any:
        return await self.server_for(device_name).process_method_call(resource_name, parameters)

    # ------------------------------------------------------------
    # device lifecycle
    # ------------------------------------------------------------

    async def start(self, device_names: list[str]) -> None:
        """Start subscriptions for the given devices. Failures are logged."""
        for name in device_names:
            await self.add_device(name)

    async def add_device(self, device_name: str) -> None:
        server = self.server_for(device_name)
        await self._start_listener(server)
        log_info(f"Device '{device_name}' added")

    async def update_device(self, device_name: str) -> None:
        """Recreate the session of an updated device and resubscribe."""
        server = self.server_for(device_name)
        await server.cleanup(True)
        await self._start_listener(server)
        log_info(f"Device '{device_name}' updated")

    async def remove_device(self, device_name: str) -> None:
        server = self._servers.pop(device_name, None)
        if server is None:
            return
        await server.cleanup(False)
        log_info(f"Device '{device_name}' removed")

    async def stop(self) -> None:
        """Tear down every device session."""
        for name in list(self._servers):
            await self.remove_device(name)
        log_info("OPC UA driver stopped")

    async def _start_listener(self, server: OpcuaServer) -> None:
        try:
            await server.start_subscription_listener()
        except BridgeError as e:
            log_warn(f"Subscription listener of '{server.device_name}' not started: {e}")
