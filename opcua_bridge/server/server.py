"""
Per-device command processing.

OpcuaServer is the entry point the device framework calls for one
device: reads, writes, method calls, session management and the
subscription listener all go through it.
"""

import asyncio
from typing import Any, Optional

from asyncua import ua

from ..client import ClientFactory, EndpointDiscovery
from ..config import DriverConfig
from ..errors import ConnectionFailedError
from ..metadata import DeviceService
from ..opcua_logging import log_debug, log_info
from ..security import ClientCertificateManager
from ..types import CommandRequest, CommandValue, Device
from .method_handler import build_call_request, invocation_error, method_result, parse_method_address
from .read_handler import build_read_parameters, build_read_set, expand_results
from .router import CommandKind, CommandRouter
from .session import SessionManager
from .subscription import SubscriptionManager
from .write_handler import build_write_parameters, check_write_results, prepare_write


class OpcuaServer:
    """
    Command-processing engine for one OPC UA device.

    Every entry point revalidates the device state and the connection
    on its own path; a locked or down device is rejected before any
    network I/O.
    """

    def __init__(
        self,
        device_name: str,
        device_service: DeviceService,
        client_factory: Optional[ClientFactory] = None,
        endpoint_discovery: Optional[EndpointDiscovery] = None,
        certificate_manager: Optional[ClientCertificateManager] = None
    ):
        self.device_name = device_name
        self.config: Optional[DriverConfig] = None

        self.router = CommandRouter(device_name, device_service)
        self.session = SessionManager(client_factory, endpoint_discovery, certificate_manager)
        self.subscriptions = SubscriptionManager(device_name, device_service, self.session)

    def _load_config(self, device: Device) -> DriverConfig:
        self.config = DriverConfig.from_protocol_properties(device.protocols)
        return self.config

    async def connect(self) -> None:
        """
        Establish the session if it is not connected.

        Raises:
            NotFoundError: If the device is unknown
            OperationError: If the device is locked or down
            ConfigurationError: If the endpoint configuration is unusable
            ConnectionFailedError: If connecting fails
        """
        config = self._load_config(self.router.check_device())
        async with self.session.session():
            await self.session.ensure_connected(config)

    async def process_read_commands(self, requests: list[CommandRequest]) -> list[Optional[CommandValue]]:
        """
        Read a batch of resources with one Read request.

        Returns:
            One entry per request, in request order; None where the
            result could not be decoded
        """
        config = self._load_config(self.router.check_device())
        for request in requests:
            self.router.route(CommandKind.READ, request.resource_name, request.address, request.is_hidden)

        nodes, index_map = build_read_set(requests)
        if not nodes:
            return []

        async with self.session.session():
            await self.session.ensure_connected(config)
            raw_results = await self.session.read(build_read_parameters(nodes))

        log_debug(f"Read {len(nodes)} node(s) for {len(requests)} request(s) on '{self.device_name}'")
        return expand_results(requests, raw_results, index_map)

    async def process_write_commands(self, requests: list[CommandRequest], values: list[CommandValue]) -> None:
        """
        Validate and write a batch of values with one Write request.

        Raises:
            WriteError: If the server rejected any item
        """
        config = self._load_config(self.router.check_device())
        for request in requests:
            self.router.route(CommandKind.WRITE, request.resource_name, request.address, request.is_hidden)

        items = prepare_write(requests, values)
        if not items:
            return

        async with self.session.session():
            await self.session.ensure_connected(config)
            results = await self.session.write(build_write_parameters(items))

        check_write_results(items, results)

    async def process_method_call(self, resource_name: str, parameters: Optional[list[Any]] = None) -> Any:
        """
        Invoke the method a resource points to.

        Returns:
            The first output argument's value, or None
        """
        device, descriptor = self.router.route_method(resource_name)
        config = self._load_config(device)
        object_node, method_node = parse_method_address(descriptor)
        request = build_call_request(object_node, method_node, parameters)
        method_id = str(method_node)

        async with self.session.session():
            await self.session.ensure_connected(config)
            try:
                result = await self.session.call(request)
            except ConnectionFailedError:
                raise
            except (OSError, asyncio.TimeoutError, ua.UaError) as e:
                raise invocation_error(method_id, e) from e

        return method_result(method_id, result)

    async def start_subscription_listener(self) -> None:
        """
        Subscribe to the configured resources and start dispatching changes.

        Raises:
            NotFoundError, OperationError, ConfigurationError,
            ConnectionFailedError
        """
        config = self._load_config(self.router.check_device())
        if not config.resources:
            log_info(f"No resources to monitor on '{self.device_name}'")
            return

        async with self.session.session():
            await self.session.ensure_connected(config)
            await self.subscriptions.configure(config)
        self.subscriptions.start_listener()

    async def cleanup(self, recreate_context: bool) -> None:
        """Stop the subscription listener and close the session."""
        await self.subscriptions.stop()
        await self.session.cleanup(recreate_context)
        log_info(f"Session of '{self.device_name}' cleaned up (recreate={recreate_context})")
