"""
Subscription manager.

This module handles:
- Building monitored items for the configured resources
- The client handle -> resource name side table
- The background listener forwarding data changes as asynchronous values
"""

import asyncio
import itertools
from typing import Any, Optional

from asyncua import ua

from ..client import SubscriptionParameters
from ..config import DriverConfig
from ..errors import BridgeError, InvalidAddressError, NotFoundError
from ..metadata import DeviceService
from ..opcua_logging import log_debug, log_error, log_info, log_warn
from ..types import AsyncValues, CommandRequest, MethodNode, MonitoredItem, NodeAddress
from .read_handler import decode_data_value, is_good, resolve_node_address
from .session import SessionManager


class SubscriptionManager:
    """
    Maintains the data change subscription of one device.

    Each configured resource becomes one monitored item whose client
    handle is remembered in a side table; notifications are resolved
    through that table and decoded with the resource's declared type.
    """

    def __init__(self, device_name: str, device_service: DeviceService, session: SessionManager):
        self.device_name = device_name
        self._device_service = device_service
        self._session = session

        self._handles: dict[int, str] = {}
        self._handle_counter = itertools.count(1)
        self._notifications: asyncio.Queue = asyncio.Queue()
        self._subscription = None
        self._listener: Optional[asyncio.Task] = None
        self.skipped: list[str] = []

    @property
    def monitored_items(self) -> list[MonitoredItem]:
        return [MonitoredItem(name, handle) for handle, name in self._handles.items()]

    @property
    def is_listening(self) -> bool:
        return self._listener is not None and not self._listener.done()

    def resource_for_handle(self, client_handle: int) -> Optional[str]:
        return self._handles.get(client_handle)

    # ------------------------------------------------------------
    # setup
    # ------------------------------------------------------------

    def build_monitored_items(self, resource_names: list[str]) -> list[ua.MonitoredItemCreateRequest]:
        """
        Create monitored item requests for the resolvable resources.

        The handle table is rebuilt. Unknown, method-addressed and
        unparseable resources are logged and recorded in ``skipped``.
        """
        self._handles.clear()
        self.skipped = []
        requests = []

        for name in resource_names:
            try:
                node = self._resolve_resource_node(name)
            except BridgeError as e:
                log_warn(f"Skipping monitored item '{name}': {e}")
                self.skipped.append(name)
                continue

            handle = next(self._handle_counter)
            requests.append(_monitored_item_request(node, handle))
            self._handles[handle] = name
            log_debug(f"Monitoring '{name}' ({node}) with client handle {handle}")

        return requests

    def _resolve_resource_node(self, name: str) -> NodeAddress:
        descriptor, found = self._device_service.device_resource(self.device_name, name)
        if not found or descriptor is None:
            raise NotFoundError(f"resource '{name}' not found")
        if isinstance(descriptor.address, MethodNode):
            raise InvalidAddressError(f"resource '{name}' is a method")
        return resolve_node_address(CommandRequest.from_descriptor(descriptor))

    async def configure(self, config: DriverConfig) -> None:
        """
        Create the subscription and register the configured resources.

        A subscription left from an earlier configure is deleted first so
        its monitored items stop reporting. The monitored item batch is
        submitted in one call, and skipped entirely when nothing is
        resolvable.
        """
        await self._delete_subscription()
        requests = self.build_monitored_items(config.resources)

        params = SubscriptionParameters(publishing_interval_ms=config.publishing_interval_ms)
        self._subscription = await self._session.subscribe(params, self._notifications)

        if requests:
            await self._session.create_monitored_items(self._subscription, requests)

        log_info(
            f"Subscription for '{self.device_name}' monitors {len(requests)} item(s), "
            f"skipped {len(self.skipped)}"
        )

    def start_listener(self) -> None:
        if self.is_listening:
            return
        self._listener = asyncio.create_task(self._listen())

    async def stop(self) -> None:
        """Stop the listener, drop the subscription and clear the handle table."""
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None

        await self._delete_subscription()
        self._handles.clear()

    async def _delete_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        try:
            await subscription.delete()
        except (OSError, asyncio.TimeoutError, ua.UaError, BridgeError) as e:
            log_debug(f"Could not delete subscription: {e}")

    # ------------------------------------------------------------
    # notification dispatch
    # ------------------------------------------------------------

    async def _listen(self) -> None:
        while True:
            notification = await self._notifications.get()
            try:
                await self.handle_data_change(notification)
            except Exception as e:
                log_error(f"Failed to dispatch data change notification: {e}")

    async def handle_data_change(self, notification: ua.DataChangeNotification) -> None:
        """Dispatch every item of a notification; failed items are dropped."""
        for item in notification.MonitoredItems or []:
            name = self._handles.get(item.ClientHandle)
            if name is None:
                log_debug(f"Dropping notification for unknown client handle {item.ClientHandle}")
                continue

            data_value = item.Value
            if data_value is None or not is_good(data_value):
                status = data_value.StatusCode if data_value is not None else None
                log_warn(f"Dropping notification for '{name}' with status {status}")
                continue

            try:
                await self.on_incoming_data_received(data_value, name)
            except BridgeError as e:
                log_warn(f"Dropping notification for '{name}': {e}")

    async def on_incoming_data_received(self, reading: Any, resource_name: str) -> None:
        """
        Decode one reading for a resource and push it as asynchronous values.

        Args:
            reading: A DataValue, Variant or plain value
            resource_name: Resource the reading belongs to

        Raises:
            NotFoundError: If the resource is unknown
            TypeMismatchError: If the reading cannot be coerced
            ValidationError: If the reading is out of range
        """
        descriptor, found = self._device_service.device_resource(self.device_name, resource_name)
        if not found or descriptor is None:
            raise NotFoundError(f"resource '{resource_name}' not found")

        if not isinstance(reading, ua.DataValue):
            reading = ua.DataValue(reading if isinstance(reading, ua.Variant) else ua.Variant(reading))

        request = CommandRequest.from_descriptor(descriptor)
        value = decode_data_value(request, reading)

        await self._device_service.async_values().put(
            AsyncValues(device_name=self.device_name, command_values=[value])
        )


def _monitored_item_request(node: NodeAddress, handle: int) -> ua.MonitoredItemCreateRequest:
    rv = ua.ReadValueId()
    rv.NodeId = node.to_node_id()
    rv.AttributeId = ua.AttributeIds.Value

    mparams = ua.MonitoringParameters()
    mparams.ClientHandle = handle
    mparams.SamplingInterval = 0
    mparams.QueueSize = 1
    mparams.DiscardOldest = True

    request = ua.MonitoredItemCreateRequest()
    request.ItemToMonitor = rv
    request.MonitoringMode = ua.MonitoringMode.Reporting
    request.RequestedParameters = mparams
    return request
