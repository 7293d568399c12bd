"""
asyncua implementation of the protocol client capability.

Wraps asyncua.Client behind the OpcuaClient interface and provides the
default endpoint discovery used when initializing a session.
"""

import asyncio
from typing import Optional

from asyncua import Client, ua
from asyncua.client.ua_client import UASocketProtocol

from ..opcua_logging import log_debug, log_warn
from ..security import SecuritySettings
from .interface import ConnState, SubscriptionParameters

DEFAULT_TIMEOUT_S = 4.0


class _QueueingHandler:
    """
    Subscription handler forwarding data changes to an asyncio queue.

    asyncua delivers one callback per monitored item; each one is
    re-wrapped into a single-item DataChangeNotification.
    """

    def __init__(self, notifications: asyncio.Queue):
        self._notifications = notifications

    def datachange_notification(self, node, val, data) -> None:
        notification = ua.DataChangeNotification(MonitoredItems=[data.monitored_item])
        self._notifications.put_nowait(notification)

    def status_change_notification(self, status) -> None:
        log_warn(f"Subscription status changed: {status}")


class AsyncuaClient:
    """
    OpcuaClient backed by asyncua.

    Tracks its own connection state; an open session whose socket has
    been lost reports DISCONNECTED.
    """

    def __init__(
        self,
        endpoint_url: str,
        security: Optional[SecuritySettings] = None,
        timeout: float = DEFAULT_TIMEOUT_S
    ):
        self.endpoint_url = endpoint_url
        self._security = security
        self._client = Client(endpoint_url, timeout=timeout)
        self._state = ConnState.CLOSED
        self._security_applied = False

    async def connect(self) -> None:
        if self._security is not None and not self._security_applied:
            await self._client.set_security(
                self._security.policy,
                certificate=self._security.certificate,
                private_key=self._security.private_key,
                mode=self._security.mode,
            )
            self._security_applied = True

        if self.state() == ConnState.DISCONNECTED:
            # Drop the dead socket before opening a new session
            self._client.disconnect_socket()

        await self._client.connect()
        self._state = ConnState.CONNECTED
        log_debug(f"Connected to {self.endpoint_url}")

    async def close(self) -> None:
        if self._state == ConnState.CLOSED:
            return
        try:
            await self._client.disconnect()
        finally:
            self._state = ConnState.CLOSED

    async def read(self, params: ua.ReadParameters) -> list[ua.DataValue]:
        return await self._client.uaclient.read(params)

    async def write(self, params: ua.WriteParameters) -> list[ua.StatusCode]:
        return await self._client.uaclient.write(params)

    async def call(self, request: ua.CallMethodRequest) -> ua.CallMethodResult:
        results = await self._client.uaclient.call([request])
        return results[0]

    async def subscribe(self, params: SubscriptionParameters, notifications: asyncio.Queue):
        return await self._client.create_subscription(
            params.publishing_interval_ms,
            _QueueingHandler(notifications),
        )

    def state(self) -> ConnState:
        if self._state != ConnState.CONNECTED:
            return self._state
        protocol = getattr(self._client.uaclient, "protocol", None)
        if protocol is None or protocol.state != UASocketProtocol.OPEN:
            return ConnState.DISCONNECTED
        return ConnState.CONNECTED


def create_client(endpoint_url: str, security: Optional[SecuritySettings]) -> AsyncuaClient:
    """Default client factory."""
    return AsyncuaClient(endpoint_url, security)


async def discover_endpoints(endpoint_url: str) -> list[ua.EndpointDescription]:
    """Default endpoint discovery: query the server's advertised endpoints."""
    client = Client(endpoint_url, timeout=DEFAULT_TIMEOUT_S)
    return await client.connect_and_get_server_endpoints()
