"""
Session lifecycle management.

This module owns the protocol client for one device: lazy creation,
connect/reconnect on demand, teardown, and the cancellation scope every
protocol call is bound to.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Optional

from asyncua import ua

from ..client import (
    ClientFactory,
    ConnState,
    EndpointDiscovery,
    OpcuaClient,
    SubscriptionParameters,
    create_client,
    discover_endpoints,
)
from ..config import DriverConfig
from ..errors import ConfigurationError, ConnectionFailedError
from ..opcua_logging import log_info, log_warn
from ..security import ClientCertificateManager


class CancellationScope:
    """
    Tracks the protocol calls issued during one session generation.

    Cancelling the scope cancels every call still in flight; their
    callers see ConnectionFailedError instead of a result from a
    session that no longer exists.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, awaitable: Awaitable) -> Any:
        if self._cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ConnectionFailedError("session was torn down")

        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._cancelled and not (current and current.cancelling()):
                raise ConnectionFailedError("call cancelled by session teardown") from None
            raise
        finally:
            self._tasks.discard(task)

    def cancel(self) -> None:
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()


class SessionGuard:
    """
    Shared/exclusive guard around the session.

    Commands hold it shared and run concurrently with each other;
    teardown holds it exclusively. A waiting teardown blocks new
    shared holders so it cannot be starved.
    """

    def __init__(self):
        self._condition = asyncio.Condition()
        self._shared = 0
        self._exclusive = False
        self._exclusive_waiting = 0

    @asynccontextmanager
    async def shared(self) -> AsyncIterator[None]:
        async with self._condition:
            await self._condition.wait_for(
                lambda: not self._exclusive and self._exclusive_waiting == 0
            )
            self._shared += 1
        try:
            yield
        finally:
            async with self._condition:
                self._shared -= 1
                self._condition.notify_all()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        async with self._condition:
            self._exclusive_waiting += 1
            try:
                await self._condition.wait_for(
                    lambda: not self._exclusive and self._shared == 0
                )
            finally:
                self._exclusive_waiting -= 1
            self._exclusive = True
        try:
            yield
        finally:
            async with self._condition:
                self._exclusive = False
                self._condition.notify_all()


class SessionManager:
    """
    Owns the protocol client of one device.

    Handles:
    - Client initialization from endpoint discovery and security settings
    - Lazy connect and reconnect on demand (no background retry)
    - Teardown, optionally recreating the cancellation scope
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        endpoint_discovery: Optional[EndpointDiscovery] = None,
        certificate_manager: Optional[ClientCertificateManager] = None
    ):
        """
        Initialize session manager.

        Args:
            client_factory: Builds a protocol client for an endpoint URL
            endpoint_discovery: Returns the endpoint descriptions of a server
            certificate_manager: Resolves security settings for secured policies
        """
        self._client_factory = client_factory or create_client
        self._endpoint_discovery = endpoint_discovery or discover_endpoints
        self._certificate_manager = certificate_manager or ClientCertificateManager(
            "certs", "urn:opcua-bridge:client"
        )

        self._client: Optional[OpcuaClient] = None
        self._scope: Optional[CancellationScope] = CancellationScope()
        self._guard = SessionGuard()
        self._connect_lock = asyncio.Lock()

    @property
    def has_client(self) -> bool:
        return self._client is not None

    @property
    def has_scope(self) -> bool:
        return self._scope is not None

    def state(self) -> ConnState:
        if self._client is None:
            return ConnState.CLOSED
        return self._client.state()

    def session(self):
        """Hold the session shared for the duration of a command."""
        return self._guard.shared()

    # ------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------

    async def init_client(self, config: DriverConfig) -> None:
        """
        Construct a client bound to the configured security policy/mode.

        Raises:
            ConfigurationError: If discovery fails or no endpoint matches
        """
        if not config.endpoint:
            raise ConfigurationError("no endpoint configured")

        try:
            endpoints = await self._endpoint_discovery(config.endpoint)
        except (OSError, asyncio.TimeoutError, ua.UaError) as e:
            raise ConfigurationError(f"endpoint discovery failed for {config.endpoint}: {e}") from e

        ClientCertificateManager.select_endpoint(
            endpoints, config.security_policy, config.security_mode
        )
        security = await self._certificate_manager.resolve(
            config.security_policy,
            config.security_mode,
            config.cert_file,
            config.key_file,
        )

        self._client = self._client_factory(config.endpoint, security)
        log_info(
            f"Client created for {config.endpoint} "
            f"({config.security_policy}/{config.security_mode})"
        )

    async def ensure_connected(self, config: DriverConfig) -> None:
        """
        Make sure the session is connected, connecting if necessary.

        Raises:
            ConfigurationError: If the client cannot be initialized
            ConnectionFailedError: If connecting fails
        """
        if self._client is not None and self._client.state() == ConnState.CONNECTED:
            return

        async with self._connect_lock:
            if self._client is None:
                await self.init_client(config)

            state = self._client.state()
            if state == ConnState.CONNECTED:
                return

            try:
                await self._scoped(self._client.connect())
            except ConnectionFailedError:
                raise
            except (OSError, asyncio.TimeoutError, ua.UaError) as e:
                raise ConnectionFailedError(f"failed to connect to {config.endpoint}: {e}") from e

            log_info(f"Session established with {config.endpoint} (was {state.value})")

    async def cleanup(self, recreate_context: bool) -> None:
        """
        Close any open session and drop the client.

        Calls in flight are cancelled first. With recreate_context a new
        cancellation scope is installed, otherwise one is created lazily
        by the next call.
        """
        if self._scope is not None:
            self._scope.cancel()

        async with self._guard.exclusive():
            client, self._client = self._client, None
            if client is not None and client.state() != ConnState.CLOSED:
                try:
                    await client.close()
                except (OSError, asyncio.TimeoutError, ua.UaError) as e:
                    log_warn(f"Error closing session: {e}")

            self._scope = CancellationScope() if recreate_context else None

    # ------------------------------------------------------------
    # protocol calls
    # ------------------------------------------------------------

    async def read(self, params: ua.ReadParameters) -> list[ua.DataValue]:
        return await self._scoped(self._require_client().read(params))

    async def write(self, params: ua.WriteParameters) -> list[ua.StatusCode]:
        return await self._scoped(self._require_client().write(params))

    async def call(self, request: ua.CallMethodRequest) -> ua.CallMethodResult:
        return await self._scoped(self._require_client().call(request))

    async def subscribe(self, params: SubscriptionParameters, notifications: asyncio.Queue):
        return await self._scoped(self._require_client().subscribe(params, notifications))

    async def create_monitored_items(self, subscription, requests: list[ua.MonitoredItemCreateRequest]) -> list[Any]:
        return await self._scoped(subscription.create_monitored_items(requests))

    def _require_client(self) -> OpcuaClient:
        if self._client is None:
            raise ConnectionFailedError("no session")
        return self._client

    async def _scoped(self, awaitable: Awaitable) -> Any:
        if self._scope is None:
            self._scope = CancellationScope()
        return await self._scope.run(awaitable)
