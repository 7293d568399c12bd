"""Fake protocol client for testing without an OPC UA server.

Implements the OpcuaClient interface and records every call so tests can
assert what reached the wire.
"""

import asyncio
from typing import Any, Optional

from asyncua import ua

from opcua_bridge.client import ConnState, SubscriptionParameters


class FakeSubscription:
    """Records monitored item batches and deletion."""

    def __init__(self, params: SubscriptionParameters, notifications: asyncio.Queue):
        self.params = params
        self.notifications = notifications
        self.created: list[list[ua.MonitoredItemCreateRequest]] = []
        self.deleted = False

    async def create_monitored_items(self, requests):
        self.created.append(list(requests))
        return [ua.StatusCode() for _ in requests]

    async def delete(self) -> None:
        self.deleted = True


class FakeOpcuaClient:
    """Fake OpcuaClient.

    Attributes:
        connection_state: Value returned by state()
        connect_error: Raised by connect() when set
        read_results: DataValues returned by read(); defaults to one good
            Int32 value per requested node
        write_results: StatusCodes returned by write(); defaults to Good
        call_result / call_error: Outcome of call()
        calls: Names of the operations invoked, in order
    """

    def __init__(self, state: ConnState = ConnState.CLOSED):
        self.connection_state = state
        self.connect_error: Optional[Exception] = None
        self.read_results: Optional[list[ua.DataValue]] = None
        self.write_results: Optional[list[ua.StatusCode]] = None
        self.call_result: Optional[ua.CallMethodResult] = None
        self.call_error: Optional[Exception] = None
        self.read_gate: Optional[asyncio.Event] = None

        self.calls: list[str] = []
        self.read_params: list[ua.ReadParameters] = []
        self.write_params: list[ua.WriteParameters] = []
        self.call_requests: list[ua.CallMethodRequest] = []
        self.subscriptions: list[FakeSubscription] = []

    def invoked(self, name: str) -> bool:
        return name in self.calls

    async def connect(self) -> None:
        self.calls.append("connect")
        if self.connect_error is not None:
            raise self.connect_error
        self.connection_state = ConnState.CONNECTED

    async def close(self) -> None:
        self.calls.append("close")
        self.connection_state = ConnState.CLOSED

    async def read(self, params: ua.ReadParameters) -> list[ua.DataValue]:
        self.calls.append("read")
        self.read_params.append(params)
        if self.read_gate is not None:
            await self.read_gate.wait()
        if self.read_results is not None:
            return self.read_results
        return [ua.DataValue(ua.Variant(42, ua.VariantType.Int32)) for _ in params.NodesToRead]

    async def write(self, params: ua.WriteParameters) -> list[ua.StatusCode]:
        self.calls.append("write")
        self.write_params.append(params)
        if self.write_results is not None:
            return self.write_results
        return [ua.StatusCode() for _ in params.NodesToWrite]

    async def call(self, request: ua.CallMethodRequest) -> ua.CallMethodResult:
        self.calls.append("call")
        self.call_requests.append(request)
        if self.call_error is not None:
            raise self.call_error
        return self.call_result

    async def subscribe(self, params: SubscriptionParameters, notifications: asyncio.Queue) -> Any:
        self.calls.append("subscribe")
        subscription = FakeSubscription(params, notifications)
        self.subscriptions.append(subscription)
        return subscription

    def state(self) -> ConnState:
        return self.connection_state
