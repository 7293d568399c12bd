"""
Protocol client capability used by the session manager.

The core never talks to asyncua directly: it drives an object satisfying
OpcuaClient, constructed by an injected factory. Tests substitute their
own implementation.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

from asyncua import ua

from ..security import SecuritySettings


class ConnState(Enum):
    """Connection state reported by a protocol client."""
    CONNECTED = "connected"
    CLOSED = "closed"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class SubscriptionParameters:
    """Parameters of a data change subscription."""
    publishing_interval_ms: float = 100.0


class Subscription(Protocol):
    """Server-side subscription handle returned by OpcuaClient.subscribe."""

    async def create_monitored_items(self, requests: list[ua.MonitoredItemCreateRequest]) -> list[Any]:
        ...

    async def delete(self) -> None:
        ...


class OpcuaClient(Protocol):
    """Operations the core requires from the wire-level client."""

    async def connect(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def read(self, params: ua.ReadParameters) -> list[ua.DataValue]:
        ...

    async def write(self, params: ua.WriteParameters) -> list[ua.StatusCode]:
        ...

    async def call(self, request: ua.CallMethodRequest) -> ua.CallMethodResult:
        ...

    async def subscribe(
        self,
        params: SubscriptionParameters,
        notifications: asyncio.Queue
    ) -> Subscription:
        ...

    def state(self) -> ConnState:
        ...


# Injected capabilities of the session manager
ClientFactory = Callable[[str, Optional[SecuritySettings]], OpcuaClient]
EndpointDiscovery = Callable[[str], Awaitable[list[ua.EndpointDescription]]]
