"""
Protocol client capability and its asyncua implementation.
"""

from .interface import (
    ClientFactory,
    ConnState,
    EndpointDiscovery,
    OpcuaClient,
    Subscription,
    SubscriptionParameters,
)
from .asyncua_client import AsyncuaClient, create_client, discover_endpoints

__all__ = [
    'AsyncuaClient',
    'ClientFactory',
    'ConnState',
    'EndpointDiscovery',
    'OpcuaClient',
    'Subscription',
    'SubscriptionParameters',
    'create_client',
    'discover_endpoints',
]
