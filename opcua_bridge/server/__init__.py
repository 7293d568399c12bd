"""
OPC UA command processing components.

This package provides:
- OpcuaServer: per-device entry points for reads, writes and method calls
- SessionManager: session lifecycle and cancellation scope
- SubscriptionManager: monitored items and change notification dispatch
- CommandRouter: device state and address kind checks
"""

from .router import CommandKind, CommandRouter
from .session import CancellationScope, SessionGuard, SessionManager
from .subscription import SubscriptionManager
from .server import OpcuaServer

__all__ = [
    'CancellationScope',
    'CommandKind',
    'CommandRouter',
    'OpcuaServer',
    'SessionGuard',
    'SessionManager',
    'SubscriptionManager',
]
