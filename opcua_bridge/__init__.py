"""
OPC UA Device Bridge.

This package translates generic read, write and method-call commands of a
device-management framework into OPC UA requests, using the asyncua
library, and adapts the responses back into generically typed values.

Architecture:
    - plugin.py: Entry point with init/start_loop/stop_loop/cleanup
    - driver.py: One command engine per device, device lifecycle
    - config.py: Protocol properties and service configuration loading
    - metadata.py: Device/resource lookup service
    - opcua_logging.py: Centralized logging
    - types/: Value types, codec, node addresses and data models
    - security/: Security policy mapping and client certificates
    - client/: Protocol client capability and its asyncua implementation
    - server/: Session lifecycle, read/write/method paths, subscriptions
"""

from .driver import OpcuaDriver
from .metadata import DeviceService, StaticDeviceService
from .server import OpcuaServer

__version__ = "1.0.0"
__all__ = ['OpcuaDriver', 'OpcuaServer', 'DeviceService', 'StaticDeviceService']
