"""
OPC UA bridge type definitions and converters.

This package provides:
- Generic value types and their OPC UA mapping
- Value coercion and range validation
- Node address parsing
- Data models for commands, devices and resources
"""

from .value_types import ValueType
from .type_converter import TypeConverter
from .node_address import NodeAddress
from .models import (
    AdminState,
    AsyncValues,
    CommandRequest,
    CommandValue,
    DataNode,
    Device,
    MethodNode,
    MonitoredItem,
    OperatingState,
    ResourceAddress,
    ResourceDescriptor,
)

__all__ = [
    'ValueType',
    'TypeConverter',
    'NodeAddress',
    'AdminState',
    'AsyncValues',
    'CommandRequest',
    'CommandValue',
    'DataNode',
    'Device',
    'MethodNode',
    'MonitoredItem',
    'OperatingState',
    'ResourceAddress',
    'ResourceDescriptor',
]
