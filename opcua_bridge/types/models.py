"""
Data models for the OPC UA bridge.

This module defines the command model exchanged with the device
framework and the device/resource metadata the core consults while
routing commands.
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from ..errors import ConfigurationError, TypeMismatchError
from .value_types import ValueType

# Resource attribute keys
NODE_ATTRIBUTE = "nodeId"
METHOD_ATTRIBUTE = "methodId"
OBJECT_ATTRIBUTE = "objectId"


class AdminState(Enum):
    """Administrative state of a device."""
    LOCKED = "LOCKED"
    UNLOCKED = "UNLOCKED"


class OperatingState(Enum):
    """Operating state of a device."""
    UP = "UP"
    DOWN = "DOWN"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class DataNode:
    """Address of a data point read or written through the Value attribute."""
    node_id: str


@dataclass(frozen=True)
class MethodNode:
    """Address of a method and the object it is invoked on."""
    method_id: str
    object_id: str


ResourceAddress = Union[DataNode, MethodNode]


def parse_resource_address(attributes: Optional[dict]) -> Optional[ResourceAddress]:
    """
    Build the resource address from a resource's attribute map.

    Args:
        attributes: Resource attributes as configured on the device profile

    Returns:
        DataNode, MethodNode, or None when no address attribute is present

    Raises:
        ConfigurationError: If both data and method attributes are present
    """
    if not attributes:
        return None

    node_id = attributes.get(NODE_ATTRIBUTE)
    method_id = attributes.get(METHOD_ATTRIBUTE)
    object_id = attributes.get(OBJECT_ATTRIBUTE)
    has_method = method_id is not None or object_id is not None

    if node_id is not None and has_method:
        raise ConfigurationError(
            f"resource attributes must define either '{NODE_ATTRIBUTE}' or "
            f"'{METHOD_ATTRIBUTE}'/'{OBJECT_ATTRIBUTE}', not both"
        )

    if has_method:
        return MethodNode(
            method_id="" if method_id is None else str(method_id),
            object_id="" if object_id is None else str(object_id),
        )

    if node_id is not None:
        return DataNode(node_id=str(node_id))

    return None


@dataclass(frozen=True)
class ResourceDescriptor:
    """Device resource metadata as held by the metadata service."""
    name: str
    value_type: ValueType
    is_hidden: bool = False
    attributes: dict = field(default_factory=dict)
    address: Optional[ResourceAddress] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'ResourceDescriptor':
        """Create from dictionary, parsing the resource address eagerly."""
        try:
            name = data["name"]
            value_type = data["value_type"]
        except KeyError as e:
            raise ConfigurationError(f"Missing required field in device resource: {e}")

        attributes = dict(data.get("attributes", {}))
        try:
            value_type = ValueType.from_string(value_type)
        except ValueError as e:
            raise ConfigurationError(f"Device resource '{name}': {e}")

        return cls(
            name=name,
            value_type=value_type,
            is_hidden=bool(data.get("is_hidden", False)),
            attributes=attributes,
            address=parse_resource_address(attributes),
        )


@dataclass(frozen=True)
class CommandRequest:
    """A single read or write request for one device resource."""
    resource_name: str
    value_type: ValueType
    address: Optional[ResourceAddress] = None
    is_hidden: bool = False

    @classmethod
    def from_attributes(
        cls,
        resource_name: str,
        value_type: Union[str, ValueType],
        attributes: Optional[dict] = None,
        is_hidden: bool = False
    ) -> 'CommandRequest':
        """Create a request from raw resource attributes."""
        if isinstance(value_type, str):
            value_type = ValueType.from_string(value_type)
        return cls(
            resource_name=resource_name,
            value_type=value_type,
            address=parse_resource_address(attributes),
            is_hidden=is_hidden,
        )

    @classmethod
    def from_descriptor(cls, descriptor: ResourceDescriptor) -> 'CommandRequest':
        return cls(
            resource_name=descriptor.name,
            value_type=descriptor.value_type,
            address=descriptor.address,
            is_hidden=descriptor.is_hidden,
        )


def _kind_matches(element_type: ValueType, value: Any) -> bool:
    if element_type == ValueType.BOOL:
        return isinstance(value, bool)
    if element_type == ValueType.STRING:
        return isinstance(value, str)
    if element_type.is_integer:
        return isinstance(value, int) and not isinstance(value, bool)
    if element_type.is_float:
        return isinstance(value, float) or (isinstance(value, int) and not isinstance(value, bool))
    return False


@dataclass
class CommandValue:
    """
    A typed value produced by a read or supplied for a write.

    The Python kind of ``value`` must agree with ``value_type``: bool for
    Bool, str for String, int for integer types, float (or int) for float
    types, and a list of those for array types.
    """
    resource_name: str
    value_type: ValueType
    value: Any
    origin: int = field(default_factory=time.time_ns)
    tags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.value_type.is_array:
            if not isinstance(self.value, list):
                raise TypeMismatchError(
                    f"{self.resource_name}: {self.value_type.value} requires a list, "
                    f"got {type(self.value).__name__}"
                )
            element_type = self.value_type.element_type
            for item in self.value:
                if not _kind_matches(element_type, item):
                    raise TypeMismatchError(
                        f"{self.resource_name}: element {item!r} does not match {self.value_type.value}"
                    )
        elif not _kind_matches(self.value_type, self.value):
            raise TypeMismatchError(
                f"{self.resource_name}: value {self.value!r} does not match {self.value_type.value}"
            )

    def __eq__(self, other):
        if not isinstance(other, CommandValue):
            return NotImplemented
        return (
            self.resource_name == other.resource_name
            and self.value_type == other.value_type
            and _values_equal(self.value, other.value)
            and self.tags == other.tags
        )


def _values_equal(left: Any, right: Any) -> bool:
    # NaN readings compare equal so repeated decodes of one result match
    if isinstance(left, float) and isinstance(right, float):
        return left == right or (math.isnan(left) and math.isnan(right))
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(_values_equal(a, b) for a, b in zip(left, right))
    return left == right


@dataclass
class Device:
    """Device metadata relevant to the protocol core."""
    name: str
    admin_state: AdminState = AdminState.UNLOCKED
    operating_state: OperatingState = OperatingState.UP
    protocols: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def is_available(self) -> bool:
        """True unless the device is locked or down."""
        return (
            self.admin_state != AdminState.LOCKED
            and self.operating_state != OperatingState.DOWN
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'Device':
        """Create from dictionary."""
        try:
            name = data["name"]
        except KeyError as e:
            raise ConfigurationError(f"Missing required field in device config: {e}")

        try:
            admin_state = AdminState(str(data.get("admin_state", "UNLOCKED")).upper())
            operating_state = OperatingState(str(data.get("operating_state", "UP")).upper())
        except ValueError as e:
            raise ConfigurationError(f"Device '{name}': {e}")

        return cls(
            name=name,
            admin_state=admin_state,
            operating_state=operating_state,
            protocols=dict(data.get("protocols", {})),
        )


@dataclass(frozen=True)
class MonitoredItem:
    """Correlates a subscription client handle with a device resource."""
    resource_name: str
    client_handle: int


@dataclass
class AsyncValues:
    """Readings pushed to the framework outside of a command cycle."""
    device_name: str
    command_values: list[CommandValue] = field(default_factory=list)
