"""
Read consolidation and result expansion.

Requests addressing the same node are read once: build_read_set collapses
them into a unique node list plus an index map, and expand_results spreads
each returned value back over every original position, decoding it with
that position's own declared type.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from asyncua import ua

from ..errors import BridgeError, InvalidAddressError, UnsupportedOperationError
from ..opcua_logging import log_warn
from ..types import CommandRequest, CommandValue, DataNode, MethodNode, NodeAddress, TypeConverter

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def resolve_node_address(request: CommandRequest) -> NodeAddress:
    """
    Return the node address of a data-addressed request.

    Raises:
        UnsupportedOperationError: If the request addresses a method
        InvalidAddressError: If the node address is missing or malformed
    """
    address = request.address
    if isinstance(address, MethodNode):
        raise UnsupportedOperationError(
            f"resource '{request.resource_name}' is a method and cannot be read or written"
        )
    if not isinstance(address, DataNode):
        raise InvalidAddressError(f"resource '{request.resource_name}' has no node address")
    return NodeAddress.parse(address.node_id)


def build_read_set(requests: list[CommandRequest]) -> tuple[list[NodeAddress], dict[int, list[int]]]:
    """
    Deduplicate the node addresses of a read batch.

    Args:
        requests: Read requests in caller order

    Returns:
        (unique_nodes, index_map) where unique_nodes is ordered by first
        occurrence and index_map maps each unique index to the original
        positions sharing that node

    Raises:
        UnsupportedOperationError: If any request addresses a method
        InvalidAddressError: If any node address is missing or malformed
    """
    unique_nodes: list[NodeAddress] = []
    index_map: dict[int, list[int]] = {}
    seen: dict[str, int] = {}

    for position, request in enumerate(requests):
        node = resolve_node_address(request)
        key = str(node)
        index = seen.get(key)
        if index is None:
            index = len(unique_nodes)
            seen[key] = index
            unique_nodes.append(node)
            index_map[index] = []
        index_map[index].append(position)

    return unique_nodes, index_map


def build_read_parameters(nodes: list[NodeAddress]) -> ua.ReadParameters:
    """Build one Read service request for the Value attribute of each node."""
    params = ua.ReadParameters()
    params.TimestampsToReturn = ua.TimestampsToReturn.Both
    for node in nodes:
        rv = ua.ReadValueId()
        rv.NodeId = node.to_node_id()
        rv.AttributeId = ua.AttributeIds.Value
        params.NodesToRead.append(rv)
    return params


def expand_results(
    requests: list[CommandRequest],
    raw_results: list[ua.DataValue],
    index_map: dict[int, list[int]]
) -> list[Optional[CommandValue]]:
    """
    Map unique read results back onto the original request positions.

    Each position is decoded independently with its own request's type.
    A bad status, a missing result or a failed conversion leaves None at
    that position and is logged; other positions are unaffected.
    """
    values: list[Optional[CommandValue]] = [None] * len(requests)

    for index, positions in index_map.items():
        raw = raw_results[index] if index < len(raw_results) else None
        for position in positions:
            request = requests[position]
            if raw is None:
                log_warn(f"No read result returned for resource '{request.resource_name}'")
                continue
            if not is_good(raw):
                log_warn(f"Bad read status for resource '{request.resource_name}': {raw.StatusCode}")
                continue
            try:
                values[position] = decode_data_value(request, raw)
            except BridgeError as e:
                log_warn(f"Failed to decode reading of '{request.resource_name}': {e}")

    return values


def decode_data_value(request: CommandRequest, data_value: ua.DataValue) -> CommandValue:
    """
    Decode a DataValue for a request. The status code is not inspected.

    Raises:
        TypeMismatchError: If the value cannot be coerced
        ValidationError: If the value is out of range
    """
    reading = data_value.Value.Value if data_value.Value is not None else None
    return TypeConverter.to_command_value(
        request, reading, origin=timestamp_ns(data_value.SourceTimestamp)
    )


def is_good(data_value: ua.DataValue) -> bool:
    status = data_value.StatusCode
    return status is None or status.is_good()


def timestamp_ns(timestamp: Optional[datetime]) -> Optional[int]:
    """Convert a server timestamp to nanoseconds since the epoch."""
    if timestamp is None:
        return None
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return (timestamp - EPOCH) // timedelta(microseconds=1) * 1_000
