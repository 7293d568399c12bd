"""
Write path: pairwise validation and one batched Write request.
"""

from asyncua import ua

from ..errors import TypeMismatchError, ValidationError, WriteError
from ..opcua_logging import log_warn
from ..types import CommandRequest, CommandValue, NodeAddress, TypeConverter
from .read_handler import resolve_node_address


def prepare_write(
    requests: list[CommandRequest],
    values: list[CommandValue]
) -> list[tuple[CommandRequest, NodeAddress, ua.Variant]]:
    """
    Validate request/value pairs and encode each value.

    Raises:
        ValidationError: If the lists differ in length or a value is out of range
        InvalidAddressError: If a node address is missing or malformed
        UnsupportedOperationError: If a request addresses a method
        TypeMismatchError: If a value's type differs from its request's type
    """
    if len(requests) != len(values):
        raise ValidationError(
            f"got {len(values)} values for {len(requests)} write requests"
        )

    items = []
    for request, value in zip(requests, values):
        node = resolve_node_address(request)

        if value.value_type != request.value_type:
            raise TypeMismatchError(
                f"value type {value.value_type.value} of '{value.resource_name}' does not "
                f"match resource type {request.value_type.value}"
            )

        variant = TypeConverter.to_variant(request.value_type, value.value)
        items.append((request, node, variant))
    return items


def build_write_parameters(items: list[tuple[CommandRequest, NodeAddress, ua.Variant]]) -> ua.WriteParameters:
    params = ua.WriteParameters()
    for _, node, variant in items:
        attr = ua.WriteValue()
        attr.NodeId = node.to_node_id()
        attr.AttributeId = ua.AttributeIds.Value
        attr.Value = ua.DataValue(variant)
        params.NodesToWrite.append(attr)
    return params


def check_write_results(
    items: list[tuple[CommandRequest, NodeAddress, ua.Variant]],
    results: list[ua.StatusCode]
) -> None:
    """
    Raise one WriteError naming every item the server rejected.

    Items without a returned status count as failed.
    """
    failures = []
    for index, (request, node, _) in enumerate(items):
        status = results[index] if index < len(results) else None
        if status is None:
            failures.append((request.resource_name, "no status returned"))
        elif not status.is_good():
            failures.append((request.resource_name, str(status)))

    if failures:
        for name, status in failures:
            log_warn(f"Write of '{name}' failed: {status}")
        raise WriteError(failures)
