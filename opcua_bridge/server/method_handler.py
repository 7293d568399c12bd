"""
Method invocation path.
"""

import re
from typing import Any, Optional

from asyncua import ua

from ..errors import BridgeError, InvalidAddressError, MethodInvocationError
from ..types import MethodNode, NodeAddress, ResourceDescriptor

_INT_LITERAL = re.compile(r"^[+-]?\d+$")
_DECIMAL_LITERAL = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


def parse_method_address(descriptor: ResourceDescriptor) -> tuple[NodeAddress, NodeAddress]:
    """
    Return the (object, method) node addresses of a method resource.

    Raises:
        InvalidAddressError: If either id is missing or malformed
    """
    address = descriptor.address
    if not isinstance(address, MethodNode):
        raise InvalidAddressError(f"resource '{descriptor.name}' has no method address")

    if not address.object_id:
        raise InvalidAddressError(f"resource '{descriptor.name}' has no object id")
    if not address.method_id:
        raise InvalidAddressError(f"resource '{descriptor.name}' has no method id")

    return NodeAddress.parse(address.object_id), NodeAddress.parse(address.method_id)


def to_parameter_variant(parameter: Any) -> ua.Variant:
    """
    Encode one positional method argument.

    Native values keep their kind. Strings are read as literals: "true"
    and "false" become Boolean, integers Int64, decimals Double, and
    anything else stays a String.
    """
    if isinstance(parameter, ua.Variant):
        return parameter
    if isinstance(parameter, bool):
        return ua.Variant(parameter, ua.VariantType.Boolean)
    if isinstance(parameter, int):
        return ua.Variant(parameter, ua.VariantType.Int64)
    if isinstance(parameter, float):
        return ua.Variant(parameter, ua.VariantType.Double)

    text = str(parameter)
    literal = text.strip()
    if literal.lower() in ("true", "false"):
        return ua.Variant(literal.lower() == "true", ua.VariantType.Boolean)
    if _INT_LITERAL.match(literal):
        value = int(literal)
        if -(1 << 63) <= value < (1 << 63):
            return ua.Variant(value, ua.VariantType.Int64)
    if _DECIMAL_LITERAL.match(literal):
        return ua.Variant(float(literal), ua.VariantType.Double)
    return ua.Variant(text, ua.VariantType.String)


def build_call_request(
    object_node: NodeAddress,
    method_node: NodeAddress,
    parameters: Optional[list[Any]]
) -> ua.CallMethodRequest:
    request = ua.CallMethodRequest()
    request.ObjectId = object_node.to_node_id()
    request.MethodId = method_node.to_node_id()
    request.InputArguments = [to_parameter_variant(p) for p in parameters or []]
    return request


def method_result(method_id: str, result: Optional[ua.CallMethodResult]) -> Any:
    """
    Extract the generic result of a method call.

    Returns the first output argument's value, or None when the method
    has no outputs.

    Raises:
        MethodInvocationError: If the call returned no result or a bad status
    """
    if result is None:
        raise MethodInvocationError(method_id, "no result returned")

    status = result.StatusCode
    if status is not None and not status.is_good():
        raise MethodInvocationError(method_id, f"status {status}")

    outputs = result.OutputArguments or []
    if not outputs:
        return None
    output = outputs[0]
    return output.Value if isinstance(output, ua.Variant) else output


def invocation_error(method_id: str, error: Exception) -> BridgeError:
    """Wrap a transport failure of a call in a MethodInvocationError."""
    return MethodInvocationError(method_id, str(error) or type(error).__name__)
