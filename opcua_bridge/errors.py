"""
Error taxonomy for the OPC UA bridge.

Every failure surfaced by the core entry points derives from BridgeError,
so callers can catch the whole family or a single condition.
"""

from typing import Optional


class BridgeError(Exception):
    """Base class for all bridge errors."""


class ConfigurationError(BridgeError):
    """Endpoint or resource configuration is missing or inconsistent."""


class ConnectionFailedError(BridgeError):
    """The session could not be established or was torn down mid-call."""


class InvalidAddressError(BridgeError):
    """A node, method or object address is missing or malformed."""


class NotFoundError(BridgeError):
    """A device or device resource is unknown to the metadata service."""


class ResourcePermissionError(BridgeError):
    """The resource is hidden and may not be accessed through commands."""


class UnsupportedOperationError(BridgeError):
    """The resource kind does not support the requested operation."""


class TypeMismatchError(BridgeError):
    """A value does not agree with the declared type it is used with."""


class ValidationError(BridgeError):
    """A value is outside the representable range of its target type."""


class OperationError(BridgeError):
    """The device is administratively locked or operationally down."""


class MethodInvocationError(BridgeError):
    """A remote method call failed or returned a bad status."""

    def __init__(self, method_id: str, reason: str):
        self.method_id = method_id
        self.reason = reason
        super().__init__(f"method {method_id} call failed: {reason}")


class WriteError(BridgeError):
    """
    One or more items of a batched write were rejected by the server.

    Attributes:
        failures: List of (resource_name, status description) pairs
    """

    def __init__(self, failures: list[tuple[str, str]], message: Optional[str] = None):
        self.failures = failures
        if message is None:
            details = ", ".join(f"{name} ({status})" for name, status in failures)
            message = f"failed to write resources: {details}"
        super().__init__(message)
