"""
Textual node address parsing.

Accepted format is ``ns=<namespace>;i=<integer>`` or
``ns=<namespace>;s=<string>``. The namespace part may be omitted, in
which case namespace 0 is assumed.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from asyncua import ua

from ..errors import InvalidAddressError

NUMERIC = "i"
STRING = "s"

# Namespace index is encoded as UInt16, numeric identifiers as UInt32
MAX_NAMESPACE = 0xFFFF
MAX_NUMERIC_ID = 0xFFFFFFFF

_DIGITS = re.compile(r"\d+", re.ASCII)


def _parse_unsigned(text: str, maximum: int) -> Optional[int]:
    """Parse ASCII decimal digits bounded by maximum, else None."""
    if not _DIGITS.fullmatch(text):
        return None
    value = int(text)
    return value if value <= maximum else None


@dataclass(frozen=True)
class NodeAddress:
    """Structured locator of a node on the OPC UA endpoint."""
    namespace: int
    identifier: Union[int, str]

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.identifier, int)

    def __str__(self) -> str:
        qualifier = NUMERIC if self.is_numeric else STRING
        return f"ns={self.namespace};{qualifier}={self.identifier}"

    def to_node_id(self) -> ua.NodeId:
        """Build the asyncua NodeId for this address."""
        if self.is_numeric:
            return ua.NodeId(self.identifier, self.namespace, ua.NodeIdType.Numeric)
        return ua.NodeId(self.identifier, self.namespace, ua.NodeIdType.String)

    @classmethod
    def parse(cls, text: str) -> 'NodeAddress':
        """
        Parse a textual node address.

        Args:
            text: Address such as "ns=2;s=Temperature" or "ns=0;i=2258"

        Returns:
            Parsed NodeAddress

        Raises:
            InvalidAddressError: If the text is empty or malformed
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidAddressError(f"empty node address: {text!r}")

        segments = text.strip().split(";", 1)
        namespace = 0
        if segments[0].startswith("ns="):
            if len(segments) != 2:
                raise InvalidAddressError(f"node address has no identifier: {text}")
            namespace = _parse_unsigned(segments[0][len("ns="):], MAX_NAMESPACE)
            if namespace is None:
                raise InvalidAddressError(f"invalid namespace in node address: {text}")
            id_part = segments[1]
        elif len(segments) == 1:
            id_part = segments[0]
        else:
            raise InvalidAddressError(f"invalid node address: {text}")

        qualifier, sep, value = id_part.partition("=")
        if not sep:
            raise InvalidAddressError(f"invalid node address: {text}")

        if qualifier == NUMERIC:
            identifier = _parse_unsigned(value, MAX_NUMERIC_ID)
            if identifier is None:
                raise InvalidAddressError(f"invalid numeric identifier in node address: {text}")
            return cls(namespace, identifier)

        if qualifier == STRING:
            # ';' would start another qualifier, which this format does not allow
            if not value or ";" in value:
                raise InvalidAddressError(f"invalid string identifier in node address: {text}")
            return cls(namespace, value)

        raise InvalidAddressError(f"unsupported identifier type '{qualifier}' in node address: {text}")
