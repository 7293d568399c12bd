"""
Generic value types used by the device framework.

The framework describes every reading and setting with one of these
type names; arrays are the element name suffixed with "Array".
"""

from enum import Enum
from typing import Optional

ARRAY_SUFFIX = "Array"


class ValueType(Enum):
    """Value types of the device framework's command model."""
    # Scalars
    BOOL = "Bool"
    STRING = "String"
    INT8 = "Int8"
    INT16 = "Int16"
    INT32 = "Int32"
    INT64 = "Int64"
    UINT8 = "Uint8"
    UINT16 = "Uint16"
    UINT32 = "Uint32"
    UINT64 = "Uint64"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"

    # One-dimensional arrays
    BOOL_ARRAY = "BoolArray"
    STRING_ARRAY = "StringArray"
    INT8_ARRAY = "Int8Array"
    INT16_ARRAY = "Int16Array"
    INT32_ARRAY = "Int32Array"
    INT64_ARRAY = "Int64Array"
    UINT8_ARRAY = "Uint8Array"
    UINT16_ARRAY = "Uint16Array"
    UINT32_ARRAY = "Uint32Array"
    UINT64_ARRAY = "Uint64Array"
    FLOAT32_ARRAY = "Float32Array"
    FLOAT64_ARRAY = "Float64Array"

    @classmethod
    def from_string(cls, type_str: str) -> 'ValueType':
        """
        Parse a value type from string, case-insensitive.

        Args:
            type_str: Type name string (e.g., "Int32", "float64", "boolarray")

        Returns:
            Corresponding ValueType enum value

        Raises:
            ValueError: If type string is not recognized
        """
        normalized = type_str.strip().lower()

        aliases = {
            "boolean": "bool",
            "float": "float32",
            "double": "float64",
            "byte": "uint8",
            "sbyte": "int8",
        }
        normalized = aliases.get(normalized, normalized)

        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown value type: {type_str}")

    @property
    def is_array(self) -> bool:
        return self.value.endswith(ARRAY_SUFFIX)

    @property
    def element_type(self) -> 'ValueType':
        """Scalar type of an array type; scalars return themselves."""
        if not self.is_array:
            return self
        return ValueType(self.value[:-len(ARRAY_SUFFIX)])

    @property
    def is_signed_int(self) -> bool:
        return self.element_type in _SIGNED_BITS

    @property
    def is_unsigned_int(self) -> bool:
        return self.element_type in _UNSIGNED_BITS

    @property
    def is_integer(self) -> bool:
        return self.is_signed_int or self.is_unsigned_int

    @property
    def is_float(self) -> bool:
        return self.element_type in (ValueType.FLOAT32, ValueType.FLOAT64)

    @property
    def bits(self) -> Optional[int]:
        """Bit width of numeric element types, None for Bool/String."""
        element = self.element_type
        if element in _SIGNED_BITS:
            return _SIGNED_BITS[element]
        if element in _UNSIGNED_BITS:
            return _UNSIGNED_BITS[element]
        if element == ValueType.FLOAT32:
            return 32
        if element == ValueType.FLOAT64:
            return 64
        return None


_SIGNED_BITS = {
    ValueType.INT8: 8,
    ValueType.INT16: 16,
    ValueType.INT32: 32,
    ValueType.INT64: 64,
}

_UNSIGNED_BITS = {
    ValueType.UINT8: 8,
    ValueType.UINT16: 16,
    ValueType.UINT32: 32,
    ValueType.UINT64: 64,
}
