"""
Generic value type to OPC UA conversion.

This module provides type mapping, value coercion and range validation
between the device framework's generic value types and OPC UA variants.
"""

import math
import struct
import time
from typing import Any, Optional, Union

from asyncua import ua

from ..errors import TypeMismatchError, ValidationError
from .models import CommandRequest, CommandValue
from .value_types import ValueType

FLOAT32_MAX = struct.unpack('<f', struct.pack('<I', 0x7F7FFFFF))[0]


class TypeConverter:
    """
    Converts between generic value types and OPC UA values.

    This class provides:
    - Type mapping (ValueType -> OPC UA VariantType)
    - Coercion of raw readings and settings to the declared type
    - Range validation with the bridge's acceptance rules
    """

    VALUE_TO_OPCUA: dict[ValueType, ua.VariantType] = {
        ValueType.BOOL: ua.VariantType.Boolean,
        ValueType.STRING: ua.VariantType.String,

        # Signed integers
        ValueType.INT8: ua.VariantType.SByte,
        ValueType.INT16: ua.VariantType.Int16,
        ValueType.INT32: ua.VariantType.Int32,
        ValueType.INT64: ua.VariantType.Int64,

        # Unsigned integers
        ValueType.UINT8: ua.VariantType.Byte,
        ValueType.UINT16: ua.VariantType.UInt16,
        ValueType.UINT32: ua.VariantType.UInt32,
        ValueType.UINT64: ua.VariantType.UInt64,

        # Floating point
        ValueType.FLOAT32: ua.VariantType.Float,
        ValueType.FLOAT64: ua.VariantType.Double,
    }

    @classmethod
    def to_opcua_type(cls, value_type: Union[str, ValueType]) -> ua.VariantType:
        """
        Get OPC UA VariantType for a value type.

        Array types map to the VariantType of their elements.

        Raises:
            ValueError: If type is not supported
        """
        if isinstance(value_type, str):
            value_type = ValueType.from_string(value_type)
        return cls.VALUE_TO_OPCUA[value_type.element_type]

    @classmethod
    def to_variant(cls, value_type: ValueType, value: Any) -> ua.Variant:
        """Coerce a value and wrap it in an explicitly typed Variant."""
        native = cls.coerce(value_type, value)
        return ua.Variant(native, cls.to_opcua_type(value_type), is_array=value_type.is_array)

    @classmethod
    def to_command_value(
        cls,
        request: CommandRequest,
        reading: Any,
        origin: Optional[int] = None
    ) -> CommandValue:
        """
        Build a CommandValue for a request from a raw reading.

        Raises:
            TypeMismatchError: If the reading cannot be coerced
            ValidationError: If the reading is out of the type's range
        """
        value = cls.coerce(request.value_type, reading)
        return CommandValue(
            resource_name=request.resource_name,
            value_type=request.value_type,
            value=value,
            origin=origin if origin is not None else time.time_ns(),
        )

    @classmethod
    def coerce(cls, value_type: ValueType, value: Any) -> Any:
        """
        Coerce a value to the native Python form of a value type.

        The value is range checked before narrowing, so out of range
        readings are rejected rather than wrapped.

        Raises:
            TypeMismatchError: If the value cannot be converted
            ValidationError: If the value is out of range
        """
        if value_type.is_array:
            if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
                raise TypeMismatchError(
                    f"cannot convert {value!r} to {value_type.value}: not an array"
                )
            element_type = value_type.element_type
            elements = [cls._widen(element_type, item) for item in value]
            cls.validate_range(value_type, elements)
            return [cls._narrow_in_range(element_type, item) for item in elements]

        widened = cls._widen(value_type, value)
        cls.validate_range(value_type, widened)
        return cls._narrow(value_type, widened)

    # ------------------------------------------------------------
    # range validation
    # ------------------------------------------------------------

    @classmethod
    def check_value_in_range(cls, value_type: ValueType, value: Any) -> bool:
        """
        Check that a widened value fits its value type.

        Bool and String values are always in range. An array is accepted
        when at least one of its elements is in range.
        """
        if value_type.element_type in (ValueType.BOOL, ValueType.STRING):
            return True

        if value_type.is_array:
            element_type = value_type.element_type
            return any(cls._scalar_in_range(element_type, item) for item in value)

        return cls._scalar_in_range(value_type, value)

    @classmethod
    def validate_range(cls, value_type: ValueType, value: Any) -> None:
        """Raise ValidationError unless check_value_in_range passes."""
        if not cls.check_value_in_range(value_type, value):
            low, high = cls.value_range(value_type)
            raise ValidationError(
                f"Reading {value} is out of the value type({value_type.value})'s range "
                f"[{low}, {high}]"
            )

    @classmethod
    def value_range(cls, value_type: ValueType) -> tuple[Any, Any]:
        """Return the inclusive (min, max) range of a numeric value type."""
        element = value_type.element_type
        bits = element.bits
        if element.is_signed_int:
            return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        if element.is_unsigned_int:
            return 0, (1 << bits) - 1
        if element == ValueType.FLOAT32:
            return -FLOAT32_MAX, FLOAT32_MAX
        if element == ValueType.FLOAT64:
            return -math.inf, math.inf
        return None, None

    @classmethod
    def _scalar_in_range(cls, value_type: ValueType, value: Any) -> bool:
        if value_type.is_integer:
            low, high = cls.value_range(value_type)
            return low <= value <= high
        if value_type == ValueType.FLOAT32:
            return not math.isnan(value) and abs(value) <= FLOAT32_MAX
        if value_type == ValueType.FLOAT64:
            return not math.isnan(value) and not math.isinf(value)
        return False

    # ------------------------------------------------------------
    # coercion helpers
    # ------------------------------------------------------------

    @classmethod
    def _widen(cls, value_type: ValueType, value: Any) -> Any:
        """Convert to bool, str, int or float without narrowing."""
        if isinstance(value, ua.Variant):
            value = value.Value

        try:
            if value_type == ValueType.BOOL:
                return cls._convert_bool(value)
            if value_type == ValueType.STRING:
                return cls._convert_string(value)
            if value_type.is_integer:
                return cls._convert_int(value)
            if value_type.is_float:
                return cls._convert_float(value)
        except (ValueError, TypeError, OverflowError) as e:
            raise TypeMismatchError(f"cannot convert {value!r} to {value_type.value}: {e}")

        raise TypeMismatchError(f"unsupported value type: {value_type.value}")

    @classmethod
    def _narrow(cls, value_type: ValueType, value: Any) -> Any:
        if value_type == ValueType.FLOAT32:
            return struct.unpack('<f', struct.pack('<f', value))[0]
        return value

    @classmethod
    def _narrow_in_range(cls, value_type: ValueType, value: Any) -> Any:
        """
        Narrow an array element that may lie outside its type's range.

        Integers wrap to the type's width (two's complement for signed
        types). Float32 elements beyond the single precision range become
        signed infinity. The result is always encodable.
        """
        if value_type.is_integer:
            bits = value_type.bits
            wrapped = value & ((1 << bits) - 1)
            if value_type.is_signed_int and wrapped >= 1 << (bits - 1):
                wrapped -= 1 << bits
            return wrapped
        if value_type == ValueType.FLOAT32:
            try:
                return cls._narrow(value_type, value)
            except OverflowError:
                return math.copysign(math.inf, value)
        return cls._narrow(value_type, value)

    @classmethod
    def _convert_bool(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized == "true":
                return True
            if normalized == "false":
                return False
        raise ValueError("expected a boolean or 'true'/'false'")

    @classmethod
    def _convert_string(cls, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, bytes):
            return value.decode("utf-8")
        if value is None:
            raise TypeError("no value")
        return str(value)

    @classmethod
    def _convert_int(cls, value: Any) -> int:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            # Truncate toward zero; int() raises on NaN/inf
            return int(value)
        if isinstance(value, str):
            return int(value.strip(), 10)
        raise TypeError(f"unsupported source type {type(value).__name__}")

    @classmethod
    def _convert_float(cls, value: Any) -> float:
        if isinstance(value, bool):
            return 1.0 if value else 0.0
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            return float(value.strip())
        raise TypeError(f"unsupported source type {type(value).__name__}")
