"""Tests for write validation and result checking."""

import math

import pytest
from asyncua import ua
from asyncua.ua.ua_binary import struct_to_binary

from opcua_bridge.errors import (
    InvalidAddressError,
    TypeMismatchError,
    UnsupportedOperationError,
    ValidationError,
    WriteError,
)
from opcua_bridge.server.write_handler import (
    build_write_parameters,
    check_write_results,
    prepare_write,
)
from opcua_bridge.types import CommandRequest, CommandValue, ValueType


def request(name: str, node_id: str, value_type: str) -> CommandRequest:
    return CommandRequest.from_attributes(name, value_type, {"nodeId": node_id})


class TestPrepareWrite:

    def test_encodes_each_pair(self):
        requests = [request("a", "ns=2;i=1", "Int8"), request("b", "ns=2;s=b", "Bool")]
        values = [CommandValue("a", ValueType.INT8, -5), CommandValue("b", ValueType.BOOL, True)]

        items = prepare_write(requests, values)

        assert [str(node) for _, node, _ in items] == ["ns=2;i=1", "ns=2;s=b"]
        assert (items[0][2].Value, items[0][2].VariantType) == (-5, ua.VariantType.SByte)
        assert (items[1][2].Value, items[1][2].VariantType) == (True, ua.VariantType.Boolean)

    def test_length_mismatch(self):
        with pytest.raises(ValidationError):
            prepare_write([request("a", "ns=2;i=1", "Int8")], [])

    def test_invalid_address(self):
        with pytest.raises(InvalidAddressError):
            prepare_write(
                [request("a", "ns=2;q=1", "Int8")],
                [CommandValue("a", ValueType.INT8, 1)],
            )

    def test_method_resource(self):
        method = CommandRequest.from_attributes(
            "m", "Int8", {"methodId": "ns=2;s=m", "objectId": "ns=2;s=o"}
        )
        with pytest.raises(UnsupportedOperationError):
            prepare_write([method], [CommandValue("m", ValueType.INT8, 1)])

    def test_type_mismatch(self):
        with pytest.raises(TypeMismatchError):
            prepare_write(
                [request("a", "ns=2;i=1", "Int8")],
                [CommandValue("a", ValueType.INT16, 1)],
            )

    def test_out_of_range(self):
        with pytest.raises(ValidationError):
            prepare_write(
                [request("a", "ns=2;i=1", "Uint8")],
                [CommandValue("a", ValueType.UINT8, 256)],
            )

    def test_float32_is_narrowed(self):
        items = prepare_write(
            [request("a", "ns=2;i=1", "Float32")],
            [CommandValue("a", ValueType.FLOAT32, 0.1)],
        )
        variant = items[0][2]
        assert variant.VariantType == ua.VariantType.Float
        assert variant.Value == pytest.approx(0.1, rel=1e-7)

    @pytest.mark.parametrize("value_type,values,expected", [
        ("Int8Array", [1, 1000], [1, -24]),
        ("Uint8Array", [1, 256, -1], [1, 0, 255]),
        ("Int16Array", [5, 40000], [5, -25536]),
        ("Float32Array", [1.0, 1e39, -1e39], [1.0, math.inf, -math.inf]),
    ])
    def test_array_elements_outside_range_are_encodable(self, value_type, values, expected):
        vtype = ValueType.from_string(value_type)
        items = prepare_write([request("a", "ns=2;i=1", value_type)], [CommandValue("a", vtype, values)])

        assert items[0][2].Value == expected
        struct_to_binary(build_write_parameters(items))


class TestWriteResults:

    def _items(self):
        requests = [request("a", "ns=2;i=1", "Int32"), request("b", "ns=2;i=2", "Int32")]
        values = [CommandValue("a", ValueType.INT32, 1), CommandValue("b", ValueType.INT32, 2)]
        return prepare_write(requests, values)

    def test_parameters_cover_every_item(self):
        params = build_write_parameters(self._items())
        assert len(params.NodesToWrite) == 2
        variant = params.NodesToWrite[1].Value.Value
        assert (variant.Value, variant.VariantType) == (2, ua.VariantType.Int32)

    def test_all_good(self):
        check_write_results(self._items(), [ua.StatusCode(), ua.StatusCode()])

    def test_failures_are_collected(self):
        with pytest.raises(WriteError) as exc:
            check_write_results(
                self._items(),
                [ua.StatusCode(ua.StatusCodes.BadNotWritable), ua.StatusCode()],
            )
        assert [name for name, _ in exc.value.failures] == ["a"]
        assert "a" in str(exc.value)

    def test_missing_status_counts_as_failure(self):
        with pytest.raises(WriteError) as exc:
            check_write_results(self._items(), [ua.StatusCode()])
        assert exc.value.failures == [("b", "no status returned")]
