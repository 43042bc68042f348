import logging
import math

from google.protobuf import wrappers_pb2
from hypothesis import given
from hypothesis.strategies import binary
from hypothesis.strategies import floats
from hypothesis.strategies import integers
from hypothesis.strategies import text
import pytest

from frontline_otel.internal._protobuf import WIRE_TYPE_FIXED64
from frontline_otel.internal._protobuf import WIRE_TYPE_LENGTH_DELIMITED
from frontline_otel.internal._protobuf import WIRE_TYPE_VARINT
from frontline_otel.internal._protobuf import encode_bytes
from frontline_otel.internal._protobuf import encode_double
from frontline_otel.internal._protobuf import encode_double_field
from frontline_otel.internal._protobuf import encode_field
from frontline_otel.internal._protobuf import encode_fixed64
from frontline_otel.internal._protobuf import encode_message
from frontline_otel.internal._protobuf import encode_message_field
from frontline_otel.internal._protobuf import encode_string
from frontline_otel.internal._protobuf import encode_string_field
from frontline_otel.internal._protobuf import encode_tag
from frontline_otel.internal._protobuf import encode_varint
from frontline_otel.internal._protobuf import encode_varint_field
from frontline_otel.internal._protobuf import hex_to_bytes


@pytest.mark.parametrize(
    "value,expected",
    [
        (0, b"\x00"),
        (1, b"\x01"),
        (127, b"\x7f"),
        (128, b"\x80\x01"),
        (300, b"\xac\x02"),
        (16384, b"\x80\x80\x01"),
        ((1 << 64) - 1, b"\xff\xff\xff\xff\xff\xff\xff\xff\xff\x01"),
    ],
)
def test_encode_varint(value, expected):
    assert encode_varint(value) == expected


@given(integers(min_value=0, max_value=(1 << 63) - 1))
def test_varint_decodes_with_protobuf(n):
    # UInt64Value is a message with a single uint64 field numbered 1
    payload = encode_varint_field(1, n)
    assert wrappers_pb2.UInt64Value.FromString(payload).value == n


@pytest.mark.parametrize("value", [-1, -(1 << 63), 1 << 64, True, 1.5, "1", None])
def test_encode_varint_rejects_invalid_input(value):
    with pytest.raises(ValueError):
        encode_varint(value)


def test_encode_fixed64_little_endian():
    assert encode_fixed64(1) == bytes([0x01, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00])
    assert encode_fixed64(256) == bytes([0x00, 0x01, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00])
    assert encode_fixed64((1 << 64) - 1) == b"\xff" * 8


@pytest.mark.parametrize("value", [-1, 1 << 64])
def test_encode_fixed64_out_of_range(value):
    with pytest.raises(ValueError):
        encode_fixed64(value)


def test_encode_double():
    assert encode_double(1.0) == b"\x00\x00\x00\x00\x00\x00\xf0\x3f"
    assert len(encode_double(math.pi)) == 8


@given(floats(allow_nan=False))
def test_double_decodes_with_protobuf(f):
    payload = encode_double_field(1, f)
    assert wrappers_pb2.DoubleValue.FromString(payload).value == f


def test_encode_string():
    assert encode_string("ok") == bytes([0x02, 0x6F, 0x6B])
    assert encode_string("") == b"\x00"


def test_encode_string_length_counts_bytes():
    # 2 characters, 6 UTF-8 bytes
    encoded = encode_string("é😀")
    assert encoded[0] == 6
    assert encoded[1:] == "é😀".encode("utf-8")


@given(text())
def test_string_decodes_with_protobuf(s):
    assert wrappers_pb2.StringValue.FromString(encode_string_field(1, s)).value == s


@given(binary())
def test_bytes_decodes_with_protobuf(b):
    payload = encode_field(1, WIRE_TYPE_LENGTH_DELIMITED, encode_bytes(b))
    assert wrappers_pb2.BytesValue.FromString(payload).value == b


def test_encode_long_string_length_prefix():
    s = "a" * 300
    encoded = encode_string(s)
    assert encoded[:2] == b"\xac\x02"
    assert len(encoded) == 302


def test_hex_to_bytes():
    assert hex_to_bytes("d14846a7e9a14309") == bytes([0xD1, 0x48, 0x46, 0xA7, 0xE9, 0xA1, 0x43, 0x09])
    assert len(hex_to_bytes("9f5d394f93e8e3ca1a5e3c2d9310d035")) == 16


def test_hex_to_bytes_strips_non_hex_characters():
    assert hex_to_bytes("D1-48-46-A7 E9:A1:43:09") == bytes.fromhex("d14846a7e9a14309")


def test_hex_to_bytes_unexpected_length_warns(caplog):
    with caplog.at_level(logging.WARNING):
        assert hex_to_bytes("abcd") == b"\xab\xcd"
    assert "unexpected hex ID length: 4" in caplog.text


def test_hex_to_bytes_expected_length_mismatch_warns(caplog):
    # 16 hex characters is a valid span id but not a valid trace id
    with caplog.at_level(logging.WARNING):
        assert len(hex_to_bytes("d14846a7e9a14309", expected=16)) == 8
    assert "expected 32" in caplog.text


def test_hex_to_bytes_odd_length_drops_trailing_nibble(caplog):
    with caplog.at_level(logging.WARNING):
        assert hex_to_bytes("abc") == b"\xab"
    assert "odd hex ID length 3" in caplog.text


def test_hex_to_bytes_valid_length_does_not_warn(caplog):
    with caplog.at_level(logging.WARNING):
        hex_to_bytes("9f5d394f93e8e3ca1a5e3c2d9310d035", expected=16)
        hex_to_bytes("d14846a7e9a14309", expected=8)
    assert caplog.records == []


def test_encode_tag():
    assert encode_tag(1, WIRE_TYPE_VARINT) == b"\x08"
    assert encode_tag(1, WIRE_TYPE_LENGTH_DELIMITED) == b"\x0a"
    assert encode_tag(7, WIRE_TYPE_FIXED64) == b"\x39"
    # field 16 no longer fits in a single byte
    assert encode_tag(16, WIRE_TYPE_VARINT) == b"\x80\x01"


@pytest.mark.parametrize("field_number,wire_type", [(0, WIRE_TYPE_VARINT), (-1, WIRE_TYPE_VARINT), (1, 5), (1, 3)])
def test_encode_tag_invalid(field_number, wire_type):
    with pytest.raises(ValueError):
        encode_tag(field_number, wire_type)


def test_encode_field_uses_payload_verbatim():
    assert encode_field(5, WIRE_TYPE_LENGTH_DELIMITED, encode_string("ok")) == b"\x2a\x02ok"
    assert encode_field(6, WIRE_TYPE_VARINT, encode_varint(1)) == b"\x30\x01"


def test_encode_message_field_prefixes_length():
    inner = encode_message([encode_string_field(1, "ok")])
    assert encode_message_field(2, inner) == b"\x12\x04\x0a\x02ok"


def test_encode_message_preserves_order():
    fields = [encode_varint_field(2, 1), encode_varint_field(1, 2)]
    assert encode_message(fields) == b"\x10\x01\x08\x02"
    assert encode_message([]) == b""
    assert encode_message(iter(fields)) == b"\x10\x01\x08\x02"
