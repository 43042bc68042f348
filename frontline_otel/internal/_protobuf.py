"""
Protocol Buffers wire format, written by hand.

Only the subset needed to serialize ``ExportTraceServiceRequest`` lives here:
unsigned varints, fixed64, doubles and length-delimited payloads. There is no
schema and no reflection: the callers in :mod:`frontline_otel.internal.encoding`
decide field numbers and wire types, this module only frames bytes.

A protobuf message is nothing more than its fields concatenated. It has no
tag or length of its own, those are added by the field that embeds it in its
parent (see :func:`encode_message_field`).
"""
import re
import struct
from typing import Iterable
from typing import Optional

from .logger import get_logger


log = get_logger(__name__)


WIRE_TYPE_VARINT = 0
WIRE_TYPE_FIXED64 = 1
WIRE_TYPE_LENGTH_DELIMITED = 2

_WIRE_TYPES = (WIRE_TYPE_VARINT, WIRE_TYPE_FIXED64, WIRE_TYPE_LENGTH_DELIMITED)

MAX_UINT64 = (1 << 64) - 1

TRACE_ID_SIZE = 16
SPAN_ID_SIZE = 8

_NON_HEX_RE = re.compile(r"[^0-9a-fA-F]")

_FIXED64 = struct.Struct("<Q")
_DOUBLE = struct.Struct("<d")


def _check_uint(n, limit=MAX_UINT64):
    # type: (int, int) -> None
    # bool is an int subclass; True would silently become 1
    if not isinstance(n, int) or isinstance(n, bool):
        raise ValueError("expected an unsigned integer, got %r" % (n,))
    if n < 0:
        raise ValueError("cannot encode negative value %d as an unsigned integer" % n)
    if n > limit:
        raise ValueError("value %d does not fit in 64 bits" % n)


def encode_varint(n):
    # type: (int) -> bytes
    """Encode a non-negative integer as a base-128 varint.

    Each byte carries 7 bits of payload, least significant group first, with
    the high bit set on every byte but the last.
    """
    _check_uint(n)
    out = bytearray()
    while n >= 0x80:
        out.append((n & 0x7F) | 0x80)
        n >>= 7
    out.append(n)
    return bytes(out)


def encode_fixed64(n):
    # type: (int) -> bytes
    """Encode an unsigned 64-bit integer as exactly 8 little-endian bytes."""
    _check_uint(n)
    return _FIXED64.pack(n)


def encode_double(f):
    # type: (float) -> bytes
    """Encode an IEEE-754 binary64 value, little-endian."""
    return _DOUBLE.pack(f)


def encode_bytes(data):
    # type: (bytes) -> bytes
    return encode_varint(len(data)) + bytes(data)


def encode_string(s):
    # type: (str) -> bytes
    """UTF-8 encode ``s`` and prefix it with its length in bytes."""
    return encode_bytes(s.encode("utf-8"))


def hex_to_bytes(hex_id, expected=None):
    # type: (str, Optional[int]) -> bytes
    """Convert a hex trace or span id to raw bytes.

    Non-hex characters are stripped before conversion. A result that is not 8
    or 16 bytes long (or not ``expected`` bytes long, when given) is an
    upstream defect: it is logged and the bytes are returned anyway.
    """
    cleaned = _NON_HEX_RE.sub("", hex_id).lower()
    size = len(cleaned)
    if size % 2:
        log.warning("odd hex ID length %d for %r, dropping the trailing nibble", size, hex_id)
        cleaned = cleaned[:-1]
    if expected is not None:
        if size != expected * 2:
            log.warning("unexpected hex ID length: %d, expected %d", size, expected * 2)
    elif size not in (SPAN_ID_SIZE * 2, TRACE_ID_SIZE * 2):
        log.warning(
            "unexpected hex ID length: %d, expected %d (trace_id) or %d (span_id)",
            size,
            TRACE_ID_SIZE * 2,
            SPAN_ID_SIZE * 2,
        )
    return bytes.fromhex(cleaned)


def encode_tag(field_number, wire_type):
    # type: (int, int) -> bytes
    if wire_type not in _WIRE_TYPES:
        raise ValueError("unsupported wire type %r" % (wire_type,))
    if not isinstance(field_number, int) or field_number < 1:
        raise ValueError("invalid field number %r" % (field_number,))
    return encode_varint((field_number << 3) | wire_type)


def encode_field(field_number, wire_type, payload):
    # type: (int, int, bytes) -> bytes
    """Prefix ``payload`` with the tag for ``field_number``/``wire_type``.

    The payload is used verbatim. For length-delimited fields it must already
    carry its length, as produced by :func:`encode_string` and
    :func:`encode_bytes`; sub-messages go through :func:`encode_message_field`.
    """
    return encode_tag(field_number, wire_type) + payload


def encode_varint_field(field_number, value):
    # type: (int, int) -> bytes
    return encode_field(field_number, WIRE_TYPE_VARINT, encode_varint(value))


def encode_fixed64_field(field_number, value):
    # type: (int, int) -> bytes
    return encode_field(field_number, WIRE_TYPE_FIXED64, encode_fixed64(value))


def encode_double_field(field_number, value):
    # type: (int, float) -> bytes
    return encode_field(field_number, WIRE_TYPE_FIXED64, encode_double(value))


def encode_string_field(field_number, value):
    # type: (int, str) -> bytes
    return encode_field(field_number, WIRE_TYPE_LENGTH_DELIMITED, encode_string(value))


def encode_bytes_field(field_number, value):
    # type: (int, bytes) -> bytes
    return encode_field(field_number, WIRE_TYPE_LENGTH_DELIMITED, encode_bytes(value))


def encode_message_field(field_number, message):
    # type: (int, bytes) -> bytes
    """Embed an already encoded message, which carries no length of its own."""
    return encode_field(field_number, WIRE_TYPE_LENGTH_DELIMITED, encode_bytes(message))


def encode_message(fields):
    # type: (Iterable[bytes]) -> bytes
    """Concatenate encoded fields, in order, into one message."""
    return b"".join(fields)
