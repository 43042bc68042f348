"""
Span records
============

The span records handed to :func:`frontline_otel.convert_spans_to_protobuf`.
They describe finished spans the way the OpenTelemetry SDK reports them: hex
trace and span ids, ``(seconds, nanoseconds)`` timestamps and attribute
mappings. Records are immutable.

Usage::

    from frontline_otel.trace import SpanRecord

    span = SpanRecord(
        trace_id="9f5d394f93e8e3ca1a5e3c2d9310d035",
        span_id="d14846a7e9a14309",
        name="navigate",
        start_time=(1678886400, 0),
        end_time=(1678886400, 100000000),
        attributes={"url": "https://example.com"},
    )

Collaborators that produce the JavaScript SDK shape (``traceId``,
``spanContext``, ``startTime``...) can go through :meth:`SpanRecord.from_dict`.
"""
from collections.abc import Mapping
from typing import Any
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

import attr

from frontline_otel.ext import SpanKind
from frontline_otel.ext import StatusCode
from frontline_otel.internal._exceptions import InvalidAnyValueError
from frontline_otel.internal._exceptions import UnsupportedAttributeValueError
from frontline_otel.internal.logger import get_logger


log = get_logger(__name__)

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

TimePair = Tuple[int, int]
# Either a mapping or a sequence of (key, value) pairs; the latter keeps duplicate keys
Attributes = Union[Mapping, Sequence[Tuple[str, Any]]]

_ANY_VALUE_BRANCHES = (
    "string_value",
    "bool_value",
    "int_value",
    "double_value",
    "array_value",
    "kvlist_value",
    "bytes_value",
)


@attr.s(frozen=True, slots=True)
class AnyValue:
    """
    A typed attribute value. Exactly one of the branches must be set, as in the
    ``AnyValue`` oneof of the OTLP common schema:

    string_value: ``str``
    bool_value: ``bool``
    int_value: ``int`` within the int64 range
    double_value: ``float``
    array_value: tuple of ``AnyValue``
    kvlist_value: tuple of ``(key, AnyValue)`` pairs
    bytes_value: ``bytes``
    """

    string_value = attr.ib(type=Optional[str], default=None)
    bool_value = attr.ib(type=Optional[bool], default=None)
    int_value = attr.ib(type=Optional[int], default=None)
    double_value = attr.ib(type=Optional[float], default=None)
    array_value = attr.ib(type=Optional[Tuple["AnyValue", ...]], default=None)
    kvlist_value = attr.ib(type=Optional[Tuple[Tuple[str, "AnyValue"], ...]], default=None)
    bytes_value = attr.ib(type=Optional[bytes], default=None)

    def which(self):
        # type: () -> str
        """Return the name of the branch that is set."""
        branches = [name for name in _ANY_VALUE_BRANCHES if getattr(self, name) is not None]
        if len(branches) != 1:
            raise InvalidAnyValueError(
                "AnyValue must have exactly one value set, got %s" % (", ".join(branches) or "none")
            )
        return branches[0]

    @classmethod
    def from_python(cls, value):
        # type: (Any) -> AnyValue
        if isinstance(value, AnyValue):
            return value
        if value is None:
            return cls(string_value="")
        if isinstance(value, str):
            return cls(string_value=value)
        # bool first: it is a subclass of int
        if isinstance(value, bool):
            return cls(bool_value=value)
        if isinstance(value, int):
            if INT64_MIN <= value <= INT64_MAX:
                return cls(int_value=value)
            log.warning("integer attribute value %d overflows int64, sending it as a double", value)
            return cls(double_value=float(value))
        if isinstance(value, float):
            return cls(double_value=value)
        if isinstance(value, (bytes, bytearray)):
            return cls(bytes_value=bytes(value))
        if isinstance(value, (list, tuple)):
            return cls(array_value=tuple(cls.from_python(v) for v in value))
        if isinstance(value, Mapping):
            return cls(kvlist_value=tuple((str(k), cls.from_python(v)) for k, v in value.items()))
        raise UnsupportedAttributeValueError(value)


@attr.s(frozen=True, slots=True)
class SpanStatus:
    code = attr.ib(type=int, default=StatusCode.UNSET)
    message = attr.ib(type=str, default="")


@attr.s(frozen=True, slots=True)
class SpanEvent:
    name = attr.ib(type=str)
    time = attr.ib(type=TimePair)
    attributes = attr.ib(type=Attributes, factory=dict)
    dropped_attributes_count = attr.ib(type=int, default=0)


@attr.s(frozen=True, slots=True)
class SpanLink:
    """
    A causal relationship to a span of this or another trace.

    trace_id: 32 hex characters
    span_id: 16 hex characters
    trace_state: the W3C tracestate of the linked span, if any
    """

    trace_id = attr.ib(type=str)
    span_id = attr.ib(type=str)
    trace_state = attr.ib(type=str, default="")
    attributes = attr.ib(type=Attributes, factory=dict)
    dropped_attributes_count = attr.ib(type=int, default=0)


@attr.s(frozen=True, slots=True)
class SpanRecord:
    """
    One finished span.

    ``kind`` defaults to ``SpanKind.INTERNAL`` when left to ``None`` and a
    missing ``status`` is sent as ``StatusCode.UNSET``. ``parent_span_id`` is
    ``None`` for root spans.
    """

    trace_id = attr.ib(type=str)
    span_id = attr.ib(type=str)
    name = attr.ib(type=str)
    start_time = attr.ib(type=TimePair)
    end_time = attr.ib(type=TimePair)
    parent_span_id = attr.ib(type=Optional[str], default=None)
    kind = attr.ib(type=Optional[int], default=None)
    attributes = attr.ib(type=Attributes, factory=dict)
    events = attr.ib(type=Sequence[SpanEvent], default=())
    links = attr.ib(type=Sequence[SpanLink], default=())
    status = attr.ib(type=Optional[SpanStatus], default=None)
    trace_state = attr.ib(type=str, default="")
    dropped_attributes_count = attr.ib(type=int, default=0)
    dropped_events_count = attr.ib(type=int, default=0)
    dropped_links_count = attr.ib(type=int, default=0)

    @classmethod
    def from_dict(cls, data):
        # type: (Mapping) -> SpanRecord
        """Build a record from the OpenTelemetry JS ``ReadableSpan`` shape."""
        context = data.get("spanContext") or {}
        parent_span_id = data.get("parentSpanId")
        parent_context = data.get("parentSpanContext")
        if parent_context:
            parent_span_id = parent_context.get("spanId")

        # JS SpanKind counts from INTERNAL = 0, OTLP reserves 0 for UNSPECIFIED
        js_kind = data.get("kind")
        kind = SpanKind.INTERNAL if js_kind is None else int(js_kind) + 1

        status = data.get("status")
        if status is not None:
            status = SpanStatus(code=status.get("code") or StatusCode.UNSET, message=status.get("message") or "")

        return cls(
            trace_id=data.get("traceId") or context.get("traceId") or "",
            span_id=data.get("spanId") or context.get("spanId") or "",
            name=data.get("name"),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            parent_span_id=parent_span_id or None,
            kind=kind,
            attributes=data.get("attributes") or {},
            events=tuple(
                SpanEvent(name=e.get("name"), time=e.get("time"), attributes=e.get("attributes") or {})
                for e in data.get("events") or ()
            ),
            links=tuple(_link_from_dict(link) for link in data.get("links") or ()),
            status=status,
            trace_state=context.get("traceState") or "",
        )


def _link_from_dict(data):
    # type: (Mapping) -> SpanLink
    context = data.get("context") or {}
    return SpanLink(
        trace_id=context.get("traceId") or "",
        span_id=context.get("spanId") or "",
        trace_state=context.get("traceState") or "",
        attributes=data.get("attributes") or {},
    )


__all__ = ["AnyValue", "SpanEvent", "SpanKind", "SpanLink", "SpanRecord", "SpanStatus", "StatusCode"]
