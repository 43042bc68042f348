import operator
import time
from collections.abc import Mapping
from typing import Any
from typing import Iterable
from typing import List
from typing import Optional
from typing import Sequence

from ..constants import PROTOBUF_CONTENT_TYPE
from ..constants import SCOPE_NAME
from ..constants import SCOPE_VERSION
from ..constants import SERVICE_NAME
from ..constants import SERVICE_NAME_KEY
from ..constants import SERVICE_VERSION
from ..constants import SERVICE_VERSION_KEY
from ..ext import SpanKind
from ..ext import StatusCode
from ..trace import INT64_MAX
from ..trace import INT64_MIN
from ..trace import AnyValue
from ..trace import Attributes
from ..trace import SpanEvent
from ..trace import SpanLink
from ..trace import SpanRecord
from ..trace import SpanStatus
from ..trace import TimePair
from ._exceptions import EncodingError
from ._protobuf import MAX_UINT64
from ._protobuf import SPAN_ID_SIZE
from ._protobuf import TRACE_ID_SIZE
from ._protobuf import encode_bytes_field
from ._protobuf import encode_double_field
from ._protobuf import encode_fixed64_field
from ._protobuf import encode_message
from ._protobuf import encode_message_field
from ._protobuf import encode_string_field
from ._protobuf import encode_varint_field
from ._protobuf import hex_to_bytes
from .logger import get_logger


__all__ = ["OTLPProtobufEncoder", "convert_spans_to_protobuf"]


log = get_logger(__name__)

NANOSECONDS_PER_SECOND = 1_000_000_000


def _as_whole_number(n):
    # type: (Any) -> int
    if isinstance(n, float):
        if not n.is_integer():
            raise ValueError("%r is not a whole number" % n)
        return int(n)
    return operator.index(n)


class _EncoderBase(object):
    """
    Encoder interface that provides the logic to encode a batch of spans.
    """

    content_type = None  # type: Optional[str]

    def encode_traces(self, spans):
        # type: (Sequence[SpanRecord]) -> bytes
        """
        Encodes a batch of finished spans into a single payload.

        Either the whole batch is encoded or an error is raised: no partial
        payload is ever returned.

        :param spans: The span records that should be serialized
        """
        raise NotImplementedError()


class OTLPProtobufEncoder(_EncoderBase):
    """
    Serializes span records into an OTLP ``ExportTraceServiceRequest``, in the
    protobuf binary format.

    All spans of a batch share one Resource (``service.name`` and
    ``service.version``) and one InstrumentationScope, so the request always
    holds exactly one ``ResourceSpans`` with exactly one ``ScopeSpans``.

    Instances hold read-only identity strings only and can be shared between
    threads.
    """

    content_type = PROTOBUF_CONTENT_TYPE

    def __init__(
        self,
        service_name=SERVICE_NAME,  # type: str
        service_version=SERVICE_VERSION,  # type: str
        scope_name=SCOPE_NAME,  # type: str
        scope_version=SCOPE_VERSION,  # type: str
    ):
        # type: (...) -> None
        self.service_name = service_name
        self.service_version = service_version
        self.scope_name = scope_name
        self.scope_version = scope_version

    def encode_traces(self, spans):
        # type: (Sequence[SpanRecord]) -> bytes
        encoded_spans = []  # type: List[bytes]
        for index, span in enumerate(spans):
            try:
                encoded_spans.append(self.convert_span(span))
            except EncodingError:
                raise
            except Exception as e:
                raise EncodingError("failed to encode span #%d: %s" % (index, e)) from e

        # ScopeSpans: scope = 1, spans = 2
        scope_spans = encode_message(
            [encode_message_field(1, self._encode_scope())] + [encode_message_field(2, s) for s in encoded_spans]
        )
        # ResourceSpans: resource = 1, scope_spans = 2
        resource_spans = encode_message(
            [
                encode_message_field(1, self._encode_resource()),
                encode_message_field(2, scope_spans),
            ]
        )
        # ExportTraceServiceRequest: resource_spans = 1
        payload = encode_message([encode_message_field(1, resource_spans)])
        log.debug("encoded %d spans into %d bytes", len(encoded_spans), len(payload))
        return payload

    def _encode_resource(self):
        # type: () -> bytes
        # Resource: attributes = 1
        return encode_message(
            [
                encode_message_field(1, self.encode_key_value(SERVICE_NAME_KEY, self.service_name)),
                encode_message_field(1, self.encode_key_value(SERVICE_VERSION_KEY, self.service_version)),
            ]
        )

    def _encode_scope(self):
        # type: () -> bytes
        # InstrumentationScope: name = 1, version = 2
        return encode_message([encode_string_field(1, self.scope_name), encode_string_field(2, self.scope_version)])

    @classmethod
    def convert_span(cls, span):
        # type: (SpanRecord) -> bytes
        if not span.trace_id:
            log.warning("span %r has no trace id", span.name)
        if not span.span_id:
            log.warning("span %r has no span id", span.name)
        name = span.name
        if name is None:
            log.warning("span %s has no name", span.span_id)
            name = ""

        kind = SpanKind.INTERNAL if span.kind is None else span.kind

        fields = [
            encode_bytes_field(1, hex_to_bytes(span.trace_id or "", TRACE_ID_SIZE)),
            encode_bytes_field(2, hex_to_bytes(span.span_id or "", SPAN_ID_SIZE)),
        ]
        if span.trace_state:
            fields.append(encode_string_field(3, span.trace_state))
        if span.parent_span_id:
            fields.append(encode_bytes_field(4, hex_to_bytes(span.parent_span_id, SPAN_ID_SIZE)))
        fields.append(encode_string_field(5, name))
        fields.append(encode_varint_field(6, int(kind)))
        fields.append(encode_fixed64_field(7, cls.convert_time_to_nano(span.start_time)))
        fields.append(encode_fixed64_field(8, cls.convert_time_to_nano(span.end_time)))
        fields.extend(cls._encode_attributes(9, span.attributes))
        if span.dropped_attributes_count:
            fields.append(encode_varint_field(10, span.dropped_attributes_count))
        fields.extend(encode_message_field(11, cls.encode_event(e)) for e in span.events)
        if span.dropped_events_count:
            fields.append(encode_varint_field(12, span.dropped_events_count))
        fields.extend(encode_message_field(13, cls.encode_link(link)) for link in span.links)
        if span.dropped_links_count:
            fields.append(encode_varint_field(14, span.dropped_links_count))
        fields.append(encode_message_field(15, cls.encode_status(span.status)))
        return encode_message(fields)

    @staticmethod
    def convert_time_to_nano(value):
        # type: (TimePair) -> int
        """Combine a ``(seconds, nanoseconds)`` pair into nanoseconds since the epoch.

        A negative result is replaced by the current time.
        """
        try:
            seconds, nanos = value
            seconds, nanos = _as_whole_number(seconds), _as_whole_number(nanos)
        except (TypeError, ValueError) as e:
            raise EncodingError("invalid timestamp %r, expected a (seconds, nanoseconds) pair" % (value,)) from e
        total = seconds * NANOSECONDS_PER_SECOND + nanos

        if total < 0:
            log.warning("invalid negative timestamp %r, using current time", value)
            return time.time_ns()
        if total > MAX_UINT64:
            raise EncodingError("timestamp %r does not fit in 64 bits" % (value,))
        return total

    @classmethod
    def _encode_attributes(cls, field_number, attributes):
        # type: (int, Attributes) -> Iterable[bytes]
        items = attributes.items() if isinstance(attributes, Mapping) else attributes
        for key, value in items:
            yield encode_message_field(field_number, cls.encode_key_value(key, value))

    @classmethod
    def encode_key_value(cls, key, value):
        # type: (str, Any) -> bytes
        # KeyValue: key = 1, value = 2
        return encode_message([encode_string_field(1, key), encode_message_field(2, cls.encode_any_value(value))])

    @classmethod
    def encode_any_value(cls, value):
        # type: (Any) -> bytes
        """Encode a value as an ``AnyValue`` message holding exactly one field."""
        any_value = AnyValue.from_python(value)
        branch = any_value.which()

        if branch == "string_value":
            return encode_string_field(1, any_value.string_value)
        if branch == "bool_value":
            return encode_varint_field(2, 1 if any_value.bool_value else 0)
        if branch == "int_value":
            n = any_value.int_value
            if not INT64_MIN <= n <= INT64_MAX:
                raise EncodingError("int_value %d does not fit in int64" % n)
            # int64 negatives go on the wire as their 64-bit two's complement
            return encode_varint_field(3, n & MAX_UINT64)
        if branch == "double_value":
            return encode_double_field(4, any_value.double_value)
        if branch == "array_value":
            # ArrayValue: values = 1
            array = encode_message(encode_message_field(1, cls.encode_any_value(v)) for v in any_value.array_value)
            return encode_message_field(5, array)
        if branch == "kvlist_value":
            # KeyValueList: values = 1
            kvlist = encode_message(
                encode_message_field(1, cls.encode_key_value(k, v)) for k, v in any_value.kvlist_value
            )
            return encode_message_field(6, kvlist)
        return encode_bytes_field(7, any_value.bytes_value)

    @staticmethod
    def encode_status(status):
        # type: (Optional[SpanStatus]) -> bytes
        # Status: code = 2, message = 3
        if status is None:
            status = SpanStatus()
        return encode_message(
            [
                encode_varint_field(2, int(status.code if status.code is not None else StatusCode.UNSET)),
                encode_string_field(3, status.message or ""),
            ]
        )

    @classmethod
    def encode_event(cls, event):
        # type: (SpanEvent) -> bytes
        # Event: time_unix_nano = 1, name = 2, attributes = 3, dropped_attributes_count = 4
        fields = [
            encode_fixed64_field(1, cls.convert_time_to_nano(event.time)),
            encode_string_field(2, event.name or ""),
        ]
        fields.extend(cls._encode_attributes(3, event.attributes))
        if event.dropped_attributes_count:
            fields.append(encode_varint_field(4, event.dropped_attributes_count))
        return encode_message(fields)

    @classmethod
    def encode_link(cls, link):
        # type: (SpanLink) -> bytes
        # Link: trace_id = 1, span_id = 2, trace_state = 3, attributes = 4, dropped_attributes_count = 5
        if not link.trace_id:
            log.warning("link to span %s has no trace id", link.span_id)
        if not link.span_id:
            log.warning("link to trace %s has no span id", link.trace_id)
        fields = [
            encode_bytes_field(1, hex_to_bytes(link.trace_id or "", TRACE_ID_SIZE)),
            encode_bytes_field(2, hex_to_bytes(link.span_id or "", SPAN_ID_SIZE)),
        ]
        if link.trace_state:
            fields.append(encode_string_field(3, link.trace_state))
        fields.extend(cls._encode_attributes(4, link.attributes))
        if link.dropped_attributes_count:
            fields.append(encode_varint_field(5, link.dropped_attributes_count))
        return encode_message(fields)


_default_encoder = OTLPProtobufEncoder()


def convert_spans_to_protobuf(spans):
    # type: (Sequence[SpanRecord]) -> bytes
    """Serialize a batch of spans into an ``ExportTraceServiceRequest`` payload."""
    return _default_encoder.encode_traces(spans)
