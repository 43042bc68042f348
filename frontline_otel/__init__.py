from .internal.encoding import OTLPProtobufEncoder
from .internal.encoding import convert_spans_to_protobuf
from .trace import SpanEvent
from .trace import SpanLink
from .trace import SpanRecord
from .trace import SpanStatus
from .version import __version__


__all__ = [
    "OTLPProtobufEncoder",
    "SpanEvent",
    "SpanLink",
    "SpanRecord",
    "SpanStatus",
    "convert_spans_to_protobuf",
    "__version__",
]
