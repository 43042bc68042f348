import contextlib
import os
from unittest import TestCase

from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import ExportTraceServiceRequest

from frontline_otel.trace import SpanRecord


TRACE_ID = "9f5d394f93e8e3ca1a5e3c2d9310d035"
SPAN_ID = "d14846a7e9a14309"
PARENT_SPAN_ID = "00f067aa0ba902b7"


@contextlib.contextmanager
def override_env(env, replace_os_env=False):
    """
    Temporarily override ``os.environ`` with provided values::

        >>> with self.override_env(dict(OTEL_EXPORTER_OTLP_ENDPOINT="http://collector:4318")):
            # Your test
    """
    # Copy the full original environment
    original = dict(os.environ)

    # We allow callers to clear out the environment to prevent leaking variables into the test
    if replace_os_env:
        os.environ.clear()

    for k in list(os.environ.keys()):
        if k.startswith("OTEL_EXPORTER_OTLP_"):
            del os.environ[k]

    # Update based on the passed in arguments
    os.environ.update(env)
    try:
        yield
    finally:
        # Full clear the environment out and reset back to the original
        os.environ.clear()
        os.environ.update(original)


class BaseTestCase(TestCase):
    """
    BaseTestCase extends ``unittest.TestCase`` to provide some useful helpers

    Example::

        from tests.utils import BaseTestCase


        class MyTestCase(BaseTestCase):
            def test_case(self):
                with self.override_env(dict(OTEL_EXPORTER_OTLP_TIMEOUT="500")):
                    pass
    """

    override_env = staticmethod(override_env)


def make_span(**kwargs):
    # type: (...) -> SpanRecord
    """Build a span record with sensible defaults, overridden by ``kwargs``."""
    fields = dict(
        trace_id=TRACE_ID,
        span_id=SPAN_ID,
        name="test-operation",
        kind=1,
        start_time=(1678886400, 0),
        end_time=(1678886400, 100000000),
    )
    fields.update(kwargs)
    return SpanRecord(**fields)


def decode_request(payload):
    # type: (bytes) -> ExportTraceServiceRequest
    """Parse an encoded payload with the reference OTLP protobuf classes."""
    request = ExportTraceServiceRequest()
    request.ParseFromString(payload)
    return request


def decode_spans(payload):
    request = decode_request(payload)
    assert len(request.resource_spans) == 1
    assert len(request.resource_spans[0].scope_spans) == 1
    return list(request.resource_spans[0].scope_spans[0].spans)
