import enum
import http.client as httplib
import threading
import time
from typing import Dict
from typing import Optional
from typing import Sequence

from ...settings._otel_exporter import config as otel_exporter_config
from ...trace import SpanRecord
from .._exceptions import EncodingError
from ..encoding import OTLPProtobufEncoder
from ..logger import get_logger
from ..utils.http import Response
from ..utils.http import get_connection
from ..utils.http import verify_url


log = get_logger(__name__)


class ExportResult(enum.Enum):
    SUCCESS = 0
    FAILURE = 1


def _human_size(nbytes):
    """Return a human-readable size."""
    i = 0
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    while nbytes >= 1000 and i < len(suffixes) - 1:
        nbytes /= 1000.0
        i += 1
    f = ("%.2f" % nbytes).rstrip("0").rstrip(".")
    return "%s%s" % (f, suffixes[i])


class OTLPWriter(object):
    """Send batches of spans to an OTLP/HTTP collector as protobuf.

    Each call to :meth:`export` encodes one batch and POSTs it once. Failed
    requests are reported and dropped, there is no retry.
    """

    HTTP_METHOD = "POST"

    def __init__(
        self,
        endpoint_url=None,  # type: Optional[str]
        headers=None,  # type: Optional[Dict[str, str]]
        timeout_seconds=None,  # type: Optional[float]
        encoder=None,  # type: Optional[OTLPProtobufEncoder]
    ):
        # type: (...) -> None
        if endpoint_url is None:
            endpoint_url = otel_exporter_config.traces_endpoint
        if headers is None:
            headers = otel_exporter_config.traces_headers
        if timeout_seconds is None:
            timeout_seconds = otel_exporter_config.traces_timeout_seconds

        parsed = verify_url(endpoint_url)
        self.intake_url = endpoint_url
        self._path = parsed.path or "/"
        if parsed.query:
            self._path += "?" + parsed.query
        self._headers = dict(headers)
        self._timeout = timeout_seconds
        self._encoder = encoder or OTLPProtobufEncoder()
        # Connections are not reused, the lock only serializes concurrent exports
        self._lock = threading.Lock()

    def _get_finalized_headers(self):
        # type: () -> Dict[str, str]
        headers = self._headers.copy()
        headers["Content-Type"] = self._encoder.content_type
        return headers

    def _put(self, data, headers):
        # type: (bytes, Dict[str, str]) -> Response
        conn = get_connection(self.intake_url, self._timeout)
        start = time.monotonic()
        try:
            log.debug("Sending request: %s %s %s", self.HTTP_METHOD, self._path, headers)
            conn.request(self.HTTP_METHOD, self._path, data, headers)
            resp = Response.from_http_response(conn.getresponse())
            log.debug("Got response: %s %s", resp.status, resp.reason)
        finally:
            conn.close()
        log.debug("sent %s in %.5fs to %s", _human_size(len(data)), time.monotonic() - start, self.intake_url)
        return resp

    def export(self, spans):
        # type: (Sequence[SpanRecord]) -> ExportResult
        if not spans:
            return ExportResult.SUCCESS

        try:
            payload = self._encoder.encode_traces(spans)
        except EncodingError:
            log.error("failed to encode %d spans, dropping the batch", len(spans), exc_info=True)
            return ExportResult.FAILURE

        with self._lock:
            try:
                response = self._put(payload, self._get_finalized_headers())
            except (OSError, httplib.HTTPException):
                log.error("failed to send %d spans to %s", len(spans), self.intake_url, exc_info=True)
                return ExportResult.FAILURE

        if not response.ok:
            log.error(
                "failed to send spans to intake at %s: HTTP error status %s, reason %s, body %r",
                self.intake_url,
                response.status,
                response.reason,
                response.body,
            )
            return ExportResult.FAILURE

        log.debug("exported %d spans to %s", len(spans), self.intake_url)
        return ExportResult.SUCCESS
