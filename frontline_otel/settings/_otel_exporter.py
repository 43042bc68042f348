"""
Configuration of the OTLP trace transport.

Only the transport reads configuration. The encoder takes its resource and
scope identity from :mod:`frontline_otel.constants`.

Traces-specific variables take precedence over the generic ones:

- ``OTEL_EXPORTER_OTLP_TRACES_ENDPOINT`` (used as-is) over
  ``OTEL_EXPORTER_OTLP_ENDPOINT`` (``/v1/traces`` is appended)
- ``OTEL_EXPORTER_OTLP_TRACES_HEADERS`` over ``OTEL_EXPORTER_OTLP_HEADERS``
  (``key1=value1,key2=value2``)
- ``OTEL_EXPORTER_OTLP_TRACES_TIMEOUT`` over ``OTEL_EXPORTER_OTLP_TIMEOUT``
  (milliseconds)
"""
import typing as t

from envier import Env


OTLP_HTTP_DEFAULT_ENDPOINT = "http://localhost:4318"
OTLP_HTTP_TRACES_PATH = "/v1/traces"
# Default timeout: 10000 ms per OTEL convention
OTLP_TIMEOUT_MS_DEFAULT = 10000


def _parse_otel_headers(headers_str: str) -> t.Dict[str, str]:
    """Parse OTEL header string (key1=value1,key2=value2) into a dict."""
    out: t.Dict[str, str] = {}
    if not headers_str or not headers_str.strip():
        return out
    for part in headers_str.split(","):
        part = part.strip()
        if not part:
            continue
        if "=" in part:
            key, _, val = part.partition("=")
            key, val = key.strip(), val.strip()
            if key:
                out[key] = val
        else:
            out[part] = ""
    return out


def _parse_timeout_ms(value: str) -> t.Optional[float]:
    try:
        ms = float(value)
    except (TypeError, ValueError):
        return None
    return ms if ms > 0 else None


def _non_empty(value: t.Optional[str]) -> t.Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _derive_traces_endpoint(config: "OTLPTraceExporterConfig") -> str:
    endpoint = _non_empty(config._traces_endpoint)
    if endpoint:
        return endpoint.rstrip("/")
    endpoint = _non_empty(config._endpoint) or OTLP_HTTP_DEFAULT_ENDPOINT
    return endpoint.rstrip("/") + OTLP_HTTP_TRACES_PATH


def _derive_traces_headers(config: "OTLPTraceExporterConfig") -> t.Dict[str, str]:
    return config._traces_headers or config._headers


def _derive_traces_timeout(config: "OTLPTraceExporterConfig") -> float:
    ms = config._traces_timeout_ms or config._timeout_ms or OTLP_TIMEOUT_MS_DEFAULT
    return ms / 1000.0


class OTLPTraceExporterConfig(Env):
    __prefix__ = "otel_exporter_otlp"

    _endpoint = Env.var(t.Optional[str], "endpoint", default=None)
    _traces_endpoint = Env.var(t.Optional[str], "traces_endpoint", default=None)
    _headers = Env.var(dict, "headers", parser=_parse_otel_headers, default={})
    _traces_headers = Env.var(dict, "traces_headers", parser=_parse_otel_headers, default={})
    _timeout_ms = Env.var(t.Optional[float], "timeout", parser=_parse_timeout_ms, default=None)
    _traces_timeout_ms = Env.var(t.Optional[float], "traces_timeout", parser=_parse_timeout_ms, default=None)

    traces_endpoint = Env.d(str, _derive_traces_endpoint)
    traces_headers = Env.d(dict, _derive_traces_headers)
    traces_timeout_seconds = Env.d(float, _derive_traces_timeout)


config = OTLPTraceExporterConfig()
