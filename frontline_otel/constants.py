from frontline_otel.version import __version__


# Identity of the exporting process, sent as the Resource attributes of every request
SERVICE_NAME = "frontline_mcp"
SERVICE_VERSION = "1.0.0"

# Identity of the instrumentation library, sent as the InstrumentationScope
SCOPE_NAME = "frontline_otel"
SCOPE_VERSION = __version__

SERVICE_NAME_KEY = "service.name"
SERVICE_VERSION_KEY = "service.version"

PROTOBUF_CONTENT_TYPE = "application/x-protobuf"
