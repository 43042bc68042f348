class EncodingError(ValueError):
    """Raised when a batch of spans cannot be turned into a valid OTLP payload."""


class InvalidAnyValueError(EncodingError):
    """An ``AnyValue`` must carry exactly one of its oneof branches."""


class UnsupportedAttributeValueError(EncodingError, TypeError):
    """The attribute value type has no ``AnyValue`` branch to be encoded into."""

    def __init__(self, value):
        super().__init__("unsupported attribute value type: %s" % type(value).__name__)
        self.value = value
