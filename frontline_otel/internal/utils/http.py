import http.client as httplib
from typing import Optional
from typing import Union
from urllib.parse import ParseResult
from urllib.parse import urlparse

DEFAULT_TIMEOUT = 10.0

ConnectionType = Union[httplib.HTTPConnection, httplib.HTTPSConnection]


class Response(object):
    """
    Custom API Response object to represent a response from calling the API.

    We do this to ensure we know expected properties will exist, and so we
    can call `resp.read()` and load the body once into an instance before we
    close the HTTPConnection used for the request.
    """

    __slots__ = ["status", "body", "reason", "msg"]

    def __init__(self, status=None, body=None, reason=None, msg=None):
        self.status = status
        self.body = body
        self.reason = reason
        self.msg = msg

    @classmethod
    def from_http_response(cls, resp):
        """
        Build a ``Response`` from the provided ``HTTPResponse`` object.

        This function will call `.read()` to consume the body of the ``HTTPResponse`` object.

        :param resp: ``HTTPResponse`` object to build the ``Response`` from
        :type resp: ``HTTPResponse``
        :rtype: ``Response``
        :returns: A new ``Response``
        """
        return cls(
            status=resp.status,
            body=resp.read(),
            reason=getattr(resp, "reason", None),
            msg=getattr(resp, "msg", None),
        )

    @property
    def ok(self):
        # type: () -> bool
        return self.status is not None and 200 <= self.status < 300

    def __repr__(self):
        return "{0}(status={1!r}, body={2!r}, reason={3!r}, msg={4!r})".format(
            self.__class__.__name__,
            self.status,
            self.body,
            self.reason,
            self.msg,
        )


def verify_url(url):
    # type: (str) -> ParseResult
    """Validates that the given URL can be used as an intake
    Returns a parse.ParseResult.
    Raises a ``ValueError`` if the URL cannot be used as an intake
    """
    parsed = urlparse(url)
    schemes = ("http", "https")
    if parsed.scheme not in schemes:
        raise ValueError(
            "Unsupported protocol '%s' in intake URL '%s'. Must be one of: %s"
            % (parsed.scheme, url, ", ".join(schemes))
        )
    if not parsed.hostname:
        raise ValueError("Invalid hostname in intake URL '%s'" % url)
    return parsed


def get_connection(url, timeout=DEFAULT_TIMEOUT):
    # type: (str, Optional[float]) -> ConnectionType
    """Return an HTTP connection to the given URL."""
    parsed = verify_url(url)
    if parsed.scheme == "https":
        return httplib.HTTPSConnection(parsed.hostname, parsed.port, timeout=timeout)
    return httplib.HTTPConnection(parsed.hostname, parsed.port, timeout=timeout)
