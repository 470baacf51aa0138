"""
Webmock Errors

Exceptions raised at registration and cassette-load time. Request matching
never raises: an unmatched request is answered with a 404.
"""


class WebmockError(Exception):
    """Base class for webmock errors."""


class StubConfigurationError(WebmockError, ValueError):
    """A stub was registered with malformed arguments."""


class CassetteError(WebmockError, ValueError):
    """A cassette path could not be read, decoded, or turned into stubs."""
