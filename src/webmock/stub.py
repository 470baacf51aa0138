"""
Webmock Stubs

Immutable request patterns paired with the canned response to serve.

A stub is built from a method, a URL (path plus optional query string) and a
body, then refined by option builders applied in sequence:

    stub = Stub.create(
        'GET', '/get?foo=bar', 'ok',
        with_headers('Accept-Encoding: gzip,deflate'),
    )

    stub = Stub.create(
        'GET', '/get', '',
        with_response(401, 'No permissions', {'Access-Control-Allow-Origin': '*'}),
    )
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from .common import URLMatcher, parse_header_spec, stringify
from .common.utils import HeaderSpec
from .errors import StubConfigurationError


def _frozen(mapping: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class StubResponse:
    """Response served when a stub matches."""

    status: int = 200
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _validate_status(self.status)
        object.__setattr__(self, 'body', stringify(self.body))
        object.__setattr__(self, 'headers', _frozen(
            {str(k): stringify(v) for k, v in (self.headers or {}).items()}
        ))

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode('utf-8')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'status': self.status,
            'body': self.body,
            'headers': dict(self.headers)
        }


@dataclass
class StubOptions:
    """
    Optional stub settings collected from option builders.

    Fields left as None fall back to the defaults: no header requirements,
    and a 200 response carrying the registration body.
    """

    headers: Optional[Dict[str, str]] = None
    response: Optional[StubResponse] = None


StubOption = Callable[[StubOptions], StubOptions]


def with_headers(spec: HeaderSpec) -> StubOption:
    """
    Require request headers for a stub to match.

    Args:
        spec: "Name: value" lines separated by newlines, or a mapping

    Returns:
        Option builder merging the parsed requirements into StubOptions

    Raises:
        StubConfigurationError: If the spec is malformed
    """
    try:
        parsed = parse_header_spec(spec)
    except ValueError as e:
        raise StubConfigurationError(str(e)) from e

    def apply(options: StubOptions) -> StubOptions:
        merged = dict(options.headers or {})
        merged.update(parsed)
        return replace(options, headers=merged)

    return apply


def with_response(
    status: int,
    body: str = "",
    headers: Optional[Mapping[str, str]] = None
) -> StubOption:
    """
    Override the default 200 response of a stub.

    Args:
        status: HTTP status code to serve
        body: Response body
        headers: Response headers, served verbatim

    Returns:
        Option builder replacing the response in StubOptions

    Raises:
        StubConfigurationError: If status is not a valid HTTP status code
    """
    response = StubResponse(status=status, body=body, headers=headers or {})

    def apply(options: StubOptions) -> StubOptions:
        return replace(options, response=response)

    return apply


def _validate_status(status: Any):
    if isinstance(status, bool) or not isinstance(status, int):
        raise StubConfigurationError(f"Status code must be an integer, got {status!r}")
    # 1xx are interim responses and cannot be sent as the final one
    if not 200 <= status <= 599:
        raise StubConfigurationError(f"Status code out of range: {status}")


@dataclass(frozen=True)
class Stub:
    """
    A matchable request pattern and the response to serve for it.

    Stubs are never mutated after creation. Replacing a stub means
    registering a new one; the earliest registered match wins.

    The method is stored upper-cased while incoming methods are compared
    exactly as sent. The path is stored percent-decoded.
    """

    method: str
    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    response: StubResponse = field(default_factory=StubResponse)

    def __post_init__(self):
        if not isinstance(self.method, str) or not self.method.strip():
            raise StubConfigurationError("Stub method must be a non-empty string")
        if not isinstance(self.path, str) or not self.path:
            raise StubConfigurationError("Stub path must be a non-empty string")

        object.__setattr__(self, 'method', self.method.strip().upper())
        object.__setattr__(self, 'query', _frozen(self.query))
        object.__setattr__(self, 'headers', _frozen(
            {k.lower(): v for k, v in (self.headers or {}).items()}
        ))

    @classmethod
    def create(
        cls,
        method: str,
        url: str,
        body: str = "",
        *options: StubOption
    ) -> 'Stub':
        """
        Build a stub from positional arguments and option builders.

        Args:
            method: HTTP verb. It is upper-cased on creation ("get" is
                stored as "GET"); incoming methods are then compared
                case-sensitively, so a request sent as "get" does not match
            url: Path with optional query string; the query becomes the
                stub's query requirements and the path is percent-decoded
                ("/a%20b" matches a request for "/a b" or "/a%20b")
            body: Body of the default 200 response
            *options: Builders such as with_headers() and with_response()

        Returns:
            New Stub instance

        Raises:
            StubConfigurationError: If method or path is empty, or an
                option is malformed
        """
        if not isinstance(url, str) or not url:
            raise StubConfigurationError("Stub URL must be a non-empty string")

        settings = StubOptions()
        for option in options:
            settings = option(settings)

        path, query = URLMatcher.split_url(url)
        response = settings.response or StubResponse(body=stringify(body))

        return cls(
            method=method,
            path=path,
            query=query,
            headers=settings.headers or {},
            response=response
        )

    @property
    def url(self) -> str:
        return URLMatcher.build_url(self.path, dict(self.query))

    def describe(self) -> str:
        """One-line description used in logs."""
        text = f"{self.method} {self.url}"
        if self.headers:
            text += " [" + ", ".join(f"{k}: {v}" for k, v in self.headers.items()) + "]"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'method': self.method,
            'path': self.path,
            'query': dict(self.query),
            'headers': dict(self.headers),
            'response': self.response.to_dict()
        }
