"""
Webmock Request Matcher

Pure functions deciding whether an incoming request satisfies a stub.

A request matches a stub when all of these hold:
- Method: exact, case-sensitive equality
- Path: exact equality, no trailing-slash normalization
- Query: every required parameter is present with the required value;
  extra parameters are allowed
- Headers: every required header is present (name compared
  case-insensitively) with exactly the required value; other headers
  are ignored
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from urllib.parse import unquote

from .common import URLMatcher, normalize_headers
from .stub import Stub

if TYPE_CHECKING:
    from starlette.requests import Request


@dataclass(frozen=True)
class IncomingRequest:
    """Normalized view of an inbound request, as seen by the matcher."""

    method: str
    path: str
    query: Dict[str, List[str]] = field(default_factory=dict)
    headers: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_url(
        cls,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None
    ) -> 'IncomingRequest':
        """
        Build a request from a method, a URL and a plain header dict.

        Example:
            IncomingRequest.from_url('GET', '/get?foo=bar', {'Accept': '*/*'})
        """
        path, _, query_string = url.partition('?')
        return cls(
            method=method,
            path=unquote(path),
            query=URLMatcher.parse_query(query_string),
            headers=normalize_headers((headers or {}).items())
        )

    @classmethod
    def from_starlette(cls, request: 'Request') -> 'IncomingRequest':
        """Build a request from a Starlette/FastAPI Request."""
        return cls(
            method=request.method,
            path=request.url.path,
            query=URLMatcher.parse_query(request.url.query),
            headers=normalize_headers(request.headers.items())
        )

    def describe(self) -> str:
        if not self.query:
            return f"{self.method} {self.path}"
        rendered = '&'.join(f"{k}={v}" for k, values in self.query.items() for v in values)
        return f"{self.method} {self.path}?{rendered}"


@dataclass
class MatchResult:
    """Result of resolving a request against the registry."""

    matched: bool
    stub: Optional[Stub] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'matched': self.matched,
            'reason': self.reason,
            'stub': self.stub.describe() if self.stub else None
        }


def method_matches(stub: Stub, request: IncomingRequest) -> bool:
    return stub.method == request.method


def path_matches(stub: Stub, request: IncomingRequest) -> bool:
    return stub.path == request.path


def query_matches(stub: Stub, request: IncomingRequest) -> bool:
    """Every required parameter must be present with the required value."""
    for key, value in stub.query.items():
        if value not in request.query.get(key, ()):
            return False
    return True


def headers_match(stub: Stub, request: IncomingRequest) -> bool:
    """Every required header must carry exactly the required value."""
    for name, value in stub.headers.items():
        if value not in request.headers.get(name, ()):
            return False
    return True


def matches(stub: Stub, request: IncomingRequest) -> bool:
    """Check whether a request satisfies every condition of a stub."""
    return (
        method_matches(stub, request)
        and path_matches(stub, request)
        and query_matches(stub, request)
        and headers_match(stub, request)
    )


def explain_mismatch(stub: Stub, request: IncomingRequest) -> Optional[str]:
    """
    Describe the first condition of a stub that a request fails.

    Args:
        stub: Stub to check
        request: Incoming request

    Returns:
        Human-readable reason, or None if the request matches
    """
    if not method_matches(stub, request):
        return f"method {request.method} != {stub.method}"
    if not path_matches(stub, request):
        return f"path {request.path} != {stub.path}"
    for key, value in stub.query.items():
        actual = request.query.get(key)
        if actual is None:
            return f"query parameter '{key}' missing"
        if value not in actual:
            return f"query parameter '{key}' is {actual}, expected '{value}'"
    for name, value in stub.headers.items():
        actual = request.headers.get(name)
        if actual is None:
            return f"header '{name}' missing"
        if value not in actual:
            return f"header '{name}' is {actual}, expected '{value}'"
    return None
