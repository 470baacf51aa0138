"""
Webmock URL Utilities

Shared URL splitting and query-string parsing used by stub registration
and the cassette loader.
"""

from urllib.parse import urlparse, parse_qs, parse_qsl, unquote
from typing import Dict, List, Tuple


class URLMatcher:
    """Splits stub URLs into the parts the matcher compares."""

    @staticmethod
    def split_url(url: str) -> Tuple[str, Dict[str, str]]:
        """
        Split a stub URL into its path and query requirements.

        Accepts either a bare path ("/get?foo=bar") or an absolute URL
        ("http://localhost/get?foo=bar"); scheme and host are discarded.
        Repeated keys keep their last value. Blank values are kept so that
        "?flag=" requires an empty "flag" parameter. The path is percent-decoded,
        like the path the transport hands to the matcher.

        Args:
            url: Path with optional query string, or absolute URL

        Returns:
            Tuple of (path, query requirements)
        """
        parsed = urlparse(url)
        path = unquote(parsed.path)
        query = dict(parse_qsl(parsed.query, keep_blank_values=True))
        return path, query

    @staticmethod
    def parse_query(query_string: str) -> Dict[str, List[str]]:
        """
        Parse a raw query string into a multi-valued dictionary.

        Args:
            query_string: Query string without the leading '?'

        Returns:
            Dict mapping each parameter name to every value sent for it
        """
        return parse_qs(query_string, keep_blank_values=True)

    @staticmethod
    def build_url(path: str, query: Dict[str, str]) -> str:
        """Render path and query requirements back into a display URL."""
        if not query:
            return path
        rendered = '&'.join(f"{k}={v}" for k, v in query.items())
        return f"{path}?{rendered}"
