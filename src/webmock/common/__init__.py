"""
Webmock Common Utilities

Shared helpers used across webmock modules.
"""

from .utils import parse_header_spec, normalize_headers, stringify
from .url_utils import URLMatcher

__all__ = [
    'parse_header_spec',
    'normalize_headers',
    'stringify',
    'URLMatcher'
]
