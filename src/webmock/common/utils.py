"""
Webmock Common Utilities

Header parsing and normalization helpers shared by stubs, the matcher
and the cassette loader.
"""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union


HeaderSpec = Union[str, Mapping[str, Any], None]


def parse_header_spec(spec: HeaderSpec) -> Dict[str, str]:
    """
    Parse a header requirement specification.

    The specification is either a mapping of header names to values, or a
    string of "Name: value" lines separated by newlines. Names are lower-cased
    because header matching is case-insensitive; values are kept verbatim
    (only surrounding whitespace is stripped).

    Args:
        spec: Header spec string, mapping, or None

    Returns:
        Dict of lower-cased header name to required value

    Raises:
        ValueError: If a line has no ':' separator or an empty name

    Example:
        parse_header_spec("Accept-Encoding: gzip,deflate")
        # {'accept-encoding': 'gzip,deflate'}
    """
    if spec is None:
        return {}

    if isinstance(spec, Mapping):
        pairs: Iterable[Tuple[str, Any]] = spec.items()
    else:
        pairs = _split_header_lines(spec)

    headers = {}
    for name, value in pairs:
        name = str(name).strip()
        if not name:
            raise ValueError(f"Empty header name in header spec: {spec!r}")
        headers[name.lower()] = stringify(value).strip()
    return headers


def _split_header_lines(spec: str) -> List[Tuple[str, str]]:
    pairs = []
    for line in spec.splitlines():
        if not line.strip():
            continue
        if ':' not in line:
            raise ValueError(f"Malformed header line (expected 'Name: value'): {line!r}")
        name, value = line.split(':', 1)
        pairs.append((name, value))
    return pairs


def normalize_headers(headers: Optional[Iterable[Tuple[str, str]]]) -> Dict[str, List[str]]:
    """
    Group raw (name, value) header pairs by lower-cased name.

    Args:
        headers: Iterable of header name/value pairs, in wire order

    Returns:
        Dict mapping lower-cased header name to all of its values
    """
    grouped: Dict[str, List[str]] = {}
    for name, value in headers or ():
        grouped.setdefault(name.lower(), []).append(value)
    return grouped


def stringify(value: Any) -> str:
    """
    Render a decoded fixture value as response text.

    Strings pass through, mappings and lists become JSON, None becomes "".
    """
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)
