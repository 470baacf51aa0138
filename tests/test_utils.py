"""
Tests for webmock Common Utilities

Tests URL splitting and header helpers.
"""

import pytest

from webmock.common import URLMatcher, normalize_headers, parse_header_spec, stringify


class TestURLMatcher:
    """Test URLMatcher helpers."""

    def test_split_path_only(self):
        """Test URL without query."""
        assert URLMatcher.split_url('/abc') == ('/abc', {})

    def test_split_with_query(self):
        """Test URL with query requirements."""
        assert URLMatcher.split_url('/get?foo=bar&a=b') == ('/get', {'foo': 'bar', 'a': 'b'})

    def test_split_absolute_url(self):
        """Test scheme and host are dropped."""
        assert URLMatcher.split_url('https://api.example.com/users?id=1') == ('/users', {'id': '1'})

    def test_split_decodes_query(self):
        """Test percent-encoded query values are decoded."""
        assert URLMatcher.split_url('/search?q=a%20b') == ('/search', {'q': 'a b'})

    def test_split_decodes_path(self):
        """Test percent-encoded path characters are decoded."""
        assert URLMatcher.split_url('/a%20b') == ('/a b', {})
        assert URLMatcher.split_url('/caf%C3%A9?x=1') == ('/café', {'x': '1'})

    def test_parse_query_multi_valued(self):
        """Test repeated parameters."""
        assert URLMatcher.parse_query('a=1&a=2&b=') == {'a': ['1', '2'], 'b': ['']}

    def test_build_url(self):
        """Test rendering path and query."""
        assert URLMatcher.build_url('/get', {}) == '/get'
        assert URLMatcher.build_url('/get', {'foo': 'bar'}) == '/get?foo=bar'


class TestParseHeaderSpec:
    """Test header spec parsing."""

    def test_single_line(self):
        """Test one 'Name: value' line."""
        assert parse_header_spec('Accept-Encoding: gzip,deflate') == {'accept-encoding': 'gzip,deflate'}

    def test_multiple_lines(self):
        """Test newline-separated headers."""
        spec = 'Accept: text/plain\r\nX-Token: abc\n\n'

        assert parse_header_spec(spec) == {'accept': 'text/plain', 'x-token': 'abc'}

    def test_value_with_colon(self):
        """Test only the first ':' separates name and value."""
        assert parse_header_spec('Referer: http://example.com/') == {'referer': 'http://example.com/'}

    def test_mapping(self):
        """Test mapping input."""
        assert parse_header_spec({'X-Retry': 3}) == {'x-retry': '3'}

    def test_none(self):
        """Test None means no requirements."""
        assert parse_header_spec(None) == {}

    @pytest.mark.parametrize('spec', ['no separator', ': value'])
    def test_malformed(self, spec):
        """Test malformed specs raise ValueError."""
        with pytest.raises(ValueError):
            parse_header_spec(spec)


class TestHelpers:
    """Test normalize_headers and stringify."""

    def test_normalize_headers(self):
        """Test grouping by lower-cased name."""
        pairs = [('Accept', 'a'), ('accept', 'b'), ('X-Id', '1')]

        assert normalize_headers(pairs) == {'accept': ['a', 'b'], 'x-id': ['1']}

    def test_stringify(self):
        """Test rendering decoded values."""
        assert stringify(None) == ''
        assert stringify('text') == 'text'
        assert stringify(True) == 'true'
        assert stringify(42) == '42'
        assert stringify({'a': 1}) == '{"a": 1}'
