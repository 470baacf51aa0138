"""
Tests for webmock Stubs

Tests stub creation and option builders:
- Default response values
- URL splitting into path and query requirements
- with_headers / with_response
- Registration-time validation
"""

import pytest

from webmock.errors import StubConfigurationError
from webmock.stub import (
    Stub,
    StubOptions,
    StubResponse,
    with_headers,
    with_response
)


class TestStubResponse:
    """Test StubResponse dataclass."""

    def test_defaults(self):
        """Test default status, body and headers."""
        response = StubResponse()

        assert response.status == 200
        assert response.body == ''
        assert dict(response.headers) == {}

    def test_body_bytes(self):
        """Test UTF-8 encoded body."""
        assert StubResponse(body='héllo').body_bytes == 'héllo'.encode('utf-8')

    def test_invalid_status(self):
        """Test non-integer and out-of-range statuses."""
        with pytest.raises(StubConfigurationError):
            StubResponse(status='200')
        with pytest.raises(StubConfigurationError):
            StubResponse(status=99)
        with pytest.raises(StubConfigurationError):
            StubResponse(status=600)
        with pytest.raises(StubConfigurationError):
            StubResponse(status=True)

    def test_informational_status_rejected(self):
        """Test 1xx statuses cannot be declared as a final response."""
        for status in (100, 101, 199):
            with pytest.raises(StubConfigurationError):
                StubResponse(status=status)

        assert StubResponse(status=200).status == 200
        assert StubResponse(status=599).status == 599

    def test_headers_read_only(self):
        """Test response headers cannot be mutated after creation."""
        response = StubResponse(headers={'X-Id': '1'})

        with pytest.raises(TypeError):
            response.headers['X-Id'] = '2'


class TestStubCreate:
    """Test Stub.create()."""

    def test_basic_stub(self):
        """Test stub with positional arguments only."""
        stub = Stub.create('GET', '/abc', 'ok')

        assert stub.method == 'GET'
        assert stub.path == '/abc'
        assert dict(stub.query) == {}
        assert dict(stub.headers) == {}
        assert stub.response.status == 200
        assert stub.response.body == 'ok'
        assert dict(stub.response.headers) == {}

    def test_method_uppercased(self):
        """Test declared method is upper-cased."""
        assert Stub.create('post', '/post', 'ok post').method == 'POST'

    def test_method_stored_upper_case(self):
        """Test mixed-case methods are normalized once, at creation."""
        stub = Stub.create('Propfind', '/dav', 'ok')

        assert stub.method == 'PROPFIND'
        assert stub.to_dict()['method'] == 'PROPFIND'

    def test_path_percent_decoded(self):
        """Test encoded characters in the stub path are decoded."""
        stub = Stub.create('GET', '/a%20b?q=x%2By', 'ok')

        assert stub.path == '/a b'
        assert dict(stub.query) == {'q': 'x+y'}

    def test_query_split_from_url(self):
        """Test query string becomes query requirements."""
        stub = Stub.create('GET', '/get?foo=bar&a=b', 'ok with query parameters')

        assert stub.path == '/get'
        assert dict(stub.query) == {'foo': 'bar', 'a': 'b'}
        assert stub.url == '/get?foo=bar&a=b'

    def test_absolute_url(self):
        """Test scheme and host are discarded."""
        stub = Stub.create('GET', 'http://localhost:8080/abc?x=1', 'ok')

        assert stub.path == '/abc'
        assert dict(stub.query) == {'x': '1'}

    def test_with_headers(self):
        """Test header requirements from a spec string."""
        stub = Stub.create('GET', '/get', 'ok', with_headers('Accept-Encoding: gzip,deflate'))

        assert dict(stub.headers) == {'accept-encoding': 'gzip,deflate'}

    def test_with_headers_accumulates(self):
        """Test several with_headers options merge in order."""
        stub = Stub.create(
            'GET', '/get', 'ok',
            with_headers('Accept: text/plain'),
            with_headers({'X-Token': 'abc', 'Accept': 'application/json'})
        )

        assert dict(stub.headers) == {'accept': 'application/json', 'x-token': 'abc'}

    def test_with_response(self):
        """Test response override replaces the default 200."""
        stub = Stub.create(
            'GET', '/get', '',
            with_response(401, 'No permissions', {'Access-Control-Allow-Origin': '*'})
        )

        assert stub.response.status == 401
        assert stub.response.body == 'No permissions'
        assert dict(stub.response.headers) == {'Access-Control-Allow-Origin': '*'}

    def test_with_response_overrides_body(self):
        """Test override body wins over the registration body."""
        stub = Stub.create('GET', '/get', 'ignored', with_response(204))

        assert stub.response.status == 204
        assert stub.response.body == ''

    def test_empty_method(self):
        """Test empty method fails at registration."""
        with pytest.raises(StubConfigurationError):
            Stub.create('', '/abc', 'ok')

    def test_empty_url(self):
        """Test empty URL fails at registration."""
        with pytest.raises(StubConfigurationError):
            Stub.create('GET', '', 'ok')

    def test_query_only_url(self):
        """Test URL without a path fails at registration."""
        with pytest.raises(StubConfigurationError):
            Stub.create('GET', '?foo=bar', 'ok')

    def test_malformed_header_spec(self):
        """Test header spec without ':' fails immediately."""
        with pytest.raises(StubConfigurationError):
            with_headers('Accept-Encoding gzip')

    def test_invalid_response_status(self):
        """Test with_response rejects bad status codes immediately."""
        with pytest.raises(StubConfigurationError):
            with_response(1000, 'nope')
        with pytest.raises(StubConfigurationError):
            with_response(101, 'switching')

    def test_stub_is_immutable(self):
        """Test stubs cannot be mutated after creation."""
        stub = Stub.create('GET', '/abc', 'ok')

        with pytest.raises(AttributeError):
            stub.path = '/other'
        with pytest.raises(TypeError):
            stub.query['x'] = '1'

    def test_describe(self):
        """Test one-line description."""
        stub = Stub.create('GET', '/get?a=b', 'ok', with_headers('X-Id: 1'))

        assert stub.describe() == 'GET /get?a=b [x-id: 1]'

    def test_to_dict(self):
        """Test converting stub to dictionary."""
        data = Stub.create('POST', '/book', '', with_response(201, 'Book created')).to_dict()

        assert data['method'] == 'POST'
        assert data['path'] == '/book'
        assert data['response'] == {'status': 201, 'body': 'Book created', 'headers': {}}


class TestStubOptions:
    """Test option builders against StubOptions directly."""

    def test_builders_return_new_options(self):
        """Test builders do not mutate the options they receive."""
        original = StubOptions()

        updated = with_headers('X-Id: 1')(original)

        assert original.headers is None
        assert updated.headers == {'x-id': '1'}

    def test_last_response_wins(self):
        """Test the last with_response applied wins."""
        options = StubOptions()
        for option in (with_response(500, 'first'), with_response(503, 'second')):
            options = option(options)

        assert options.response.status == 503
        assert options.response.body == 'second'
