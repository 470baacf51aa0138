"""
Webmock

Embeddable HTTP double for tests.

This package provides:
- FastAPI/uvicorn mock server bound to an ephemeral local port
- Stub registry with method, path, query and header matching
- Cassette loader for YAML/JSON fixtures
"""

from .server import MockServer, ServerConfig, ServerMetrics, Dispatcher, create_mock_server
from .stub import Stub, StubResponse, StubOptions, with_headers, with_response
from .matcher import IncomingRequest, MatchResult
from .registry import StubRegistry
from .cassette import CassetteLoader
from .errors import WebmockError, StubConfigurationError, CassetteError

__all__ = [
    # Server
    'MockServer',
    'ServerConfig',
    'ServerMetrics',
    'Dispatcher',
    'create_mock_server',

    # Stubs
    'Stub',
    'StubResponse',
    'StubOptions',
    'with_headers',
    'with_response',

    # Matching
    'IncomingRequest',
    'MatchResult',
    'StubRegistry',

    # Cassettes
    'CassetteLoader',

    # Errors
    'WebmockError',
    'StubConfigurationError',
    'CassetteError',
]

__version__ = '1.0.0'
