"""
routestub

Stub outgoing HTTP requests in tests with a declarative route table,
falling back to the real transport (or failing, in isolation mode) when no
route matches, and validating how often each route was called.
"""

from .stub import (
    CanonicalRequest,
    ResponseSpec,
    StubScope,
    StubConfig,
    expect_calls,
    http_stub,
    with_stub,
    with_stub_in_isolation,
    with_global_stub,
    with_global_stub_in_isolation,
    configure,
    load_routes_from_yaml,
    StubError,
    RouteTableError,
    ConfigError,
    RouteFileError,
    NoMatchingRouteError,
    CallCountMismatchError
)

__all__ = [
    'CanonicalRequest',
    'ResponseSpec',
    'StubScope',
    'StubConfig',
    'expect_calls',
    'http_stub',
    'with_stub',
    'with_stub_in_isolation',
    'with_global_stub',
    'with_global_stub_in_isolation',
    'configure',
    'load_routes_from_yaml',
    'StubError',
    'RouteTableError',
    'ConfigError',
    'RouteFileError',
    'NoMatchingRouteError',
    'CallCountMismatchError',
]

__version__ = '1.0.0'
