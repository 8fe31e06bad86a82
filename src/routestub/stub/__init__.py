"""
routestub Stubbing Engine

Route matching and call accounting for stubbed HTTP requests.

This module provides:
- Request normalization and URL parsing
- Route matching over literal, regex and structured route keys
- Route table flattening with call-count expectations
- Scoped and global stub bindings
- Synchronous and callback-style dispatch
"""

from .request import CanonicalRequest, normalize_request, ANY
from .alternatives import potential_alternatives_to, potential_paths_for
from .matcher import (
    LiteralKey,
    PatternKey,
    StructuredKey,
    to_route_key,
    matches,
    methods_match,
    query_params_match
)
from .routes import RouteEntry, TimedHandler, expect_calls, flatten_routes, route_key_for
from .response import ResponseSpec, create_response
from .ledger import CallLedger, ExpectationTable, validate_call_counts
from .scope import (
    StubScope,
    current_scope,
    http_stub,
    with_stub,
    with_stub_in_isolation,
    with_global_stub,
    with_global_stub_in_isolation
)
from .dispatcher import Dispatcher, MatchResult, dispatch, dispatch_async
from .errors import (
    StubError,
    RouteTableError,
    ConfigError,
    RouteFileError,
    NoMatchingRouteError,
    CallCountMismatchError
)
from .stub_config import StubConfig, configure, get_config, load_routes_from_yaml, routes_from_dict

__all__ = [
    # Requests
    'CanonicalRequest',
    'normalize_request',
    'ANY',
    'potential_alternatives_to',
    'potential_paths_for',

    # Matching
    'LiteralKey',
    'PatternKey',
    'StructuredKey',
    'to_route_key',
    'matches',
    'methods_match',
    'query_params_match',

    # Routes and responses
    'RouteEntry',
    'TimedHandler',
    'expect_calls',
    'flatten_routes',
    'route_key_for',
    'ResponseSpec',
    'create_response',

    # Call accounting
    'CallLedger',
    'ExpectationTable',
    'validate_call_counts',

    # Scopes and dispatch
    'StubScope',
    'current_scope',
    'http_stub',
    'with_stub',
    'with_stub_in_isolation',
    'with_global_stub',
    'with_global_stub_in_isolation',
    'Dispatcher',
    'MatchResult',
    'dispatch',
    'dispatch_async',

    # Errors
    'StubError',
    'RouteTableError',
    'ConfigError',
    'RouteFileError',
    'NoMatchingRouteError',
    'CallCountMismatchError',

    # Configuration
    'StubConfig',
    'configure',
    'get_config',
    'load_routes_from_yaml',
    'routes_from_dict',
]
