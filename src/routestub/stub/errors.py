"""
routestub Errors

Exceptions raised by the stubbing engine.
"""

from typing import Any


NO_MATCH_TEMPLATE = (
    "No matching stub route found to handle request. Request details: "
    "\n\t{} \n\t{} \n\t{} \n\t{} \n\t{}"
)

COUNT_MISMATCH_TEMPLATE = (
    "Expected route '{}' to be called {} times but was called {} times"
)


class StubError(Exception):
    """Base class for all routestub errors."""


class RouteTableError(StubError, ValueError):
    """Raised when a route table cannot be interpreted."""


class ConfigError(StubError, ValueError):
    """Raised when a configuration value is invalid."""


class RouteFileError(StubError):
    """Raised when a YAML route file cannot be loaded."""


class NoMatchingRouteError(StubError):
    """Raised in isolation mode when no stub route accepts a request."""

    def __init__(self, request: Any):
        self.request = request
        super().__init__(NO_MATCH_TEMPLATE.format(
            request.scheme,
            request.method,
            request.host,
            request.path,
            request.query_string
        ))


class CallCountMismatchError(StubError):
    """Raised at scope exit when a route was not called the expected number of times."""

    def __init__(self, route_key: str, expected: int, actual: int):
        self.route_key = route_key
        self.expected = expected
        self.actual = actual
        super().__init__(COUNT_MISMATCH_TEMPLATE.format(route_key, expected, actual))
