"""
routestub Route Table Flattener

Expands a nested route table into a flat, ordered list of route entries and
the expected call counts it declares.

A route table maps route keys to either a handler (callable or static
response mapping), or a mapping of method names to handlers with an optional
'times' expectation:

    {
        "http://example.com/api": {
            "get": get_handler,
            "post": {"status": 201},
            "times": {"get": 2, "post": 1},
        },
        re.compile(r"http://example.com/static/.*"): lambda request: {"body": "ok"},
    }

Flattening is pure: caller data is never modified.
"""

from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple, Mapping, Iterable

from .errors import RouteTableError
from .matcher import RouteKey, to_route_key
from .request import ANY
from .response import Handler, RESPONSE_FIELDS


TIMES_KEY = 'times'


@dataclass(frozen=True)
class TimedHandler:
    """A handler tagged with its own expected call count."""

    handler: Handler
    times: int

    def __call__(self, request):
        if callable(self.handler):
            return self.handler(request)
        return self.handler


def expect_calls(times: int):
    """
    Tag a handler with an expected call count.

    Example:
        {"http://example.com": {"get": expect_calls(2)(handler)}}
    """
    _check_times(times)

    def decorator(handler: Handler) -> TimedHandler:
        return TimedHandler(handler=handler, times=times)

    return decorator


@dataclass
class RouteEntry:
    """One (method, address, handler, expected count) row of a flattened route table."""

    method: str
    address: RouteKey
    handler: Handler
    expected_count: Optional[int] = None

    @property
    def route_key(self) -> str:
        """Ledger key for this entry, e.g. 'http://example.com/api:get'."""
        return route_key_for(self.address, self.method)


def route_key_for(address: Any, method: str) -> str:
    """Build the call-count ledger key for an address and method."""
    return f"{to_route_key(address)}:{method.lower()}"


def is_static_response(value: Any) -> bool:
    """A mapping whose keys are all response fields is a constant response."""
    return isinstance(value, Mapping) and all(k in RESPONSE_FIELDS for k in value)


def _check_times(times: Any) -> int:
    if isinstance(times, bool) or not isinstance(times, int) or times < 0:
        raise RouteTableError(f"'times' must be a non-negative integer, got {times!r}")
    return times


def route_items(routes: Any) -> Iterable[Tuple[Any, Any]]:
    """Iterate (key, value) pairs of a route table given as a mapping or a pair sequence."""
    if isinstance(routes, Mapping):
        return list(routes.items())
    if isinstance(routes, (list, tuple)):
        for item in routes:
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise RouteTableError(f"Route table entries must be (key, value) pairs, got {item!r}")
        return list(routes)
    raise RouteTableError(f"Route table must be a mapping, got {type(routes).__name__}")


def _unwrap_handler(handler: Any) -> Tuple[Handler, Optional[int]]:
    """Split a possibly tagged handler into (handler, expected count)."""
    if isinstance(handler, TimedHandler):
        return handler.handler, handler.times
    if isinstance(handler, Mapping) and 'handler' in handler:
        times = handler.get(TIMES_KEY)
        return handler['handler'], _check_times(times) if times is not None else None
    return handler, None


def _expected_for(method_key: Any, shared: Any, tagged: Optional[int]) -> Optional[int]:
    if isinstance(shared, Mapping):
        per_method = {str(k).upper(): v for k, v in shared.items()}
        if str(method_key).upper() in per_method:
            return _check_times(per_method[str(method_key).upper()])
        return tagged
    if shared is not None:
        return _check_times(shared)
    return tagged


def flatten_routes(routes: Any) -> Tuple[List[RouteEntry], Dict[str, int]]:
    """
    Flatten a route table into ordered entries and expected call counts.

    Entries follow declaration order of addresses, then of methods within
    each address. Plain handlers become a single ANY entry. The 'times' key
    is never emitted as a method; it may be an int shared by every method of
    the address, or a {method: int} mapping.

    Args:
        routes: Route table (mapping or sequence of (key, value) pairs)

    Returns:
        Tuple of (route entries, {ledger key: expected count})

    Raises:
        RouteTableError: If the table is malformed
    """
    entries: List[RouteEntry] = []
    expectations: Dict[str, int] = {}

    for raw_key, value in route_items(routes):
        address = to_route_key(raw_key)

        if isinstance(value, Mapping) and not is_static_response(value) and 'handler' not in value:
            shared = value.get(TIMES_KEY)
            for method_key, raw_handler in value.items():
                if method_key == TIMES_KEY:
                    continue
                handler, tagged = _unwrap_handler(raw_handler)
                expected = _expected_for(method_key, shared, tagged)
                entries.append(RouteEntry(
                    method=str(method_key).upper(),
                    address=address,
                    handler=handler,
                    expected_count=expected
                ))
        else:
            handler, tagged = _unwrap_handler(value)
            entries.append(RouteEntry(method=ANY, address=address, handler=handler, expected_count=tagged))

    for entry in entries:
        if entry.expected_count is not None:
            expectations[entry.route_key] = entry.expected_count

    return entries, expectations
