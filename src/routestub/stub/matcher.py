"""
routestub Route Matcher

Decides whether a canonical request satisfies a route key and method.

Route keys are a closed set of variants:
- LiteralKey: exact address string (insensitive to default port/scheme,
  trailing slash and query parameter order)
- PatternKey: compiled regular expression, full-matched against the request
  URL and its alternative forms
- StructuredKey: a Literal or Pattern address plus an exact query parameter
  constraint
"""

import re
from dataclasses import dataclass, replace
from typing import Dict, Any, Optional, Union, Mapping

from ..common import URLParser
from .alternatives import iter_alternatives, potential_paths_for
from .errors import RouteTableError
from .request import CanonicalRequest, ANY


@dataclass(frozen=True)
class LiteralKey:
    """Exact address route key."""

    address: str

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class PatternKey:
    """Regular expression route key."""

    pattern: 're.Pattern'

    def __str__(self) -> str:
        return self.pattern.pattern


@dataclass(frozen=True, eq=False)
class StructuredKey:
    """Address route key with an exact query parameter constraint."""

    address: Union[LiteralKey, PatternKey]
    query_params: Optional[Mapping[Any, Any]] = None

    def __str__(self) -> str:
        if self.query_params is None:
            return str(self.address)
        params = sorted(URLParser.normalize_query_params(self.query_params).items())
        return f"{self.address}?{URLParser.encode_query_params(dict(params))}"


RouteKey = Union[LiteralKey, PatternKey, StructuredKey]


def to_route_key(raw: Any) -> RouteKey:
    """
    Coerce a caller-supplied route key into a RouteKey variant.

    Accepts strings, compiled regexes, {'address': ..., 'query_params': ...}
    mappings and existing RouteKeys.

    Raises:
        RouteTableError: If the key has an unsupported type
    """
    if isinstance(raw, (LiteralKey, PatternKey, StructuredKey)):
        return raw
    if isinstance(raw, str):
        return LiteralKey(raw)
    if isinstance(raw, re.Pattern):
        return PatternKey(raw)
    if isinstance(raw, Mapping):
        if 'address' not in raw:
            raise RouteTableError(f"Structured route key needs an 'address': {raw!r}")
        address = to_route_key(raw['address'])
        if isinstance(address, StructuredKey):
            raise RouteTableError(f"Structured route key address cannot be structured: {raw!r}")
        return StructuredKey(address=address, query_params=raw.get('query_params'))
    raise RouteTableError(f"Unsupported route key type: {type(raw).__name__}")


def methods_match(expected_method: str, request: CanonicalRequest) -> bool:
    """ANY on either side matches every method; otherwise methods must be equal."""
    expected = expected_method.upper()
    actual = (request.method or ANY).upper()
    return expected == ANY or actual == ANY or expected == actual


def get_request_query_params(request: CanonicalRequest) -> Dict[str, str]:
    """Query parameters of a request, preferring its structured map over its raw query string."""
    if request.query_params is not None:
        return URLParser.normalize_query_params(request.query_params)
    return URLParser.parse_query_string(request.query_string)


def query_params_match(expected: Mapping[Any, Any], request: CanonicalRequest) -> bool:
    """
    Check that a request's query parameters exactly equal the expected ones.

    Keys and values are stringified on both sides. A superset or subset of
    keys does not match.

    Args:
        expected: Expected query parameters
        request: Canonical request

    Returns:
        True if parameter sets are equal
    """
    actual = get_request_query_params(request)
    normalized = URLParser.normalize_query_params(expected)
    return (len(normalized) == len(actual)
            and all(actual.get(k) == v for k, v in normalized.items()))


def _literal_pattern(address: str) -> 're.Pattern':
    base, _, query = address.partition('?')
    regex = re.escape(URLParser.normalize_for_matching(base)) + '/*'
    if query:
        regex += re.escape(f"?{URLParser.sort_query_string(query)}")
    return re.compile(regex)


def _pattern_matches(pattern: 're.Pattern', method: str, request: CanonicalRequest) -> bool:
    if not methods_match(method, request):
        return False
    if pattern.fullmatch(request.address):
        return True
    return any(
        pattern.fullmatch(URLParser.address_string_for(alternative))
        for alternative in iter_alternatives(request, potential_paths_for)
    )


def matches(key: Any, method: str, request: CanonicalRequest) -> bool:
    """
    Decide whether a request satisfies a route key and declared method.

    Args:
        key: RouteKey (or a raw key accepted by to_route_key)
        method: Declared route method (ANY matches all)
        request: Canonical request

    Returns:
        True if the route accepts the request
    """
    key = to_route_key(key)

    if isinstance(key, LiteralKey):
        return _pattern_matches(_literal_pattern(key.address), method, request)

    if isinstance(key, PatternKey):
        return _pattern_matches(key.pattern, method, request)

    if isinstance(key, StructuredKey):
        if key.query_params is not None:
            if not query_params_match(key.query_params, request):
                return False
            request = replace(request, query_string=None, query_params=None, url=_strip_query(request.url))
        return matches(key.address, method, request)

    raise RouteTableError(f"Unsupported route key type: {type(key).__name__}")


def _strip_query(url: Optional[str]) -> Optional[str]:
    if url is None:
        return None
    return url.split('?', 1)[0]
