"""
routestub Alternative-Form Generator

Enumerates request forms equivalent to a given request so that matching is
insensitive to default scheme, default port, trailing slash and query
parameter order.
"""

import itertools
import logging
from dataclasses import replace
from typing import List, Any, Optional, Callable, Iterator, Sequence

from ..common import URLParser
from .request import CanonicalRequest
from .stub_config import get_config


logger = logging.getLogger("routestub.alternatives")

PathsFn = Callable[[CanonicalRequest], Sequence[Optional[str]]]


def defaults_or_value(defaults: Sequence[Any], value: Any) -> List[Any]:
    """
    Expand a value into its candidate list.

    Args:
        defaults: Values considered equivalent to each other, in declaration order
        value: Actual value

    Returns:
        All defaults (reversed) if value is one of them, otherwise [value]
    """
    if value in defaults:
        return list(reversed(defaults))
    return [value]


def potential_schemes_for(request: CanonicalRequest) -> List[Optional[str]]:
    """Schemes equivalent to the request's scheme (http is the default)."""
    return defaults_or_value(('http', None), request.scheme)


def potential_ports_for(request: CanonicalRequest) -> List[Optional[int]]:
    """Ports equivalent to the request's port (80 is the default)."""
    return defaults_or_value((80, None), request.port)


def potential_paths_for(request: CanonicalRequest) -> List[Optional[str]]:
    """Paths equivalent to the request's path ("/", "" and None are interchangeable)."""
    return defaults_or_value(('/', '', None), request.path)


def potential_query_strings_for(request: CanonicalRequest) -> List[Optional[str]]:
    """
    Query strings equivalent to the request's raw query string.

    An empty or missing query string yields ["", None]. A supplied one yields
    every permutation of its "&" / ";" separated segments, which grows
    factorially with the number of segments.
    """
    queries = defaults_or_value(('', None), request.query_string)
    if len(queries) > 1:
        return queries

    segments = URLParser.split_query_string(queries[0])
    threshold = get_config().permutation_warning_segments
    if threshold and len(segments) > threshold:
        logger.warning(
            f"Query string has {len(segments)} segments; matching will try "
            f"every permutation. Use a structured query_params route instead."
        )
    return ['&'.join(p) for p in itertools.permutations(segments)]


def iter_alternatives(
    request: CanonicalRequest,
    paths_fn: PathsFn = potential_paths_for
) -> Iterator[CanonicalRequest]:
    """
    Lazily yield every alternative form of a request.

    Order is query string, scheme, port, path (rightmost varies fastest).
    """
    if request.query_params:
        # Encoded once in insertion order, plus the sorted order literal routes use
        encoded = URLParser.encode_query_params(request.query_params)
        query_strings = list(dict.fromkeys([encoded, URLParser.sort_query_string(encoded)]))
    elif request.query_params is not None:
        query_strings = defaults_or_value(('', None), '')
    else:
        query_strings = potential_query_strings_for(request)

    combinations = itertools.product(
        query_strings,
        potential_schemes_for(request),
        potential_ports_for(request),
        paths_fn(request)
    )
    for query_string, scheme, port, path in combinations:
        yield replace(request, query_string=query_string, scheme=scheme, port=port, path=path)


def potential_alternatives_to(
    request: CanonicalRequest,
    paths_fn: PathsFn = potential_paths_for
) -> List[CanonicalRequest]:
    """
    Enumerate all alternative forms of a request.

    Builds the cartesian product of query-string, scheme, port and path
    candidates and merges each combination over the original request.

    Args:
        request: Canonical request
        paths_fn: Function returning path candidates for the request

    Returns:
        List of alternative CanonicalRequests
    """
    return list(iter_alternatives(request, paths_fn))
