"""
routestub requests Hook

Intercepts the requests library at HTTPAdapter.send so that every Session
consults the active stub scope before touching the network.

Example:
    import requests
    from routestub.transport import with_http_stub_in_isolation

    def fetch():
        return requests.get("http://example.com/api").text

    body = with_http_stub_in_isolation(
        {"http://example.com/api": lambda request: {"body": "stubbed"}},
        fetch
    )
"""

import io
import logging
import threading
from contextlib import contextmanager
from http.client import responses as reason_phrases
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar
from urllib.parse import parse_qsl

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from ..stub.dispatcher import Dispatcher
from ..stub.response import ResponseSpec
from ..stub.scope import StubScope, http_stub


logger = logging.getLogger("routestub.requests")

T = TypeVar('T')

_original_send: Optional[Callable[..., requests.Response]] = None
_install_lock = threading.Lock()


def build_response(prepared: requests.PreparedRequest, spec: ResponseSpec) -> requests.Response:
    """
    Convert a stub ResponseSpec into a requests.Response.

    Args:
        prepared: Request the response answers
        spec: Stubbed response

    Returns:
        requests.Response readable through .content, .text and .json()
    """
    response = requests.Response()
    response.status_code = spec.status
    response.reason = reason_phrases.get(spec.status, '')
    response.headers = CaseInsensitiveDict(spec.headers)
    response.encoding = get_encoding_from_headers(response.headers) or 'utf-8'
    response.raw = io.BytesIO(spec.body)
    response.url = prepared.url
    response.request = prepared
    return response


def request_to_dict(prepared: requests.PreparedRequest) -> Dict[str, Any]:
    """
    Describe a PreparedRequest in the dict form accepted by normalize_request.

    The query is handed over as a structured map, which matching never
    permutes. Queries with repeated keys stay raw.
    """
    url, _, query = prepared.url.partition('?')
    described = {
        'url': prepared.url,
        'method': prepared.method,
        'headers': dict(prepared.headers),
        'body': prepared.body
    }

    pairs = parse_qsl(query, keep_blank_values=True)
    if pairs and len({k for k, _ in pairs}) == len(pairs):
        described['url'] = url
        described['query_string'] = query
        described['query_params'] = dict(pairs)
    return described


def _stubbed_send(adapter: HTTPAdapter, request: requests.PreparedRequest, *args, **kwargs) -> requests.Response:
    dispatcher = Dispatcher.for_current_scope()
    if dispatcher is None:
        return _original_send(adapter, request, *args, **kwargs)

    result = dispatcher.dispatch(
        request_to_dict(request),
        lambda _raw: _original_send(adapter, request, *args, **kwargs)
    )
    if isinstance(result, ResponseSpec):
        return build_response(request, result)
    return result


def install():
    """Hook HTTPAdapter.send. Safe to call repeatedly."""
    global _original_send
    with _install_lock:
        if _original_send is None:
            _original_send = HTTPAdapter.send
            HTTPAdapter.send = _stubbed_send
            logger.debug("Installed requests hook")


def uninstall():
    """Restore the original HTTPAdapter.send."""
    global _original_send
    with _install_lock:
        if _original_send is not None:
            HTTPAdapter.send = _original_send
            _original_send = None
            logger.debug("Removed requests hook")


def is_installed() -> bool:
    """Whether the requests hook is active."""
    return _original_send is not None


@contextmanager
def stubbed_requests(routes: Any, isolation: Optional[bool] = None, global_binding: bool = False) -> Iterator[StubScope]:
    """
    Stub requests-library calls for the duration of a with-block.

    Args:
        routes: Route table
        isolation: Fail unmatched requests instead of sending them
        global_binding: Also stub requests issued from other threads

    Yields:
        The active StubScope
    """
    install()
    with http_stub(routes, isolation=isolation, global_binding=global_binding) as scope:
        yield scope


def with_http_stub(routes: Any, body: Callable[[], T]) -> T:
    """Run body with requests calls stubbed in the current context."""
    with stubbed_requests(routes, isolation=False):
        return body()


def with_http_stub_in_isolation(routes: Any, body: Callable[[], T]) -> T:
    """Run body with requests calls stubbed in the current context; unmatched calls fail."""
    with stubbed_requests(routes, isolation=True):
        return body()


def with_global_http_stub(routes: Any, body: Callable[[], T]) -> T:
    """Run body with requests calls stubbed process-wide."""
    with stubbed_requests(routes, isolation=False, global_binding=True):
        return body()


def with_global_http_stub_in_isolation(routes: Any, body: Callable[[], T]) -> T:
    """Run body with requests calls stubbed process-wide; unmatched calls fail."""
    with stubbed_requests(routes, isolation=True, global_binding=True):
        return body()
