"""
routestub Dispatcher

Routes a request to the first matching stub, fails it in isolation mode, or
passes it through to the real transport.
"""

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

from .errors import NoMatchingRouteError
from .matcher import get_request_query_params, matches
from .request import CanonicalRequest, normalize_request
from .response import ResponseSpec, create_response
from .routes import RouteEntry
from .scope import StubScope, current_scope
from .stub_config import get_config


logger = logging.getLogger("routestub.dispatch")

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def default_executor() -> ThreadPoolExecutor:
    """Shared worker pool for callback-style dispatch."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=get_config().async_max_workers,
                thread_name_prefix="routestub"
            )
        return _executor


@dataclass
class MatchResult:
    """Result of matching a request against a route table."""

    matched: bool
    entry: Optional[RouteEntry] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'matched': self.matched,
            'reason': self.reason,
            'route_key': self.entry.route_key if self.entry else None
        }


class Dispatcher:
    """
    Dispatches requests against a stub scope.

    Example:
        dispatcher = Dispatcher(scope)
        response = dispatcher.dispatch("http://example.com/api", send_real)
    """

    def __init__(self, scope: StubScope):
        """
        Initialize dispatcher.

        Args:
            scope: Scope providing routes, ledger and isolation flag
        """
        self.scope = scope

    @classmethod
    def for_current_scope(cls) -> Optional['Dispatcher']:
        """Dispatcher for the active scope, or None if nothing is stubbed."""
        scope = current_scope()
        return cls(scope) if scope is not None else None

    def find_match(self, request: CanonicalRequest) -> MatchResult:
        """
        Find the first route entry accepting a request.

        Entries are tried in declaration order; the first match wins.
        """
        for entry in self.scope.entries():
            if matches(entry.address, entry.method, request):
                return MatchResult(matched=True, entry=entry, reason=f"Matched route '{entry.route_key}'")

        return MatchResult(matched=False, reason=f"No route matches {request.method} {request.address}")

    def handle(self, request: CanonicalRequest, entry: RouteEntry) -> ResponseSpec:
        """
        Record a call to a route and build its response.

        The handler sees the request with its resolved method and query
        parameters. Handler exceptions propagate unchanged.
        """
        count = self.scope.record_call(entry.route_key)
        logger.debug(f"Handling {request.method} {request.address} with '{entry.route_key}' (call {count})")
        if request.query_params is None and request.query_string:
            request = replace(request, query_params=get_request_query_params(request))
        return create_response(entry.handler, request)

    def no_match_error(self, request: CanonicalRequest) -> NoMatchingRouteError:
        """Build the isolation-mode error for an unmatched request."""
        return NoMatchingRouteError(request)

    def dispatch(self, raw_request: Any, send_real: Callable[[Any], Any]) -> Any:
        """
        Serve a request synchronously.

        Args:
            raw_request: Request in any form accepted by normalize_request
            send_real: Real transport, called with raw_request on passthrough

        Returns:
            ResponseSpec for stubbed requests, send_real's result otherwise

        Raises:
            NoMatchingRouteError: If nothing matches in isolation mode
        """
        request = normalize_request(raw_request)
        result = self.find_match(request)

        if result.matched:
            return self.handle(request, result.entry)

        if self.scope.isolation:
            logger.warning(f"Unmatched request in isolation: {request.method} {request.address}")
            raise self.no_match_error(request)

        logger.debug(f"Passing through {request.method} {request.address}")
        return send_real(raw_request)

    def dispatch_async(
        self,
        raw_request: Any,
        send_real: Callable[[Any, Callable, Callable], Any],
        on_success: Callable[[ResponseSpec], Any],
        on_failure: Callable[[BaseException], Any],
        executor: Optional[Executor] = None
    ) -> Any:
        """
        Serve a request through a success/failure callback pair.

        A matched route is handled on the executor and the returned Future
        resolves after the callback ran. Errors raised by the handler or by
        on_success are passed to on_failure. In isolation mode an unmatched
        request is reported to on_failure and also raised.

        Args:
            raw_request: Request in any form accepted by normalize_request
            send_real: Real callback transport, called on passthrough
            on_success: Called with the ResponseSpec
            on_failure: Called with any exception
            executor: Executor for handler invocation (defaults to a shared pool)

        Returns:
            Future for stubbed requests, send_real's result otherwise
        """
        request = normalize_request(raw_request)
        result = self.find_match(request)

        if result.matched:
            def run():
                try:
                    response = self.handle(request, result.entry)
                    on_success(response)
                except Exception as e:
                    on_failure(e)
                    return None
                return response

            return (executor or default_executor()).submit(run)

        if self.scope.isolation:
            logger.warning(f"Unmatched request in isolation: {request.method} {request.address}")
            error = self.no_match_error(request)
            on_failure(error)
            raise error

        logger.debug(f"Passing through {request.method} {request.address}")
        return send_real(raw_request, on_success, on_failure)


def dispatch(raw_request: Any, send_real: Callable[[Any], Any]) -> Any:
    """Dispatch against the active scope, or send for real when nothing is stubbed."""
    dispatcher = Dispatcher.for_current_scope()
    if dispatcher is None:
        return send_real(raw_request)
    return dispatcher.dispatch(raw_request, send_real)


def dispatch_async(
    raw_request: Any,
    send_real: Callable[[Any, Callable, Callable], Any],
    on_success: Callable[[ResponseSpec], Any],
    on_failure: Callable[[BaseException], Any],
    executor: Optional[Executor] = None
) -> Any:
    """Callback-style dispatch against the active scope."""
    dispatcher = Dispatcher.for_current_scope()
    if dispatcher is None:
        return send_real(raw_request, on_success, on_failure)
    return dispatcher.dispatch_async(raw_request, send_real, on_success, on_failure, executor)
