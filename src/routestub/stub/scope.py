"""
routestub Stub Scopes

A scope is the lifetime of one stubbing invocation. It owns the route table,
the call ledger, the expectation table and the isolation flag.

Two bindings are available:
- scoped: visible only in the current execution context (thread or task),
  nested scopes shadow outer ones
- global: visible process-wide, so requests issued from worker threads
  started by the code under test are stubbed too

Example:
    with http_stub({"http://example.com/api": {"get": handler, "times": 2}}):
        ...

    result = with_stub_in_isolation(routes, lambda: call_service())
"""

import contextvars
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, TypeVar

from .ledger import CallLedger, ExpectationTable, validate_call_counts
from .routes import RouteEntry, flatten_routes
from .stub_config import get_config


logger = logging.getLogger("routestub.scope")

T = TypeVar('T')


class StubScope:
    """State of one stubbing invocation."""

    def __init__(self, routes: Any, isolation: bool = False):
        """
        Initialize scope.

        Args:
            routes: Route table (read-only for the scope's lifetime)
            isolation: Raise instead of passing through when no route matches

        Raises:
            RouteTableError: If the route table is malformed
        """
        self.routes = routes
        self.isolation = isolation
        self.ledger = CallLedger()
        self.expectations = ExpectationTable()

        _, expectations = flatten_routes(routes)
        self.expectations.merge(expectations)

    def entries(self) -> List[RouteEntry]:
        """Flatten the live route table, registering any expectations it declares."""
        entries, expectations = flatten_routes(self.routes)
        self.expectations.merge(expectations)
        return entries

    def record_call(self, route_key: str) -> int:
        """Record a call to a route key."""
        return self.ledger.record_call(route_key)

    def validate(self):
        """Raise CallCountMismatchError if any expectation is unmet."""
        validate_call_counts(self.ledger, self.expectations)

    def reset(self):
        """Clear the ledger and expectation table."""
        self.ledger.reset()
        self.expectations.reset()


_scoped: contextvars.ContextVar[Optional[StubScope]] = contextvars.ContextVar('routestub_scope', default=None)
_global_scope: Optional[StubScope] = None
_global_lock = threading.Lock()


def current_scope() -> Optional[StubScope]:
    """Active scope: the context-local binding, else the global one, else None."""
    scope = _scoped.get()
    if scope is not None:
        return scope
    return _global_scope


def _swap_global(scope: Optional[StubScope]) -> Optional[StubScope]:
    global _global_scope
    with _global_lock:
        previous, _global_scope = _global_scope, scope
    return previous


@contextmanager
def http_stub(routes: Any, isolation: Optional[bool] = None, global_binding: bool = False) -> Iterator[StubScope]:
    """
    Stub outgoing requests for the duration of a with-block.

    Call counts are validated when the block completes normally. The ledger
    and expectations are reset on every exit path.

    Args:
        routes: Route table
        isolation: Fail unmatched requests (defaults to config default_isolation)
        global_binding: Install the scope process-wide instead of context-locally

    Yields:
        The active StubScope

    Raises:
        CallCountMismatchError: If a route's call count differs from its 'times'
    """
    if isolation is None:
        isolation = get_config().default_isolation
    scope = StubScope(routes, isolation=isolation)
    logger.debug(f"Entering {'global' if global_binding else 'scoped'} stub "
                 f"(isolation={isolation}, expectations={len(scope.expectations)})")

    if global_binding:
        previous = _swap_global(scope)
    else:
        token = _scoped.set(scope)

    try:
        yield scope
        scope.validate()
    finally:
        scope.reset()
        if global_binding:
            _swap_global(previous)
        else:
            _scoped.reset(token)


def with_stub(routes: Any, body: Callable[[], T]) -> T:
    """Run body with requests stubbed in the current context."""
    with http_stub(routes, isolation=False):
        return body()


def with_stub_in_isolation(routes: Any, body: Callable[[], T]) -> T:
    """Run body with requests stubbed in the current context; unmatched requests fail."""
    with http_stub(routes, isolation=True):
        return body()


def with_global_stub(routes: Any, body: Callable[[], T]) -> T:
    """Run body with requests stubbed process-wide."""
    with http_stub(routes, isolation=False, global_binding=True):
        return body()


def with_global_stub_in_isolation(routes: Any, body: Callable[[], T]) -> T:
    """Run body with requests stubbed process-wide; unmatched requests fail."""
    with http_stub(routes, isolation=True, global_binding=True):
        return body()
