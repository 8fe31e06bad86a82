"""
routestub Call-Count Ledger

Thread-safe per-scope tallies of route calls and the expectations they are
validated against.
"""

import threading
from typing import Dict, List, Mapping, Tuple

from .errors import CallCountMismatchError


class CallLedger:
    """Mutable tally of calls per route key. Increments are atomic."""

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def record_call(self, route_key: str) -> int:
        """Increment the count for a route key and return the new value."""
        with self._lock:
            count = self._counts.get(route_key, 0) + 1
            self._counts[route_key] = count
            return count

    def count(self, route_key: str) -> int:
        """Calls recorded for a route key (0 if never called)."""
        with self._lock:
            return self._counts.get(route_key, 0)

    def snapshot(self) -> Dict[str, int]:
        """Copy of all recorded counts."""
        with self._lock:
            return dict(self._counts)

    def reset(self):
        """Forget all recorded calls."""
        with self._lock:
            self._counts.clear()


class ExpectationTable:
    """Declared call counts per route key."""

    def __init__(self):
        self._expected: Dict[str, int] = {}
        self._lock = threading.Lock()

    def merge(self, expectations: Mapping[str, int]):
        """Add (or replace) expected counts."""
        with self._lock:
            self._expected.update(expectations)

    def items(self) -> List[Tuple[str, int]]:
        """Expected counts in registration order."""
        with self._lock:
            return list(self._expected.items())

    def reset(self):
        """Forget all expectations."""
        with self._lock:
            self._expected.clear()

    def __len__(self) -> int:
        return len(self._expected)


def validate_call_counts(ledger: CallLedger, expectations: ExpectationTable):
    """
    Compare recorded calls against expectations.

    Raises:
        CallCountMismatchError: On the first route whose count differs
    """
    for route_key, expected in expectations.items():
        actual = ledger.count(route_key)
        if actual != expected:
            raise CallCountMismatchError(route_key, expected, actual)
