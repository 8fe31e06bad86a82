"""
Tests for routestub Call-Count Ledger
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from routestub.stub.errors import CallCountMismatchError
from routestub.stub.ledger import CallLedger, ExpectationTable, validate_call_counts


class TestCallLedger:
    """Test call tallies."""

    def test_record_and_count(self):
        """Test calls are counted per key."""
        ledger = CallLedger()

        assert ledger.record_call('a:get') == 1
        assert ledger.record_call('a:get') == 2
        ledger.record_call('b:post')

        assert ledger.count('a:get') == 2
        assert ledger.count('b:post') == 1
        assert ledger.count('missing') == 0

    def test_reset(self):
        """Test reset clears all counts."""
        ledger = CallLedger()
        ledger.record_call('a:get')
        ledger.reset()

        assert ledger.snapshot() == {}

    def test_concurrent_increments(self):
        """Test concurrent increments are not lost."""
        ledger = CallLedger()

        with ThreadPoolExecutor(max_workers=16) as executor:
            list(executor.map(lambda _: ledger.record_call('a:get'), range(2000)))

        assert ledger.count('a:get') == 2000


class TestExpectationTable:
    """Test expectation storage."""

    def test_merge_and_reset(self):
        """Test merged expectations are listed and cleared."""
        table = ExpectationTable()
        table.merge({'a:get': 1})
        table.merge({'b:get': 2, 'a:get': 3})

        assert table.items() == [('a:get', 3), ('b:get', 2)]
        assert len(table) == 2

        table.reset()
        assert table.items() == []


class TestValidateCallCounts:
    """Test count validation."""

    def test_matching_counts_pass(self):
        """Test validation passes when counts equal expectations."""
        ledger = CallLedger()
        table = ExpectationTable()
        table.merge({'a:get': 2, 'b:get': 0})
        ledger.record_call('a:get')
        ledger.record_call('a:get')

        validate_call_counts(ledger, table)

    def test_too_few_calls(self):
        """Test too few calls fail with the exact message."""
        ledger = CallLedger()
        table = ExpectationTable()
        table.merge({'http://example.com/api:get': 2})
        ledger.record_call('http://example.com/api:get')

        with pytest.raises(CallCountMismatchError) as exc_info:
            validate_call_counts(ledger, table)

        assert str(exc_info.value) == (
            "Expected route 'http://example.com/api:get' to be called 2 times but was called 1 times"
        )
        assert exc_info.value.route_key == 'http://example.com/api:get'
        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 1

    def test_never_called(self):
        """Test uncalled routes count as zero."""
        table = ExpectationTable()
        table.merge({'a:get': 1})

        with pytest.raises(CallCountMismatchError, match="called 1 times but was called 0 times"):
            validate_call_counts(CallLedger(), table)

    def test_first_mismatch_reported(self):
        """Test the first mismatch in registration order is reported."""
        table = ExpectationTable()
        table.merge({'a:get': 1, 'b:get': 1})

        with pytest.raises(CallCountMismatchError) as exc_info:
            validate_call_counts(CallLedger(), table)

        assert exc_info.value.route_key == 'a:get'
