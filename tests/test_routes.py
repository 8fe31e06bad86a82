"""
Tests for routestub Route Table Flattener
"""

import copy
import re

import pytest

from routestub.stub.errors import RouteTableError
from routestub.stub.matcher import LiteralKey, PatternKey, StructuredKey
from routestub.stub.routes import (
    TimedHandler,
    expect_calls,
    flatten_routes,
    is_static_response,
    route_key_for
)


def ok(request):
    return {'status': 200, 'body': 'ok'}


def created(request):
    return {'status': 201, 'body': 'created'}


class TestFlattenRoutes:
    """Test flattening of nested route tables."""

    def test_plain_handler_is_any(self):
        """Test a plain handler becomes a single ANY entry."""
        entries, expectations = flatten_routes({'http://example.com': ok})

        assert len(entries) == 1
        assert entries[0].method == 'ANY'
        assert entries[0].address == LiteralKey('http://example.com')
        assert entries[0].handler is ok
        assert entries[0].expected_count is None
        assert expectations == {}

    def test_static_response_is_any(self):
        """Test a static response mapping is a plain handler, not a method map."""
        entries, _ = flatten_routes({'http://example.com': {'status': 204}})

        assert [e.method for e in entries] == ['ANY']
        assert entries[0].handler == {'status': 204}

    def test_empty_mapping_is_static_response(self):
        """Test an empty mapping is the default response."""
        entries, _ = flatten_routes({'http://example.com': {}})

        assert [e.method for e in entries] == ['ANY']

    def test_method_map_order(self):
        """Test entries follow address then method declaration order."""
        entries, _ = flatten_routes({
            'http://a.com': {'get': ok, 'delete': created},
            'http://b.com': {'post': ok},
        })

        assert [(e.method, str(e.address)) for e in entries] == [
            ('GET', 'http://a.com'),
            ('DELETE', 'http://a.com'),
            ('POST', 'http://b.com'),
        ]

    def test_times_never_emitted(self):
        """Test the times key is not a method."""
        entries, _ = flatten_routes({'http://a.com': {'get': ok, 'times': 2}})

        assert [e.method for e in entries] == ['GET']

    def test_shared_times(self):
        """Test an integer times applies to every method separately."""
        entries, expectations = flatten_routes({'http://a.com': {'get': ok, 'post': created, 'times': 1}})

        assert [e.expected_count for e in entries] == [1, 1]
        assert expectations == {'http://a.com:get': 1, 'http://a.com:post': 1}

    def test_per_method_times(self):
        """Test a times mapping sets counts per method."""
        _, expectations = flatten_routes({
            'http://a.com': {'get': ok, 'post': created, 'times': {'get': 1, 'post': 2}}
        })

        assert expectations == {'http://a.com:get': 1, 'http://a.com:post': 2}

    def test_per_method_times_partial(self):
        """Test methods absent from a times mapping have no expectation."""
        _, expectations = flatten_routes({'http://a.com': {'get': ok, 'post': created, 'times': {'POST': 3}}})

        assert expectations == {'http://a.com:post': 3}

    def test_tagged_handler(self):
        """Test handlers tagged with expect_calls carry their own count."""
        entries, expectations = flatten_routes({'http://a.com/test': {'get': expect_calls(2)(ok)}})

        assert entries[0].handler is ok
        assert expectations == {'http://a.com/test:get': 2}

    def test_tagged_handler_mapping(self):
        """Test {'handler': fn, 'times': n} is equivalent to expect_calls."""
        tagged, _ = flatten_routes({'http://a.com/test': {'get': expect_calls(2)(ok)}})
        mapped, expectations = flatten_routes({'http://a.com/test': {'get': {'handler': ok, 'times': 2}}})

        assert mapped[0].handler is tagged[0].handler
        assert mapped[0].expected_count == tagged[0].expected_count == 2
        assert expectations == {'http://a.com/test:get': 2}

    def test_tagged_plain_handler(self):
        """Test a tagged handler outside a method map counts ANY calls."""
        _, expectations = flatten_routes({'http://a.com': expect_calls(3)(ok)})

        assert expectations == {'http://a.com:any': 3}

    def test_shared_times_overrides_tag(self):
        """Test address-level times wins over a handler tag."""
        _, expectations = flatten_routes({'http://a.com': {'get': expect_calls(5)(ok), 'times': 1}})

        assert expectations == {'http://a.com:get': 1}

    def test_times_zero(self):
        """Test zero is a valid expectation."""
        _, expectations = flatten_routes({'http://a.com': {'get': ok, 'times': 0}})

        assert expectations == {'http://a.com:get': 0}

    def test_caller_data_not_mutated(self):
        """Test flattening leaves the route table untouched."""
        routes = {'http://a.com': {'get': ok, 'post': created, 'times': {'get': 1}}}
        before = copy.copy(routes['http://a.com'])

        flatten_routes(routes)
        flatten_routes(routes)

        assert routes == {'http://a.com': before}

    def test_pair_sequence(self):
        """Test route tables given as (key, value) pairs allow mapping keys."""
        entries, _ = flatten_routes([
            ({'address': 'http://g.com/search', 'query_params': {'q': 'x'}}, ok),
            (re.compile(r'http://g\.com/.*'), created),
        ])

        assert isinstance(entries[0].address, StructuredKey)
        assert isinstance(entries[1].address, PatternKey)

    @pytest.mark.parametrize("routes", [
        'http://a.com',
        42,
        [('only-key',)],
        {'http://a.com': {'get': ok, 'times': -1}},
        {'http://a.com': {'get': ok, 'times': 'twice'}},
        {'http://a.com': {'get': ok, 'times': True}},
    ])
    def test_malformed_tables(self, routes):
        """Test malformed tables raise RouteTableError."""
        with pytest.raises(RouteTableError):
            flatten_routes(routes)


class TestRouteKeys:
    """Test ledger key derivation."""

    def test_literal(self):
        """Test literal keys use the address and lower-case method."""
        assert route_key_for('http://example.com/api', 'GET') == 'http://example.com/api:get'

    def test_pattern(self):
        """Test pattern keys use the pattern source."""
        assert route_key_for(re.compile(r'http://a\.com/.*'), 'POST') == r'http://a\.com/.*:post'

    def test_structured(self):
        """Test structured keys include sorted query params."""
        key = {'address': 'http://g.com/search', 'query_params': {'q': 'x', 'a': 1}}

        assert route_key_for(key, 'ANY') == 'http://g.com/search?a=1&q=x:any'

    def test_entry_route_key(self):
        """Test entries expose their ledger key."""
        entries, _ = flatten_routes({'http://a.com': {'get': ok}})

        assert entries[0].route_key == 'http://a.com:get'


class TestHelpers:
    """Test helper functions."""

    def test_is_static_response(self):
        """Test static response detection."""
        assert is_static_response({'status': 200, 'body': 'x'})
        assert is_static_response({})
        assert not is_static_response({'get': ok})
        assert not is_static_response(ok)

    def test_timed_handler_calls_through(self):
        """Test tagged handlers remain callable."""
        assert TimedHandler(ok, 1)(None) == {'status': 200, 'body': 'ok'}
        assert TimedHandler({'status': 204}, 1)(None) == {'status': 204}

    def test_expect_calls_rejects_negative(self):
        """Test negative counts are rejected."""
        with pytest.raises(RouteTableError):
            expect_calls(-1)
