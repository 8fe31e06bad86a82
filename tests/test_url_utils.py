"""
Tests for routestub URL Utilities

Tests URL parsing, path normalization, query handling and stringification.
"""

import pytest

from routestub.common.url_utils import URLParser
from routestub.stub.request import CanonicalRequest


class TestNormalizePath:
    """Test path normalization."""

    @pytest.mark.parametrize("path,expected", [
        (None, '/'),
        ('', '/'),
        ('   ', '/'),
        ('/', '/'),
        ('/api', '/api/'),
        ('/api/', '/api/'),
        ('/a/b.html', '/a/b.html/'),
    ])
    def test_normalize_path(self, path, expected):
        """Test blank paths become '/' and a trailing slash is appended."""
        assert URLParser.normalize_path(path) == expected


class TestParseUrl:
    """Test URL parsing."""

    def test_full_url(self):
        """Test parsing a URL with every component."""
        parsed = URLParser.parse_url('http://val.packett.cool:2020/path/resource.ext?key=value')

        assert parsed == {
            'scheme': 'http',
            'host': 'val.packett.cool',
            'port': 2020,
            'path': '/path/resource.ext/',
            'query_string': 'key=value'
        }

    def test_no_scheme(self):
        """Test URL without '://' has no scheme."""
        parsed = URLParser.parse_url('google.com/search')

        assert parsed['scheme'] is None
        assert parsed['host'] == 'google.com'
        assert parsed['path'] == '/search/'

    def test_no_path(self):
        """Test URL without a path gets '/'."""
        parsed = URLParser.parse_url('http://google.com')

        assert parsed['path'] == '/'
        assert parsed['port'] is None
        assert parsed['query_string'] is None

    def test_query_split_at_first_question_mark(self):
        """Test only the first '?' separates the query."""
        parsed = URLParser.parse_url('http://a.com/x?q=1?2')

        assert parsed['query_string'] == 'q=1?2'

    def test_non_numeric_port(self):
        """Test a malformed port degrades to None."""
        parsed = URLParser.parse_url('http://a.com:abc/x')

        assert parsed['host'] == 'a.com'
        assert parsed['port'] is None


class TestQueryParams:
    """Test query parameter helpers."""

    def test_parse_query_string(self):
        """Test query strings are decoded into string maps."""
        assert URLParser.parse_query_string('q=this+has+spaces&a=1') == {'q': 'this has spaces', 'a': '1'}

    def test_parse_blank_query_string(self):
        """Test blank query strings give empty maps."""
        assert URLParser.parse_query_string(None) == {}
        assert URLParser.parse_query_string('') == {}

    def test_normalize_query_params(self):
        """Test keys and values are stringified."""
        assert URLParser.normalize_query_params({'a': 1, 'b': True}) == {'a': '1', 'b': 'True'}
        assert URLParser.normalize_query_params(None) is None

    def test_encode_query_params(self):
        """Test form encoding keeps insertion order."""
        assert URLParser.encode_query_params({'sec': 'test2', 'fst': 'a b'}) == 'sec=test2&fst=a+b'


class TestAddressString:
    """Test URL stringification."""

    def test_all_components(self):
        """Test every component is included."""
        request = CanonicalRequest(scheme='http', host='a.com', port=8080, path='/x/', query_string='q=1')

        assert URLParser.address_string_for(request) == 'http://a.com:8080/x/?q=1'

    def test_optional_components(self):
        """Test absent components are skipped."""
        request = CanonicalRequest(scheme=None, host='a.com', port=None, path=None)

        assert URLParser.address_string_for(request) == 'a.com'

    def test_query_params_map(self):
        """Test a structured query map is form-encoded."""
        request = CanonicalRequest(scheme='http', host='a.com', path='/', query_params={'q': 'x y'})

        assert URLParser.address_string_for(request) == 'http://a.com/?q=x+y'

    def test_normalize_for_matching(self):
        """Test trailing slash runs are stripped."""
        assert URLParser.normalize_for_matching('http://a.com///') == 'http://a.com'
        assert URLParser.normalize_for_matching('http://a.com/x') == 'http://a.com/x'
