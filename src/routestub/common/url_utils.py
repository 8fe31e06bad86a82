"""
routestub URL Utilities

Shared URL parsing, stringification and normalization utilities.
"""

import re
from urllib.parse import urlencode, parse_qsl
from typing import Dict, Any, List, Optional, Mapping


class URLParser:
    """Splits URLs into request components and rebuilds comparison strings."""

    @staticmethod
    def normalize_path(path: Optional[str]) -> str:
        """
        Normalize a request path.

        Blank paths become "/", paths without a trailing slash get one.

        Args:
            path: Raw path, may be None

        Returns:
            Normalized path string
        """
        if path is None or not path.strip():
            return '/'
        if path.endswith('/'):
            return path
        return path + '/'

    @staticmethod
    def parse_url(url: str) -> Dict[str, Any]:
        """
        Parse a URL string into request components.

        Unlike urllib.parse.urlparse, a URL without "://" is read as
        host[:port]/path with no scheme.

        Args:
            url: URL to parse

        Returns:
            Dict with scheme, host, port, path and query_string
        """
        url, _, query = url.partition('?')
        query_string = query or None

        if '://' in url:
            scheme, rest = url.split('://', 1)
        else:
            scheme, rest = None, url

        if '/' in rest:
            idx = rest.index('/')
            host, path = rest[:idx], rest[idx:]
        else:
            host, path = rest, '/'

        port = None
        if ':' in host:
            host, raw_port = host.split(':', 1)
            try:
                port = int(raw_port)
            except ValueError:
                port = None

        return {
            'scheme': scheme,
            'host': host,
            'port': port,
            'path': URLParser.normalize_path(path),
            'query_string': query_string
        }

    @staticmethod
    def encode_query_params(params: Mapping[Any, Any]) -> str:
        """Form-encode a query parameter mapping in its iteration order."""
        return urlencode([(str(k), str(v)) for k, v in params.items()])

    @staticmethod
    def split_query_string(query_string: str) -> List[str]:
        """Split a raw query string into its '&' / ';' separated segments."""
        return re.split(r'[&;]', query_string)

    @staticmethod
    def sort_query_string(query_string: str) -> str:
        """Canonical ordering of a raw query string's segments."""
        return '&'.join(sorted(URLParser.split_query_string(query_string)))

    @staticmethod
    def parse_query_string(query_string: Optional[str]) -> Dict[str, str]:
        """
        Parse a query string into a dict of string keys to string values.

        Returns an empty dict for None or blank input.
        """
        if query_string is None or not query_string.strip():
            return {}
        return URLParser.normalize_query_params(
            dict(parse_qsl(query_string, keep_blank_values=True))
        )

    @staticmethod
    def normalize_query_params(params: Optional[Mapping[Any, Any]]) -> Optional[Dict[str, str]]:
        """Stringify every key and value of a query parameter mapping."""
        if params is None:
            return None
        return {str(k): str(v) for k, v in params.items()}

    @staticmethod
    def address_string_for(request: Any) -> str:
        """
        Build a URL string from a request's components.

        Format: scheme://host:port/path?query, each part optional.

        Args:
            request: Object with scheme, host, port, path, query_string
                and query_params attributes

        Returns:
            URL string
        """
        parts = []
        if request.scheme is not None:
            parts.append(f"{request.scheme}://")
        if request.host is not None:
            parts.append(request.host)
        if request.port is not None:
            parts.append(f":{request.port}")
        if request.path is not None:
            parts.append(request.path)

        query = request.query_string
        if query is None and request.query_params is not None:
            query = URLParser.encode_query_params(request.query_params)
        if query is not None:
            parts.append(f"?{query}")

        return ''.join(parts)

    @staticmethod
    def normalize_for_matching(url: str) -> str:
        """Strip any trailing run of slashes for consistent matching."""
        return re.sub(r'/+$', '', url)
