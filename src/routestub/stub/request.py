"""
routestub Request Normalizer

Converts heterogeneous request representations (bare URL strings, method-less
dicts, dicts carrying raw entity bodies) into one canonical request record.
"""

import io
from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional, Union, Mapping

from ..common import URLParser


ANY = 'ANY'


@dataclass
class CanonicalRequest:
    """Normalized internal representation of an outgoing request."""

    method: str = 'GET'
    scheme: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = '/'
    query_string: Optional[str] = None
    query_params: Optional[Dict[str, Any]] = None
    body: Any = None
    url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def address(self) -> str:
        """Request URL, preferring the raw URL it was built from."""
        if self.url and not self.query_params:
            return self.url
        return URLParser.address_string_for(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'method': self.method,
            'scheme': self.scheme,
            'host': self.host,
            'port': self.port,
            'path': self.path,
            'query_string': self.query_string,
            'query_params': self.query_params,
            'url': self.url,
            'headers': dict(self.headers)
        }


# Aliases accepted in dict-shaped requests
_FIELD_ALIASES = {
    'server_name': 'host',
    'server_port': 'port',
    'uri': 'path',
}


def _unwrap_body(body: Any) -> Any:
    """Turn raw entity bodies into a readable byte stream."""
    if isinstance(body, (bytes, bytearray)):
        return io.BytesIO(bytes(body))
    if isinstance(body, str):
        return io.BytesIO(body.encode('utf-8'))
    return body


def normalize_method(method: Optional[str]) -> str:
    """Upper-case an HTTP method name, defaulting to GET."""
    if not method:
        return 'GET'
    return str(method).upper()


def normalize_request(request: Union[str, Mapping[str, Any], CanonicalRequest]) -> CanonicalRequest:
    """
    Normalize a request into a CanonicalRequest.

    Accepts:
    - A URL string
    - A dict with a 'url' key and/or individual components
      (scheme, host, port, path, query_string, query_params, method, body)
    - An existing CanonicalRequest (returned with its body unwrapped)

    Explicit components in a dict take precedence over those parsed from
    its 'url'. Missing methods default to GET.

    Args:
        request: Request representation

    Returns:
        CanonicalRequest
    """
    if isinstance(request, CanonicalRequest):
        return replace(request, method=normalize_method(request.method), body=_unwrap_body(request.body))

    if isinstance(request, str):
        request = {'url': request}

    fields: Dict[str, Any] = {}
    url = request.get('url')
    if isinstance(url, str):
        fields.update(URLParser.parse_url(url))
        fields['url'] = url

    for key, value in request.items():
        key = _FIELD_ALIASES.get(key, key)
        if key in ('scheme', 'host', 'port', 'query_string', 'query_params', 'headers'):
            fields[key] = value
        elif key == 'path':
            fields['path'] = URLParser.normalize_path(value)

    method = request.get('method') or request.get('request_method')
    fields['method'] = normalize_method(method)
    fields['body'] = _unwrap_body(request.get('body'))
    if fields.get('headers') is None:
        fields['headers'] = {}
    fields.setdefault('path', '/')

    return CanonicalRequest(**fields)
