"""
routestub Responses

Builds response specs from handler output.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Callable, Optional, Mapping, Union

from .request import CanonicalRequest


RESPONSE_FIELDS = ('status', 'headers', 'body')

Handler = Union[Callable[[CanonicalRequest], Optional[Mapping[str, Any]]], Mapping[str, Any]]


@dataclass
class ResponseSpec:
    """Canned response returned by a stub route."""

    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b''

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'status': self.status,
            'headers': dict(self.headers),
            'body': self.body
        }


def body_bytes(body: Any) -> bytes:
    """Return body unchanged if it is bytes, otherwise its UTF-8 encoding."""
    if isinstance(body, bytes):
        return body
    if isinstance(body, bytearray):
        return bytes(body)
    if body is None:
        return b''
    return str(body).encode('utf-8')


def create_response(handler: Handler, request: CanonicalRequest) -> ResponseSpec:
    """
    Invoke a handler and merge its output over the response defaults.

    Defaults are status 200, empty headers and an empty body. Static mappings
    are used as constant responses; a handler returning None yields the
    defaults.

    Args:
        handler: Callable taking the request, or a static response mapping
        request: Canonical request passed to the handler

    Returns:
        ResponseSpec with a bytes body
    """
    output = handler(request) if callable(handler) else handler
    merged: Dict[str, Any] = {'status': 200, 'headers': {}, 'body': ''}
    merged.update(output or {})

    return ResponseSpec(
        status=int(merged['status']),
        headers=dict(merged['headers'] or {}),
        body=body_bytes(merged['body'])
    )
