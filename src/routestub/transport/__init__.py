"""
routestub Transports

Adapters that route HTTP client calls through the stubbing engine.
"""

from .requests_hook import (
    install,
    uninstall,
    is_installed,
    build_response,
    stubbed_requests,
    with_http_stub,
    with_http_stub_in_isolation,
    with_global_http_stub,
    with_global_http_stub_in_isolation
)
from .callback import CallbackTransport

__all__ = [
    # requests hook
    'install',
    'uninstall',
    'is_installed',
    'build_response',
    'stubbed_requests',
    'with_http_stub',
    'with_http_stub_in_isolation',
    'with_global_http_stub',
    'with_global_http_stub_in_isolation',

    # Callback client
    'CallbackTransport',
]
