"""
routestub Common Utilities

Shared utilities used across routestub modules.
"""

from .url_utils import URLParser

__all__ = [
    'URLParser'
]
