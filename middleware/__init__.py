"""
Middleware components for the hub control API.
"""
from .auth import api_key_header, require_api_key, verify_api_key

__all__ = [
    "api_key_header",
    "require_api_key",
    "verify_api_key",
]
