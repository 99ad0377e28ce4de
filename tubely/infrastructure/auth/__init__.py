"""
Caller authentication: JWT bearer tokens.
"""

from .tokens import create_access_token, get_bearer_token, validate_access_token

__all__ = ["create_access_token", "get_bearer_token", "validate_access_token"]
