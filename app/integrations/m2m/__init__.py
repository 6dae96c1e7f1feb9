"""Machine-to-machine token module for calling the group directory."""

from .client import (
    AuthError,
    M2MTokenProvider,
    get_token_expiry,
)

__all__ = [
    "AuthError",
    "M2MTokenProvider",
    "get_token_expiry",
]
