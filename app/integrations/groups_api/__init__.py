"""Groups API integration."""

from .client import GroupsApiClient, unwrap_content

__all__ = [
    "GroupsApiClient",
    "unwrap_content",
]
