"""Domain layer - data models and errors."""

from modules.communities.domain.models import (
    CommunityFlags,
    ErrorDescriptor,
    Group,
    IdentityEvent,
    TraitEvent,
    build_community_flags,
    group_from_dict,
)
from modules.communities.domain.errors import (
    AuthError,
    CommunityProcessorError,
    DirectoryClientError,
    MessageValidationError,
    UnresolvedCommunityError,
)

__all__ = [
    "CommunityFlags",
    "ErrorDescriptor",
    "Group",
    "IdentityEvent",
    "TraitEvent",
    "build_community_flags",
    "group_from_dict",
    "AuthError",
    "CommunityProcessorError",
    "DirectoryClientError",
    "MessageValidationError",
    "UnresolvedCommunityError",
]
