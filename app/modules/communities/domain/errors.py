"""Errors for the communities module."""

from typing import Any, Optional

from integrations.m2m import AuthError


class CommunityProcessorError(Exception):
    """Base class for errors raised while processing a stream message."""


class MessageValidationError(CommunityProcessorError):
    """Raised when a message payload does not match its schema.

    Attributes:
        errors: the list of errors reported by pydantic
    """

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class UnresolvedCommunityError(CommunityProcessorError):
    """A community name has no matching group in the directory."""

    error_code = "UNRESOLVED_COMMUNITY"

    def __init__(self, community: str):
        super().__init__(f"Invalid community: {community}")
        self.community = community


class DirectoryClientError(CommunityProcessorError):
    """Raised by the group directory when the underlying API call fails.

    Attributes:
        message: human-friendly message
        result: the OperationResult returned by the groups API client
    """

    def __init__(self, message: str, result: Any = None):
        super().__init__(message)
        self.result = result

    @property
    def error_code(self) -> Optional[str]:
        return getattr(self.result, "error_code", None)


__all__ = [
    "AuthError",
    "CommunityProcessorError",
    "DirectoryClientError",
    "MessageValidationError",
    "UnresolvedCommunityError",
]
