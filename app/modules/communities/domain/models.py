"""Internal data models for the communities module.

Lightweight dataclasses (no runtime validation) used between the dispatcher,
the group directory and the reconciler. Payload validation happens earlier,
in schemas.py, and the validated messages are converted into these models.

Key distinctions:
  - models.py: Internal structures (dataclasses, no validation)
  - schemas.py: Stream message contracts with Pydantic (full validation)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

# Ordered (community name, desired membership) pairs
CommunityFlags = List[Tuple[str, bool]]


@dataclass(frozen=True)
class Group:
    """A group of the directory.

    Attributes:
        id: Stable identifier used by the membership endpoints.
        name: Display name; communities resolve against it case-insensitively.
        sso_id: Identifier of the SSO provider the group is bound to, if any.
        raw: The original payload returned by the API.
    """

    id: str
    name: str
    sso_id: Optional[str] = None
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)


def group_from_dict(d: Mapping[str, Any]) -> Optional[Group]:
    """Convert a raw v3 group dict into a Group.

    Returns None for payloads without an id.
    """
    if not isinstance(d, Mapping):
        return None
    gid = d.get("id") or d.get("groupId")
    if gid is None:
        return None
    return Group(
        id=str(gid),
        name=d.get("name") or "",
        sso_id=d.get("ssoId") or d.get("ssoID"),
        raw=dict(d),
    )


def build_community_flags(
    records: Iterable[Mapping[str, Optional[bool]]],
) -> CommunityFlags:
    """Flatten trait data records into ordered, de-duplicated community flags.

    Records are walked in order and each record in its insertion order. The
    first non-null occurrence of a lowercased community name wins; later
    occurrences are ignored even when they carry a different flag. Null flags
    are dropped and do not claim the name.

    Args:
        records: The ``traits.data`` records of a trait message.

    Returns:
        A list of (lowercased community name, desired) pairs.
    """
    flags: CommunityFlags = []
    seen = set()
    for record in records:
        for key, value in record.items():
            if value is None:
                continue
            community = key.lower()
            if community in seen:
                continue
            seen.add(community)
            flags.append((community, bool(value)))
    return flags


@dataclass
class TraitEvent:
    """A member profile trait change, reduced to what reconciliation needs."""

    member_id: int
    trait_kind: str
    community_flags: CommunityFlags = field(default_factory=list)
    sso_provider: Optional[str] = None
    user_handle: Optional[str] = None

    @property
    def communities(self) -> List[str]:
        return [name for name, _ in self.community_flags]


@dataclass
class IdentityEvent:
    """An identity creation notification."""

    subject_id: int
    handle: Optional[str] = None
    sso_provider: Optional[str] = None


@dataclass
class ErrorDescriptor:
    """A per-community failure recorded during reconciliation.

    Attributes:
        community: The lowercased community name being processed.
        kind: "unresolved_community" or "directory_client_error".
        message: Human-friendly description.
        error_code: Machine code (UNRESOLVED_COMMUNITY, HTTP_503, TIMEOUT, ...).
        group_id: The resolved group, when resolution succeeded.
    """

    community: str
    kind: str
    message: str
    error_code: Optional[str] = None
    group_id: Optional[str] = None

    UNRESOLVED_COMMUNITY = "unresolved_community"
    DIRECTORY_CLIENT_ERROR = "directory_client_error"

    @classmethod
    def unresolved(cls, error) -> "ErrorDescriptor":
        """Build a descriptor from an UnresolvedCommunityError."""
        return cls(
            community=error.community,
            kind=cls.UNRESOLVED_COMMUNITY,
            message=str(error),
            error_code=error.error_code,
        )

    @classmethod
    def directory_failure(
        cls, community: str, error, group_id: Optional[str] = None
    ) -> "ErrorDescriptor":
        """Build a descriptor from a DirectoryClientError."""
        return cls(
            community=community,
            kind=cls.DIRECTORY_CLIENT_ERROR,
            message=str(error),
            error_code=error.error_code,
            group_id=group_id,
        )
