"""Community membership reconciliation.

Aligns the group memberships of a member with the community flags carried by
a profile trait event:

- desired and not a member: add
- not desired and a member: remove
- otherwise: nothing to do

The current memberships are fetched once per event. Communities are then
processed one by one, in the order of the event, and a failure on one
community (unknown name, API error, timeout) is recorded and never stops the
next one. There is no rollback.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Set

from core.logging import get_module_logger
from modules.communities.domain.errors import (
    DirectoryClientError,
    UnresolvedCommunityError,
)
from modules.communities.domain.models import ErrorDescriptor, Group, TraitEvent

logger = get_module_logger()


class MembershipDirectory(Protocol):
    """What reconciliation needs from the group directory."""

    def find_group_by_name(self, name: str) -> Optional[Group]: ...

    def list_memberships(self, member_id: int) -> Set[str]: ...

    def add_membership(self, group_id: str, member_id: int) -> None: ...

    def remove_membership(self, group_id: str, member_id: int) -> None: ...


@dataclass
class ReconciliationResult:
    """Outcome of reconciling one trait event."""

    member_id: int
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    errors: List[ErrorDescriptor] = field(default_factory=list)

    @property
    def mutation_count(self) -> int:
        return len(self.added) + len(self.removed)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def reconcile(
    event: TraitEvent, directory: MembershipDirectory
) -> ReconciliationResult:
    """Apply the community flags of ``event`` to the directory.

    Args:
        event: The trait event; its community flags are already lowercased,
            de-duplicated and free of null values.
        directory: Group directory scoped to this event.

    Returns:
        ReconciliationResult listing the mutations performed and the
        per-community errors.

    Raises:
        DirectoryClientError: If the current memberships of the member cannot
            be fetched. Nothing has been mutated at that point.
    """
    result = ReconciliationResult(member_id=event.member_id)
    if not event.community_flags:
        logger.info("no_communities_to_reconcile", member_id=event.member_id)
        return result

    log = logger.bind(member_id=event.member_id, user_handle=event.user_handle)
    log.info("get_memberships", communities=event.communities)
    memberships = set(directory.list_memberships(event.member_id))

    for community, desired in event.community_flags:
        group_id = None
        try:
            group = directory.find_group_by_name(community)
            if group is None:
                raise UnresolvedCommunityError(community)
            group_id = group.id

            is_member = group_id in memberships
            if desired and not is_member:
                log.info("add_member_to_group", group_id=group_id, community=community)
                directory.add_membership(group_id, event.member_id)
                memberships.add(group_id)
                result.added.append(group_id)
            elif not desired and is_member:
                log.info(
                    "remove_member_from_group", group_id=group_id, community=community
                )
                directory.remove_membership(group_id, event.member_id)
                memberships.discard(group_id)
                result.removed.append(group_id)
            else:
                log.info(
                    "membership_already_in_sync",
                    group_id=group_id,
                    community=community,
                    is_member=is_member,
                )
                result.unchanged.append(group_id)
        except UnresolvedCommunityError as e:
            log.error("invalid_community", community=community)
            result.errors.append(ErrorDescriptor.unresolved(e))
        except DirectoryClientError as e:
            log.error(
                "community_reconciliation_failed",
                community=community,
                group_id=group_id,
                error=str(e),
                error_code=e.error_code,
            )
            result.errors.append(
                ErrorDescriptor.directory_failure(community, e, group_id=group_id)
            )

    log.info(
        "reconciliation_completed",
        added=result.added,
        removed=result.removed,
        unchanged_count=len(result.unchanged),
        error_count=len(result.errors),
    )
    return result
