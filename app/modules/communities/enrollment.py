"""Closed-community enrollment for new identities.

Identities registered through an SSO provider are added to the group bound
to that provider.
"""

from typing import Optional, Protocol, Set

from core.logging import get_module_logger
from infrastructure.operations import OperationResult, OperationStatus
from modules.communities.domain.errors import DirectoryClientError
from modules.communities.domain.models import Group, IdentityEvent

logger = get_module_logger()


class EnrollmentDirectory(Protocol):
    def find_group_by_sso_id(self, sso_id: str) -> Optional[Group]: ...

    def list_memberships(self, member_id: int) -> Set[str]: ...

    def add_membership(self, group_id: str, member_id: int) -> None: ...


def enroll_from_sso_provider(
    event: IdentityEvent, directory: EnrollmentDirectory
) -> OperationResult:
    """Add a newly created identity to the group of its SSO provider.

    Returns:
        SUCCESS when there is no provider, the subject is already a member or
        was added (``data["added"]`` tells which). NOT_FOUND when no group is
        bound to the provider. The failure status of the directory call
        otherwise.
    """
    if not event.sso_provider:
        logger.debug("enrollment_skipped_no_sso_provider", subject_id=event.subject_id)
        return OperationResult.success(
            data={"added": False}, message="no sso provider"
        )

    log = logger.bind(
        subject_id=event.subject_id,
        handle=event.handle,
        sso_provider=event.sso_provider,
    )
    try:
        group = directory.find_group_by_sso_id(event.sso_provider)
        if group is None:
            log.info("no_group_for_sso_provider")
            return OperationResult.not_found(
                f"No group registered for sso provider {event.sso_provider}"
            )

        if group.id in directory.list_memberships(event.subject_id):
            log.info("subject_already_in_group", group_id=group.id)
            return OperationResult.success(
                data={"group_id": group.id, "added": False},
                message="already a member",
            )

        log.info("add_subject_to_closed_community", group_id=group.id)
        directory.add_membership(group.id, event.subject_id)
        return OperationResult.success(
            data={"group_id": group.id, "added": True}, message="member added"
        )
    except DirectoryClientError as e:
        log.error("enrollment_failed", error=str(e), error_code=e.error_code)
        if isinstance(e.result, OperationResult):
            return e.result.as_failure(str(e))
        return OperationResult.error(OperationStatus.TRANSIENT_ERROR, str(e))
