"""Group directory used by reconciliation and enrollment.

Wraps the raw GroupsApiClient, normalizes its payloads into Group objects and
turns failed OperationResults into DirectoryClientError, so the core only
deals with groups, group ids and exceptions.

A GroupDirectory lives for the processing of one message: the group
catalogue is fetched at most once per instance and never shared between
messages.
"""

from dataclasses import dataclass
from typing import List, Optional, Set

from core.config import settings
from core.logging import get_module_logger
from infrastructure.operations import OperationResult
from integrations.groups_api import GroupsApiClient
from modules.communities.domain.errors import DirectoryClientError
from modules.communities.domain.models import Group, group_from_dict

logger = get_module_logger()


@dataclass(frozen=True)
class GroupApiConfig:
    """Per-message configuration handed to the directory by the dispatcher."""

    base_url: str
    token: str
    timeout: int = 10
    membership_type: str = "user"

    @classmethod
    def from_settings(cls, token: str) -> "GroupApiConfig":
        return cls(
            base_url=settings.group_api.TC_API_BASE_URL,
            token=token,
            timeout=settings.group_api.GROUP_API_TIMEOUT_SECONDS,
            membership_type=settings.group_api.MEMBERSHIP_TYPE,
        )


def _raise_on_failure(result: OperationResult, action: str) -> OperationResult:
    if not result.is_success:
        raise DirectoryClientError(f"{action} failed: {result.message}", result=result)
    return result


def _as_list(data) -> list:
    return data if isinstance(data, list) else []


class GroupDirectory:
    """Group and membership lookups against the groups API."""

    def __init__(self, client: GroupsApiClient):
        self._client = client
        self._groups: Optional[List[Group]] = None
        self._groups_failure: Optional[OperationResult] = None

    @classmethod
    def from_config(cls, config: GroupApiConfig) -> "GroupDirectory":
        return cls(
            GroupsApiClient(
                base_url=config.base_url,
                token=config.token,
                timeout=config.timeout,
                membership_type=config.membership_type,
            )
        )

    def list_groups(self) -> List[Group]:
        """Return every group of the directory (cached for this instance).

        A failed fetch is remembered too: later lookups raise the same
        failure without calling the API again.
        """
        if self._groups_failure is not None:
            _raise_on_failure(self._groups_failure, "list groups")
        if self._groups is None:
            logger.info("fetching_groups")
            result = self._client.list_groups()
            if not result.is_success:
                self._groups_failure = result
            _raise_on_failure(result, "list groups")
            groups = [group_from_dict(g) for g in _as_list(result.data)]
            self._groups = [g for g in groups if g is not None]
            logger.debug("groups_fetched", count=len(self._groups))
        return self._groups

    def find_group_by_name(self, name: str) -> Optional[Group]:
        """Case-insensitive lookup of a group by name."""
        wanted = name.lower()
        return next(
            (g for g in self.list_groups() if g.name and g.name.lower() == wanted),
            None,
        )

    def find_group_by_sso_id(self, sso_id: str) -> Optional[Group]:
        """Case-insensitive lookup of the group bound to an SSO provider."""
        wanted = sso_id.lower()
        return next(
            (g for g in self.list_groups() if g.sso_id and g.sso_id.lower() == wanted),
            None,
        )

    def list_memberships(self, member_id: int) -> Set[str]:
        """Return the ids of the groups the member currently belongs to."""
        result = _raise_on_failure(
            self._client.list_member_groups(member_id),
            f"list memberships of member {member_id}",
        )
        group_ids = set()
        for raw in _as_list(result.data):
            group = group_from_dict(raw)
            if group is not None:
                group_ids.add(group.id)
        return group_ids

    def add_membership(self, group_id: str, member_id: int) -> None:
        """Add the member to the group."""
        _raise_on_failure(
            self._client.add_group_member(group_id, member_id),
            f"add member {member_id} to group {group_id}",
        )

    def remove_membership(self, group_id: str, member_id: int) -> None:
        """Remove the member from the group.

        The API deletes memberships by their own id, so the membership of the
        member is looked up first.
        """
        members = _raise_on_failure(
            self._client.list_group_members(group_id),
            f"list members of group {group_id}",
        )
        membership_id = next(
            (
                m.get("id")
                for m in _as_list(members.data)
                if isinstance(m, dict) and str(m.get("memberId")) == str(member_id)
            ),
            None,
        )
        if membership_id is None:
            raise DirectoryClientError(
                f"member {member_id} has no membership in group {group_id}",
                result=OperationResult.not_found(
                    f"membership of {member_id} in {group_id} not found"
                ),
            )
        _raise_on_failure(
            self._client.delete_group_membership(group_id, str(membership_id)),
            f"remove member {member_id} from group {group_id}",
        )

    def close(self) -> None:
        self._client.close()
