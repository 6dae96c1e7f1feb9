"""Fixtures for the communities module."""

from typing import Dict, List, Optional, Set, Tuple

import pytest
from infrastructure.operations import OperationResult
from modules.communities.domain.errors import DirectoryClientError
from modules.communities.domain.models import Group


class MockGroupDirectory:
    """In-memory group directory recording every call.

    Failures can be injected per operation and group id:

        directory.fail("add_membership", "abc126")
    """

    def __init__(self):
        self.groups: Dict[str, Group] = {}
        self.members: Dict[str, Set[int]] = {}
        self.calls: List[Tuple] = []
        self._failures: Dict[Tuple[str, Optional[str]], OperationResult] = {}
        self.closed = False

    def add_group(self, group_id: str, name: str, sso_id: Optional[str] = None):
        self.groups[group_id] = Group(id=group_id, name=name, sso_id=sso_id)
        self.members.setdefault(group_id, set())

    def add_group_member(self, group_id: str, member_id: int):
        self.members[group_id].add(member_id)

    def is_group_member(self, group_id: str, member_id: int) -> bool:
        return member_id in self.members.get(group_id, set())

    def fail(self, operation: str, key: Optional[str] = None, result=None):
        self._failures[(operation, key)] = result or OperationResult.transient_error(
            "Server error", error_code="HTTP_503"
        )

    def mutations(self) -> List[Tuple]:
        mutating = ("add_membership", "remove_membership")
        return [c for c in self.calls if c[0] in mutating]

    def _check(self, operation: str, key: Optional[str] = None):
        result = self._failures.get((operation, key)) or self._failures.get(
            (operation, None)
        )
        if result is not None:
            raise DirectoryClientError(f"{operation} failed: {result.message}", result)

    def find_group_by_name(self, name: str) -> Optional[Group]:
        self.calls.append(("find_group_by_name", name))
        self._check("find_group_by_name", name)
        return next(
            (g for g in self.groups.values() if g.name.lower() == name.lower()), None
        )

    def find_group_by_sso_id(self, sso_id: str) -> Optional[Group]:
        self.calls.append(("find_group_by_sso_id", sso_id))
        self._check("find_group_by_sso_id", sso_id)
        return next(
            (
                g
                for g in self.groups.values()
                if g.sso_id and g.sso_id.lower() == sso_id.lower()
            ),
            None,
        )

    def list_memberships(self, member_id: int) -> Set[str]:
        self.calls.append(("list_memberships", member_id))
        self._check("list_memberships")
        return {gid for gid, members in self.members.items() if member_id in members}

    def add_membership(self, group_id: str, member_id: int) -> None:
        self.calls.append(("add_membership", group_id, member_id))
        self._check("add_membership", group_id)
        self.members[group_id].add(member_id)

    def remove_membership(self, group_id: str, member_id: int) -> None:
        self.calls.append(("remove_membership", group_id, member_id))
        self._check("remove_membership", group_id)
        self.members[group_id].discard(member_id)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def directory():
    """Directory seeded like the processor's reference scenario.

    Groups abc123..abc126; member 12345 belongs to abc123, abc124, abc125 and
    member 12346 to abc125.
    """
    d = MockGroupDirectory()
    d.add_group("abc123", "name_abc123")
    d.add_group("abc124", "name_ABC124")
    d.add_group("abc125", "name_abc125")
    d.add_group("abc126", "name_abc126")
    d.add_group_member("abc123", 12345)
    d.add_group_member("abc124", 12345)
    d.add_group_member("abc125", 12345)
    d.add_group_member("abc125", 12346)
    return d


@pytest.fixture
def empty_directory():
    return MockGroupDirectory()
