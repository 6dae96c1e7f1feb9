"""Community membership processing.

Keeps the group memberships of members in line with the communities they
select in their profile traits, and enrolls identities registered through an
SSO provider into the matching closed community.

Features:
- Ordered, de-duplicated community flags built from trait messages
- Minimal add/remove reconciliation against the current memberships
- Per-community error isolation (unknown community, API failure, timeout)
- Closed-community enrollment for new identities
- Topic based message dispatching with schema validation
"""

from modules.communities.directory import GroupApiConfig, GroupDirectory
from modules.communities.dispatcher import (
    DispatchOutcome,
    DispatchStatus,
    MessageDispatcher,
)
from modules.communities.enrollment import enroll_from_sso_provider
from modules.communities.reconciliation import ReconciliationResult, reconcile

__all__ = [
    "GroupApiConfig",
    "GroupDirectory",
    "DispatchOutcome",
    "DispatchStatus",
    "MessageDispatcher",
    "enroll_from_sso_provider",
    "ReconciliationResult",
    "reconcile",
]
