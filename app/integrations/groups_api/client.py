"""HTTP client for the v3 groups API.

All calls return an OperationResult; nothing raised by ``requests`` escapes
this module. Responses of the v3 API wrap their payload as
``{"result": {"content": ...}}`` and ``content`` is unwrapped into
``OperationResult.data``.

Usage:
    from integrations.groups_api import GroupsApiClient

    client = GroupsApiClient(
        base_url="https://api.topcoder.com", token=token, timeout=10
    )
    result = client.list_groups()
    if result.is_success:
        groups = result.data
"""

from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests
import structlog

from infrastructure.operations import (
    OperationResult,
    classify_request_exception,
    classify_response,
)

logger = structlog.get_logger(__name__)


def unwrap_content(body: Any) -> Any:
    """Return ``result.content`` of a v3 response body, or the body itself."""
    if isinstance(body, dict):
        result = body.get("result")
        if isinstance(result, dict) and "content" in result:
            return result["content"]
    return body


class GroupsApiClient:
    """Authenticated client for the groups endpoints.

    Attributes:
        base_url: Base URL of the API (e.g. https://api.topcoder.com)
        timeout: Timeout in seconds applied to every request
        membership_type: Membership type sent when adding members
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: int = 10,
        membership_type: str = "user",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.membership_type = membership_type
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        self._logger = logger.bind(component="groups_api_client")

    def list_groups(self) -> OperationResult:
        """GET /v3/groups. Data is the list of raw group dicts."""
        return self._request("GET", "v3/groups", unwrap=True)

    def list_member_groups(self, member_id: int) -> OperationResult:
        """GET /v3/groups?memberId=...; the groups the member belongs to."""
        return self._request(
            "GET",
            "v3/groups",
            params={"memberId": member_id, "membershipType": self.membership_type},
            unwrap=True,
        )

    def list_group_members(self, group_id: str) -> OperationResult:
        """GET /v3/groups/{groupId}/members. Data is the list of memberships."""
        return self._request("GET", f"v3/groups/{group_id}/members", unwrap=True)

    def add_group_member(self, group_id: str, member_id: int) -> OperationResult:
        """POST /v3/groups/{groupId}/members."""
        return self._request(
            "POST",
            f"v3/groups/{group_id}/members",
            json_data={
                "param": {
                    "memberId": member_id,
                    "membershipType": self.membership_type,
                }
            },
            unwrap=True,
        )

    def delete_group_membership(
        self, group_id: str, membership_id: str
    ) -> OperationResult:
        """DELETE /v3/groups/{groupId}/members/{membershipId}."""
        return self._request(
            "DELETE", f"v3/groups/{group_id}/members/{membership_id}", unwrap=True
        )

    def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        unwrap: bool = False,
    ) -> OperationResult:
        url = urljoin(self.base_url, path)
        operation = f"{method} /{path}"

        log = self._logger.bind(method=method, path=f"/{path}")
        log.debug("groups_api_request", params=params)

        try:
            response = self._session.request(
                method=method,
                url=url,
                json=json_data,
                params=params,
                timeout=self.timeout,
            )
        except Exception as e:
            result = classify_request_exception(e, timeout=self.timeout)
            log.error(
                "groups_api_request_failed",
                error=result.message,
                **result.log_fields(),
            )
            return result

        result = classify_response(response, operation)
        if not result.is_success:
            log.warning(
                "groups_api_error_response",
                status_code=response.status_code,
                error=result.message,
                **result.log_fields(),
            )
            return result

        log.debug("groups_api_success", status_code=response.status_code)
        if unwrap:
            result.data = unwrap_content(result.data)
        return result

    def close(self) -> None:
        """Close HTTP session and release connections."""
        self._session.close()
        self._logger.debug("groups_api_client_closed")
