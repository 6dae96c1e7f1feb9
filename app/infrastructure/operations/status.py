from enum import Enum


class OperationStatus(Enum):
    """Outcome of a call to the group directory or the token endpoint.

    TRANSIENT_ERROR covers failures worth retrying later (network, timeout,
    5xx, rate limit). PERMANENT_ERROR covers requests that will be rejected
    again as sent. UNAUTHORIZED and NOT_FOUND map 401/403 and 404.
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
