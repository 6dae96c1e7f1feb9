"""Error classifiers for HTTP calls.

Converts ``requests`` responses and exceptions into standardized
OperationResult objects so callers never inspect status codes themselves.

Key Functions:
- classify_response(): HTTP response → OperationResult
- classify_request_exception(): requests exception → OperationResult

Usage:
    from infrastructure.operations.classifiers import (
        classify_response,
        classify_request_exception,
    )

    try:
        response = session.get(url, timeout=10)
    except requests.RequestException as exc:
        return classify_request_exception(exc, timeout=10)
    return classify_response(response, "GET /v3/groups")
"""

import json
from typing import Any, Optional

import requests

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

DEFAULT_RETRY_AFTER_SECONDS = 60


def _retry_after(response: requests.Response) -> Optional[int]:
    header_value = response.headers.get("Retry-After")
    if not header_value:
        return None
    try:
        return int(header_value)
    except (ValueError, TypeError):
        return DEFAULT_RETRY_AFTER_SECONDS


def _parse_body(response: requests.Response) -> Optional[Any]:
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError):
        return None


def extract_error_message(body: Optional[Any], text: str) -> str:
    """Extract a human readable error message from a response body.

    The v3 API nests errors under ``result.content``; other services use
    ``message``, ``error`` or ``detail`` at the top level.
    """
    if isinstance(body, dict):
        result = body.get("result")
        if isinstance(result, dict) and isinstance(result.get("content"), str):
            return result["content"]
        for key in ("message", "error", "detail"):
            if key in body:
                return str(body[key])

    return text[:200] if text else "Unknown error"


def classify_response(response: requests.Response, operation: str) -> OperationResult:
    """Classify an HTTP response into an OperationResult.

    Status Code Mapping:
    - 2xx: SUCCESS with the parsed JSON body as data
    - 401/403: UNAUTHORIZED
    - 404: NOT_FOUND
    - 429: TRANSIENT_ERROR with retry_after
    - other 4xx: PERMANENT_ERROR
    - 5xx: TRANSIENT_ERROR (retry_after when the server sent one)

    Args:
        response: Response returned by requests
        operation: Short description used in messages (e.g. "POST /v3/groups/1/members")

    Returns:
        OperationResult describing the response
    """
    status_code = response.status_code
    body = _parse_body(response)

    if 200 <= status_code < 300:
        return OperationResult.success(data=body, message=f"{operation} succeeded")

    error_message = extract_error_message(body, response.text)
    message = f"{operation} failed ({status_code}): {error_message}"

    if status_code in (401, 403):
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            message,
            error_code=f"HTTP_{status_code}",
        )

    if status_code == 404:
        return OperationResult.not_found(message, error_code="HTTP_404")

    if status_code == 429:
        return OperationResult.transient_error(
            message,
            error_code="RATE_LIMITED",
            retry_after=_retry_after(response) or DEFAULT_RETRY_AFTER_SECONDS,
        )

    if 400 <= status_code < 500:
        return OperationResult.permanent_error(
            message, error_code=f"HTTP_{status_code}"
        )

    if 500 <= status_code < 600:
        return OperationResult.transient_error(
            message,
            error_code=f"HTTP_{status_code}",
            retry_after=_retry_after(response),
        )

    return OperationResult.transient_error(
        f"{operation} returned unexpected status code {status_code}",
        error_code=f"HTTP_{status_code}",
    )


def classify_request_exception(
    exc: Exception, timeout: Optional[float] = None
) -> OperationResult:
    """Classify an exception raised while sending a request.

    Timeouts and connection errors are transient. Anything else raised by
    requests (invalid URL, too many redirects) is permanent.
    """
    if isinstance(exc, requests.Timeout):
        return OperationResult.transient_error(
            f"Request timeout after {timeout}s" if timeout else "Request timeout",
            error_code="TIMEOUT",
        )

    if isinstance(exc, requests.ConnectionError):
        return OperationResult.transient_error(
            f"Connection error: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    if isinstance(exc, requests.RequestException):
        return OperationResult.permanent_error(
            f"Request error: {type(exc).__name__}: {str(exc)}",
            error_code="REQUEST_ERROR",
        )

    return OperationResult.transient_error(
        f"Unexpected error: {type(exc).__name__}: {str(exc)}",
        error_code="UNEXPECTED_ERROR",
    )
