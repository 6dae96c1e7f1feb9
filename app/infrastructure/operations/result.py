"""Operation result dataclass.

Every call made to the group directory returns an OperationResult instead of
raising, so callers decide per call whether a failure is fatal. The
communities module converts failed results into DirectoryClientError.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from infrastructure.operations.status import OperationStatus


@dataclass
class OperationResult:
    """Outcome of a single directory or token call.

    Attributes:
        status: high-level outcome
        message: text for logs and error descriptors
        data: parsed payload (unwrapped v3 content, membership list, ...)
        error_code: machine code such as HTTP_404, TIMEOUT or RATE_LIMITED
        retry_after: seconds the server asked us to wait
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    retry_after: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def is_not_found(self) -> bool:
        return self.status == OperationStatus.NOT_FOUND

    @property
    def is_retryable(self) -> bool:
        """Timeouts, connection failures, 5xx and rate limiting."""
        return self.status == OperationStatus.TRANSIENT_ERROR

    def log_fields(self) -> Dict[str, Any]:
        """Structured fields describing this result, for log events."""
        fields: Dict[str, Any] = {"status": self.status.value}
        if self.error_code:
            fields["error_code"] = self.error_code
        if self.retry_after is not None:
            fields["retry_after"] = self.retry_after
        return fields

    def as_failure(self, message: str) -> "OperationResult":
        """Copy of this failed result carrying a caller-level message."""
        return OperationResult(
            status=self.status,
            message=message,
            error_code=self.error_code,
            retry_after=self.retry_after,
        )

    @classmethod
    def success(cls, data: Optional[Any] = None, message: str = "ok"):
        return cls(status=OperationStatus.SUCCESS, message=message, data=data)

    @classmethod
    def error(
        cls,
        status: OperationStatus,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
        data: Optional[Any] = None,
    ) -> "OperationResult":
        return cls(
            status=status,
            message=message,
            data=data,
            error_code=error_code,
            retry_after=retry_after,
        )

    @classmethod
    def transient_error(
        cls,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "OperationResult":
        return cls.error(
            OperationStatus.TRANSIENT_ERROR,
            message,
            error_code=error_code,
            retry_after=retry_after,
        )

    @classmethod
    def permanent_error(
        cls, message: str, error_code: Optional[str] = None
    ) -> "OperationResult":
        """Rejected payloads and other 4xx responses that will fail again."""
        return cls.error(OperationStatus.PERMANENT_ERROR, message, error_code)

    @classmethod
    def not_found(
        cls, message: str, error_code: Optional[str] = "NOT_FOUND"
    ) -> "OperationResult":
        return cls.error(OperationStatus.NOT_FOUND, message, error_code)
