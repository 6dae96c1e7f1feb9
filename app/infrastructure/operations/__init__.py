"""Operation result types and status enums.

Standardized result types for calls made to the group directory and the
token endpoint, with classifiers that turn ``requests`` failures and HTTP
responses into results.
"""

from infrastructure.operations.classifiers import (
    classify_request_exception,
    classify_response,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_request_exception",
    "classify_response",
]
