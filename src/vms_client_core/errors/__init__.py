"""Error taxonomy and HTTP error handling for the VMS client."""

from vms_client_core.errors.exceptions import (
    BadRequestError,
    ClientError,
    ConflictError,
    FatalError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ResponseDecodeError,
    ServerError,
    TaskFailedError,
    TaskTimeoutError,
    TooManyRecordsError,
    TransportError,
    UnauthorizedError,
    ValidationError,
    VersionUnsupportedError,
    VMSClientError,
)
from vms_client_core.errors.handler import (
    expect_status_codes,
    ignore_not_found,
    ignore_status_codes,
    is_not_found,
    is_too_many_records,
    is_transport_error,
    raise_for_status,
)
from vms_client_core.errors.models import ErrorDetail

__all__ = [
    "BadRequestError",
    "ClientError",
    "ConflictError",
    "ErrorDetail",
    "FatalError",
    "ForbiddenError",
    "NotFoundError",
    "RateLimitError",
    "ResponseDecodeError",
    "ServerError",
    "TaskFailedError",
    "TaskTimeoutError",
    "TooManyRecordsError",
    "TransportError",
    "UnauthorizedError",
    "VMSClientError",
    "ValidationError",
    "VersionUnsupportedError",
    "expect_status_codes",
    "ignore_not_found",
    "ignore_status_codes",
    "is_not_found",
    "is_too_many_records",
    "is_transport_error",
    "raise_for_status",
]
