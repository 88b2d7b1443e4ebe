"""Structured exceptions raised by the VMS client engine."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

    from vms_client_core.errors.models import ErrorDetail


class VMSClientError(Exception):
    """Base exception for every error raised by this library."""

    pass


class TransportError(VMSClientError):
    """Non-2xx HTTP response, or no response at all (status_code == 0)."""

    def __init__(
        self,
        message: str | None = None,
        *,
        method: str = "<unknown method>",
        url: str = "<unknown URL>",
        status_code: int = 0,
        body: str = "",
        response: "httpx.Response | None" = None,
        detail: "ErrorDetail | None" = None,
    ):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        self.response = response
        self.detail = detail
        super().__init__(message or self._default_message())

    def _default_message(self) -> str:
        if self.status_code == 0:
            return f"response body: {self.body}"
        return (
            f"{self.method} request to {self.url} returned status code {self.status_code}"
            f" - response body: {self.body}"
        )


class ClientError(TransportError):
    """4xx client errors."""

    pass


class BadRequestError(ClientError):
    """400 Bad Request."""

    pass


class UnauthorizedError(ClientError):
    """401 Unauthorized."""

    pass


class ForbiddenError(ClientError):
    """403 Forbidden."""

    pass


class ConflictError(ClientError):
    """409 Conflict."""

    pass


class RateLimitError(ClientError):
    """429 Too Many Requests."""

    def __init__(self, message: str | None = None, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(TransportError):
    """5xx server errors."""

    pass


class ResponseDecodeError(VMSClientError):
    """Response body could not be turned into a Record, RecordSet or EmptyRecord."""

    pass


class NotFoundError(VMSClientError):
    """A lookup matched nothing (or matched a single, fully empty record)."""

    def __init__(self, resource: str, query: str = ""):
        super().__init__(f"resource '{resource}' not found for params '{query}'")
        self.resource = resource
        self.query = query


class TooManyRecordsError(VMSClientError):
    """A lookup expected to be unique matched more than one record."""

    def __init__(self, resource_path: str, params: dict[str, Any] | None = None):
        super().__init__(f"too many records found for resource '{resource_path}' with params '{params}'")
        self.resource_path = resource_path
        self.params = params


class VersionUnsupportedError(VMSClientError):
    """The connected cluster is older than the resource's minimum version."""

    def __init__(self, resource_type: str, cluster_version: str, required_version: str):
        super().__init__(
            f'resource "{resource_type}" is not supported in cluster version {cluster_version}'
            f" (supported from version {required_version})"
        )
        self.resource_type = resource_type
        self.cluster_version = cluster_version
        self.required_version = required_version


class TaskFailedError(VMSClientError):
    """An asynchronous server task ended in a state other than "completed"."""

    def __init__(self, task_name: str, task_id: int, state: str, message: str | None = None):
        text = message if message is not None else "no messages or unexpected format"
        super().__init__(f"task {task_name} failed with ID {task_id}: state={state}, message: {text}")
        self.task_name = task_name
        self.task_id = task_id
        self.state = state
        self.message = message


class TaskTimeoutError(VMSClientError, TimeoutError):
    """A task (or polled condition) did not finish within its retry budget or deadline."""

    def __init__(self, message: str, task_id: Any = None, attempts: int | None = None):
        super().__init__(message)
        self.task_id = task_id
        self.attempts = attempts


class ValidationError(VMSClientError):
    """Malformed client configuration (missing host, missing credentials, ...)."""

    pass


class FatalError(VMSClientError):
    """Raised by ``must_*`` helpers when an unexpected failure must abort the caller."""

    pass
