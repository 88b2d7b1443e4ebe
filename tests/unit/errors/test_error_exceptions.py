"""Tests for the exception taxonomy."""

import pytest

from vms_client_core.auth.exceptions import AuthenticationError, CredentialError
from vms_client_core.errors.exceptions import (
    BadRequestError,
    ClientError,
    FatalError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TaskFailedError,
    TaskTimeoutError,
    TooManyRecordsError,
    TransportError,
    ValidationError,
    VersionUnsupportedError,
    VMSClientError,
)


@pytest.mark.unit
def test_transport_error_instantiation():
    """TransportError keeps method, url, status and body."""
    error = TransportError(method="GET", url="https://vms.test/api/v5/quotas", status_code=502, body="bad gateway")

    assert error.method == "GET"
    assert error.url == "https://vms.test/api/v5/quotas"
    assert error.status_code == 502
    assert error.body == "bad gateway"
    assert str(error) == (
        "GET request to https://vms.test/api/v5/quotas returned status code 502 - response body: bad gateway"
    )


@pytest.mark.unit
def test_transport_error_without_response():
    """Status 0 means no response was received."""
    error = TransportError(body="server unreachable")

    assert str(error) == "response body: server unreachable"


@pytest.mark.unit
def test_exception_inheritance():
    """Every library error derives from VMSClientError."""
    assert issubclass(BadRequestError, ClientError)
    assert issubclass(ClientError, TransportError)
    assert issubclass(ServerError, TransportError)
    assert issubclass(RateLimitError, ClientError)
    for exc_class in (
        TransportError,
        NotFoundError,
        TooManyRecordsError,
        VersionUnsupportedError,
        TaskFailedError,
        TaskTimeoutError,
        ValidationError,
        FatalError,
        AuthenticationError,
    ):
        assert issubclass(exc_class, VMSClientError)
    assert issubclass(AuthenticationError, CredentialError)


@pytest.mark.unit
def test_rate_limit_error_with_retry_after():
    """RateLimitError keeps retry_after."""
    error = RateLimitError(retry_after=60, status_code=429)

    assert error.retry_after == 60
    assert error.status_code == 429


@pytest.mark.unit
def test_too_many_records_keeps_params():
    """TooManyRecordsError carries the original lookup parameters."""
    error = TooManyRecordsError("quotas", {"name": "q"})

    assert error.params == {"name": "q"}
    assert "quotas" in str(error)


@pytest.mark.unit
def test_version_unsupported_message():
    """VersionUnsupportedError names the resource and both versions."""
    error = VersionUnsupportedError("Volume", "5.2.0", "5.3.0")

    assert str(error) == 'resource "Volume" is not supported in cluster version 5.2.0 (supported from version 5.3.0)'


@pytest.mark.unit
def test_task_failed_message():
    """TaskFailedError renders the last message, or a generic note without one."""
    with_message = TaskFailedError("CreateView", 12, "failed", "path is busy")
    without_message = TaskFailedError("CreateView", 12, "failed")

    assert str(with_message) == "task CreateView failed with ID 12: state=failed, message: path is busy"
    assert "no messages or unexpected format" in str(without_message)


@pytest.mark.unit
def test_task_timeout_is_builtin_timeout():
    """TaskTimeoutError can be caught as TimeoutError."""
    with pytest.raises(TimeoutError):
        raise TaskTimeoutError("still running", task_id=7, attempts=30)
